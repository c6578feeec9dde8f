"""
Account domain constants
"""

# Account kinds (free-form display tag, no behavior attached)
ACCOUNT_KIND_WALLET = "wallet"
ACCOUNT_KIND_CARD = "card"
ACCOUNT_KIND_OTHER = "other"

ACCOUNT_KINDS = (ACCOUNT_KIND_WALLET, ACCOUNT_KIND_CARD, ACCOUNT_KIND_OTHER)
