"""
Category domain constants
"""

CATEGORY_KIND_INCOME = "income"
CATEGORY_KIND_EXPENSE = "expense"

CATEGORY_KINDS = (CATEGORY_KIND_INCOME, CATEGORY_KIND_EXPENSE)
