"""
Budget domain constants
"""

BUDGET_PERIOD_MONTHLY = "monthly"
BUDGET_PERIOD_YEARLY = "yearly"

BUDGET_PERIODS = (BUDGET_PERIOD_MONTHLY, BUDGET_PERIOD_YEARLY)
