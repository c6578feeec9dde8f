"""
Loan domain constants and outstanding-balance arithmetic
"""
from decimal import Decimal

LOAN_STATUS_ACTIVE = "active"
LOAN_STATUS_PAID = "paid"


def outstanding_balance(principal: Decimal, total_repaid: Decimal) -> Decimal:
    """principal - sum of repayments; may go negative after over-repayment"""
    return Decimal(principal) - Decimal(total_repaid)


def repayment_progress(principal: Decimal, total_repaid: Decimal) -> Decimal:
    """Share of the principal already repaid (0 when principal is 0)"""
    principal = Decimal(principal)
    if principal <= 0:
        return Decimal("0")
    return Decimal(total_repaid) / principal


def default_settlement_description(loan_description: str | None) -> str:
    return f"Loan settled: {loan_description or ''}".rstrip()
