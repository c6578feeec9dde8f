"""
Period aggregates over the ledger (used by monthly settlement and budgets)
"""
from dataclasses import dataclass
from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from bookkeeper.domain.entry import EntryType
from bookkeeper.domain.period import date_window
from bookkeeper.infrastructure.db.models import LedgerEntry


@dataclass
class PeriodTotals:
    income: Decimal
    expense: Decimal
    repayment: Decimal

    @property
    def net(self) -> Decimal:
        """income - expense; repayments are loan principal, not spending"""
        return self.income - self.expense


def sum_by_type_and_period(db: Session, user_id: int, year: int, month: int | None = None) -> PeriodTotals:
    """
    Sum entry amounts by type for one user over a year or a single month.

    Transfers and settlements move money between the user's own accounts and
    are not part of any total.
    """
    start, end = date_window(year, month)
    rows = db.execute(
        select(LedgerEntry.entry_type, func.coalesce(func.sum(LedgerEntry.amount), 0))
        .where(
            LedgerEntry.user_id == user_id,
            LedgerEntry.entry_date >= start,
            LedgerEntry.entry_date < end,
            LedgerEntry.entry_type.in_([
                EntryType.INCOME.value, EntryType.EXPENSE.value, EntryType.REPAYMENT.value,
            ]),
        )
        .group_by(LedgerEntry.entry_type)
    ).all()

    totals = {entry_type: Decimal(str(total)) for entry_type, total in rows}
    return PeriodTotals(
        income=totals.get(EntryType.INCOME.value, Decimal("0")),
        expense=totals.get(EntryType.EXPENSE.value, Decimal("0")),
        repayment=totals.get(EntryType.REPAYMENT.value, Decimal("0")),
    )


def sum_spent(
    db: Session,
    user_id: int,
    year: int,
    month: int | None = None,
    category_id: int | None = None,
) -> Decimal:
    """Expense + repayment total for a budget window, optionally for one category"""
    start, end = date_window(year, month)
    query = select(func.coalesce(func.sum(LedgerEntry.amount), 0)).where(
        LedgerEntry.user_id == user_id,
        LedgerEntry.entry_date >= start,
        LedgerEntry.entry_date < end,
        LedgerEntry.entry_type.in_([EntryType.EXPENSE.value, EntryType.REPAYMENT.value]),
    )
    if category_id is not None:
        query = query.where(LedgerEntry.category_id == category_id)
    return Decimal(str(db.execute(query).scalar() or 0))
