"""
Transaction use cases - ledger entries and the balance mutations they carry

Every entry is written together with its balance effects in one unit of
work, and deleted together with the exact inverse of those effects.
"""
import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.orm import Session

from bookkeeper.application.balances import apply_delta, require_sufficient_funds
from bookkeeper.application.ownership import ResourceKind, require_owned
from bookkeeper.application.unit_of_work import unit_of_work
from bookkeeper.domain.entry import EntryDraft, EntryType, balance_effects, reversal_effects
from bookkeeper.domain.errors import NotFoundError
from bookkeeper.domain.period import date_window
from bookkeeper.infrastructure.db.models import LedgerEntry

logger = logging.getLogger(__name__)


def post_entry(db: Session, user_id: int, draft: EntryDraft, system: bool = False) -> LedgerEntry:
    """
    Validate a draft, run its checks, apply its balance effects and insert it.

    Does not commit: the caller owns the unit of work.

    Order:
    1. field matrix (no database access)
    2. ownership of every referenced resource
    3. sufficiency of the debited account (row locked)
    4. balance mutations, debit first
    5. insert the ledger row
    """
    draft.validate(system=system)
    recipe = draft.recipe

    for field in recipe.owned_accounts:
        require_owned(db, user_id, ResourceKind.ACCOUNT, getattr(draft, field))
    if recipe.owned_loan:
        require_owned(db, user_id, ResourceKind.LOAN, draft.related_loan_id)
    if draft.category_id is not None:
        require_owned(db, user_id, ResourceKind.CATEGORY, draft.category_id)

    if recipe.debit_field is not None:
        require_sufficient_funds(db, user_id, getattr(draft, recipe.debit_field), draft.amount)

    for account_id, delta in balance_effects(draft):
        apply_delta(db, account_id, delta)

    entry = LedgerEntry(
        user_id=user_id,
        entry_type=recipe.entry_type.value,
        amount=draft.amount,
        entry_date=draft.entry_date,
        description=draft.description or "",
        category_id=draft.category_id,
        related_loan_id=draft.related_loan_id,
        from_account_id=draft.from_account_id,
        to_account_id=draft.to_account_id,
        settlement_month=draft.settlement_month,
        settlement_sign=draft.settlement_sign,
    )
    db.add(entry)
    db.flush()
    return entry


class CreateEntryUseCase:
    """
    Use case: create a ledger entry (income / expense / repayment / transfer)

    settlement entries are rejected here; only MonthlySettlementUseCase
    produces them.
    """

    def __init__(self, db: Session):
        self.db = db

    def execute(
        self,
        user_id: int,
        entry_type: str,
        amount: Decimal,
        entry_date: date,
        description: str = "",
        category_id: int | None = None,
        related_loan_id: int | None = None,
        from_account_id: int | None = None,
        to_account_id: int | None = None,
    ) -> int:
        """
        Create an entry and apply its balance effects atomically.

        Returns:
            entry_id: id of the new ledger entry

        Raises:
            EntryValidationError: field combination does not match the type
            NotFoundError: a referenced account/loan/category is not the user's
            InsufficientFundsError: debited account balance < amount
        """
        draft = EntryDraft(
            entry_type=entry_type,
            amount=amount,
            entry_date=entry_date,
            description=description,
            category_id=category_id,
            related_loan_id=related_loan_id,
            from_account_id=from_account_id,
            to_account_id=to_account_id,
        )
        # Fail fast before the unit of work opens
        draft.validate()

        with unit_of_work(self.db):
            entry = post_entry(self.db, user_id, draft)
            entry_id = entry.id

        logger.info(
            "Entry #%s created: %s %s (user %s)",
            entry_id, draft.entry_type.value, draft.amount, user_id,
        )
        return entry_id


class DeleteEntryUseCase:
    """
    Use case: delete a ledger entry, reversing its balance effects

    Deltas commute, so the reversal is exact no matter what happened to the
    accounts after the entry was created.
    """

    def __init__(self, db: Session):
        self.db = db

    def execute(self, user_id: int, entry_id: int) -> None:
        with unit_of_work(self.db):
            entry = self.db.execute(
                select(LedgerEntry)
                .where(LedgerEntry.id == entry_id, LedgerEntry.user_id == user_id)
                .with_for_update()
            ).scalar_one_or_none()
            if entry is None:
                raise NotFoundError("entry", entry_id)

            for account_id, delta in reversal_effects(entry):
                apply_delta(self.db, account_id, delta)

            self.db.delete(entry)
            self.db.flush()

        logger.info("Entry #%s deleted and reversed (user %s)", entry_id, user_id)


# ---------------------------------------------------------------------------
# Ledger listing
# ---------------------------------------------------------------------------

@dataclass
class PeriodSummary:
    total_income: Decimal
    total_expense: Decimal

    @property
    def net(self) -> Decimal:
        return self.total_income - self.total_expense


def list_entries(
    db: Session,
    user_id: int,
    year: int | None = None,
    month: int | None = None,
) -> tuple[list[LedgerEntry], PeriodSummary]:
    """
    Entries of one user, newest first, optionally limited to a year or month.

    The summary counts repayments as expense (money that left the user's
    accounts); settlements and transfers are not counted.
    """
    query = select(LedgerEntry).where(LedgerEntry.user_id == user_id)
    if year is not None:
        start, end = date_window(year, month)
        query = query.where(LedgerEntry.entry_date >= start, LedgerEntry.entry_date < end)
    query = query.order_by(LedgerEntry.entry_date.desc(), LedgerEntry.created_at.desc(), LedgerEntry.id.desc())

    entries = list(db.execute(query).scalars())

    income = Decimal("0")
    expense = Decimal("0")
    for e in entries:
        if e.entry_type == EntryType.INCOME.value:
            income += Decimal(e.amount)
        elif e.entry_type in (EntryType.EXPENSE.value, EntryType.REPAYMENT.value):
            expense += Decimal(e.amount)

    return entries, PeriodSummary(total_income=income, total_expense=expense)
