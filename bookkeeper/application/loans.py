"""
Loan use cases - CRUD, outstanding balance and full settlement

Loan status moves to "paid" only through SettleLoanUseCase; it can be put
back to "active" manually (ReactivateLoanUseCase).
"""
import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from sqlalchemy import case, func, select
from sqlalchemy.orm import Session

from bookkeeper.application.transactions import post_entry
from bookkeeper.application.unit_of_work import unit_of_work
from bookkeeper.domain.entry import EntryDraft, EntryType, is_whole_cents
from bookkeeper.domain.errors import ConflictError, LoanAlreadySettledError, LoanValidationError, NotFoundError
from bookkeeper.domain.loan import (
    LOAN_STATUS_ACTIVE,
    LOAN_STATUS_PAID,
    default_settlement_description,
    outstanding_balance,
    repayment_progress,
)
from bookkeeper.infrastructure.db.models import LedgerEntry, Loan

logger = logging.getLogger(__name__)


def _validate_terms(principal: Decimal, interest_rate: Decimal) -> None:
    if principal is None or principal <= 0:
        raise LoanValidationError("Principal must be greater than zero")
    if not is_whole_cents(principal):
        raise LoanValidationError("Principal may have at most 2 decimal places")
    if interest_rate is None or interest_rate < 0:
        raise LoanValidationError("Interest rate must not be negative")


def total_repaid(db: Session, user_id: int, loan_id: int) -> Decimal:
    """Sum of repayment entries that reference the loan"""
    total = db.execute(
        select(func.coalesce(func.sum(LedgerEntry.amount), 0)).where(
            LedgerEntry.user_id == user_id,
            LedgerEntry.entry_type == EntryType.REPAYMENT.value,
            LedgerEntry.related_loan_id == loan_id,
        )
    ).scalar()
    return Decimal(str(total or 0))


def _get_loan(db: Session, user_id: int, loan_id: int, lock: bool = False) -> Loan:
    query = select(Loan).where(Loan.id == loan_id, Loan.user_id == user_id)
    if lock:
        query = query.with_for_update().execution_options(populate_existing=True)
    loan = db.execute(query).scalar_one_or_none()
    if loan is None:
        raise NotFoundError("loan", loan_id)
    return loan


class CreateLoanUseCase:
    def __init__(self, db: Session):
        self.db = db

    def execute(
        self,
        user_id: int,
        principal: Decimal,
        loan_date: date,
        interest_rate: Decimal = Decimal("0"),
        repayment_date: date | None = None,
        description: str | None = None,
    ) -> int:
        _validate_terms(principal, interest_rate)

        with unit_of_work(self.db):
            loan = Loan(
                user_id=user_id,
                principal=principal,
                interest_rate=interest_rate,
                loan_date=loan_date,
                repayment_date=repayment_date,
                description=description,
                status=LOAN_STATUS_ACTIVE,
            )
            self.db.add(loan)
            self.db.flush()
            loan_id = loan.id

        logger.info("Loan #%s created: principal %s (user %s)", loan_id, principal, user_id)
        return loan_id


class UpdateLoanUseCase:
    """Edit loan terms. Status is not editable here."""

    def __init__(self, db: Session):
        self.db = db

    def execute(
        self,
        user_id: int,
        loan_id: int,
        principal: Decimal,
        loan_date: date,
        interest_rate: Decimal,
        repayment_date: date | None = None,
        description: str | None = None,
    ) -> None:
        _validate_terms(principal, interest_rate)

        with unit_of_work(self.db):
            loan = _get_loan(self.db, user_id, loan_id, lock=True)
            loan.principal = principal
            loan.interest_rate = interest_rate
            loan.loan_date = loan_date
            loan.repayment_date = repayment_date
            loan.description = description


class ReactivateLoanUseCase:
    """Put a paid loan back to active and clear its repayment date"""

    def __init__(self, db: Session):
        self.db = db

    def execute(self, user_id: int, loan_id: int) -> None:
        with unit_of_work(self.db):
            loan = _get_loan(self.db, user_id, loan_id, lock=True)
            loan.status = LOAN_STATUS_ACTIVE
            loan.repayment_date = None


class DeleteLoanUseCase:
    """Delete a loan that no repayment entry references"""

    def __init__(self, db: Session):
        self.db = db

    def execute(self, user_id: int, loan_id: int) -> None:
        with unit_of_work(self.db):
            loan = _get_loan(self.db, user_id, loan_id, lock=True)

            count = self.db.execute(
                select(func.count(LedgerEntry.id)).where(
                    LedgerEntry.user_id == user_id,
                    LedgerEntry.related_loan_id == loan_id,
                )
            ).scalar()
            if count:
                raise ConflictError(
                    f"Loan #{loan_id} cannot be deleted: {count} repayment entries reference it"
                )

            self.db.delete(loan)


class SettleLoanUseCase:
    """
    Use case: repay the whole outstanding balance of a loan from one account

    Same balance recipe as a user-submitted repayment entry, except that the
    amount is derived (principal - repaid) and the loan is marked paid.
    """

    def __init__(self, db: Session):
        self.db = db

    def execute(
        self,
        user_id: int,
        loan_id: int,
        from_account_id: int,
        repayment_date: date,
        description: str | None = None,
    ) -> int:
        """
        Returns:
            entry_id: id of the repayment entry

        Raises:
            NotFoundError: loan or funding account is not the user's
            LoanAlreadySettledError: nothing left to repay
            InsufficientFundsError: funding account balance < outstanding
        """
        with unit_of_work(self.db):
            loan = _get_loan(self.db, user_id, loan_id, lock=True)

            outstanding = outstanding_balance(loan.principal, total_repaid(self.db, user_id, loan_id))
            if outstanding <= 0:
                raise LoanAlreadySettledError(loan_id)

            draft = EntryDraft(
                entry_type=EntryType.REPAYMENT,
                amount=outstanding,
                entry_date=repayment_date,
                description=description or default_settlement_description(loan.description),
                related_loan_id=loan_id,
                from_account_id=from_account_id,
            )
            entry = post_entry(self.db, user_id, draft)

            loan.status = LOAN_STATUS_PAID
            loan.repayment_date = repayment_date
            entry_id = entry.id

        logger.info(
            "Loan #%s settled with %s from account #%s (user %s)",
            loan_id, outstanding, from_account_id, user_id,
        )
        return entry_id


# ---------------------------------------------------------------------------
# Read model
# ---------------------------------------------------------------------------

@dataclass
class LoanView:
    loan: Loan
    total_repaid: Decimal

    @property
    def outstanding_balance(self) -> Decimal:
        return outstanding_balance(self.loan.principal, self.total_repaid)

    @property
    def progress(self) -> Decimal:
        return repayment_progress(self.loan.principal, self.total_repaid)


def list_loans(db: Session, user_id: int, status: str | None = None) -> list[LoanView]:
    """
    Loans of one user with repaid/outstanding amounts.

    Active loans first, then newest loan_date first.
    """
    repaid = (
        select(
            LedgerEntry.related_loan_id.label("loan_id"),
            func.sum(LedgerEntry.amount).label("repaid"),
        )
        .where(
            LedgerEntry.user_id == user_id,
            LedgerEntry.entry_type == EntryType.REPAYMENT.value,
            LedgerEntry.related_loan_id.is_not(None),
        )
        .group_by(LedgerEntry.related_loan_id)
        .subquery()
    )

    query = (
        select(Loan, func.coalesce(repaid.c.repaid, 0))
        .outerjoin(repaid, repaid.c.loan_id == Loan.id)
        .where(Loan.user_id == user_id)
    )
    if status is not None:
        query = query.where(Loan.status == status)
    query = query.order_by(
        case((Loan.status == LOAN_STATUS_ACTIVE, 0), else_=1),
        Loan.loan_date.desc(),
        Loan.id.desc(),
    )

    return [
        LoanView(loan=loan, total_repaid=Decimal(str(amount or 0)))
        for loan, amount in db.execute(query).all()
    ]
