"""
Account use cases - business logic for account operations
"""
import logging
from decimal import Decimal, InvalidOperation

from sqlalchemy import or_, select, update
from sqlalchemy.orm import Session

from bookkeeper.application.unit_of_work import unit_of_work
from bookkeeper.domain.account import ACCOUNT_KINDS, ACCOUNT_KIND_WALLET
from bookkeeper.domain.entry import is_whole_cents
from bookkeeper.domain.errors import AccountValidationError, ConflictError, NotFoundError
from bookkeeper.infrastructure.db.models import Account, LedgerEntry

logger = logging.getLogger(__name__)


def _get_account(db: Session, user_id: int, account_id: int, lock: bool = False) -> Account:
    query = select(Account).where(Account.id == account_id, Account.user_id == user_id)
    if lock:
        query = query.with_for_update().execution_options(populate_existing=True)
    account = db.execute(query).scalar_one_or_none()
    if account is None:
        raise NotFoundError("account", account_id)
    return account


def _validate_name_and_kind(name: str, kind: str) -> str:
    name = (name or "").strip()
    if not name:
        raise AccountValidationError("Account name must not be empty")
    if kind not in ACCOUNT_KINDS:
        raise AccountValidationError(
            f"Unknown account kind: {kind}. Use one of: {', '.join(ACCOUNT_KINDS)}"
        )
    return name


class CreateAccountUseCase:
    """
    Use case: create an account with an initial balance

    The initial balance is the only balance set outside apply_delta.
    """

    def __init__(self, db: Session):
        self.db = db

    def execute(
        self,
        user_id: int,
        name: str,
        kind: str = ACCOUNT_KIND_WALLET,
        initial_balance: str | Decimal = "0",
    ) -> int:
        """
        Args:
            user_id: owner
            name: display name
            kind: wallet, card or other
            initial_balance: decimal string or Decimal, may be negative (card debt)

        Returns:
            account_id
        """
        name = _validate_name_and_kind(name, kind)
        try:
            balance = Decimal(initial_balance)
        except (InvalidOperation, ValueError, TypeError):
            raise AccountValidationError(f"Invalid initial balance: {initial_balance!r}")
        if not balance.is_finite():
            raise AccountValidationError(f"Invalid initial balance: {initial_balance!r}")
        if not is_whole_cents(balance):
            raise AccountValidationError("Initial balance may have at most 2 decimal places")

        with unit_of_work(self.db):
            account = Account(
                user_id=user_id,
                name=name,
                kind=kind,
                balance=balance,
                is_primary=False,
            )
            self.db.add(account)
            self.db.flush()
            account_id = account.id

        logger.info("Account #%s created with balance %s (user %s)", account_id, balance, user_id)
        return account_id


class RenameAccountUseCase:
    def __init__(self, db: Session):
        self.db = db

    def execute(self, user_id: int, account_id: int, name: str, kind: str | None = None) -> None:
        with unit_of_work(self.db):
            account = _get_account(self.db, user_id, account_id, lock=True)
            account.name = _validate_name_and_kind(name, kind or account.kind)
            if kind is not None:
                account.kind = kind


class SetPrimaryAccountUseCase:
    """
    Use case: make one account the user's primary (settlement target)

    Clearing the old primary and setting the new one happen in one unit of
    work, so the user never has two primaries.
    """

    def __init__(self, db: Session):
        self.db = db

    def execute(self, user_id: int, account_id: int) -> None:
        with unit_of_work(self.db):
            _get_account(self.db, user_id, account_id, lock=True)

            self.db.execute(
                update(Account)
                .where(Account.user_id == user_id, Account.is_primary.is_(True))
                .values(is_primary=False)
                .execution_options(synchronize_session=False)
            )
            self.db.execute(
                update(Account)
                .where(Account.id == account_id, Account.user_id == user_id)
                .values(is_primary=True)
                .execution_options(synchronize_session=False)
            )

        logger.info("Account #%s is now primary (user %s)", account_id, user_id)


class DeleteAccountUseCase:
    """Delete an account whose balance is exactly zero and which is not primary"""

    def __init__(self, db: Session):
        self.db = db

    def execute(self, user_id: int, account_id: int) -> None:
        with unit_of_work(self.db):
            account = _get_account(self.db, user_id, account_id, lock=True)

            if Decimal(account.balance) != 0:
                raise ConflictError(
                    f"Account #{account_id} cannot be deleted: balance is {Decimal(account.balance):.2f}, "
                    "move the money out first"
                )
            if account.is_primary:
                raise ConflictError(
                    f"Account #{account_id} is the primary account; make another account primary first"
                )

            # Entries pointing at a deleted account could no longer be reversed
            referenced = self.db.execute(
                select(LedgerEntry.id).where(
                    LedgerEntry.user_id == user_id,
                    or_(LedgerEntry.from_account_id == account_id, LedgerEntry.to_account_id == account_id),
                ).limit(1)
            ).first()
            if referenced is not None:
                raise ConflictError(
                    f"Account #{account_id} cannot be deleted: ledger entries still reference it"
                )

            self.db.delete(account)


def list_accounts(db: Session, user_id: int) -> list[Account]:
    """Primary account first, then by creation"""
    return list(db.execute(
        select(Account)
        .where(Account.user_id == user_id)
        .order_by(Account.is_primary.desc(), Account.created_at.asc(), Account.id.asc())
    ).scalars())


def get_account(db: Session, user_id: int, account_id: int) -> Account:
    return _get_account(db, user_id, account_id)
