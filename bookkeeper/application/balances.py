"""
Balance mutator and sufficiency check.

apply_delta is the only code path that changes accounts.balance after an
account is created. It has no floor: callers that debit run
require_sufficient_funds first, in the same unit of work.
"""
import logging
from decimal import Decimal

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from bookkeeper.domain.errors import InsufficientFundsError, NotFoundError
from bookkeeper.infrastructure.db.models import Account

logger = logging.getLogger(__name__)


def lock_account(db: Session, user_id: int, account_id: int) -> Account:
    """
    Load the user's account row with SELECT ... FOR UPDATE.

    The row lock lasts until the unit of work ends, so a balance read here
    cannot be changed by a concurrent request before this one commits.
    """
    account = db.execute(
        select(Account)
        .where(Account.id == account_id, Account.user_id == user_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    ).scalar_one_or_none()
    if account is None:
        raise NotFoundError("account", account_id)
    return account


def require_sufficient_funds(db: Session, user_id: int, account_id: int, amount: Decimal) -> Decimal:
    """
    Lock the account and check balance >= amount.

    Returns:
        The balance that was checked

    Raises:
        NotFoundError: account missing or not owned by user_id
        InsufficientFundsError: balance < amount
    """
    account = lock_account(db, user_id, account_id)
    balance = Decimal(account.balance)
    if balance < amount:
        raise InsufficientFundsError(account_id, current=balance, required=Decimal(amount))
    return balance


def apply_delta(db: Session, account_id: int, signed_amount: Decimal) -> None:
    """balance := balance + signed_amount, as one UPDATE statement"""
    result = db.execute(
        update(Account)
        .where(Account.id == account_id)
        .values(balance=Account.balance + signed_amount)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        raise NotFoundError("account", account_id)
    logger.debug("Account #%s balance changed by %s", account_id, signed_amount)

