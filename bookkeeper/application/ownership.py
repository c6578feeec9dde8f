"""
Ownership checks for multi-tenant isolation.

Checks run on the caller's session, i.e. inside the same unit of work as the
mutation they guard. A resource that exists but belongs to another user is
reported exactly like a missing one.
"""
from enum import Enum

from sqlalchemy import select, or_
from sqlalchemy.orm import Session

from bookkeeper.domain.errors import NotFoundError
from bookkeeper.infrastructure.db.models import Account, Category, Loan


class ResourceKind(str, Enum):
    ACCOUNT = "account"
    LOAN = "loan"
    CATEGORY = "category"


def _ownership_filter(kind: ResourceKind, user_id: int):
    if kind == ResourceKind.ACCOUNT:
        return Account, Account.user_id == user_id
    if kind == ResourceKind.LOAN:
        return Loan, Loan.user_id == user_id
    if kind == ResourceKind.CATEGORY:
        # Shared categories (user_id IS NULL) are usable by everyone
        return Category, or_(Category.user_id == user_id, Category.user_id.is_(None))
    raise ValueError(f"Unknown resource kind: {kind}")


def is_owner(db: Session, user_id: int, kind: ResourceKind, resource_id: int | None) -> bool:
    """
    True if the resource exists and belongs to user_id.

    Never raises for missing resources.
    """
    if resource_id is None:
        return False
    model, owned = _ownership_filter(ResourceKind(kind), user_id)
    found = db.execute(
        select(model.id).where(model.id == resource_id, owned)
    ).first()
    return found is not None


def require_owned(db: Session, user_id: int, kind: ResourceKind, resource_id: int | None) -> None:
    """Raise NotFoundError unless is_owner(...)"""
    if not is_owner(db, user_id, kind, resource_id):
        raise NotFoundError(ResourceKind(kind).value, resource_id)
