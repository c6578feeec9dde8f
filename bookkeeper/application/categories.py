"""
Category use cases

Categories are either the user's own or shared (user_id IS NULL). Shared
categories are read-only for users.
"""
from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session

from bookkeeper.application.unit_of_work import unit_of_work
from bookkeeper.domain.category import CATEGORY_KINDS
from bookkeeper.domain.errors import CategoryValidationError, ConflictError, NotFoundError
from bookkeeper.infrastructure.db.models import Budget, Category, LedgerEntry


def _validate_name_and_kind(name: str, kind: str) -> str:
    name = (name or "").strip()
    if not name:
        raise CategoryValidationError("Category name must not be empty")
    if kind not in CATEGORY_KINDS:
        raise CategoryValidationError(
            f"Unknown category kind: {kind}. Use one of: {', '.join(CATEGORY_KINDS)}"
        )
    return name


class CreateCategoryUseCase:
    def __init__(self, db: Session):
        self.db = db

    def execute(self, user_id: int, name: str, kind: str, icon: str = "") -> int:
        name = _validate_name_and_kind(name, kind)

        with unit_of_work(self.db):
            category = Category(user_id=user_id, name=name, kind=kind, icon=icon or "")
            self.db.add(category)
            self.db.flush()
            return category.id


class UpdateCategoryUseCase:
    """
    Rename / re-kind / re-icon one of the user's own categories.

    Shared categories are not editable and answer NotFound. The new name may
    not be taken by another category the user can see.
    """

    def __init__(self, db: Session):
        self.db = db

    def execute(self, user_id: int, category_id: int, name: str, kind: str, icon: str = "") -> None:
        name = _validate_name_and_kind(name, kind)

        with unit_of_work(self.db):
            category = self.db.execute(
                select(Category).where(Category.id == category_id, Category.user_id == user_id)
            ).scalar_one_or_none()
            if category is None:
                raise NotFoundError("category", category_id)

            taken = self.db.execute(
                select(func.count(Category.id)).where(
                    or_(Category.user_id == user_id, Category.user_id.is_(None)),
                    Category.name == name,
                    Category.id != category_id,
                )
            ).scalar()
            if taken:
                raise ConflictError(f"Category name {name!r} is already in use")

            category.name = name
            category.kind = kind
            category.icon = icon or ""


class DeleteCategoryUseCase:
    """Delete one of the user's own categories while nothing references it"""

    def __init__(self, db: Session):
        self.db = db

    def execute(self, user_id: int, category_id: int) -> None:
        with unit_of_work(self.db):
            category = self.db.execute(
                select(Category).where(Category.id == category_id, Category.user_id == user_id)
            ).scalar_one_or_none()
            if category is None:
                raise NotFoundError("category", category_id)

            entries = self.db.execute(
                select(func.count(LedgerEntry.id)).where(
                    LedgerEntry.user_id == user_id,
                    LedgerEntry.category_id == category_id,
                )
            ).scalar()
            budgets = self.db.execute(
                select(func.count(Budget.id)).where(
                    Budget.user_id == user_id,
                    Budget.category_id == category_id,
                )
            ).scalar()
            if entries or budgets:
                raise ConflictError(
                    f"Category #{category_id} is in use ({entries} entries, {budgets} budgets)"
                )

            self.db.delete(category)


def list_categories(db: Session, user_id: int, kind: str | None = None) -> list[Category]:
    """Shared categories and the user's own, shared first"""
    query = select(Category).where(or_(Category.user_id == user_id, Category.user_id.is_(None)))
    if kind is not None:
        query = query.where(Category.kind == kind)
    query = query.order_by(Category.user_id.is_not(None), Category.name, Category.id)
    return list(db.execute(query).scalars())
