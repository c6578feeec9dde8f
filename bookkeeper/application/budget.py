"""
Budget use cases and query helpers.

A budget is a spending ceiling for a month or a year, overall or for one
category. Spent is computed on the fly from the ledger (expense + repayment).
"""
from dataclasses import dataclass
from decimal import Decimal

from sqlalchemy import delete, or_, and_, select
from sqlalchemy.orm import Session

from bookkeeper.application.ownership import ResourceKind, require_owned
from bookkeeper.application.reports import sum_spent
from bookkeeper.application.unit_of_work import unit_of_work
from bookkeeper.domain.budget import BUDGET_PERIODS, BUDGET_PERIOD_MONTHLY, BUDGET_PERIOD_YEARLY
from bookkeeper.domain.errors import BudgetValidationError, NotFoundError
from bookkeeper.infrastructure.db.models import Budget


class SaveBudgetUseCase:
    """
    Use case: create or replace the budget for one (period, year, month, category) slot

    The old row is removed and the new one inserted in one unit of work;
    a NULL category_id cannot be matched by ON CONFLICT on every backend.
    """

    def __init__(self, db: Session):
        self.db = db

    def execute(
        self,
        user_id: int,
        period: str,
        year: int,
        amount: Decimal,
        month: int | None = None,
        category_id: int | None = None,
    ) -> int:
        if period not in BUDGET_PERIODS:
            raise BudgetValidationError(f"Unknown budget period: {period}. Use monthly or yearly")
        if period == BUDGET_PERIOD_MONTHLY and (month is None or not 1 <= month <= 12):
            raise BudgetValidationError("A monthly budget needs a month between 1 and 12")
        if period == BUDGET_PERIOD_YEARLY:
            month = None
        if amount is None or amount <= 0:
            raise BudgetValidationError("Budget amount must be greater than zero")

        with unit_of_work(self.db):
            if category_id is not None:
                require_owned(self.db, user_id, ResourceKind.CATEGORY, category_id)

            slot = [
                Budget.user_id == user_id,
                Budget.period == period,
                Budget.year == year,
                Budget.month.is_(None) if month is None else Budget.month == month,
                Budget.category_id.is_(None) if category_id is None else Budget.category_id == category_id,
            ]
            self.db.execute(delete(Budget).where(*slot).execution_options(synchronize_session=False))

            budget = Budget(
                user_id=user_id,
                period=period,
                year=year,
                month=month,
                category_id=category_id,
                amount=amount,
            )
            self.db.add(budget)
            self.db.flush()
            return budget.id


class DeleteBudgetUseCase:
    def __init__(self, db: Session):
        self.db = db

    def execute(self, user_id: int, budget_id: int) -> None:
        with unit_of_work(self.db):
            result = self.db.execute(
                delete(Budget)
                .where(Budget.id == budget_id, Budget.user_id == user_id)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                raise NotFoundError("budget", budget_id)


@dataclass
class BudgetView:
    budget: Budget
    spent: Decimal

    @property
    def remaining(self) -> Decimal:
        return Decimal(self.budget.amount) - self.spent

    @property
    def progress(self) -> Decimal:
        amount = Decimal(self.budget.amount)
        if amount <= 0:
            return Decimal("0")
        return self.spent / amount


def list_budgets(db: Session, user_id: int, year: int, month: int) -> list[BudgetView]:
    """
    Yearly budgets of `year` and monthly budgets of (`year`, `month`), with spent amounts.

    Monthly before yearly; overall budget before per-category ones.
    """
    budgets = db.execute(
        select(Budget)
        .where(
            Budget.user_id == user_id,
            Budget.year == year,
            or_(
                Budget.period == BUDGET_PERIOD_YEARLY,
                and_(Budget.period == BUDGET_PERIOD_MONTHLY, Budget.month == month),
            ),
        )
        .order_by(Budget.period, Budget.category_id.is_not(None), Budget.category_id, Budget.id)
    ).scalars()

    views = []
    for b in budgets:
        spent = sum_spent(
            db,
            user_id,
            b.year,
            b.month if b.period == BUDGET_PERIOD_MONTHLY else None,
            b.category_id,
        )
        views.append(BudgetView(budget=b, spent=spent))
    return views
