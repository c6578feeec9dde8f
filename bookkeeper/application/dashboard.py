"""
Dashboard - aggregated read view over the ledger.

Pure read layer: nothing here writes or locks. Provides three blocks:
  1. Cards (income, expense and net against the previous period, active loans)
  2. Charts (expense trend, expense by category)
  3. Widgets (overall budgets, active loans with repayment progress)

A period is a whole year or, when month is given, a single month.
"""
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from bookkeeper.application.budget import list_budgets
from bookkeeper.application.loans import LoanView, list_loans
from bookkeeper.application.reports import sum_by_type_and_period, sum_spent
from bookkeeper.domain.budget import BUDGET_PERIOD_MONTHLY, BUDGET_PERIOD_YEARLY
from bookkeeper.domain.entry import EntryType
from bookkeeper.domain.loan import LOAN_STATUS_ACTIVE
from bookkeeper.domain.period import MonthPeriod, date_window
from bookkeeper.infrastructure.db.models import Category, LedgerEntry, Loan

UNCATEGORIZED = "Uncategorized"


@dataclass
class DashboardCard:
    title: str
    value: Decimal
    previous_value: Decimal
    icon: str


@dataclass
class ChartPoint:
    name: str
    value: Decimal


@dataclass
class DashboardCharts:
    expense_trend: list[ChartPoint] = field(default_factory=list)
    category_expense: list[ChartPoint] = field(default_factory=list)


@dataclass
class BudgetWidget:
    period: str
    is_set: bool
    amount: Decimal
    spent: Decimal

    @property
    def progress(self) -> Decimal:
        if self.amount <= 0:
            return Decimal("0")
        return self.spent / self.amount


@dataclass
class DashboardWidgets:
    budgets: list[BudgetWidget]
    loans: list[LoanView]


def previous_period(year: int, month: int | None = None) -> tuple[int, int | None]:
    """
    The period right before (year, month): the previous month, or the previous year.

    >>> previous_period(2026, 1)
    (2025, 12)
    >>> previous_period(2026)
    (2025, None)
    """
    if month is None:
        return year - 1, None
    before = MonthPeriod(year, month).previous()
    return before.year, before.month


class DashboardService:
    def __init__(self, db: Session):
        self.db = db

    # ------------------------------------------------------------------
    # 1. Cards
    # ------------------------------------------------------------------

    def get_cards(self, user_id: int, year: int, month: int | None = None) -> list[DashboardCard]:
        """
        Income, expense and net for the period next to the previous period,
        plus the principal of all active loans.
        """
        current = sum_by_type_and_period(self.db, user_id, year, month)
        previous = sum_by_type_and_period(self.db, user_id, *previous_period(year, month))

        return [
            DashboardCard("Total income", current.income, previous.income, "TrendingUp"),
            DashboardCard("Total expense", current.expense, previous.expense, "TrendingDown"),
            DashboardCard("Net balance", current.net, previous.net, "Scale"),
            DashboardCard("Active loans", self._active_loan_principal(user_id), Decimal("0"), "Landmark"),
        ]

    def _active_loan_principal(self, user_id: int) -> Decimal:
        total = self.db.execute(
            select(func.coalesce(func.sum(Loan.principal), 0)).where(
                Loan.user_id == user_id,
                Loan.status == LOAN_STATUS_ACTIVE,
            )
        ).scalar()
        return Decimal(str(total or 0))

    # ------------------------------------------------------------------
    # 2. Charts
    # ------------------------------------------------------------------

    def get_charts(self, user_id: int, year: int, month: int | None = None) -> DashboardCharts:
        """
        expense_trend: expense per day ("01".."31") for a month, per month ("2026-01") for a year;
                       only buckets that have expenses, in calendar order
        category_expense: expense per category name, largest first; entries without
                          a category are grouped under "Uncategorized"
        """
        return DashboardCharts(
            expense_trend=self._expense_trend(user_id, year, month),
            category_expense=self._category_expense(user_id, year, month),
        )

    def _expense_filter(self, user_id: int, year: int, month: int | None) -> list:
        start, end = date_window(year, month)
        return [
            LedgerEntry.user_id == user_id,
            LedgerEntry.entry_type == EntryType.EXPENSE.value,
            LedgerEntry.entry_date >= start,
            LedgerEntry.entry_date < end,
        ]

    def _expense_trend(self, user_id: int, year: int, month: int | None) -> list[ChartPoint]:
        # Grouped per day in SQL, bucketed here: no dialect-specific date formatting
        rows = self.db.execute(
            select(LedgerEntry.entry_date, func.sum(LedgerEntry.amount))
            .where(*self._expense_filter(user_id, year, month))
            .group_by(LedgerEntry.entry_date)
            .order_by(LedgerEntry.entry_date)
        ).all()

        buckets: dict[str, Decimal] = {}
        for entry_date, total in rows:
            name = _trend_bucket(entry_date, by_day=month is not None)
            buckets[name] = buckets.get(name, Decimal("0")) + Decimal(str(total))
        return [ChartPoint(name, value) for name, value in buckets.items()]

    def _category_expense(self, user_id: int, year: int, month: int | None) -> list[ChartPoint]:
        name = func.coalesce(Category.name, UNCATEGORIZED)
        total = func.sum(LedgerEntry.amount)
        rows = self.db.execute(
            select(name, total)
            .select_from(LedgerEntry)
            .outerjoin(Category, Category.id == LedgerEntry.category_id)
            .where(*self._expense_filter(user_id, year, month))
            .group_by(name)
            .having(total > 0)
            .order_by(total.desc(), name)
        ).all()
        return [ChartPoint(category, Decimal(str(value))) for category, value in rows]

    # ------------------------------------------------------------------
    # 3. Widgets
    # ------------------------------------------------------------------

    def get_widgets(self, user_id: int, year: int, month: int | None, today: date) -> DashboardWidgets:
        """
        Overall (category-less) monthly and yearly budgets with spent amounts,
        and active loans with repayment progress.

        Without a month the monthly budget is the one of today's month.
        """
        if month is None:
            month = today.month

        overall = {
            v.budget.period: v
            for v in list_budgets(self.db, user_id, year, month)
            if v.budget.category_id is None
        }

        budgets = []
        for period, budget_month in ((BUDGET_PERIOD_MONTHLY, month), (BUDGET_PERIOD_YEARLY, None)):
            view = overall.get(period)
            if view is not None:
                budgets.append(BudgetWidget(period, True, Decimal(view.budget.amount), view.spent))
            else:
                spent = sum_spent(self.db, user_id, year, budget_month)
                budgets.append(BudgetWidget(period, False, Decimal("0"), spent))

        return DashboardWidgets(
            budgets=budgets,
            loans=list_loans(self.db, user_id, status=LOAN_STATUS_ACTIVE),
        )


def _trend_bucket(entry_date: date, by_day: bool) -> str:
    if by_day:
        return f"{entry_date.day:02d}"
    return MonthPeriod.containing(entry_date).key
