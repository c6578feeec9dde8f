"""
Dashboard API endpoints (read only)

Every endpoint takes ?year=&month=; year defaults to the current year in the
configured timezone, no month means the whole year.
"""
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel
from sqlalchemy.orm import Session

from bookkeeper.api.deps import get_db, get_current_user_id
from bookkeeper.application.dashboard import ChartPoint, DashboardService
from bookkeeper.config import get_settings


router = APIRouter(prefix="/api/v1/dashboard", tags=["dashboard"])


# === Response models ===

class CardResponse(BaseModel):
    title: str
    value: str
    previous_value: str
    icon: str


class ChartPointResponse(BaseModel):
    name: str
    value: str


class ChartsResponse(BaseModel):
    expense_trend: list[ChartPointResponse]
    category_expense: list[ChartPointResponse]


class BudgetWidgetResponse(BaseModel):
    period: str
    is_set: bool
    amount: str
    spent: str
    progress: str


class LoanWidgetResponse(BaseModel):
    id: int
    description: str | None = None
    principal: str
    loan_date: str
    repayment_date: str | None = None
    outstanding_balance: str
    progress: str


class WidgetsResponse(BaseModel):
    budgets: list[BudgetWidgetResponse]
    loans: list[LoanWidgetResponse]


def _now() -> datetime:
    return datetime.now(get_settings().get_timezone())


def _resolve_period(year: int | None, month: int | None) -> tuple[int, int | None]:
    if month is not None and not 1 <= month <= 12:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="month must be between 1 and 12")
    return (year if year is not None else _now().year), month


def _points(points: list[ChartPoint]) -> list[ChartPointResponse]:
    return [ChartPointResponse(name=p.name, value=str(p.value)) for p in points]


# === Endpoints ===

@router.get("/cards", response_model=list[CardResponse])
def get_cards(
    year: int | None = None,
    month: int | None = None,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """Period totals next to the previous period, plus the active loans total"""
    year, month = _resolve_period(year, month)
    return [
        CardResponse(title=c.title, value=str(c.value), previous_value=str(c.previous_value), icon=c.icon)
        for c in DashboardService(db).get_cards(user_id, year, month)
    ]


@router.get("/charts", response_model=ChartsResponse)
def get_charts(
    year: int | None = None,
    month: int | None = None,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    year, month = _resolve_period(year, month)
    charts = DashboardService(db).get_charts(user_id, year, month)
    return ChartsResponse(
        expense_trend=_points(charts.expense_trend),
        category_expense=_points(charts.category_expense),
    )


@router.get("/widgets", response_model=WidgetsResponse)
def get_widgets(
    year: int | None = None,
    month: int | None = None,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    year, month = _resolve_period(year, month)
    widgets = DashboardService(db).get_widgets(user_id, year, month, today=_now().date())
    return WidgetsResponse(
        budgets=[
            BudgetWidgetResponse(
                period=b.period,
                is_set=b.is_set,
                amount=str(b.amount),
                spent=str(b.spent),
                progress=str(b.progress),
            )
            for b in widgets.budgets
        ],
        loans=[
            LoanWidgetResponse(
                id=v.loan.id,
                description=v.loan.description,
                principal=str(v.loan.principal),
                loan_date=v.loan.loan_date.isoformat(),
                repayment_date=v.loan.repayment_date.isoformat() if v.loan.repayment_date else None,
                outstanding_balance=str(v.outstanding_balance),
                progress=str(v.progress),
            )
            for v in widgets.loans
        ],
    )
