"""
Budget API endpoints
"""
from decimal import Decimal

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, field_validator
from sqlalchemy.orm import Session

from bookkeeper.api.deps import get_db, get_current_user_id
from bookkeeper.application.budget import DeleteBudgetUseCase, SaveBudgetUseCase, list_budgets
from bookkeeper.utils.validation import parse_amount


router = APIRouter(prefix="/api/v1/budgets", tags=["budgets"])


# === Request/Response models ===

class SaveBudgetRequest(BaseModel):
    period: str  # monthly, yearly
    year: int
    month: int | None = None
    category_id: int | None = None
    amount: str

    @field_validator("amount")
    @classmethod
    def validate_amount(cls, v: str) -> str:
        return str(parse_amount(v))


class BudgetResponse(BaseModel):
    id: int
    period: str
    year: int
    month: int | None = None
    category_id: int | None = None
    amount: str
    spent: str
    remaining: str


# === Endpoints ===

@router.post("/", status_code=status.HTTP_201_CREATED)
def save_budget(
    req: SaveBudgetRequest,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """Create or replace the budget for a period/category slot"""
    budget_id = SaveBudgetUseCase(db).execute(
        user_id=user_id,
        period=req.period,
        year=req.year,
        month=req.month,
        category_id=req.category_id,
        amount=Decimal(req.amount),
    )
    return {"id": budget_id, "message": "Budget saved"}


@router.get("/", response_model=list[BudgetResponse])
def get_budgets(
    year: int,
    month: int,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    if not 1 <= month <= 12:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="month must be between 1 and 12")

    return [
        BudgetResponse(
            id=v.budget.id,
            period=v.budget.period,
            year=v.budget.year,
            month=v.budget.month,
            category_id=v.budget.category_id,
            amount=str(v.budget.amount),
            spent=str(v.spent),
            remaining=str(v.remaining),
        )
        for v in list_budgets(db, user_id, year, month)
    ]


@router.delete("/{budget_id}")
def delete_budget(
    budget_id: int,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    DeleteBudgetUseCase(db).execute(user_id=user_id, budget_id=budget_id)
    return {"message": "Budget deleted"}
