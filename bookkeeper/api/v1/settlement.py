"""
Monthly settlement API endpoint
"""
from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session

from bookkeeper.api.deps import get_db, get_current_user_id
from bookkeeper.application.settlement import MonthlySettlementUseCase


router = APIRouter(prefix="/api/v1/settlement", tags=["settlement"])


class SettlementResponse(BaseModel):
    status: str  # settled, noop
    month: str
    amount: str
    entry_id: int | None = None
    message: str


@router.post("/monthly", response_model=SettlementResponse)
def settle_previous_month(
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """
    Sweep last month's net income into the primary account.

    A second call for the same month answers 409.
    """
    result = MonthlySettlementUseCase(db).execute(user_id=user_id)
    return SettlementResponse(
        status=result.status,
        month=result.period_key,
        amount=str(result.amount),
        entry_id=result.entry_id,
        message=result.message,
    )
