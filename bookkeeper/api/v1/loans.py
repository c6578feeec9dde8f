"""
Loan API endpoints
"""
from datetime import date
from decimal import Decimal

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field, field_validator
from sqlalchemy.orm import Session

from bookkeeper.api.deps import get_db, get_current_user_id
from bookkeeper.application.loans import (
    CreateLoanUseCase,
    DeleteLoanUseCase,
    LoanView,
    ReactivateLoanUseCase,
    SettleLoanUseCase,
    UpdateLoanUseCase,
    list_loans,
)
from bookkeeper.utils.validation import parse_amount


router = APIRouter(prefix="/api/v1/loans", tags=["loans"])


# === Request/Response models ===

class LoanRequest(BaseModel):
    principal: str
    interest_rate: Decimal = Field(default=Decimal("0"), ge=0)
    loan_date: date
    repayment_date: date | None = None
    description: str | None = None

    @field_validator("principal")
    @classmethod
    def validate_principal(cls, v: str) -> str:
        return str(parse_amount(v))


class SettleLoanRequest(BaseModel):
    from_account_id: int
    repayment_date: date
    description: str | None = None


class LoanResponse(BaseModel):
    id: int
    principal: str
    interest_rate: str
    loan_date: date
    repayment_date: date | None = None
    description: str | None = None
    status: str
    total_repaid: str
    outstanding_balance: str


def _loan_response(view: LoanView) -> LoanResponse:
    loan = view.loan
    return LoanResponse(
        id=loan.id,
        principal=str(loan.principal),
        interest_rate=str(loan.interest_rate),
        loan_date=loan.loan_date,
        repayment_date=loan.repayment_date,
        description=loan.description,
        status=loan.status,
        total_repaid=str(view.total_repaid),
        outstanding_balance=str(view.outstanding_balance),
    )


# === Endpoints ===

@router.post("/", status_code=status.HTTP_201_CREATED)
def create_loan(
    req: LoanRequest,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    loan_id = CreateLoanUseCase(db).execute(
        user_id=user_id,
        principal=Decimal(req.principal),
        interest_rate=req.interest_rate,
        loan_date=req.loan_date,
        repayment_date=req.repayment_date,
        description=req.description,
    )
    return {"id": loan_id, "message": "Loan created"}


@router.get("/", response_model=list[LoanResponse])
def get_loans(
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    return [_loan_response(v) for v in list_loans(db, user_id)]


@router.put("/{loan_id}")
def update_loan(
    loan_id: int,
    req: LoanRequest,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    UpdateLoanUseCase(db).execute(
        user_id=user_id,
        loan_id=loan_id,
        principal=Decimal(req.principal),
        interest_rate=req.interest_rate,
        loan_date=req.loan_date,
        repayment_date=req.repayment_date,
        description=req.description,
    )
    return {"message": "Loan updated"}


@router.post("/{loan_id}/settle")
def settle_loan(
    loan_id: int,
    req: SettleLoanRequest,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """Repay the full outstanding balance from one account and mark the loan paid"""
    entry_id = SettleLoanUseCase(db).execute(
        user_id=user_id,
        loan_id=loan_id,
        from_account_id=req.from_account_id,
        repayment_date=req.repayment_date,
        description=req.description,
    )
    return {"entry_id": entry_id, "message": "Loan fully repaid"}


@router.post("/{loan_id}/reactivate")
def reactivate_loan(
    loan_id: int,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    ReactivateLoanUseCase(db).execute(user_id=user_id, loan_id=loan_id)
    return {"message": "Loan status restored to active"}


@router.delete("/{loan_id}")
def delete_loan(
    loan_id: int,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    DeleteLoanUseCase(db).execute(user_id=user_id, loan_id=loan_id)
    return {"message": "Loan deleted"}
