"""
Transaction (ledger entry) API endpoints
"""
from datetime import date, datetime
from decimal import Decimal

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, field_validator
from sqlalchemy.orm import Session

from bookkeeper.api.deps import get_db, get_current_user_id
from bookkeeper.application.transactions import CreateEntryUseCase, DeleteEntryUseCase, list_entries
from bookkeeper.infrastructure.db.models import LedgerEntry
from bookkeeper.utils.validation import parse_amount


router = APIRouter(prefix="/api/v1/transactions", tags=["transactions"])


# === Request/Response models ===

class CreateEntryRequest(BaseModel):
    type: str  # income, expense, repayment, transfer
    amount: str  # Decimal as string
    transaction_date: date
    description: str = ""
    category_id: int | None = None
    related_loan_id: int | None = None
    from_account_id: int | None = None
    to_account_id: int | None = None

    @field_validator("amount")
    @classmethod
    def validate_amount(cls, v: str) -> str:
        """Positive, dot or comma separator, at most 2 decimal places"""
        return str(parse_amount(v))


class EntryResponse(BaseModel):
    id: int
    type: str
    amount: str
    transaction_date: date
    description: str
    category_id: int | None = None
    related_loan_id: int | None = None
    from_account_id: int | None = None
    to_account_id: int | None = None
    settlement_month: str | None = None
    created_at: datetime | None = None


class SummaryResponse(BaseModel):
    total_income: str
    total_expense: str
    net_balance: str


class EntryListResponse(BaseModel):
    transactions: list[EntryResponse]
    summary: SummaryResponse


def _entry_response(e: LedgerEntry) -> EntryResponse:
    return EntryResponse(
        id=e.id,
        type=e.entry_type,
        amount=str(e.amount),
        transaction_date=e.entry_date,
        description=e.description,
        category_id=e.category_id,
        related_loan_id=e.related_loan_id,
        from_account_id=e.from_account_id,
        to_account_id=e.to_account_id,
        settlement_month=e.settlement_month,
        created_at=e.created_at,
    )


# === Endpoints ===

@router.post("/", status_code=status.HTTP_201_CREATED)
def create_entry(
    req: CreateEntryRequest,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """Create a ledger entry and update account balances"""
    entry_id = CreateEntryUseCase(db).execute(
        user_id=user_id,
        entry_type=req.type,
        amount=Decimal(req.amount),
        entry_date=req.transaction_date,
        description=req.description,
        category_id=req.category_id,
        related_loan_id=req.related_loan_id,
        from_account_id=req.from_account_id,
        to_account_id=req.to_account_id,
    )
    return {"id": entry_id, "message": "Entry created"}


@router.get("/", response_model=EntryListResponse)
def get_entries(
    year: int | None = None,
    month: int | None = None,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """Ledger for a year, a month, or all time, with income/expense summary"""
    if month is not None and (year is None or not 1 <= month <= 12):
        raise HTTPException(status_code=400, detail="month needs a year and must be between 1 and 12")

    entries, summary = list_entries(db, user_id, year, month)
    return EntryListResponse(
        transactions=[_entry_response(e) for e in entries],
        summary=SummaryResponse(
            total_income=str(summary.total_income),
            total_expense=str(summary.total_expense),
            net_balance=str(summary.net),
        ),
    )


@router.delete("/{entry_id}")
def delete_entry(
    entry_id: int,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """Delete an entry; account balances are restored"""
    DeleteEntryUseCase(db).execute(user_id=user_id, entry_id=entry_id)
    return {"message": "Entry deleted, account balances restored"}
