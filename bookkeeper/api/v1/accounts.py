"""
Account API endpoints
"""
from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, field_validator
from sqlalchemy.orm import Session

from bookkeeper.api.deps import get_db, get_current_user_id
from bookkeeper.application.accounts import (
    CreateAccountUseCase,
    DeleteAccountUseCase,
    RenameAccountUseCase,
    SetPrimaryAccountUseCase,
    get_account,
    list_accounts,
)
from bookkeeper.infrastructure.db.models import Account
from bookkeeper.utils.validation import parse_amount


router = APIRouter(prefix="/api/v1/accounts", tags=["accounts"])


# === Request/Response models ===

class CreateAccountRequest(BaseModel):
    name: str
    kind: str = "wallet"  # wallet, card, other
    initial_balance: str = "0"

    @field_validator("initial_balance")
    @classmethod
    def validate_balance(cls, v: str) -> str:
        """Dot or comma separator, at most 2 decimal places"""
        return str(parse_amount(v, positive=False))


class UpdateAccountRequest(BaseModel):
    name: str
    kind: str | None = None


class AccountResponse(BaseModel):
    id: int
    name: str
    kind: str
    balance: str  # Decimal as string
    is_primary: bool


def _account_response(a: Account) -> AccountResponse:
    return AccountResponse(
        id=a.id,
        name=a.name,
        kind=a.kind,
        balance=str(a.balance),
        is_primary=a.is_primary,
    )


# === Endpoints ===

@router.post("/", response_model=AccountResponse, status_code=status.HTTP_201_CREATED)
def create_account(
    req: CreateAccountRequest,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    account_id = CreateAccountUseCase(db).execute(
        user_id=user_id,
        name=req.name,
        kind=req.kind,
        initial_balance=req.initial_balance,
    )
    return _account_response(get_account(db, user_id, account_id))


@router.get("/", response_model=list[AccountResponse])
def get_accounts(
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    return [_account_response(a) for a in list_accounts(db, user_id)]


@router.patch("/{account_id}", response_model=AccountResponse)
def update_account(
    account_id: int,
    req: UpdateAccountRequest,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    RenameAccountUseCase(db).execute(user_id=user_id, account_id=account_id, name=req.name, kind=req.kind)
    return _account_response(get_account(db, user_id, account_id))


@router.post("/{account_id}/primary")
def set_primary_account(
    account_id: int,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    SetPrimaryAccountUseCase(db).execute(user_id=user_id, account_id=account_id)
    return {"message": "Primary account set"}


@router.delete("/{account_id}")
def delete_account(
    account_id: int,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    DeleteAccountUseCase(db).execute(user_id=user_id, account_id=account_id)
    return {"message": "Account deleted"}
