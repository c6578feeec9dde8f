"""
Category API endpoints
"""
from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, field_validator
from sqlalchemy.orm import Session

from bookkeeper.api.deps import get_db, get_current_user_id
from bookkeeper.application.categories import (
    CreateCategoryUseCase,
    DeleteCategoryUseCase,
    UpdateCategoryUseCase,
    list_categories,
)
from bookkeeper.domain.category import CATEGORY_KINDS


router = APIRouter(prefix="/api/v1/categories", tags=["categories"])


# === Request/Response models ===

class CategoryRequest(BaseModel):
    name: str
    kind: str  # income, expense
    icon: str = ""

    @field_validator("kind")
    @classmethod
    def validate_kind(cls, v: str) -> str:
        if v not in CATEGORY_KINDS:
            raise ValueError(f"kind must be income or expense, got: {v}")
        return v


class CategoryResponse(BaseModel):
    id: int
    name: str
    kind: str
    icon: str
    is_shared: bool


# === Endpoints ===

@router.post("/", status_code=status.HTTP_201_CREATED)
def create_category(
    req: CategoryRequest,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    category_id = CreateCategoryUseCase(db).execute(
        user_id=user_id, name=req.name, kind=req.kind, icon=req.icon
    )
    return {"id": category_id, "message": "Category created"}


@router.get("/", response_model=list[CategoryResponse])
def get_categories(
    kind: str | None = None,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """Shared categories plus the user's own"""
    return [
        CategoryResponse(
            id=c.id,
            name=c.name,
            kind=c.kind,
            icon=c.icon or "",
            is_shared=c.user_id is None,
        )
        for c in list_categories(db, user_id, kind)
    ]


@router.put("/{category_id}")
def update_category(
    category_id: int,
    req: CategoryRequest,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """Only the user's own categories; shared ones answer 404"""
    UpdateCategoryUseCase(db).execute(
        user_id=user_id, category_id=category_id, name=req.name, kind=req.kind, icon=req.icon
    )
    return {"message": "Category updated"}


@router.delete("/{category_id}")
def delete_category(
    category_id: int,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    DeleteCategoryUseCase(db).execute(user_id=user_id, category_id=category_id)
    return {"message": "Category deleted"}
