"""
FastAPI dependencies (DB session, authentication)
"""
from fastapi import Depends, Request, HTTPException, status
from sqlalchemy.orm import Session

from bookkeeper.infrastructure.db.session import get_db as _get_db
from bookkeeper.infrastructure.db.models import User


# Re-export get_db for convenience
get_db = _get_db


def get_current_user_id(request: Request, db: Session = Depends(get_db)) -> int:
    """
    Id of the logged-in user, taken from the signed session cookie.

    The login flow that puts "user_id" into the session lives outside this
    service.

    Raises:
        HTTPException(401): not logged in or the user no longer exists
    """
    user_id = request.session.get("user_id")
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated"
        )

    user = db.get(User, user_id)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found"
        )

    current_id = user.id
    # End the read-only transaction so the use case starts a fresh unit of work
    db.rollback()
    return current_id
