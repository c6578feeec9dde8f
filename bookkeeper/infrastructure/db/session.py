"""
Database engine and sessions (SQLAlchemy)

One engine per process; each request gets its own Session and every use case
runs its unit of work on it. Row locks taken with SELECT ... FOR UPDATE live
until that unit of work commits or rolls back.
"""
from functools import lru_cache

import psycopg
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, sessionmaker, Session

from bookkeeper.config import get_settings


class Base(DeclarativeBase):
    pass


@lru_cache
def get_engine() -> Engine:
    settings = get_settings()
    return create_engine(
        settings.get_sqlalchemy_url(),
        pool_pre_ping=True,
        echo=settings.DEBUG,
    )


@lru_cache
def get_session_factory() -> sessionmaker:
    return sessionmaker(bind=get_engine(), autoflush=False)


def get_db() -> Session:
    """
    FastAPI dependency: one session per request, closed when the response is sent.

    Usage:
        @router.get("/accounts")
        def get_accounts(db: Session = Depends(get_db)):
            ...
    """
    db = get_session_factory()()
    try:
        yield db
    finally:
        db.close()


def check_db_connection() -> None:
    """
    Readiness probe: SELECT 1 over a raw psycopg connection

    Raises:
        psycopg.OperationalError: database unreachable
    """
    with psycopg.connect(get_settings().DATABASE_URL, connect_timeout=3) as conn:
        conn.execute("SELECT 1").fetchone()
