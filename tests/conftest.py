"""
Pytest fixtures for testing
"""
from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

from bookkeeper.infrastructure.db.session import Base
from bookkeeper.infrastructure.db.models import Account
from bookkeeper.application.accounts import CreateAccountUseCase, SetPrimaryAccountUseCase
from bookkeeper.application.loans import CreateLoanUseCase


@pytest.fixture
def db_engine():
    """In-memory SQLite engine shared by every connection (TestClient runs routes in a worker thread)"""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db_session(db_engine) -> Session:
    """Create database session for tests"""
    SessionLocal = sessionmaker(bind=db_engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture
def sample_user_id():
    """Sample user ID for tests"""
    return 1


@pytest.fixture
def other_user_id():
    """A second user, for isolation tests"""
    return 2


@pytest.fixture
def make_account(db_session):
    """Factory: create an account and return its id"""
    def _make(user_id, balance="0", name="Cash", primary=False):
        account_id = CreateAccountUseCase(db_session).execute(
            user_id=user_id, name=name, initial_balance=balance
        )
        if primary:
            SetPrimaryAccountUseCase(db_session).execute(user_id=user_id, account_id=account_id)
        return account_id
    return _make


@pytest.fixture
def make_loan(db_session):
    """Factory: create an active loan and return its id"""
    def _make(user_id, principal="1000", description="Car loan"):
        return CreateLoanUseCase(db_session).execute(
            user_id=user_id,
            principal=Decimal(principal),
            loan_date=date(2026, 1, 10),
            description=description,
        )
    return _make


@pytest.fixture
def balance_of(db_session):
    """Read an account balance straight from the database"""
    def _balance(account_id):
        db_session.expire_all()
        return Decimal(db_session.get(Account, account_id).balance)
    return _balance
