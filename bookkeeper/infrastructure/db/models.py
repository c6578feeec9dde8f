"""
SQLAlchemy ORM models
"""
from decimal import Decimal
from datetime import date as date_type, datetime
from sqlalchemy import String, Integer, SmallInteger, Text, TIMESTAMP, Date, func, Boolean, Numeric, UniqueConstraint, Index, text
from sqlalchemy.orm import Mapped, mapped_column

from bookkeeper.infrastructure.db.session import Base


class User(Base):
    """
    Registered user. Credentials are managed outside this service; the session
    cookie only carries users.id.
    """
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        server_default=func.now(),
        nullable=False
    )


class Account(Base):
    """
    A pool of money owned by one user.

    balance changes only through bookkeeper.application.balances.apply_delta.
    """
    __tablename__ = "accounts"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    kind: Mapped[str] = mapped_column(String(32), nullable=False, server_default="wallet")  # wallet, card, other
    balance: Mapped[Decimal] = mapped_column(
        Numeric(precision=20, scale=2),
        nullable=False,
        server_default="0"
    )
    is_primary: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default=text("false"))

    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        server_default=func.now(),
        nullable=False
    )

    __table_args__ = (
        # At most one primary account per user
        Index(
            "uq_accounts_primary_per_user",
            "user_id",
            unique=True,
            postgresql_where=text("is_primary"),
            sqlite_where=text("is_primary = 1"),
        ),
    )


class Category(Base):
    """
    Income/expense category. user_id IS NULL marks a shared category visible to everyone.
    """
    __tablename__ = "categories"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    user_id: Mapped[int | None] = mapped_column(Integer, nullable=True, index=True)

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    kind: Mapped[str] = mapped_column(String(20), nullable=False)  # income/expense
    icon: Mapped[str] = mapped_column(String(64), nullable=False, server_default="")

    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        server_default=func.now(),
        nullable=False
    )


class Loan(Base):
    """
    Borrowed money. Outstanding balance is derived from repayment entries.
    """
    __tablename__ = "loans"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)

    principal: Mapped[Decimal] = mapped_column(Numeric(precision=20, scale=2), nullable=False)
    interest_rate: Mapped[Decimal] = mapped_column(
        Numeric(precision=8, scale=4),
        nullable=False,
        server_default="0"
    )
    loan_date: Mapped[date_type] = mapped_column(Date, nullable=False)
    repayment_date: Mapped[date_type | None] = mapped_column(Date, nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(String(16), nullable=False, server_default="active")  # active, paid

    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        server_default=func.now(),
        nullable=False
    )


class LedgerEntry(Base):
    """
    One financial event (the "transactions" table).

    Rows are never updated: correcting an entry means delete + create.
    amount is always positive; direction comes from entry_type and
    from_account_id/to_account_id (settlement_sign for settlement rows).
    """
    __tablename__ = "transactions"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)

    entry_type: Mapped[str] = mapped_column(String(20), nullable=False, index=True)
    amount: Mapped[Decimal] = mapped_column(Numeric(precision=20, scale=2), nullable=False)
    entry_date: Mapped[date_type] = mapped_column(Date, nullable=False, index=True)
    description: Mapped[str] = mapped_column(Text, nullable=False, server_default="")

    category_id: Mapped[int | None] = mapped_column(Integer, nullable=True, index=True)
    related_loan_id: Mapped[int | None] = mapped_column(Integer, nullable=True, index=True)
    from_account_id: Mapped[int | None] = mapped_column(Integer, nullable=True, index=True)
    to_account_id: Mapped[int | None] = mapped_column(Integer, nullable=True, index=True)

    # Settlement only: "YYYY-MM" and +1 (surplus) / -1 (deficit)
    settlement_month: Mapped[str | None] = mapped_column(String(7), nullable=True)
    settlement_sign: Mapped[int | None] = mapped_column(SmallInteger, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        server_default=func.now(),
        nullable=False
    )

    __table_args__ = (
        UniqueConstraint("user_id", "settlement_month", name="uq_transactions_user_settlement_month"),
        Index("ix_transactions_user_date", "user_id", "entry_date"),
    )


class Budget(Base):
    """
    Spending ceiling for a month or a year, overall (category_id IS NULL) or per category.
    """
    __tablename__ = "budgets"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)

    period: Mapped[str] = mapped_column(String(10), nullable=False)  # monthly, yearly
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    month: Mapped[int | None] = mapped_column(SmallInteger, nullable=True)
    category_id: Mapped[int | None] = mapped_column(Integer, nullable=True, index=True)
    amount: Mapped[Decimal] = mapped_column(Numeric(precision=20, scale=2), nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        server_default=func.now(),
        nullable=False
    )

    __table_args__ = (
        Index("ix_budgets_user_period", "user_id", "period", "year", "month"),
    )
