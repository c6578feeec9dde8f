"""
Balance-changing reads must lock their rows (SELECT ... FOR UPDATE).

SQLite drops FOR UPDATE, so the statements are captured as the session
issues them and compiled for PostgreSQL, the production dialect.
"""
import pytest
from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import event
from sqlalchemy.dialects import postgresql

from bookkeeper.application.accounts import get_account
from bookkeeper.application.balances import lock_account
from bookkeeper.application.settlement import MonthlySettlementUseCase
from bookkeeper.application.transactions import CreateEntryUseCase, DeleteEntryUseCase


@pytest.fixture
def issued_selects(db_session):
    """SELECTs issued through db_session, compiled for PostgreSQL"""
    statements = []

    def _capture(orm_execute_state):
        if orm_execute_state.is_select:
            statements.append(str(orm_execute_state.statement.compile(dialect=postgresql.dialect())))

    event.listen(db_session, "do_orm_execute", _capture)
    yield statements
    event.remove(db_session, "do_orm_execute", _capture)


def _locked(statements, table):
    return [s for s in statements if f"FROM {table}" in s and s.rstrip().endswith("FOR UPDATE")]


def _expense(db_session, user_id, account_id, amount="10", entry_date=date(2026, 9, 5)):
    return CreateEntryUseCase(db_session).execute(
        user_id=user_id,
        entry_type="expense",
        amount=Decimal(amount),
        entry_date=entry_date,
        from_account_id=account_id,
    )


def test_lock_account_selects_for_update(db_session, sample_user_id, make_account, issued_selects):
    acc = make_account(sample_user_id, balance="50")
    issued_selects.clear()

    lock_account(db_session, sample_user_id, acc)

    assert len(_locked(issued_selects, "accounts")) == 1


def test_plain_account_read_takes_no_lock(db_session, sample_user_id, make_account, issued_selects):
    acc = make_account(sample_user_id)
    issued_selects.clear()

    get_account(db_session, sample_user_id, acc)

    assert issued_selects
    assert _locked(issued_selects, "accounts") == []


def test_create_entry_locks_debited_account(db_session, sample_user_id, make_account, issued_selects):
    acc = make_account(sample_user_id, balance="50")
    issued_selects.clear()

    _expense(db_session, sample_user_id, acc)

    assert _locked(issued_selects, "accounts")


def test_delete_entry_locks_the_entry_row(db_session, sample_user_id, make_account, issued_selects):
    acc = make_account(sample_user_id, balance="50")
    entry_id = _expense(db_session, sample_user_id, acc)
    issued_selects.clear()

    DeleteEntryUseCase(db_session).execute(user_id=sample_user_id, entry_id=entry_id)

    assert len(_locked(issued_selects, "transactions")) == 1


def test_settlement_locks_primary_account(db_session, sample_user_id, make_account, issued_selects):
    make_account(sample_user_id, balance="100", primary=True)
    side = make_account(sample_user_id, balance="100", name="Side")
    _expense(db_session, sample_user_id, side, amount="30", entry_date=date(2026, 9, 12))
    issued_selects.clear()

    MonthlySettlementUseCase(db_session).execute(user_id=sample_user_id, now=datetime(2026, 10, 18, 9, 30))

    primary_locks = [s for s in _locked(issued_selects, "accounts") if "is_primary" in s]
    assert len(primary_locks) == 1
