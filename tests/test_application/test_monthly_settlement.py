"""
Tests for the monthly settlement sweep
"""
import pytest
from datetime import date, datetime
from decimal import Decimal
from unittest.mock import patch

from bookkeeper.application.settlement import (
    SETTLEMENT_NOOP,
    SETTLEMENT_SETTLED,
    MonthlySettlementUseCase,
    settlement_description,
)
from bookkeeper.application.transactions import CreateEntryUseCase, DeleteEntryUseCase
from bookkeeper.domain.errors import NoPrimaryAccountError, SettlementAlreadyPostedError
from bookkeeper.infrastructure.db.models import LedgerEntry

NOW = datetime(2026, 10, 18, 9, 30)


def _create(db_session, user_id, entry_type, amount, entry_date, **refs):
    return CreateEntryUseCase(db_session).execute(
        user_id=user_id,
        entry_type=entry_type,
        amount=Decimal(amount),
        entry_date=entry_date,
        **refs,
    )


def _settle(db_session, user_id, now=NOW):
    return MonthlySettlementUseCase(db_session).execute(user_id=user_id, now=now)


def _settlement_rows(db_session, user_id):
    return db_session.query(LedgerEntry).filter(
        LedgerEntry.user_id == user_id,
        LedgerEntry.entry_type == "settlement",
    ).all()


def test_surplus_is_swept_into_primary(db_session, sample_user_id, make_account, balance_of):
    primary = make_account(sample_user_id, balance="0", name="Main", primary=True)
    side = make_account(sample_user_id, balance="500", name="Side")
    _create(db_session, sample_user_id, "income", "1200", date(2026, 9, 1), to_account_id=side)
    _create(db_session, sample_user_id, "expense", "200", date(2026, 9, 30), from_account_id=side)

    result = _settle(db_session, sample_user_id)

    assert result.status == SETTLEMENT_SETTLED
    assert result.period_key == "2026-09"
    assert result.amount == Decimal("1000")
    assert balance_of(primary) == Decimal("1000")

    rows = _settlement_rows(db_session, sample_user_id)
    assert len(rows) == 1
    entry = rows[0]
    assert entry.id == result.entry_id
    assert entry.amount == Decimal("1000")
    assert entry.settlement_month == "2026-09"
    assert entry.settlement_sign == 1
    assert entry.entry_date == date(2026, 9, 30)
    assert entry.to_account_id == primary
    assert entry.from_account_id is None
    assert entry.description == "2026-09 surplus, moved into the primary account"


def test_deficit_is_deducted_from_primary(db_session, sample_user_id, make_account, balance_of):
    primary = make_account(sample_user_id, balance="1000", name="Main", primary=True)
    _create(db_session, sample_user_id, "income", "100", date(2026, 9, 3), to_account_id=primary)
    _create(db_session, sample_user_id, "expense", "300", date(2026, 9, 4), from_account_id=primary)
    assert balance_of(primary) == Decimal("800")

    result = _settle(db_session, sample_user_id)

    assert result.amount == Decimal("-200")
    assert balance_of(primary) == Decimal("600")
    entry = _settlement_rows(db_session, sample_user_id)[0]
    assert entry.amount == Decimal("200")
    assert entry.settlement_sign == -1


def test_second_run_is_rejected_and_changes_nothing(db_session, sample_user_id, make_account, balance_of):
    primary = make_account(sample_user_id, balance="0", primary=True)
    _create(db_session, sample_user_id, "income", "50", date(2026, 9, 10), to_account_id=primary)
    _settle(db_session, sample_user_id)
    assert balance_of(primary) == Decimal("100")

    with pytest.raises(SettlementAlreadyPostedError, match="2026-09"):
        _settle(db_session, sample_user_id)

    assert balance_of(primary) == Decimal("100")
    assert len(_settlement_rows(db_session, sample_user_id)) == 1


def test_unique_constraint_backs_up_the_check(db_session, sample_user_id, make_account, balance_of):
    """A concurrent run that slips past the read check still fails on the unique key"""
    primary = make_account(sample_user_id, balance="0", primary=True)
    _create(db_session, sample_user_id, "income", "75", date(2026, 9, 10), to_account_id=primary)
    _settle(db_session, sample_user_id)

    with patch.object(MonthlySettlementUseCase, "_already_settled", return_value=False):
        with pytest.raises(SettlementAlreadyPostedError):
            _settle(db_session, sample_user_id)

    assert balance_of(primary) == Decimal("150")
    assert len(_settlement_rows(db_session, sample_user_id)) == 1


def test_balanced_month_is_noop(db_session, sample_user_id, make_account, balance_of):
    primary = make_account(sample_user_id, balance="10", primary=True)
    _create(db_session, sample_user_id, "income", "40", date(2026, 9, 10), to_account_id=primary)
    _create(db_session, sample_user_id, "expense", "40", date(2026, 9, 11), from_account_id=primary)

    result = _settle(db_session, sample_user_id)

    assert result.status == SETTLEMENT_NOOP
    assert result.entry_id is None
    assert balance_of(primary) == Decimal("10")
    assert _settlement_rows(db_session, sample_user_id) == []


def test_empty_month_is_noop_and_can_run_again(db_session, sample_user_id, make_account):
    make_account(sample_user_id, primary=True)

    assert _settle(db_session, sample_user_id).status == SETTLEMENT_NOOP
    assert _settle(db_session, sample_user_id).status == SETTLEMENT_NOOP


def test_missing_primary_account(db_session, sample_user_id, make_account):
    acc = make_account(sample_user_id, balance="0")
    _create(db_session, sample_user_id, "income", "40", date(2026, 9, 10), to_account_id=acc)

    with pytest.raises(NoPrimaryAccountError):
        _settle(db_session, sample_user_id)

    assert _settlement_rows(db_session, sample_user_id) == []


def test_only_previous_month_counts(db_session, sample_user_id, make_account):
    primary = make_account(sample_user_id, balance="0", primary=True)
    _create(db_session, sample_user_id, "income", "10", date(2026, 8, 31), to_account_id=primary)
    _create(db_session, sample_user_id, "income", "20", date(2026, 9, 15), to_account_id=primary)
    _create(db_session, sample_user_id, "income", "40", date(2026, 10, 1), to_account_id=primary)

    result = _settle(db_session, sample_user_id)

    assert result.amount == Decimal("20")


def test_transfers_and_repayments_do_not_count(db_session, sample_user_id, make_account, make_loan):
    primary = make_account(sample_user_id, balance="1000", primary=True)
    card = make_account(sample_user_id, balance="0", name="Card")
    loan = make_loan(sample_user_id)
    _create(db_session, sample_user_id, "income", "100", date(2026, 9, 1), to_account_id=primary)
    _create(db_session, sample_user_id, "transfer", "300", date(2026, 9, 2), from_account_id=primary, to_account_id=card)
    _create(db_session, sample_user_id, "repayment", "50", date(2026, 9, 3), from_account_id=primary, related_loan_id=loan)

    result = _settle(db_session, sample_user_id)

    assert result.amount == Decimal("100")


def test_users_are_settled_independently(db_session, sample_user_id, other_user_id, make_account, balance_of):
    mine = make_account(sample_user_id, balance="0", primary=True)
    theirs = make_account(other_user_id, balance="0", primary=True)
    _create(db_session, sample_user_id, "income", "10", date(2026, 9, 1), to_account_id=mine)
    _create(db_session, other_user_id, "income", "99", date(2026, 9, 1), to_account_id=theirs)

    _settle(db_session, sample_user_id)
    result = _settle(db_session, other_user_id)

    assert result.amount == Decimal("99")
    assert balance_of(mine) == Decimal("20")
    assert balance_of(theirs) == Decimal("198")


def test_january_settles_december(db_session, sample_user_id, make_account):
    primary = make_account(sample_user_id, balance="0", primary=True)
    _create(db_session, sample_user_id, "income", "5", date(2025, 12, 31), to_account_id=primary)

    result = _settle(db_session, sample_user_id, now=datetime(2026, 1, 1, 0, 5))

    assert result.period_key == "2025-12"
    assert result.amount == Decimal("5")


def test_deleting_settlement_reverses_it_and_allows_rerun(db_session, sample_user_id, make_account, balance_of):
    primary = make_account(sample_user_id, balance="1000", primary=True)
    _create(db_session, sample_user_id, "expense", "250", date(2026, 9, 9), from_account_id=primary)
    result = _settle(db_session, sample_user_id)
    assert balance_of(primary) == Decimal("500")

    DeleteEntryUseCase(db_session).execute(user_id=sample_user_id, entry_id=result.entry_id)

    assert balance_of(primary) == Decimal("750")
    assert _settle(db_session, sample_user_id).status == SETTLEMENT_SETTLED
    assert balance_of(primary) == Decimal("500")


def test_settlement_description():
    assert settlement_description("2026-09", Decimal("5")) == "2026-09 surplus, moved into the primary account"
    assert settlement_description("2026-09", Decimal("-5")) == "2026-09 deficit, deducted from the primary account"
