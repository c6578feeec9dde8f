"""
Tests for Account use cases
"""
import pytest
from datetime import date
from decimal import Decimal

from bookkeeper.application.accounts import (
    CreateAccountUseCase,
    DeleteAccountUseCase,
    RenameAccountUseCase,
    SetPrimaryAccountUseCase,
    get_account,
    list_accounts,
)
from bookkeeper.application.transactions import CreateEntryUseCase, DeleteEntryUseCase
from bookkeeper.domain.errors import AccountValidationError, ConflictError, NotFoundError


def test_create_account_with_default_kind(db_session, sample_user_id):
    account_id = CreateAccountUseCase(db_session).execute(user_id=sample_user_id, name="  Cash  ")

    account = get_account(db_session, sample_user_id, account_id)
    assert account.name == "Cash"
    assert account.kind == "wallet"
    assert account.balance == Decimal("0")
    assert account.is_primary is False


def test_create_card_with_negative_balance(db_session, sample_user_id):
    account_id = CreateAccountUseCase(db_session).execute(
        user_id=sample_user_id, name="Credit card", kind="card", initial_balance="-15000"
    )

    assert get_account(db_session, sample_user_id, account_id).balance == Decimal("-15000")


@pytest.mark.parametrize("kwargs", [
    {"name": ""},
    {"name": "   "},
    {"name": "Cash", "kind": "crypto"},
    {"name": "Cash", "initial_balance": "abc"},
    {"name": "Cash", "initial_balance": "NaN"},
    {"name": "Cash", "initial_balance": "10.555"},
])
def test_create_account_validation(db_session, sample_user_id, kwargs):
    with pytest.raises(AccountValidationError):
        CreateAccountUseCase(db_session).execute(user_id=sample_user_id, **kwargs)


def test_rename_account(db_session, sample_user_id, make_account):
    account_id = make_account(sample_user_id, name="Old")

    RenameAccountUseCase(db_session).execute(user_id=sample_user_id, account_id=account_id, name="New", kind="card")

    db_session.expire_all()
    account = get_account(db_session, sample_user_id, account_id)
    assert account.name == "New"
    assert account.kind == "card"


def test_rename_foreign_account_is_not_found(db_session, sample_user_id, other_user_id, make_account):
    account_id = make_account(other_user_id)

    with pytest.raises(NotFoundError):
        RenameAccountUseCase(db_session).execute(user_id=sample_user_id, account_id=account_id, name="Mine now")


def test_set_primary_moves_the_flag(db_session, sample_user_id, make_account):
    first = make_account(sample_user_id, name="First", primary=True)
    second = make_account(sample_user_id, name="Second")

    SetPrimaryAccountUseCase(db_session).execute(user_id=sample_user_id, account_id=second)

    db_session.expire_all()
    accounts = list_accounts(db_session, sample_user_id)
    assert [a.id for a in accounts] == [second, first]
    assert [a.is_primary for a in accounts] == [True, False]


def test_set_primary_is_per_user(db_session, sample_user_id, other_user_id, make_account):
    mine = make_account(sample_user_id, primary=True)
    theirs = make_account(other_user_id, primary=True)

    db_session.expire_all()
    assert get_account(db_session, sample_user_id, mine).is_primary is True
    assert get_account(db_session, other_user_id, theirs).is_primary is True


def test_set_primary_on_foreign_account(db_session, sample_user_id, other_user_id, make_account):
    theirs = make_account(other_user_id)

    with pytest.raises(NotFoundError):
        SetPrimaryAccountUseCase(db_session).execute(user_id=sample_user_id, account_id=theirs)


def test_delete_empty_account(db_session, sample_user_id, make_account):
    account_id = make_account(sample_user_id)

    DeleteAccountUseCase(db_session).execute(user_id=sample_user_id, account_id=account_id)

    with pytest.raises(NotFoundError):
        get_account(db_session, sample_user_id, account_id)


def test_delete_account_with_money_is_rejected(db_session, sample_user_id, make_account):
    account_id = make_account(sample_user_id, balance="0.01")

    with pytest.raises(ConflictError, match="balance"):
        DeleteAccountUseCase(db_session).execute(user_id=sample_user_id, account_id=account_id)


def test_delete_primary_account_is_rejected(db_session, sample_user_id, make_account):
    account_id = make_account(sample_user_id, primary=True)

    with pytest.raises(ConflictError, match="primary"):
        DeleteAccountUseCase(db_session).execute(user_id=sample_user_id, account_id=account_id)


def test_delete_account_referenced_by_entries_is_rejected(db_session, sample_user_id, make_account, balance_of):
    account_id = make_account(sample_user_id)
    entry_id = CreateEntryUseCase(db_session).execute(
        user_id=sample_user_id,
        entry_type="income",
        amount=Decimal("10"),
        entry_date=date(2026, 9, 1),
        to_account_id=account_id,
    )
    other = make_account(sample_user_id, name="Other")
    CreateEntryUseCase(db_session).execute(
        user_id=sample_user_id,
        entry_type="transfer",
        amount=Decimal("10"),
        entry_date=date(2026, 9, 2),
        from_account_id=account_id,
        to_account_id=other,
    )
    assert balance_of(account_id) == Decimal("0")

    with pytest.raises(ConflictError, match="ledger entries"):
        DeleteAccountUseCase(db_session).execute(user_id=sample_user_id, account_id=account_id)

    # Entry still reversible
    DeleteEntryUseCase(db_session).execute(user_id=sample_user_id, entry_id=entry_id)
    assert balance_of(account_id) == Decimal("-10")
