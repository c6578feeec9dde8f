"""
Tests for settlement, loan, category and budget API endpoints
"""
import pytest
from datetime import datetime
from decimal import Decimal

from fastapi.testclient import TestClient

from bookkeeper.api.deps import get_current_user_id, get_db
from bookkeeper.config import get_settings
from bookkeeper.domain.period import previous_month
from bookkeeper.main import app


@pytest.fixture
def client(db_session, sample_user_id):
    def _get_db():
        yield db_session

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_current_user_id] = lambda: sample_user_id
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def last_month():
    return previous_month(datetime.now(get_settings().get_timezone()))


def test_monthly_settlement_flow(client, sample_user_id, make_account, balance_of, last_month):
    primary = make_account(sample_user_id, balance="0", primary=True)
    client.post("/api/v1/transactions/", json={
        "type": "income",
        "amount": "400",
        "transaction_date": last_month.first_day.isoformat(),
        "to_account_id": primary,
    })

    response = client.post("/api/v1/settlement/monthly")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "settled"
    assert data["month"] == last_month.key
    assert Decimal(data["amount"]) == Decimal("400")
    assert balance_of(primary) == Decimal("800")

    response = client.post("/api/v1/settlement/monthly")
    assert response.status_code == 409
    assert response.json()["kind"] == "SettlementAlreadyPostedError"
    assert balance_of(primary) == Decimal("800")


def test_settlement_without_primary_is_412(client, sample_user_id, make_account):
    make_account(sample_user_id)

    response = client.post("/api/v1/settlement/monthly")

    assert response.status_code == 412


def test_settlement_noop(client, sample_user_id, make_account):
    make_account(sample_user_id, primary=True)

    response = client.post("/api/v1/settlement/monthly")

    assert response.status_code == 200
    assert response.json()["status"] == "noop"
    assert response.json()["entry_id"] is None


def test_loan_settle_via_api(client, sample_user_id, make_account, balance_of):
    account_id = make_account(sample_user_id, balance="5000")
    response = client.post("/api/v1/loans/", json={
        "principal": "1500",
        "interest_rate": "2.5",
        "loan_date": "2026-01-15",
        "description": "Bike",
    })
    assert response.status_code == 201
    loan_id = response.json()["id"]

    response = client.post(f"/api/v1/loans/{loan_id}/settle", json={
        "from_account_id": account_id,
        "repayment_date": "2026-10-01",
    })
    assert response.status_code == 200
    assert balance_of(account_id) == Decimal("3500")

    loans = client.get("/api/v1/loans/").json()
    assert loans[0]["status"] == "paid"
    assert Decimal(loans[0]["outstanding_balance"]) == 0

    response = client.post(f"/api/v1/loans/{loan_id}/settle", json={
        "from_account_id": account_id,
        "repayment_date": "2026-10-02",
    })
    assert response.status_code == 409

    assert client.post(f"/api/v1/loans/{loan_id}/reactivate").status_code == 200
    assert client.get("/api/v1/loans/").json()[0]["status"] == "active"


def test_category_and_budget_endpoints(client):
    response = client.post("/api/v1/categories/", json={"name": "Food", "kind": "expense"})
    assert response.status_code == 201
    category_id = response.json()["id"]

    assert client.post("/api/v1/categories/", json={"name": "Food", "kind": "gift"}).status_code == 422

    response = client.post("/api/v1/budgets/", json={
        "period": "monthly",
        "year": 2026,
        "month": 9,
        "category_id": category_id,
        "amount": "300",
    })
    assert response.status_code == 201

    budgets = client.get("/api/v1/budgets/", params={"year": 2026, "month": 9}).json()
    assert len(budgets) == 1
    assert budgets[0]["amount"] == "300.00"
    assert Decimal(budgets[0]["spent"]) == 0

    assert client.delete(f"/api/v1/categories/{category_id}").status_code == 409
