import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session
from decimal import Decimal

from app.core import events, wallet_ledger
from app.db.session import unit_of_work
from app.models.commission import Commission, CommissionDistribution
from app.models.user import User

pytestmark = pytest.mark.api

BANK_DETAILS = {"account_holder_name": "Test User", "account_number": "1234567890", "ifsc_code": "TEST0001234"}


def _mark_paid_without_commissions(db: Session, user: User, plan_type: str = "basic") -> None:
    # Simulates an activation whose commission run never happened
    with unit_of_work(db):
        db.query(User).filter(User.id == user.id).update({User.has_paid: True, User.plan_type: plan_type})


def test_admin_routes_require_superuser(client: TestClient, normal_user_token_headers: tuple):
    headers, _ = normal_user_token_headers
    assert client.get("/api/v1/admin/withdrawals", headers=headers).status_code == 403
    assert client.get("/api/v1/admin/company-wallet", headers=headers).status_code == 403
    assert client.post("/api/v1/admin/process-missing-commissions", headers=headers).status_code == 403

def test_approve_withdrawal(client: TestClient, db_session: Session, superuser_token_headers: tuple, make_user, fund_wallet):
    headers, _ = superuser_token_headers
    user = make_user()
    fund_wallet(user, Decimal("500"))
    withdrawal = events.request_withdrawal(db_session, user.id, Decimal("200"), "bank", BANK_DETAILS)

    response = client.get("/api/v1/admin/withdrawals?status=pending", headers=headers)
    assert response.status_code == 200
    assert [w["id"] for w in response.json()] == [withdrawal.id]

    response = client.patch(
        f"/api/v1/admin/withdrawals/{withdrawal.id}", json={"status": "approved", "admin_message": "Sent"}, headers=headers
    )
    assert response.status_code == 200, response.text
    assert response.json()["status"] == "approved"
    assert response.json()["admin_message"] == "Sent"
    assert wallet_ledger.balance_of(db_session, user.id) == Decimal("300.00")

    response = client.get(f"/api/v1/admin/withdrawals/{withdrawal.id}", headers=headers)
    assert response.json()["approved_at"] is not None

def test_reject_then_approve_conflicts(client: TestClient, db_session: Session, superuser_token_headers: tuple, make_user, fund_wallet):
    headers, _ = superuser_token_headers
    user = make_user()
    fund_wallet(user, Decimal("500"))
    withdrawal = events.request_withdrawal(db_session, user.id, Decimal("200"), "bank", BANK_DETAILS)

    response = client.patch(f"/api/v1/admin/withdrawals/{withdrawal.id}", json={"status": "rejected"}, headers=headers)
    assert response.status_code == 200
    assert wallet_ledger.balance_of(db_session, user.id) == Decimal("500.00")

    response = client.patch(f"/api/v1/admin/withdrawals/{withdrawal.id}", json={"status": "approved"}, headers=headers)
    assert response.status_code == 409
    assert "rejected" in response.json()["detail"]
    assert wallet_ledger.balance_of(db_session, user.id) == Decimal("500.00")

def test_resolve_unknown_withdrawal(client: TestClient, superuser_token_headers: tuple):
    headers, _ = superuser_token_headers
    response = client.patch("/api/v1/admin/withdrawals/999", json={"status": "approved"}, headers=headers)
    assert response.status_code == 404
    assert client.get("/api/v1/admin/withdrawals/999", headers=headers).status_code == 404

def test_resolve_with_invalid_status(client: TestClient, superuser_token_headers: tuple):
    headers, _ = superuser_token_headers
    response = client.patch("/api/v1/admin/withdrawals/1", json={"status": "pending"}, headers=headers)
    assert response.status_code == 422

def test_admin_activation_distributes(client: TestClient, db_session: Session, superuser_token_headers: tuple, make_chain):
    headers, _ = superuser_token_headers
    _, b, a = make_chain(3)
    response = client.post(f"/api/v1/admin/users/{a.id}/activate", json={"plan_type": "premium"}, headers=headers)
    assert response.status_code == 200, response.text
    data = response.json()
    assert data["commissions_processed"] is True
    assert Decimal(data["result"]["total_paid"]) == Decimal("550.00")
    assert wallet_ledger.balance_of(db_session, b.id) == Decimal("375.00")

def test_admin_activation_of_unknown_user(client: TestClient, superuser_token_headers: tuple):
    headers, _ = superuser_token_headers
    response = client.post("/api/v1/admin/users/999/activate", json={"plan_type": "basic"}, headers=headers)
    assert response.status_code == 404

def test_process_missing_commissions_sweep(client: TestClient, db_session: Session, superuser_token_headers: tuple, make_chain, make_user):
    headers, _ = superuser_token_headers
    _, b, a = make_chain(3)
    orphan = make_user(referrer=b)
    unpaid = make_user(referrer=b)
    _mark_paid_without_commissions(db_session, a)
    _mark_paid_without_commissions(db_session, orphan, "premium")

    response = client.post("/api/v1/admin/process-missing-commissions", headers=headers)
    assert response.status_code == 200, response.text
    outcomes = {o["user_id"]: o for o in response.json()}
    assert set(outcomes) == {a.id, orphan.id}
    assert all(o["error"] is None for o in outcomes.values())
    assert outcomes[orphan.id]["plan_type"] == "premium"

    db_session.expire_all()
    assert db_session.query(CommissionDistribution).count() == 2
    assert db_session.query(Commission).filter(Commission.from_user_id == unpaid.id).count() == 0
    assert wallet_ledger.balance_of(db_session, b.id) == Decimal("455.00")

    # Nothing left to do on a second sweep
    response = client.post("/api/v1/admin/process-missing-commissions", headers=headers)
    assert response.status_code == 200
    assert response.json() == []

def test_process_missing_commissions_single_user(client: TestClient, db_session: Session, superuser_token_headers: tuple, make_chain, make_user):
    headers, _ = superuser_token_headers
    _, a = make_chain(2)
    unpaid = make_user()
    _mark_paid_without_commissions(db_session, a)

    response = client.post("/api/v1/admin/process-missing-commissions", json={"user_id": a.id}, headers=headers)
    assert response.status_code == 200
    assert [o["user_id"] for o in response.json()] == [a.id]

    response = client.post("/api/v1/admin/process-missing-commissions", json={"user_id": a.id}, headers=headers)
    assert response.status_code == 409

    response = client.post("/api/v1/admin/process-missing-commissions", json={"user_id": unpaid.id}, headers=headers)
    assert response.status_code == 400

    response = client.post("/api/v1/admin/process-missing-commissions", json={"user_id": 999}, headers=headers)
    assert response.status_code == 404

def test_company_wallet_summary(client: TestClient, db_session: Session, superuser_token_headers: tuple, make_chain):
    headers, _ = superuser_token_headers
    _, _, a = make_chain(3)
    events.on_payment_completed(db_session, a.id, "basic")

    response = client.get("/api/v1/admin/company-wallet", headers=headers)
    assert response.status_code == 200, response.text
    data = response.json()
    assert Decimal(data["balance"]) == Decimal("680.00")
    assert Decimal(data["total_collected"]) == Decimal("800.00")
    assert Decimal(data["total_commissions"]) == Decimal("120.00")
    assert data["distribution_count"] == 1
    assert [(lvl["level"], Decimal(lvl["total"]), lvl["count"]) for lvl in data["commission_by_level"]] == [
        (1, Decimal("80.00"), 1), (2, Decimal("40.00"), 1),
    ]
    assert len(data["recent_transactions"]) == 1
    assert data["recent_transactions"][0]["transaction_type"] == "purchase"

def test_company_wallet_summary_when_empty(client: TestClient, superuser_token_headers: tuple):
    headers, _ = superuser_token_headers
    response = client.get("/api/v1/admin/company-wallet", headers=headers)
    assert response.status_code == 200
    assert Decimal(response.json()["balance"]) == Decimal("0")
    assert response.json()["distribution_count"] == 0

def test_commission_config(client: TestClient, superuser_token_headers: tuple):
    headers, _ = superuser_token_headers
    response = client.get("/api/v1/admin/commission-config", headers=headers)
    assert response.status_code == 200
    data = response.json()
    assert data["max_referral_depth"] == 10
    assert Decimal(data["plans"]["basic"]["amount"]) == Decimal("800")
    assert Decimal(data["breakdown"]["premium"]["company_amount"]) == Decimal("1775.00")

def test_reconcile_wallet(client: TestClient, db_session: Session, superuser_token_headers: tuple, make_user, fund_wallet):
    headers, _ = superuser_token_headers
    user = make_user()
    fund_wallet(user, Decimal("500"))
    withdrawal = events.request_withdrawal(db_session, user.id, Decimal("120"), "upi", {"upi_id": "user@upi"})
    events.resolve_withdrawal(db_session, withdrawal.id, "rejected")

    response = client.get(f"/api/v1/admin/users/{user.id}/reconcile", headers=headers)
    assert response.status_code == 200
    data = response.json()
    assert data["in_balance"] is True
    assert Decimal(data["cached_balance"]) == Decimal("500.00")
    assert client.get("/api/v1/admin/users/999/reconcile", headers=headers).status_code == 404
