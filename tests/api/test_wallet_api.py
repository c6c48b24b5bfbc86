import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from mlm_ledger.core.wallet import post_entry
from mlm_ledger.db.session import atomic
from mlm_ledger.schemas.ledger import LedgerEntryCreate

pytestmark = pytest.mark.api

KYC_PAYLOAD = {
    "full_name": "Ravi Kumar",
    "pan_number": "PQRSX6789K",
    "bank_name": "HDFC Bank",
    "bank_account_number": "50100123456789",
    "ifsc_code": "HDFC0000123",
}


def _credit(db: Session, user, amount: int, ref: str):
    with atomic(db):
        post_entry(db, obj_in=LedgerEntryCreate(user_id=user.id, type="sponsor_commission", amount=amount, ref=ref))


def test_ledger_history_and_payouts(client: TestClient, normal_user_token_headers: tuple, db_session: Session):
    headers, user = normal_user_token_headers
    _credit(db_session, user, 700, "t:a")
    _credit(db_session, user, 300, "t:b")

    history = client.get("/api/v1/wallet/me/ledger", headers=headers).json()
    assert [e["amount"] for e in history] == [300, 700]
    filtered = client.get("/api/v1/wallet/me/ledger?type=pool_distribution", headers=headers).json()
    assert filtered == []
    assert client.get("/api/v1/wallet/me/payouts", headers=headers).json() == []


def test_kyc_and_withdrawal_flow(
    client: TestClient, make_user, auth_headers, superuser_token_headers: tuple, db_session: Session
):
    admin_headers, _ = superuser_token_headers
    member = make_user(active=True)
    headers = auth_headers(member)
    _credit(db_session, member, 80000, "t:w")

    blocked = client.post("/api/v1/withdrawals/", json={"amount": 50000}, headers=headers)
    assert blocked.status_code == 400

    submitted = client.post("/api/v1/kyc/me", json=KYC_PAYLOAD, headers=headers)
    assert submitted.status_code == 201
    assert submitted.json()["status"] == "pending"
    reviewed = client.post(f"/api/v1/kyc/{member.id}/review", json={"approve": True}, headers=admin_headers)
    assert reviewed.json()["status"] == "approved"

    requested = client.post("/api/v1/withdrawals/", json={"amount": 50000}, headers=headers)
    assert requested.status_code == 201
    withdrawal_id = requested.json()["id"]

    duplicate = client.post("/api/v1/withdrawals/", json={"amount": 50000}, headers=headers)
    assert duplicate.status_code == 409

    wallet = client.get("/api/v1/wallet/me", headers=headers).json()
    assert wallet["wallet_balance"] == 80000
    assert wallet["available_balance"] == 30000

    pending = client.get("/api/v1/withdrawals/pending", headers=admin_headers).json()
    assert [w["id"] for w in pending] == [withdrawal_id]

    approved = client.post(f"/api/v1/withdrawals/{withdrawal_id}/approve", json={"admin_notes": "ok"}, headers=admin_headers)
    assert approved.status_code == 200
    assert approved.json()["status"] == "approved"
    assert client.get("/api/v1/wallet/me", headers=headers).json()["wallet_balance"] == 30000

    again = client.post(f"/api/v1/withdrawals/{withdrawal_id}/reject", headers=admin_headers)
    assert again.status_code == 409


def test_invalid_kyc_payload(client: TestClient, normal_user_token_headers: tuple):
    headers, _ = normal_user_token_headers
    response = client.post("/api/v1/kyc/me", json={**KYC_PAYLOAD, "ifsc_code": "BAD"}, headers=headers)
    assert response.status_code == 422


def test_member_cannot_approve(client: TestClient, normal_user_token_headers: tuple):
    headers, _ = normal_user_token_headers
    assert client.post("/api/v1/withdrawals/1/approve", headers=headers).status_code == 403
