import pytest
from datetime import timedelta
from fastapi.testclient import TestClient

from mlm_ledger.core.timeutils import utcnow

pytestmark = pytest.mark.api


def test_jobs_require_admin(client: TestClient, normal_user_token_headers: tuple):
    headers, _ = normal_user_token_headers
    assert client.post("/api/v1/jobs/weekly-payouts", headers=headers).status_code == 403
    assert client.post("/api/v1/jobs/weekly-payouts").status_code == 401


def test_job_endpoints_record_runs(
    client: TestClient, superuser_token_headers: tuple, make_user, auth_headers, test_product
):
    headers, _ = superuser_token_headers
    buyer = make_user()
    order = client.post("/api/v1/orders/", json={"product_id": test_product.id}, headers=auth_headers(buyer)).json()
    paid_at = (utcnow() - timedelta(days=8)).isoformat()
    client.post(f"/api/v1/orders/{order['id']}/mark-paid", json={"paid_at": paid_at}, headers=headers)

    payouts = client.post("/api/v1/jobs/weekly-payouts", headers=headers)
    assert payouts.status_code == 200
    assert payouts.json()["processed"] == 1
    assert payouts.json()["total_amount"] == 5250

    assert client.post("/api/v1/jobs/retry-failed-payouts", headers=headers).json()["rescheduled"] == 0

    pool = client.post("/api/v1/jobs/pool-distribution", headers=headers)
    assert pool.status_code == 200
    assert pool.json()["total_amount"] == 9800
    assert client.post("/api/v1/jobs/pool-distribution", headers=headers).status_code == 404

    recon = client.post("/api/v1/jobs/reconciliation", headers=headers).json()
    assert recon["wallet_mismatches"] == []
    assert recon["unprocessed_paid_orders"] == []

    tree = client.post("/api/v1/jobs/tree-maintenance?repair=true", headers=headers).json()
    assert tree["orphaned_users"] == []

    runs = client.get("/api/v1/jobs/runs", headers=headers).json()
    assert {r["job_type"] for r in runs} == {
        "weekly_payout", "retry_failed_payouts", "pool_distribution", "reconciliation", "tree_maintenance"
    }
    weekly = client.get("/api/v1/jobs/runs?job_type=weekly_payout", headers=headers).json()
    assert weekly[0]["status"] == "success"

    distributions = client.get("/api/v1/jobs/pool-distributions", headers=headers).json()
    assert len(distributions) == 1
    assert distributions[0]["id"] == pool.json()["distribution_id"]
    assert distributions[0]["breakdown"]["L1"]["amount"] == 2940
