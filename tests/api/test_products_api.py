import pytest
from fastapi.testclient import TestClient

pytestmark = pytest.mark.api


def test_admin_creates_product(client: TestClient, superuser_token_headers: tuple):
    headers, _ = superuser_token_headers
    response = client.post(
        "/api/v1/products/", json={"name": "Wellness Kit", "price": 250000, "mlm_value": 200000}, headers=headers
    )
    assert response.status_code == 201
    assert response.json()["mlm_value"] == 200000

    listing = client.get("/api/v1/products/")
    assert [p["name"] for p in listing.json()] == ["Wellness Kit"]


def test_member_cannot_create_product(client: TestClient, normal_user_token_headers: tuple):
    headers, _ = normal_user_token_headers
    response = client.post("/api/v1/products/", json={"name": "Nope", "price": 100}, headers=headers)
    assert response.status_code == 403


def test_product_price_must_be_positive(client: TestClient, superuser_token_headers: tuple):
    headers, _ = superuser_token_headers
    response = client.post("/api/v1/products/", json={"name": "Free", "price": 0}, headers=headers)
    assert response.status_code == 422


def test_admin_updates_product(client: TestClient, superuser_token_headers: tuple, test_product):
    headers, _ = superuser_token_headers
    response = client.put(
        f"/api/v1/products/{test_product.id}", json={"mlm_value": 80000, "is_active": False}, headers=headers
    )
    assert response.status_code == 200
    assert response.json()["mlm_value"] == 80000
    assert client.get("/api/v1/products/").json() == []

    assert client.put("/api/v1/products/9999", json={"name": "Ghost"}, headers=headers).status_code == 404
