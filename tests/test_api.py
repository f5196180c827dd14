# tests/test_api.py
"""
HTTP tests: routers wired to the test session, Celery replaced with a mock.
"""

from decimal import Decimal
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from storefront.data.database import get_db
from storefront.main import create_app


@pytest.fixture
def client(db):
    app = create_app(with_lifespan=False)

    def _get_db():
        yield db

    app.dependency_overrides[get_db] = _get_db
    with patch("storefront.services.order_service.NotificationService"):
        with TestClient(app) as c:
            yield c


def test_health(client):
    assert client.get("/health").json() == {"status": "ok", "database": "up"}


def test_create_user_conflict(client):
    resp = client.post("/users/", json={"username": "jo", "email": "jo@example.com"})
    assert resp.status_code == 201
    user_id = resp.json()["id"]

    assert client.get(f"/users/{user_id}").json()["username"] == "jo"
    assert client.get("/users/by-username/jo").json()["id"] == user_id
    assert client.post("/users/", json={"username": "jo", "email": "x@example.com"}).status_code == 409
    assert client.get("/users/999").status_code == 404


def test_cart_flow(client, user, make_card):
    card = make_card()

    resp = client.post("/cart/items", json={"user_id": user.id, "card_id": card.id, "quantity": 2})
    assert resp.status_code == 200
    line_id = resp.json()["items"][0]["id"]
    assert Decimal(resp.json()["total"]) == Decimal("100.00")

    resp = client.patch(f"/cart/items/{line_id}", json={"user_id": user.id, "quantity": 3})
    assert resp.json()["items"][0]["quantity"] == 3

    assert client.delete("/cart/", params={"user_id": user.id}).status_code == 204
    assert client.get("/cart/", params={"user_id": user.id}).json()["items"] == []


def test_cart_rejects_two_products(client, user):
    resp = client.post("/cart/items", json={"user_id": user.id, "card_id": 1, "figurine_id": 1})
    assert resp.status_code == 422


def test_cart_unknown_product(client, user):
    resp = client.post("/cart/items", json={"user_id": user.id, "card_id": 999})
    assert resp.status_code == 404


def _checkout_payload(user_id, **extra):
    payload = {
        "user_id": user_id,
        "customer_name": "Jo Collector",
        "customer_email": "jo@example.com",
        "shipping_address": "1 Queen St",
    }
    payload.update(extra)
    return payload


def test_checkout_with_coupon(client, user, make_card, make_figurine, make_coupon, add_to_cart):
    add_to_cart(user.id, card_id=make_card().id, quantity=2)
    add_to_cart(user.id, figurine_id=make_figurine().id, quantity=1)
    make_coupon()

    validated = client.post("/coupons/validate", json={"code": "save10", "subtotal": "125.00"}).json()
    assert validated["valid"] is True
    assert Decimal(validated["discount_amount"]) == Decimal("12.50")

    resp = client.post("/orders/checkout", json=_checkout_payload(user.id, coupon_code="SAVE10"))

    assert resp.status_code == 201
    order = resp.json()
    assert Decimal(order["total_nzd"]) == Decimal("112.50")

    resp = client.get(f"/orders/{order['id']}/items", params={"user_id": user.id})
    assert len(resp.json()) == 2
    assert client.get(f"/orders/{order['id']}", params={"user_id": user.id + 1}).status_code == 403


def test_checkout_error_codes(client, user, make_card, add_to_cart):
    assert client.post("/orders/checkout", json=_checkout_payload(user.id)).status_code == 400

    add_to_cart(user.id, card_id=make_card(quantity=1).id, quantity=2)
    assert client.post("/orders/checkout", json=_checkout_payload(user.id)).status_code == 409

    resp = client.post("/orders/checkout", json=_checkout_payload(user.id, coupon_code="NOPE"))
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Invalid coupon code"


def test_invalid_coupon_reports_message(client):
    resp = client.post("/coupons/validate", json={"code": "nope", "subtotal": "10.00"})

    assert resp.json() == {
        "valid": False,
        "code": "NOPE",
        "discount_amount": "0.00",
        "message": "Invalid coupon code",
    }


def test_admin_status_transitions(client, user, make_card, add_to_cart):
    add_to_cart(user.id, card_id=make_card().id)
    order_id = client.post("/orders/checkout", json=_checkout_payload(user.id)).json()["id"]

    resp = client.patch(f"/admin/orders/{order_id}/status", json={"status": "processing"})
    assert resp.json()["status"] == "processing"

    assert client.patch(f"/admin/orders/{order_id}/status", json={"status": "pending"}).status_code == 409
    assert client.patch(f"/admin/orders/{order_id}/status", json={"status": "lost"}).status_code == 422
    assert client.patch("/admin/orders/999/status", json={"status": "shipped"}).status_code == 404

    listed = client.get("/admin/orders/", params={"status": "processing"}).json()
    assert [o["id"] for o in listed] == [order_id]


def test_admin_coupon_crud(client):
    resp = client.post(
        "/admin/coupons/", json={"code": "fixed5", "discount_type": "fixed", "discount_value": "5"}
    )
    assert resp.status_code == 201
    coupon_id = resp.json()["id"]
    assert resp.json()["code"] == "FIXED5"

    assert client.post(
        "/admin/coupons/", json={"code": "FIXED5", "discount_type": "fixed", "discount_value": "5"}
    ).status_code == 409

    resp = client.patch(f"/admin/coupons/{coupon_id}", json={"active": False})
    assert resp.json()["active"] is False

    assert client.delete(f"/admin/coupons/{coupon_id}").status_code == 204
    assert client.delete(f"/admin/coupons/{coupon_id}").status_code == 404


def test_csv_import_endpoints(client, user, make_card):
    make_card()
    template = client.get("/admin/csv-import/template")
    assert template.headers["content-type"].startswith("text/csv")

    body = (
        "Name,set_name,card_number,price\n"
        "New Card,Base,1,3.00\n"
        "Michael Jordan Rookie,1986 Fleer,57,99.00\n"
    ).encode("utf-8")
    files = {"file": ("stock.csv", body, "text/csv")}
    mapping = '{"card_name": "Name"}'

    preview = client.post("/admin/csv-import/preview", files=files, data={"column_mapping": mapping})
    assert preview.json()["duplicates"] == 1

    resp = client.post(
        "/admin/csv-import/execute",
        files=files,
        data={"column_mapping": mapping, "user_id": str(user.id), "duplicate_action": "skip"},
    )
    result = resp.json()
    assert (result["successful"], result["failed"], result["skipped"]) == (1, 0, 1)

    history = client.get("/admin/csv-import/history").json()
    assert history[0]["id"] == result["import_id"]
    assert client.get(f"/admin/csv-import/{result['import_id']}").json()["filename"] == "stock.csv"
    assert client.get("/admin/csv-import/999").status_code == 404


def test_csv_bad_mapping(client):
    files = {"file": ("stock.csv", b"card_name\nA\n", "text/csv")}
    resp = client.post("/admin/csv-import/preview", files=files, data={"column_mapping": "[1]"})
    assert resp.status_code == 400
