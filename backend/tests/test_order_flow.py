import pytest
from fastapi.testclient import TestClient

from retail_radar.config import settings
from retail_radar.db import SessionLocal, init_db
from retail_radar.main import app
from retail_radar.models.inventory_record import InventoryRecord

client = TestClient(app)


@pytest.fixture(autouse=True, scope="module")
def setup_db():
    init_db(reset=True, seed=True)


def _stocked(n=2, min_quantity=5):
    db = SessionLocal()
    try:
        records = (
            db.query(InventoryRecord)
            .filter(InventoryRecord.in_stock == True, InventoryRecord.quantity >= min_quantity)
            .order_by(InventoryRecord.id)
            .limit(n)
            .all()
        )
        return [(r.id, r.quantity, r.price) for r in records]
    finally:
        db.close()


def _quantity(record_id):
    db = SessionLocal()
    try:
        return db.get(InventoryRecord, record_id).quantity
    finally:
        db.close()


def test_pickup_order_and_cancel():
    (rid, qty, price), = _stocked(1)
    r = client.post("/api/orders", json={"items": [{"inventory_id": rid, "quantity": 2}]})
    assert r.status_code == 201, r.text
    body = r.json()
    assert body["orderNumber"].startswith("ORD-")
    assert body["status"] == "pending"
    assert body["deliveryFee"] == 0.0
    assert body["subtotal"] == round(price * 2, 2)
    assert body["tax"] == round(body["subtotal"] * settings.TAX_RATE, 2)
    assert body["total"] == round(body["subtotal"] + body["tax"], 2)
    assert _quantity(rid) == qty - 2

    r = client.get(f"/api/orders/{body['id']}")
    assert r.status_code == 200
    assert r.json()["lines"][0]["inventoryId"] == rid

    r = client.post(f"/api/orders/{body['id']}/cancel")
    assert r.status_code == 200
    assert r.json()["status"] == "cancelled"
    assert _quantity(rid) == qty

    # second cancel must not restore stock twice
    r = client.post(f"/api/orders/{body['id']}/cancel")
    assert r.status_code == 400
    assert _quantity(rid) == qty


def test_delivery_order_charges_fee():
    (rid, _, _), = _stocked(1)
    r = client.post(
        "/api/orders",
        json={
            "items": [{"inventory_id": rid, "quantity": 1}],
            "fulfillment": "delivery",
            "delivery_address": {"line1": "1 Main St", "city": "Brooklyn"},
        },
    )
    assert r.status_code == 201, r.text
    assert r.json()["deliveryFee"] == settings.DELIVERY_FEE


def test_delivery_requires_address():
    (rid, _, _), = _stocked(1)
    r = client.post(
        "/api/orders", json={"items": [{"inventory_id": rid, "quantity": 1}], "fulfillment": "delivery"}
    )
    assert r.status_code == 400


def test_order_is_all_or_nothing():
    (ok_id, ok_qty, _), (short_id, short_qty, _) = _stocked(2)
    r = client.post(
        "/api/orders",
        json={
            "items": [
                {"inventory_id": ok_id, "quantity": 1},
                {"inventory_id": short_id, "quantity": short_qty + 1},
            ]
        },
    )
    assert r.status_code == 400
    assert "Insufficient stock" in r.json()["detail"]
    assert _quantity(ok_id) == ok_qty
    assert _quantity(short_id) == short_qty


def test_unknown_inventory_rejected():
    r = client.post("/api/orders", json={"items": [{"inventory_id": "missing", "quantity": 1}]})
    assert r.status_code == 400


def test_validation_errors():
    assert client.post("/api/orders", json={"items": []}).status_code == 422
    assert client.post("/api/orders", json={"items": [{"inventory_id": "x", "quantity": 0}]}).status_code == 422
    assert client.get("/api/orders/999999").status_code == 404
    assert client.post("/api/orders/999999/cancel").status_code == 404
