from fastapi.testclient import TestClient

from retail_radar.db import init_db
from retail_radar.main import app

client = TestClient(app)


def setup_module(module):
    init_db(reset=True, seed=True)


def test_list_products():
    res = client.get("/api/products", params={"q": "drill"})
    assert res.status_code == 200
    body = res.json()
    assert "items" in body
    skus = [it["sku"] for it in body["items"]]
    assert "RR-PT-001" in skus
    assert body["total"] == len(skus)


def test_list_products_by_category():
    res = client.get("/api/products", params={"category": "Hardware", "size": 50})
    body = res.json()
    assert body["total"] == 18
    assert all(it["category"] == "hardware" for it in body["items"])


def test_get_product():
    res = client.get("/api/products/RR-PT-001")
    assert res.status_code == 200
    assert res.json()["name"] == "DeWalt 20V MAX Cordless Drill/Driver Kit"
    assert client.get("/api/products/NOPE").status_code == 404
