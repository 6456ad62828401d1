from fastapi.testclient import TestClient

from retail_radar.db import SessionLocal, init_db
from retail_radar.main import app
from retail_radar.repositories.store_repo import StoreRepository

client = TestClient(app)


def setup_module(module):
    init_db(reset=True, seed=True)


def _brooklyn_store_id():
    db = SessionLocal()
    try:
        return StoreRepository(db).list(retailer="homedepot", city="Brooklyn")[0].store_id
    finally:
        db.close()


def test_list_stores_filters():
    res = client.get("/api/stores", params={"retailer": "homedepot", "state": "ny", "limit": 5})
    assert res.status_code == 200
    body = res.json()
    assert body["pagination"]["limit"] == 5
    assert body["stores"]
    assert all(s["retailer"] == "homedepot" and s["state"] == "NY" for s in body["stores"])


def test_list_stores_geo_filter():
    res = client.get("/api/stores", params={"lat": 40.6892, "lng": -73.9857, "radius": 5})
    body = res.json()
    distances = [s["distance"] for s in body["stores"]]
    assert distances and all(d <= 5 for d in distances)
    assert distances == sorted(distances)


def test_retailers():
    res = client.get("/api/stores/retailers")
    assert res.status_code == 200
    retailers = {r["id"]: r for r in res.json()["retailers"]}
    assert retailers["homedepot"]["brand"] == "Home Depot"
    assert retailers["homedepot"]["storeCount"] > 0


def test_nearby_defaults_and_estimates():
    res = client.get("/api/stores/nearby")
    assert res.status_code == 200
    body = res.json()
    assert body["location"]["lat"] == 40.6892
    assert body["count"] == len(body["stores"])
    assert all("deliveryEstimate" in s for s in body["stores"])


def test_store_detail_and_inventory():
    store_id = _brooklyn_store_id()
    res = client.get(f"/api/stores/{store_id}")
    assert res.status_code == 200
    body = res.json()
    assert body["store"]["storeId"] == store_id
    assert body["productCount"] == len(body["inventory"])
    assert all(i["quantity"] > 0 for i in body["inventory"])

    res = client.get(f"/api/stores/{store_id}/inventory", params={"limit": 3})
    assert res.status_code == 200
    body = res.json()
    assert len(body["inventory"]) <= 3
    assert body["pagination"]["total"] >= len(body["inventory"])


def test_unknown_store_404():
    assert client.get("/api/stores/NOPE_XX01").status_code == 404
    assert client.get("/api/stores/NOPE_XX01/inventory").status_code == 404
