from fastapi.testclient import TestClient

from retail_radar.db import init_db
from retail_radar.main import app

client = TestClient(app)


def setup_module(module):
    init_db(reset=True, seed=True)


def test_search_drill_near_brooklyn():
    res = client.post("/api/search", json={"query": "drill", "lat": 40.6892, "lng": -73.9857, "radius": 10})
    assert res.status_code == 200
    body = res.json()
    assert body["query"] == "drill"
    assert body["location"] == {"lat": 40.6892, "lng": -73.9857, "radius": 10.0}
    assert body["pagination"]["totalResults"] >= 1
    first = body["results"][0]
    assert "drill" in first["product"]["name"].lower()
    assert first["nearestStore"]["distance"] <= 10
    assert first["bestPrice"] > 0
    assert set(first["nearestStore"]["deliveryEstimate"]) == {"pickup", "delivery"}


def test_search_defaults_location():
    res = client.post("/api/search", json={"query": "drill"})
    assert res.status_code == 200
    assert res.json()["location"]["lat"] == 40.6892


def test_search_mid_ocean():
    res = client.post("/api/search", json={"query": "drill", "lat": 0, "lng": 0, "radius": 10})
    assert res.status_code == 200
    body = res.json()
    assert body["results"] == []
    assert body["pagination"]["totalResults"] == 0
    assert body["pagination"]["totalPages"] == 0


def test_search_rejects_bad_coordinates():
    res = client.post("/api/search", json={"query": "drill", "lat": 123, "lng": 0})
    assert res.status_code == 422


def test_search_rejects_bad_page():
    res = client.post("/api/search", json={"query": "drill", "page": 0})
    assert res.status_code == 422


def test_categories():
    res = client.get("/api/search/categories")
    assert res.status_code == 200
    categories = res.json()["categories"]
    assert categories["hardware"] == 18
    assert list(categories) == sorted(categories)


def test_suggestions():
    res = client.get("/api/search/suggestions", params={"q": "ham"})
    assert res.status_code == 200
    assert "Stanley 16oz Claw Hammer" in res.json()["suggestions"]

    res = client.get("/api/search/suggestions", params={"q": "h"})
    assert res.json()["suggestions"] == []
