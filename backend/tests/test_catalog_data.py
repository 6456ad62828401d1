from collections import Counter

from retail_radar.config import settings
from retail_radar.data.catalog import generate_stores, load_catalog, store_prefixes


def test_store_ids_are_unique():
    stores = generate_stores(load_catalog(settings.CATALOG_FILE))
    counts = Counter(s["store_id"] for s in stores)
    assert [store_id for store_id, n in counts.items() if n > 1] == []


def test_colliding_prefixes_are_lengthened():
    prefixes = store_prefixes(["walmart", "walgreens", "homedepot"])
    assert prefixes == {"walmart": "WAL", "walgreens": "WALG", "homedepot": "HOM"}


def test_prefixes_on_shipped_catalog_are_distinct():
    prefixes = store_prefixes(load_catalog(settings.CATALOG_FILE)["retailers"])
    assert prefixes["walmart"] == "WAL"
    assert prefixes["walgreens"] == "WALG"
    assert len(set(prefixes.values())) == len(prefixes)


def test_store_coordinates_are_valid():
    for store in generate_stores(load_catalog(settings.CATALOG_FILE)):
        assert -90 <= store["lat"] <= 90
        assert -180 <= store["lng"] <= 180
