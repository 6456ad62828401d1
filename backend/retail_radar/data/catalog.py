"""
Static catalog: retailer registry, metro cities, retailer-to-city map and
the product list, loaded from catalog.json.
"""
import json
import os
from functools import lru_cache
from typing import Dict, Iterable, List

from retail_radar.config import settings

BIG_CITIES = ("Brooklyn", "New York", "Los Angeles", "Chicago", "Houston", "Phoenix", "Dallas")

NEIGHBORHOODS = {
    "Brooklyn": ["Downtown Brooklyn", "Park Slope", "Williamsburg", "Bay Ridge"],
    "New York": ["Midtown", "Union Square", "East Harlem", "Chelsea"],
    "Los Angeles": ["Hollywood", "Westwood", "Silver Lake", "Burbank"],
    "Chicago": ["Lincoln Park", "South Loop", "Wicker Park", "Hyde Park"],
    "Houston": ["Galleria", "Heights", "Midtown"],
    "San Francisco": ["SoMa", "Mission", "Sunset"],
    "Seattle": ["Capitol Hill", "Ballard", "University District"],
    "Boston": ["Fenway", "Back Bay", "Cambridge"],
    "Miami": ["Brickell", "Wynwood", "Coral Gables"],
    "Washington": ["Columbia Heights", "Georgetown", "Navy Yard"],
    "Denver": ["LoDo", "Cherry Creek", "Capitol Hill"],
    "Austin": ["Downtown", "South Congress", "East Side"],
    "Portland": ["Pearl District", "Hawthorne", "Alberta"],
    "Atlanta": ["Buckhead", "Midtown", "Decatur"],
    "Phoenix": ["Scottsdale", "Tempe", "Downtown"],
    "Dallas": ["Uptown", "Deep Ellum", "Plano"],
}

STREETS = ["Main St", "Broadway", "Market St", "Oak Ave", "Park Blvd", "Washington Ave", "Lincoln Rd", "Commerce Dr"]


@lru_cache(maxsize=4)
def load_catalog(path: str = settings.CATALOG_FILE) -> Dict:
    if not os.path.exists(path):
        raise FileNotFoundError(path)
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    for key in ("retailers", "cities", "retailer_cities", "products"):
        if key not in data:
            raise ValueError(f"Catalog {path} is missing '{key}'")
    return data


def string_hash(value: str) -> int:
    """32-bit signed rolling hash (h*31 + c); stable across runs and platforms."""
    h = 0
    for ch in value:
        h = (h * 31 + ord(ch)) & 0xFFFFFFFF
    return h - 0x100000000 if h & 0x80000000 else h


def _signed_mod(value: int, modulus: int) -> int:
    r = abs(value) % modulus
    return -r if value < 0 else r


def store_prefixes(retailer_keys: Iterable[str]) -> Dict[str, str]:
    """
    Store-id prefix per retailer: the first three letters of the key,
    lengthened one letter at a time when an earlier retailer already holds
    it (walmart -> WAL, walgreens -> WALG).
    """
    prefixes: Dict[str, str] = {}
    taken = set()
    for key in retailer_keys:
        letters = "".join(ch for ch in key.upper() if "A" <= ch <= "Z") or "X"
        size = 3
        prefix = letters[:size]
        while prefix in taken:
            size += 1
            prefix = letters[:size] if size <= len(letters) else f"{letters}{size - len(letters)}"
        taken.add(prefix)
        prefixes[key] = prefix
    return prefixes


def generate_stores(catalog: Dict) -> List[Dict]:
    """One or two stores per retailer per city, with deterministic jitter."""
    cities = {c["city"]: c for c in catalog["cities"]}
    prefixes = store_prefixes(catalog["retailers"])
    stores = []
    for retailer_key, retailer in catalog["retailers"].items():
        counter = 0
        for city_name in catalog["retailer_cities"].get(retailer_key, []):
            city = cities.get(city_name)
            if not city:
                continue
            num_stores = 2 if city_name in BIG_CITIES else 1
            for i in range(num_stores):
                counter += 1
                store_id = f"{prefixes[retailer_key]}_{city['state']}{counter:02d}"
                lat_offset = (_signed_mod(string_hash(f"{store_id}-lat"), 40) - 20) / 1000
                lng_offset = (_signed_mod(string_hash(f"{store_id}-lng"), 40) - 20) / 1000
                hoods = NEIGHBORHOODS.get(city_name, [city_name])
                stores.append(
                    {
                        "store_id": store_id,
                        "retailer": retailer_key,
                        "brand": retailer["brand"],
                        "name": f"{retailer['brand']} {hoods[i % len(hoods)]}",
                        "address": _address(city_name, city["state"], i),
                        "lat": round(city["lat"] + lat_offset, 6),
                        "lng": round(city["lng"] + lng_offset, 6),
                        "city": city_name,
                        "state": city["state"],
                        "phone": _phone(store_id),
                        "hours": "6:00 AM - 10:00 PM",
                    }
                )
    return stores


def _address(city: str, state: str, idx: int) -> str:
    num = 100 + abs(string_hash(f"{city}-{idx}")) % 9000
    return f"{num} {STREETS[idx % len(STREETS)]}, {city}, {state}"


def _phone(seed: str) -> str:
    h = abs(string_hash(seed))
    return f"({200 + h % 800}) {200 + h % 800}-{1000 + h % 9000}"
