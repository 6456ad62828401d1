"""
Seed products, stores and inventory from the static catalog.

Idempotent: each table is only filled when it is empty.
"""
import logging
import time
from datetime import datetime, timezone
from uuid import uuid4

from sqlalchemy import insert
from sqlalchemy.orm import Session

from retail_radar.data.catalog import generate_stores, load_catalog, string_hash
from retail_radar.models.inventory_record import InventoryRecord
from retail_radar.models.store import Store
from retail_radar.repositories.inventory_repo import InventoryRepository
from retail_radar.repositories.product_repo import ProductRepository
from retail_radar.repositories.store_repo import StoreRepository

logger = logging.getLogger(__name__)

# hash % 100 at or below this leaves the product off the shelf entirely
NOT_CARRIED_THRESHOLD = 12
# hash % 100 at or below this (and above NOT_CARRIED...) is carried but sold out
SOLD_OUT_THRESHOLD = 15


def _validate_coordinates(store: dict):
    if not (-90 <= store["lat"] <= 90 and -180 <= store["lng"] <= 180):
        raise ValueError(f"Invalid coordinates for store {store['store_id']}: {store['lat']}, {store['lng']}")


def seed_products(db: Session, catalog: dict) -> int:
    repo = ProductRepository(db)
    for entry in catalog["products"]:
        repo.create_or_update(
            sku=entry["sku"],
            name=entry["name"],
            category=entry["category"],
            price=float(entry["price"]),
            keywords=entry.get("keywords", []),
            retailers=entry.get("retailers", []),
            brand=entry.get("brand"),
            image=entry.get("image"),
        )
    return len(catalog["products"])


def seed_stores(db: Session, catalog: dict) -> int:
    stores = generate_stores(catalog)
    for store in stores:
        _validate_coordinates(store)
    db.execute(insert(Store), [dict(s, source="seed") for s in stores])
    return len(stores)


def build_inventory_rows(catalog: dict, stores) -> list:
    now = datetime.now(timezone.utc)
    stores_by_retailer = {}
    for store in stores:
        stores_by_retailer.setdefault(store.retailer, []).append(store)

    rows = []
    for product in catalog["products"]:
        for retailer_key in product.get("retailers", []):
            modifier = catalog["retailers"].get(retailer_key, {}).get("price_modifier", 1.0)
            for store in stores_by_retailer.get(retailer_key, []):
                h = abs(string_hash(product["sku"] + store.store_id))
                roll = h % 100
                if roll <= NOT_CARRIED_THRESHOLD:
                    continue
                spread = 1 + ((h % 16) - 8) / 100
                quantity = 0 if roll <= SOLD_OUT_THRESHOLD else (h % 80) + 2
                rows.append(
                    {
                        "id": str(uuid4()),
                        "store_id": store.store_id,
                        "retailer": retailer_key,
                        "product_sku": product["sku"],
                        "product_name": product["name"],
                        "price": round(product["price"] * modifier * spread, 2),
                        "original_price": product["price"],
                        "quantity": quantity,
                        "in_stock": quantity > 0,
                        "stock_override": False,
                        "category": product["category"],
                        "brand": product.get("brand"),
                        "source": "seed",
                        "last_updated": now,
                    }
                )
    return rows


def seed_inventory(db: Session, catalog: dict) -> int:
    stores = StoreRepository(db).list()
    rows = build_inventory_rows(catalog, stores)
    if rows:
        db.execute(insert(InventoryRecord), rows)
    return len(rows)


def seed_catalog(db: Session, catalog_path: str) -> dict:
    catalog = load_catalog(catalog_path)
    counts = {"products": 0, "stores": 0, "inventory": 0}
    try:
        if ProductRepository(db).count() == 0:
            counts["products"] = seed_products(db, catalog)
            logger.info("Seeded %d products", counts["products"])
        if StoreRepository(db).count() == 0:
            counts["stores"] = seed_stores(db, catalog)
            logger.info("Seeded %d stores across %d cities", counts["stores"], len(catalog["cities"]))
        if InventoryRepository(db).count() == 0:
            started = time.time()
            counts["inventory"] = seed_inventory(db, catalog)
            logger.info("Seeded %d inventory records in %.1fs", counts["inventory"], time.time() - started)
        db.commit()
    except Exception:
        db.rollback()
        raise
    return counts
