import os
import tempfile

# point the app at a throwaway sqlite file before retail_radar.config is imported
_TEST_DB = os.path.join(tempfile.gettempdir(), "retail_radar_test.db")
os.environ.setdefault("DATABASE_URL", f"sqlite:///{_TEST_DB}")
os.environ.setdefault("STOCK_SYNC_INTERVAL_SECONDS", "3600")

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from retail_radar.db import Base, import_models
from retail_radar.models.inventory_record import InventoryRecord
from retail_radar.models.product import Product
from retail_radar.models.store import Store


@pytest.fixture
def db_session():
    """Isolated in-memory database per test."""
    import_models()
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()


def make_store(db, store_id, lat, lng, retailer="homedepot", brand="Home Depot", **kw):
    store = Store(
        store_id=store_id,
        retailer=retailer,
        brand=brand,
        name=kw.pop("name", f"{brand} {store_id}"),
        address=kw.pop("address", "1 Main St"),
        lat=lat,
        lng=lng,
        city=kw.pop("city", "Brooklyn"),
        state=kw.pop("state", "NY"),
        **kw,
    )
    db.add(store)
    db.commit()
    return store


def make_product(db, sku, name, category="hardware", price=10.0, keywords=(), retailers=("homedepot",), brand=None):
    product = Product(
        sku=sku,
        name=name,
        category=category,
        price=price,
        keywords=list(keywords),
        retailers=list(retailers),
        brand=brand,
    )
    db.add(product)
    db.commit()
    return product


def make_record(db, record_id, store_id, sku, name, price, quantity=5, in_stock=None, retailer="homedepot", category="hardware"):
    record = InventoryRecord(
        id=record_id,
        store_id=store_id,
        retailer=retailer,
        product_sku=sku,
        product_name=name,
        price=price,
        quantity=quantity,
        in_stock=(quantity > 0) if in_stock is None else in_stock,
        category=category,
    )
    db.add(record)
    db.commit()
    return record
