import logging

from fastapi import APIRouter
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from retail_radar.db import SessionLocal, engine
from retail_radar.repositories.inventory_repo import InventoryRepository
from retail_radar.repositories.product_repo import ProductRepository
from retail_radar.repositories.store_repo import StoreRepository

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/health", tags=["health"])
def health():
    db_ok = False
    counts = {"products": 0, "stores": 0, "inventory": 0}
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
            db_ok = True
    except SQLAlchemyError:
        logger.exception("Health check: database unreachable")

    if db_ok:
        db = SessionLocal()
        try:
            counts = {
                "products": ProductRepository(db).count(),
                "stores": StoreRepository(db).count(),
                "inventory": InventoryRepository(db).count(),
            }
        except SQLAlchemyError:
            logger.exception("Health check: count query failed")
            db_ok = False
        finally:
            db.close()

    return {
        "status": "ok" if db_ok else "degraded",
        "db": db_ok,
        **counts,
    }
