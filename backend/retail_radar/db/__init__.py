import importlib
import logging
import os
import sys
from typing import Optional

from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from retail_radar.config import settings

logger = logging.getLogger(__name__)

DATABASE_URL = settings.DATABASE_URL
connect_args = {"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}
engine = create_engine(DATABASE_URL, future=True, echo=False, connect_args=connect_args)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()

# every model module must be imported before create_all so metadata is populated
MODEL_MODULES = [
    "retail_radar.models.product",
    "retail_radar.models.store",
    "retail_radar.models.inventory_record",
    "retail_radar.models.order",
]


def import_models():
    for mod in MODEL_MODULES:
        importlib.import_module(mod)


def _running_pytest() -> bool:
    if any("pytest" in os.path.basename(a).lower() for a in sys.argv):
        return True
    return any(k.upper().startswith("PYTEST") for k in os.environ.keys())


def init_db(reset: Optional[bool] = None, seed: Optional[bool] = None):
    """
    Initialize DB schema and seed the catalog.

    Behavior:
      - reset=None: drop & recreate when RESET_DB is 1/true/yes or pytest is running.
      - seed=None: follow settings.SEED_ON_STARTUP. Seeding only fills empty tables.
    """
    if reset is None:
        reset = os.environ.get("RESET_DB", "false").lower() in ("1", "true", "yes") or _running_pytest()
    if seed is None:
        seed = settings.SEED_ON_STARTUP

    import_models()

    if reset:
        logger.info("Resetting database (RESET_DB set or pytest detected)")
        Base.metadata.drop_all(bind=engine)

    Base.metadata.create_all(bind=engine)
    logger.info("Database tables ready at %s", DATABASE_URL)

    if seed:
        from retail_radar.data.seed import seed_catalog

        db = SessionLocal()
        try:
            seed_catalog(db, settings.CATALOG_FILE)
        finally:
            db.close()


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
