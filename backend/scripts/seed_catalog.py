#!/usr/bin/env python3
"""
Seed products, stores and inventory from the static catalog JSON
(retail_radar/data/catalog.json by default).

Only empty tables are filled, so running it twice is harmless. Pass
--reset to drop and recreate every table first.

Usage:
    python scripts/seed_catalog.py --file path/to/catalog.json [--reset]
"""
import argparse
import logging
import os
import sys

# allow running from repo/scripts
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from retail_radar.config import settings
from retail_radar.data.seed import seed_catalog
from retail_radar.db import SessionLocal, init_db
from retail_radar.logger import setup_logging

logger = logging.getLogger("seed_catalog")


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Seed the Retail Radar database")
    parser.add_argument("--file", "-f", default=settings.CATALOG_FILE, help="Path to catalog json")
    parser.add_argument("--reset", action="store_true", help="Drop and recreate tables before seeding")
    args = parser.parse_args(argv)

    setup_logging(settings.LOG_LEVEL)
    if not os.path.exists(args.file):
        logger.error("File not found: %s", args.file)
        return 1

    init_db(reset=args.reset, seed=False)
    db = SessionLocal()
    try:
        counts = seed_catalog(db, args.file)
    finally:
        db.close()
    logger.info(
        "Seeded %d products, %d stores, %d inventory records",
        counts["products"],
        counts["stores"],
        counts["inventory"],
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
