import os
from typing import Dict, List

from pydantic_settings import BaseSettings

DEFAULT_CATALOG_FILE = os.path.join(os.path.dirname(__file__), "data", "catalog.json")


class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite:///./dev.db"
    APP_HOST: str = "127.0.0.1"
    APP_PORT: int = 8000
    FRONTEND_ORIGINS: List[str] = ["http://localhost:3000"]
    LOG_LEVEL: str = "INFO"

    # search defaults; location falls back to Brooklyn
    DEFAULT_LAT: float = 40.6892
    DEFAULT_LNG: float = -73.9857
    DEFAULT_RADIUS_MILES: float = 10.0
    MAX_RADIUS_MILES: float = 50.0
    DEFAULT_PAGE_LIMIT: int = 20
    MAX_PAGE_LIMIT: int = 100
    OTHER_STORES_LIMIT: int = 5

    SEED_ON_STARTUP: bool = True
    CATALOG_FILE: str = DEFAULT_CATALOG_FILE

    STOCK_SYNC_INTERVAL_SECONDS: int = 60
    LOCK_TIMEOUT_SECONDS: int = 10

    DELIVERY_FEE: float = 4.99
    TAX_RATE: float = 0.08875

    AFFILIATE_TAGS: Dict[str, str] = {}

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"

settings = Settings()
