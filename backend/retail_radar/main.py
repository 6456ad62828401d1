import logging
from contextlib import asynccontextmanager

from apscheduler.schedulers.background import BackgroundScheduler
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from retail_radar.api.health import router as health_router
from retail_radar.api.routes_catalogue import router as catalogue_router
from retail_radar.api.routes_inventory import router as inventory_router
from retail_radar.api.routes_order import router as order_router
from retail_radar.api.routes_search import router as search_router
from retail_radar.api.routes_stores import router as stores_router
from retail_radar.config import settings
from retail_radar.db import SessionLocal, init_db
from retail_radar.logger import setup_logging
from retail_radar.services.inventory_service import InventoryService

setup_logging(settings.LOG_LEVEL)
logger = logging.getLogger(__name__)


def sync_stock_job():
    db = SessionLocal()
    try:
        InventoryService(db).sync_stock_flags()
    except Exception:
        logger.exception("Stock flag sync failed")
    finally:
        db.close()


@asynccontextmanager
async def lifespan(app: FastAPI):
    # startup; RESET_DB=1 (or running under pytest) drops and recreates tables
    init_db()

    scheduler = BackgroundScheduler()
    scheduler.add_job(
        sync_stock_job,
        "interval",
        seconds=settings.STOCK_SYNC_INTERVAL_SECONDS,
        id="sync_stock_flags",
    )
    scheduler.start()
    logger.info("Retail Radar API ready")

    try:
        yield
    finally:
        scheduler.shutdown(wait=False)


app = FastAPI(title="Retail Radar - Backend", version="0.1.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.FRONTEND_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health_router, prefix="/api", tags=["health"])

app.include_router(search_router, tags=["search"])

app.include_router(stores_router, tags=["stores"])

app.include_router(catalogue_router, prefix="/api/products", tags=["catalogue"])

app.include_router(inventory_router, tags=["inventory"])

app.include_router(order_router, prefix="/api/orders", tags=["orders"])


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=settings.APP_HOST, port=settings.APP_PORT)
