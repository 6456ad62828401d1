import math
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from retail_radar.config import settings
from retail_radar.data.catalog import load_catalog
from retail_radar.db import get_db
from retail_radar.services.store_index import StoreIndex
from retail_radar.utils.geo import estimate_delivery_time

router = APIRouter(prefix="/api/stores", tags=["stores"])


def _radius(radius: Optional[float]) -> float:
    if radius is None:
        return settings.DEFAULT_RADIUS_MILES
    return min(max(radius, 0.0), settings.MAX_RADIUS_MILES)


@router.get("", summary="List stores")
def list_stores(
    lat: Optional[float] = Query(None, ge=-90, le=90),
    lng: Optional[float] = Query(None, ge=-180, le=180),
    radius: Optional[float] = Query(None, ge=0),
    retailer: Optional[str] = None,
    city: Optional[str] = None,
    state: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=200),
    db: Session = Depends(get_db),
):
    index = StoreIndex(db)
    if lat is not None and lng is not None:
        nearby = index.stores_near(lat, lng, _radius(radius), retailer=retailer, city=city, state=state)
        stores = [dict(n.store.to_dict(), distance=n.distance) for n in nearby]
    else:
        stores = [s.to_dict() for s in index.list_stores(retailer=retailer, city=city, state=state)]

    total = len(stores)
    offset = (page - 1) * limit
    return {
        "pagination": {
            "page": page,
            "limit": limit,
            "total": total,
            "totalPages": math.ceil(total / limit),
        },
        "stores": stores[offset:offset + limit],
    }


@router.get("/retailers", summary="List retailer chains")
def retailers(db: Session = Depends(get_db)):
    registry = load_catalog(settings.CATALOG_FILE)["retailers"]
    return {"retailers": StoreIndex(db).retailer_summary(registry)}


@router.get("/nearby", summary="Stores near a location with delivery estimates")
def nearby(
    lat: Optional[float] = Query(None, ge=-90, le=90),
    lng: Optional[float] = Query(None, ge=-180, le=180),
    radius: Optional[float] = Query(None, ge=0),
    db: Session = Depends(get_db),
):
    if lat is None or lng is None:
        lat, lng = settings.DEFAULT_LAT, settings.DEFAULT_LNG
    radius = _radius(radius)
    found = StoreIndex(db).stores_near(lat, lng, radius)
    stores = [
        dict(
            n.store.to_dict(),
            distance=n.distance,
            deliveryEstimate=estimate_delivery_time(n.distance),
        )
        for n in found
    ]
    return {
        "location": {"lat": lat, "lng": lng, "radius": radius},
        "count": len(stores),
        "stores": stores,
    }


@router.get("/{store_id}", summary="Store details with in-stock inventory")
def get_store(store_id: str, db: Session = Depends(get_db)):
    index = StoreIndex(db)
    store = index.get_store(store_id)
    if not store:
        raise HTTPException(status_code=404, detail="Store not found")
    items = index.inventory_for_store(store_id, in_stock_only=True)
    inventory = [
        {
            "id": i.id,
            "sku": i.product_sku,
            "name": i.product_name,
            "price": i.price,
            "quantity": i.quantity,
            "lastUpdated": i.last_updated.isoformat() if i.last_updated else None,
        }
        for i in items
    ]
    return {"store": store.to_dict(), "inventory": inventory, "productCount": len(inventory)}


@router.get("/{store_id}/inventory", summary="Full inventory for a store")
def store_inventory(
    store_id: str,
    category: Optional[str] = None,
    search: Optional[str] = None,
    min_price: Optional[float] = Query(None, alias="minPrice", ge=0),
    max_price: Optional[float] = Query(None, alias="maxPrice", ge=0),
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=200),
    db: Session = Depends(get_db),
):
    index = StoreIndex(db)
    if not index.get_store(store_id):
        raise HTTPException(status_code=404, detail="Store not found")
    items = index.inventory_for_store(
        store_id, category=category, query=search, min_price=min_price, max_price=max_price
    )
    total = len(items)
    offset = (page - 1) * limit
    return {
        "storeId": store_id,
        "pagination": {"page": page, "limit": limit, "total": total},
        "inventory": [i.to_dict() for i in items[offset:offset + limit]],
    }
