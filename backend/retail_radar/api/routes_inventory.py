from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import Field
from sqlalchemy.orm import Session

from retail_radar.db import get_db
from retail_radar.schemas.search_schema import CamelModel
from retail_radar.services.inventory_service import (
    InventoryException,
    InventoryNotFound,
    InventoryService,
)

router = APIRouter(prefix="/api/inventory", tags=["inventory"])


class InventoryItemIn(CamelModel):
    store_id: str
    product_name: str = Field(..., min_length=1, max_length=256)
    price: float = Field(..., ge=0)
    quantity: int = Field(0, ge=0)
    category: Optional[str] = None
    product_sku: Optional[str] = None
    retailer: Optional[str] = None
    brand: Optional[str] = None


class InventoryUpdateIn(CamelModel):
    price: Optional[float] = Field(None, ge=0)
    quantity: Optional[int] = Field(None, ge=0)
    product_name: Optional[str] = None
    category: Optional[str] = None
    # true marks the item unavailable even while quantity > 0
    stock_override: Optional[bool] = None


class BatchIn(CamelModel):
    store_id: str
    items: List[dict]


def _error(e: InventoryException):
    code = 404 if isinstance(e, InventoryNotFound) else 400
    return HTTPException(status_code=code, detail=str(e))


@router.post("", summary="Add an inventory item to a store", status_code=201)
def add_item(payload: InventoryItemIn, db: Session = Depends(get_db)):
    svc = InventoryService(db)
    try:
        record = svc.add_item(
            payload.store_id,
            payload.product_name,
            payload.price,
            payload.quantity,
            category=payload.category,
            product_sku=payload.product_sku,
            retailer=payload.retailer,
            brand=payload.brand,
        )
    except InventoryException as e:
        raise _error(e)
    return {"message": "Product added", "item": record.to_dict()}


@router.put("/{record_id}", summary="Update price, quantity or details")
def update_item(record_id: str, payload: InventoryUpdateIn, db: Session = Depends(get_db)):
    svc = InventoryService(db)
    try:
        record = svc.update_item(
            record_id,
            price=payload.price,
            quantity=payload.quantity,
            product_name=payload.product_name,
            category=payload.category,
            stock_override=payload.stock_override,
        )
    except InventoryException as e:
        raise _error(e)
    return {"message": "Inventory updated", "item": record.to_dict()}


@router.delete("/{record_id}", summary="Remove an inventory item")
def remove_item(record_id: str, db: Session = Depends(get_db)):
    svc = InventoryService(db)
    try:
        removed = svc.remove_item(record_id)
    except InventoryException as e:
        raise _error(e)
    return {"message": "Product removed", "item": removed}


@router.post("/batch", summary="Add or update many items for one store")
def batch(payload: BatchIn, db: Session = Depends(get_db)):
    svc = InventoryService(db)
    try:
        return svc.batch_upsert(payload.store_id, payload.items)
    except InventoryException as e:
        raise _error(e)


@router.get("/stats/{store_id}", summary="Inventory statistics for a store")
def stats(store_id: str, db: Session = Depends(get_db)):
    return InventoryService(db).store_stats(store_id)


@router.get("/{record_id}", summary="Get one inventory item")
def get_item(record_id: str, db: Session = Depends(get_db)):
    svc = InventoryService(db)
    try:
        return svc.get_item(record_id).to_dict()
    except InventoryException as e:
        raise _error(e)
