import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from retail_radar.db import get_db
from retail_radar.services.order_service import OrderNotFound, OrderService, OrderServiceException

logger = logging.getLogger(__name__)

router = APIRouter(tags=["orders"])


class OrderItemIn(BaseModel):
    inventory_id: str
    quantity: int = Field(..., gt=0)


class CreateOrderIn(BaseModel):
    customer_id: Optional[int] = None
    items: List[OrderItemIn] = Field(..., min_length=1)
    fulfillment: str = Field("pickup", pattern="^(pickup|delivery)$")
    delivery_address: Optional[dict] = None
    notes: Optional[str] = Field(None, max_length=1000)


@router.post("", summary="Place an order against store inventory", status_code=201)
def create_order(payload: CreateOrderIn, db: Session = Depends(get_db)):
    svc = OrderService(db)
    try:
        order = svc.create_order(
            payload.customer_id,
            [it.model_dump() for it in payload.items],
            fulfillment=payload.fulfillment,
            delivery_address=payload.delivery_address,
            notes=payload.notes,
        )
    except OrderServiceException as e:
        logger.info("Order rejected: %s", e)
        raise HTTPException(status_code=400, detail=str(e))
    return OrderService.to_dict(order)


@router.get("/{order_id}", summary="Get order")
def get_order(order_id: int, db: Session = Depends(get_db)):
    svc = OrderService(db)
    try:
        return OrderService.to_dict(svc.get_order(order_id))
    except OrderNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.post("/{order_id}/cancel", summary="Cancel order and restore stock")
def cancel_order(order_id: int, db: Session = Depends(get_db)):
    svc = OrderService(db)
    try:
        return OrderService.to_dict(svc.cancel_order(order_id))
    except OrderNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    except OrderServiceException as e:
        raise HTTPException(status_code=400, detail=str(e))
