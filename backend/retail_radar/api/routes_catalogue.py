from fastapi import APIRouter, Depends, HTTPException, Query
from typing import Optional
from sqlalchemy.orm import Session
from retail_radar.db import get_db
from retail_radar.repositories.product_repo import ProductRepository
from retail_radar.schemas.product_schema import ProductOut

router = APIRouter(tags=["catalogue"])


@router.get("", summary="List catalog products")
def list_products(
    q: Optional[str] = Query(None, description="name contains"),
    category: Optional[str] = None,
    page: int = Query(1, ge=1),
    size: int = Query(20, ge=1, le=200),
    db: Session = Depends(get_db),
):
    repo = ProductRepository(db)
    items, total = repo.list(q=q, category=category, page=page, size=size)
    return {
        "items": [ProductOut.model_validate(p).model_dump() for p in items],
        "total": total,
        "page": page,
        "size": size,
    }


@router.get("/{sku}", summary="Get product by SKU")
def get_product(sku: str, db: Session = Depends(get_db)):
    repo = ProductRepository(db)
    p = repo.get_by_sku(sku)
    if not p:
        raise HTTPException(status_code=404, detail="Product not found")
    return ProductOut.model_validate(p).model_dump()
