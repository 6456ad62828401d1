from typing import List, Optional, Tuple

from retail_radar.models.product import Product
from sqlalchemy import func
from sqlalchemy.orm import Session


class ProductRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_by_sku(self, sku: str) -> Optional[Product]:
        return self.db.query(Product).filter(Product.sku == sku).first()

    def list_all(self) -> List[Product]:
        """Full catalog in catalog (insertion) order."""
        return self.db.query(Product).order_by(Product.id).all()

    def list(
        self, q: Optional[str] = None, category: Optional[str] = None, page: int = 1, size: int = 20
    ) -> Tuple[List[Product], int]:
        qry = self.db.query(Product)
        if q:
            qry = qry.filter(Product.name.ilike(f"%{q}%"))
        if category:
            qry = qry.filter(Product.category == category.lower())
        total = qry.count()
        items = qry.order_by(Product.id).offset((page - 1) * size).limit(size).all()
        return items, total

    def count(self) -> int:
        return self.db.query(func.count(Product.id)).scalar() or 0

    def create_or_update(
        self,
        sku: str,
        name: str,
        category: str,
        price: float,
        keywords: Optional[List[str]] = None,
        retailers: Optional[List[str]] = None,
        brand: Optional[str] = None,
        image: Optional[str] = None,
    ) -> Product:
        p = self.get_by_sku(sku)
        if p is None:
            p = Product(sku=sku)
            self.db.add(p)
        p.name = name
        p.category = category.lower()
        p.price = price
        p.keywords = [k.lower() for k in (keywords or [])]
        p.retailers = [r.lower() for r in (retailers or [])]
        p.brand = brand
        p.image = image
        self.db.flush()
        return p
