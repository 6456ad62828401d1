from datetime import datetime, timezone
from uuid import uuid4

from sqlalchemy import Boolean, Column, DateTime, Float, Integer, String

from retail_radar.db import Base


class InventoryRecord(Base):
    """One product stocked at one store at one price/quantity."""

    __tablename__ = "inventory"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid4()))
    store_id = Column(String(32), index=True, nullable=False)
    retailer = Column(String(64), nullable=False, default="independent")
    product_sku = Column(String(64), index=True, nullable=False)
    product_name = Column(String(256), nullable=False)
    price = Column(Float, nullable=False, default=0.0)
    original_price = Column(Float, nullable=True)
    quantity = Column(Integer, nullable=False, default=0)
    # kept equal to quantity > 0 unless stock_override marks the item unavailable
    in_stock = Column(Boolean, nullable=False, default=False)
    stock_override = Column(Boolean, nullable=False, default=False)
    category = Column(String(64), nullable=True)
    brand = Column(String(128), nullable=True)
    source = Column(String(32), nullable=False, default="manual")
    last_updated = Column(DateTime, default=lambda: datetime.now(timezone.utc))

    def expected_in_stock(self) -> bool:
        if (self.quantity or 0) <= 0:
            return False
        return not self.stock_override

    def to_dict(self):
        return {
            "id": self.id,
            "storeId": self.store_id,
            "retailer": self.retailer,
            "productSku": self.product_sku,
            "productName": self.product_name,
            "price": self.price,
            "originalPrice": self.original_price,
            "quantity": self.quantity,
            "inStock": self.in_stock,
            "category": self.category,
            "brand": self.brand,
            "lastUpdated": self.last_updated.isoformat() if self.last_updated else None,
        }

    def __repr__(self):
        return f"<InventoryRecord store={self.store_id} sku={self.product_sku} qty={self.quantity}>"
