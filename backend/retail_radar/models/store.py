from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Float, Integer, String

from retail_radar.db import Base


class Store(Base):
    __tablename__ = "stores"

    id = Column(Integer, primary_key=True, autoincrement=True)
    store_id = Column(String(32), unique=True, index=True, nullable=False)
    retailer = Column(String(64), index=True, nullable=False)
    brand = Column(String(128), nullable=False)
    name = Column(String(256), nullable=False)
    address = Column(String(512), nullable=True)
    lat = Column(Float, nullable=False)
    lng = Column(Float, nullable=False)
    city = Column(String(128), nullable=True)
    state = Column(String(8), nullable=True)
    phone = Column(String(32), nullable=True)
    hours = Column(String(64), nullable=True)
    source = Column(String(32), nullable=False, default="seed")
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))

    def to_dict(self):
        return {
            "storeId": self.store_id,
            "retailer": self.retailer,
            "brand": self.brand,
            "name": self.name,
            "address": self.address,
            "lat": self.lat,
            "lng": self.lng,
            "city": self.city,
            "state": self.state,
            "phone": self.phone,
            "hours": self.hours,
        }

    def __repr__(self):
        return f"<Store store_id={self.store_id} name={self.name}>"
