from sqlalchemy import JSON, Column, Float, Integer, String

from retail_radar.db import Base


class Product(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)
    sku = Column(String(64), unique=True, index=True, nullable=False)
    name = Column(String(256), nullable=False)
    category = Column(String(64), index=True, nullable=False)
    brand = Column(String(128), nullable=True)
    price = Column(Float, nullable=False, default=0.0)
    keywords = Column(JSON, nullable=False, default=list)
    retailers = Column(JSON, nullable=False, default=list)
    image = Column(String(512), nullable=True)

    def __repr__(self):
        return f"<Product sku={self.sku} name={self.name}>"
