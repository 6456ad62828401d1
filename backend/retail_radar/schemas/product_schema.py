# backend/retail_radar/schemas/product_schema.py
from typing import List, Optional
from pydantic import BaseModel
from pydantic import ConfigDict


class ProductOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    sku: str
    name: str
    category: str
    brand: Optional[str] = None
    price: float
    keywords: List[str] = []
    retailers: List[str] = []
    image: Optional[str] = None
