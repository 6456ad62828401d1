# backend/retail_radar/schemas/search_schema.py
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Search wire format is camelCase; python code uses snake_case."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SearchRequest(CamelModel):
    query: Optional[str] = Field("", max_length=200)
    lat: Optional[float] = Field(None, ge=-90, le=90)
    lng: Optional[float] = Field(None, ge=-180, le=180)
    # values above the configured maximum are clamped by the engine, not rejected
    radius: Optional[float] = Field(None, ge=0)
    category: Optional[str] = None
    retailer: Optional[str] = None
    min_price: Optional[float] = Field(None, ge=0)
    max_price: Optional[float] = Field(None, ge=0)
    in_stock_only: bool = True
    sort_by: str = "relevance"
    sort_order: str = "asc"
    page: int = Field(1, ge=1)
    limit: Optional[int] = Field(None, ge=1)


class ProductSummary(CamelModel):
    sku: str
    name: str
    category: str
    image: Optional[str] = None
    brand: Optional[str] = None
    base_price: float


class NearestStore(CamelModel):
    id: str
    name: str
    brand: str
    retailer_key: Optional[str] = None
    address: Optional[str] = None
    distance: float
    delivery_estimate: Dict[str, str]
    price: float
    quantity: int
    inventory_id: str
    buy_url: Optional[str] = None
    store_url: Optional[str] = None


class StoreOffer(CamelModel):
    store_id: str
    name: str
    brand: str
    retailer_key: Optional[str] = None
    distance: float
    price: float
    quantity: int
    inventory_id: str
    buy_url: Optional[str] = None


class SearchResult(CamelModel):
    product: ProductSummary
    best_price: float
    store_count: int
    nearest_store: Optional[NearestStore] = None
    other_stores: List[StoreOffer] = []
    relevance_score: int


class SearchLocation(CamelModel):
    lat: float
    lng: float
    radius: float


class AppliedFilters(CamelModel):
    category: Optional[str] = None
    min_price: Optional[float] = None
    max_price: Optional[float] = None
    retailer: Optional[str] = None
    in_stock_only: bool = True


class Sorting(CamelModel):
    sort_by: str
    sort_order: str


class Pagination(CamelModel):
    page: int
    limit: int
    total_results: int
    total_pages: int


class SearchResponse(CamelModel):
    query: str
    location: SearchLocation
    filters: AppliedFilters
    sorting: Sorting
    pagination: Pagination
    results: List[SearchResult]
