from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional

from sqlalchemy.orm import Session

from retail_radar.models.inventory_record import InventoryRecord
from retail_radar.models.store import Store
from retail_radar.repositories.inventory_repo import InventoryRepository
from retail_radar.repositories.store_repo import StoreRepository
from retail_radar.utils.geo import find_nearby


@dataclass(frozen=True)
class NearbyStore:
    store: Store
    distance: float

    @property
    def store_id(self) -> str:
        return self.store.store_id


class StoreIndex:
    """
    Read-only queries over stores and inventory. Nothing here writes; stock
    mutation belongs to InventoryService.
    """

    def __init__(self, db: Session):
        self.db = db
        self.stores = StoreRepository(db)
        self.inventory = InventoryRepository(db)

    def stores_near(
        self,
        lat: float,
        lng: float,
        radius_miles: float,
        retailer: Optional[str] = None,
        city: Optional[str] = None,
        state: Optional[str] = None,
    ) -> List[NearbyStore]:
        # cheap attribute filters first, then the geo pass on what's left
        candidates = self.stores.list(retailer=retailer, city=city, state=state)
        return [
            NearbyStore(store=store, distance=distance)
            for store, distance in find_nearby(candidates, lat, lng, radius_miles)
        ]

    def inventory_for_stores(
        self,
        store_ids: Iterable[str],
        product_sku: Optional[str] = None,
        skus: Optional[Iterable[str]] = None,
    ) -> List[InventoryRecord]:
        return self.inventory.for_stores(store_ids, product_sku=product_sku, skus=skus)

    def inventory_for_store(
        self,
        store_id: str,
        category: Optional[str] = None,
        query: Optional[str] = None,
        min_price: Optional[float] = None,
        max_price: Optional[float] = None,
        in_stock_only: bool = False,
    ) -> List[InventoryRecord]:
        return self.inventory.for_store(
            store_id,
            category=category,
            query=query,
            min_price=min_price,
            max_price=max_price,
            in_stock_only=in_stock_only,
        )

    def get_store(self, store_id: str) -> Optional[Store]:
        return self.stores.get(store_id)

    def list_stores(
        self,
        retailer: Optional[str] = None,
        city: Optional[str] = None,
        state: Optional[str] = None,
    ) -> List[Store]:
        return self.stores.list(retailer=retailer, city=city, state=state)

    def retailer_summary(self, registry: Dict[str, dict]) -> List[dict]:
        counts = self.stores.count_by_retailer()
        return [
            {
                "id": key,
                "brand": retailer["brand"],
                "categories": retailer.get("categories", []),
                "storeCount": counts.get(key, 0),
            }
            for key, retailer in registry.items()
        ]
