from typing import List, Optional

from retail_radar.models.store import Store
from sqlalchemy import func
from sqlalchemy.orm import Session


class StoreRepository:
    def __init__(self, db: Session):
        self.db = db

    def get(self, store_id: str) -> Optional[Store]:
        return self.db.query(Store).filter(Store.store_id == store_id).first()

    def list(
        self,
        retailer: Optional[str] = None,
        city: Optional[str] = None,
        state: Optional[str] = None,
    ) -> List[Store]:
        query = self.db.query(Store)
        if retailer:
            query = query.filter(Store.retailer == retailer.lower())
        if city:
            query = query.filter(Store.city.ilike(f"%{city}%"))
        if state:
            query = query.filter(func.lower(Store.state) == state.lower())
        return query.order_by(Store.id).all()

    def count(self) -> int:
        return self.db.query(func.count(Store.id)).scalar() or 0

    def count_by_retailer(self):
        rows = self.db.query(Store.retailer, func.count(Store.id)).group_by(Store.retailer).all()
        return {retailer: count for retailer, count in rows}
