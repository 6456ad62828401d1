from typing import Iterable, List, Optional

from retail_radar.models.inventory_record import InventoryRecord
from sqlalchemy import func
from sqlalchemy.orm import Session

# keep IN lists under SQLite's bound-parameter limit
IN_CHUNK_SIZE = 500


def _chunks(values: List[str], size: int = IN_CHUNK_SIZE):
    for start in range(0, len(values), size):
        yield values[start:start + size]


class InventoryRepository:
    def __init__(self, db: Session):
        self.db = db

    def get(self, record_id: str, for_update: bool = False) -> Optional[InventoryRecord]:
        qry = self.db.query(InventoryRecord).filter(InventoryRecord.id == record_id)
        if for_update:
            qry = qry.with_for_update()
        return qry.first()

    def for_stores(
        self,
        store_ids: Iterable[str],
        product_sku: Optional[str] = None,
        skus: Optional[Iterable[str]] = None,
    ) -> List[InventoryRecord]:
        store_ids = sorted(set(store_ids))
        sku_list = sorted(set(skus)) if skus is not None else None
        if not store_ids or sku_list == []:
            return []

        records = []
        for chunk in _chunks(store_ids):
            qry = self.db.query(InventoryRecord).filter(InventoryRecord.store_id.in_(chunk))
            if product_sku:
                qry = qry.filter(InventoryRecord.product_sku == product_sku)
            if sku_list is not None and len(sku_list) <= IN_CHUNK_SIZE:
                qry = qry.filter(InventoryRecord.product_sku.in_(sku_list))
            records.extend(qry.all())

        if sku_list is not None and len(sku_list) > IN_CHUNK_SIZE:
            wanted = set(sku_list)
            records = [r for r in records if r.product_sku in wanted]
        records.sort(key=lambda r: (r.store_id, r.id))
        return records

    def for_store(
        self,
        store_id: str,
        category: Optional[str] = None,
        query: Optional[str] = None,
        min_price: Optional[float] = None,
        max_price: Optional[float] = None,
        in_stock_only: bool = False,
    ) -> List[InventoryRecord]:
        qry = self.db.query(InventoryRecord).filter(InventoryRecord.store_id == store_id)
        if category:
            qry = qry.filter(InventoryRecord.category == category.lower())
        if query:
            qry = qry.filter(InventoryRecord.product_name.ilike(f"%{query}%"))
        if min_price is not None:
            qry = qry.filter(InventoryRecord.price >= min_price)
        if max_price is not None:
            qry = qry.filter(InventoryRecord.price <= max_price)
        if in_stock_only:
            qry = qry.filter(InventoryRecord.in_stock == True)
        return qry.order_by(InventoryRecord.product_name, InventoryRecord.id).all()

    def find_by_name(self, store_id: str, product_name: str) -> Optional[InventoryRecord]:
        return (
            self.db.query(InventoryRecord)
            .filter(
                InventoryRecord.store_id == store_id,
                InventoryRecord.product_name == product_name,
            )
            .first()
        )

    def count(self) -> int:
        return self.db.query(func.count(InventoryRecord.id)).scalar() or 0

    def add(self, record: InventoryRecord) -> InventoryRecord:
        self.db.add(record)
        self.db.flush()
        return record

    def add_all(self, records: List[InventoryRecord]):
        self.db.add_all(records)
        self.db.flush()

    def delete(self, record: InventoryRecord):
        self.db.delete(record)
        self.db.flush()

    def drifted_stock_flags(self) -> List[InventoryRecord]:
        """Records whose in_stock flag disagrees with quantity/override."""
        return (
            self.db.query(InventoryRecord)
            .filter(
                (
                    (InventoryRecord.quantity <= 0) & (InventoryRecord.in_stock == True)
                )
                | (
                    (InventoryRecord.quantity > 0)
                    & (InventoryRecord.stock_override == False)
                    & (InventoryRecord.in_stock == False)
                )
                | (
                    (InventoryRecord.stock_override == True) & (InventoryRecord.in_stock == True)
                )
            )
            .all()
        )
