import logging
import os
import tempfile
from contextlib import ExitStack, contextmanager
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional, Tuple
from uuid import uuid4

from filelock import FileLock, Timeout
from sqlalchemy.orm import Session

from retail_radar.config import settings
from retail_radar.models.inventory_record import InventoryRecord
from retail_radar.repositories.inventory_repo import InventoryRepository
from retail_radar.repositories.store_repo import StoreRepository
from retail_radar.utils.transactions import smart_transaction

logger = logging.getLogger(__name__)

MAX_BATCH_ITEMS = 500
LOCKS_DIR = os.path.join(tempfile.gettempdir(), "retail_radar_locks")


class InventoryException(Exception):
    pass


class InventoryNotFound(InventoryException):
    pass


def _lock_for(record_id: str) -> FileLock:
    os.makedirs(LOCKS_DIR, exist_ok=True)
    return FileLock(os.path.join(LOCKS_DIR, f"inventory_{record_id}.lock"))


class InventoryService:
    """
    Store-owner inventory management plus the stock mutation primitives used
    by order placement and cancellation.

    Every write keeps in_stock == (quantity > 0) unless stock_override marks
    the item unavailable.
    """

    def __init__(self, db: Session):
        self.db = db
        self.repo = InventoryRepository(db)
        self.stores = StoreRepository(db)

    def _now(self) -> datetime:
        return datetime.now(timezone.utc)

    def _touch(self, record: InventoryRecord):
        record.in_stock = record.expected_in_stock()
        record.last_updated = self._now()

    # -- CRUD -------------------------------------------------------------------

    def add_item(
        self,
        store_id: str,
        product_name: str,
        price: float,
        quantity: int,
        category: Optional[str] = None,
        product_sku: Optional[str] = None,
        retailer: Optional[str] = None,
        brand: Optional[str] = None,
    ) -> InventoryRecord:
        if price < 0:
            raise InventoryException("Price must be >= 0")
        if quantity < 0:
            raise InventoryException("Quantity must be >= 0")
        with smart_transaction(self.db):
            store = self.stores.get(store_id)
            if not store:
                raise InventoryNotFound(f"Store not found: {store_id}")
            record = InventoryRecord(
                id=str(uuid4()),
                store_id=store_id,
                retailer=(retailer or store.retailer or "independent").lower(),
                product_sku=product_sku or f"CUSTOM-{uuid4().hex[:8].upper()}",
                product_name=product_name,
                price=float(price),
                quantity=int(quantity),
                category=(category or "uncategorized").lower(),
                brand=brand,
                source="manual",
            )
            self._touch(record)
            self.repo.add(record)
        logger.info("Added inventory %s (%s) at store %s", record.id, product_name, store_id)
        return record

    def get_item(self, record_id: str) -> InventoryRecord:
        record = self.repo.get(record_id)
        if not record:
            raise InventoryNotFound("Inventory item not found")
        return record

    def update_item(
        self,
        record_id: str,
        price: Optional[float] = None,
        quantity: Optional[int] = None,
        product_name: Optional[str] = None,
        category: Optional[str] = None,
        stock_override: Optional[bool] = None,
    ) -> InventoryRecord:
        if price is not None and price < 0:
            raise InventoryException("Price must be >= 0")
        if quantity is not None and quantity < 0:
            raise InventoryException("Quantity must be >= 0")
        with smart_transaction(self.db):
            record = self.repo.get(record_id, for_update=True)
            if not record:
                raise InventoryNotFound("Inventory item not found")
            if price is not None:
                record.price = float(price)
            if quantity is not None:
                record.quantity = int(quantity)
            if product_name:
                record.product_name = product_name
            if category:
                record.category = category.lower()
            if stock_override is not None:
                record.stock_override = stock_override
            self._touch(record)
            self.db.flush()
        return record

    def remove_item(self, record_id: str) -> Dict:
        """Delete a record and return its last state."""
        with smart_transaction(self.db):
            record = self.repo.get(record_id, for_update=True)
            if not record:
                raise InventoryNotFound("Inventory item not found")
            snapshot = record.to_dict()
            self.repo.delete(record)
        logger.info("Removed inventory %s from store %s", record_id, snapshot["storeId"])
        return snapshot

    def batch_upsert(self, store_id: str, items: List[Dict]) -> Dict:
        """
        Add or update many items for one store, matching on product name.
        Bad items are reported, not fatal.
        """
        if not store_id or not items:
            raise InventoryException("storeId and items[] required")
        if len(items) > MAX_BATCH_ITEMS:
            raise InventoryException(f"Maximum {MAX_BATCH_ITEMS} items per batch")

        added, updated, errors = 0, 0, []
        with smart_transaction(self.db):
            store = self.stores.get(store_id)
            if not store:
                raise InventoryNotFound(f"Store not found: {store_id}")
            for item in items:
                name = item.get("productName")
                price = item.get("price")
                if not name or price is None:
                    errors.append({"item": item, "error": "Missing productName or price"})
                    continue
                try:
                    price = float(price)
                    quantity = item.get("quantity")
                    quantity = int(quantity) if quantity is not None else None
                except (TypeError, ValueError) as e:
                    errors.append({"item": item, "error": str(e)})
                    continue
                if price < 0 or (quantity is not None and quantity < 0):
                    errors.append({"item": item, "error": "Price and quantity must be >= 0"})
                    continue

                existing = self.repo.find_by_name(store_id, name)
                if existing:
                    existing.price = price
                    if quantity is not None:
                        existing.quantity = quantity
                    self._touch(existing)
                    updated += 1
                else:
                    record = InventoryRecord(
                        id=str(uuid4()),
                        store_id=store_id,
                        retailer=(item.get("retailer") or store.retailer).lower(),
                        product_sku=item.get("productSku") or f"CUSTOM-{uuid4().hex[:8].upper()}",
                        product_name=name,
                        price=price,
                        quantity=quantity or 0,
                        category=(item.get("category") or "uncategorized").lower(),
                        source="manual",
                    )
                    self._touch(record)
                    self.repo.add(record)
                    added += 1
            self.db.flush()

        logger.info(
            "Batch for store %s: %d added, %d updated, %d errors", store_id, added, updated, len(errors)
        )
        return {
            "message": f"Batch processed: {added} added, {updated} updated, {len(errors)} errors",
            "added": added,
            "updated": updated,
            "errors": errors,
        }

    def store_stats(self, store_id: str) -> Dict:
        items = self.repo.for_store(store_id)
        in_stock = [i for i in items if i.in_stock]
        breakdown: Dict[str, Dict] = {}
        for item in items:
            cat = item.category or "uncategorized"
            entry = breakdown.setdefault(cat, {"count": 0, "value": 0.0})
            entry["count"] += 1
            entry["value"] = round(entry["value"] + item.price * item.quantity, 2)
        return {
            "storeId": store_id,
            "totalProducts": len(items),
            "inStock": len(in_stock),
            "outOfStock": len(items) - len(in_stock),
            "totalInventoryValue": round(sum(i.price * i.quantity for i in in_stock), 2),
            "avgPrice": round(sum(i.price for i in items) / len(items), 2) if items else 0,
            "categoryBreakdown": breakdown,
        }

    # -- stock mutation ---------------------------------------------------------

    @contextmanager
    def locked(self, record_ids: Iterable[str]):
        """Hold the file locks for several records, taken in id order."""
        try:
            with ExitStack() as stack:
                for record_id in sorted(set(record_ids)):
                    stack.enter_context(
                        _lock_for(record_id).acquire(timeout=settings.LOCK_TIMEOUT_SECONDS)
                    )
                yield
        except Timeout:
            raise InventoryException("Could not acquire inventory lock; try again")

    def adjust_locked(self, record_id: str, delta: int) -> InventoryRecord:
        """
        Apply a quantity delta to one record. Caller must hold the record's
        file lock and an open transaction.
        """
        record = self.repo.get(record_id, for_update=True)
        if not record:
            raise InventoryNotFound(f"Inventory item not found: {record_id}")
        new_quantity = record.quantity + delta
        if new_quantity < 0:
            raise InventoryException(
                f"Insufficient stock for {record.product_name}. Available={record.quantity}"
            )
        if delta < 0 and not record.in_stock:
            raise InventoryException(f"{record.product_name} is not available")
        record.quantity = new_quantity
        self._touch(record)
        self.db.flush()
        return record

    def apply_deltas(self, deltas: Iterable[Tuple[str, int]]) -> List[InventoryRecord]:
        """
        Apply several quantity deltas atomically: all succeed or none do.
        Locks are taken in record-id order so concurrent callers cannot deadlock.
        """
        deltas = list(deltas)
        totals: Dict[str, int] = {}
        for record_id, delta in deltas:
            totals[record_id] = totals.get(record_id, 0) + delta

        with self.locked(totals):
            with smart_transaction(self.db):
                return [self.adjust_locked(record_id, totals[record_id]) for record_id in sorted(totals)]

    def decrement(self, record_id: str, qty: int) -> InventoryRecord:
        if qty <= 0:
            raise InventoryException("Quantity must be positive")
        return self.apply_deltas([(record_id, -qty)])[0]

    def restore(self, record_id: str, qty: int) -> InventoryRecord:
        if qty <= 0:
            raise InventoryException("Quantity must be positive")
        return self.apply_deltas([(record_id, qty)])[0]

    def sync_stock_flags(self) -> List[str]:
        """
        Bring in_stock back in line with quantity/override on records written
        outside this service (bulk loads, direct edits). Returns fixed ids.
        """
        with smart_transaction(self.db):
            drifted = self.repo.drifted_stock_flags()
            ids = []
            for record in drifted:
                record.in_stock = record.expected_in_stock()
                ids.append(record.id)
            self.db.flush()
        if ids:
            logger.warning("Normalised in_stock flag on %d inventory records", len(ids))
        return ids
