import logging
from datetime import datetime, timezone
from typing import Dict, List, Optional
from uuid import uuid4

from sqlalchemy.orm import Session

from retail_radar.config import settings
from retail_radar.models.order import Order, OrderLine
from retail_radar.services.inventory_service import InventoryException, InventoryService
from retail_radar.utils.transactions import smart_transaction

logger = logging.getLogger(__name__)

FULFILLMENT_OPTIONS = ("pickup", "delivery")


class OrderServiceException(Exception):
    pass


class OrderNotFound(OrderServiceException):
    pass


class OrderService:
    def __init__(self, db: Session):
        self.db = db
        self.inventory = InventoryService(db)

    def _gen_order_number(self) -> str:
        return f"ORD-{uuid4().hex[:10].upper()}"

    def _validate_items(self, items: List[Dict]) -> List[Dict]:
        if not items:
            raise OrderServiceException("Order must contain at least one item")
        lines = []
        for it in items:
            inventory_id = it.get("inventory_id")
            try:
                qty = int(it.get("quantity", 1))
            except (TypeError, ValueError):
                raise OrderServiceException(f"Invalid quantity for {inventory_id}")
            if not inventory_id:
                raise OrderServiceException("Each item needs an inventory_id")
            if qty <= 0:
                raise OrderServiceException(f"Quantity must be positive for {inventory_id}")
            lines.append({"inventory_id": inventory_id, "quantity": qty})
        return lines

    def create_order(
        self,
        customer_id: Optional[int],
        items: List[Dict],
        fulfillment: str = "pickup",
        delivery_address: Optional[Dict] = None,
        notes: Optional[str] = None,
    ) -> Order:
        """
        items: list of {inventory_id: str, quantity: int}
        Stock for every line is decremented in one transaction: if any line
        cannot be filled, nothing changes.
        """
        if fulfillment not in FULFILLMENT_OPTIONS:
            raise OrderServiceException(f"fulfillment must be one of {', '.join(FULFILLMENT_OPTIONS)}")
        if fulfillment == "delivery" and not delivery_address:
            raise OrderServiceException("delivery_address is required for delivery orders")
        lines = self._validate_items(items)

        totals: Dict[str, int] = {}
        for line in lines:
            totals[line["inventory_id"]] = totals.get(line["inventory_id"], 0) + line["quantity"]

        try:
            with self.inventory.locked(totals):
                with smart_transaction(self.db):
                    records = {
                        record_id: self.inventory.adjust_locked(record_id, -qty)
                        for record_id, qty in sorted(totals.items())
                    }
                    order = Order(
                        order_number=self._gen_order_number(),
                        customer_id=customer_id,
                        status="pending",
                        fulfillment=fulfillment,
                        delivery_address=delivery_address if fulfillment == "delivery" else None,
                        notes=notes,
                    )
                    subtotal = 0.0
                    for line in lines:
                        record = records[line["inventory_id"]]
                        line_total = round(record.price * line["quantity"], 2)
                        subtotal += line_total
                        order.lines.append(
                            OrderLine(
                                inventory_id=record.id,
                                store_id=record.store_id,
                                product_name=record.product_name,
                                price=record.price,
                                quantity=line["quantity"],
                                line_total=line_total,
                            )
                        )
                    order.subtotal = round(subtotal, 2)
                    order.delivery_fee = settings.DELIVERY_FEE if fulfillment == "delivery" else 0.0
                    order.tax = round(order.subtotal * settings.TAX_RATE, 2)
                    order.total = round(order.subtotal + order.delivery_fee + order.tax, 2)
                    self.db.add(order)
                    self.db.flush()
        except InventoryException as e:
            raise OrderServiceException(f"Could not reserve stock: {e}")

        logger.info(
            "Created order %s (%d lines, %s, total %.2f)",
            order.order_number,
            len(lines),
            fulfillment,
            order.total,
        )
        return order

    def get_order(self, order_id: int) -> Order:
        order = self.db.get(Order, order_id)
        if not order:
            raise OrderNotFound("Order not found")
        return order

    def _load_open(self, order_id: int) -> Order:
        order = self.db.query(Order).filter(Order.id == order_id).with_for_update().first()
        if not order:
            raise OrderNotFound("Order not found")
        if order.status == "cancelled":
            raise OrderServiceException(f"Order {order.order_number} is already cancelled")
        return order

    def cancel_order(self, order_id: int) -> Order:
        """Put every line's quantity back on the shelf and mark the order cancelled."""
        with smart_transaction(self.db):
            order = self._load_open(order_id)
            totals: Dict[str, int] = {}
            for line in order.lines:
                totals[line.inventory_id] = totals.get(line.inventory_id, 0) + line.quantity

        try:
            with self.inventory.locked(totals):
                with smart_transaction(self.db):
                    # status re-read under the stock locks; a concurrent cancel may have won
                    order = self._load_open(order_id)
                    for record_id, qty in sorted(totals.items()):
                        self.inventory.adjust_locked(record_id, qty)
                    order.status = "cancelled"
                    order.updated_at = datetime.now(timezone.utc)
                    self.db.flush()
        except InventoryException as e:
            raise OrderServiceException(f"Could not restore stock: {e}")

        logger.info("Cancelled order %s", order.order_number)
        return order

    @staticmethod
    def to_dict(order: Order) -> Dict:
        return {
            "id": order.id,
            "orderNumber": order.order_number,
            "customerId": order.customer_id,
            "status": order.status,
            "fulfillment": order.fulfillment,
            "deliveryAddress": order.delivery_address,
            "notes": order.notes,
            "subtotal": order.subtotal,
            "deliveryFee": order.delivery_fee,
            "tax": order.tax,
            "total": order.total,
            "createdAt": order.created_at.isoformat() if order.created_at else None,
            "lines": [
                {
                    "inventoryId": line.inventory_id,
                    "storeId": line.store_id,
                    "productName": line.product_name,
                    "price": line.price,
                    "quantity": line.quantity,
                    "lineTotal": line.line_total,
                }
                for line in order.lines
            ],
        }
