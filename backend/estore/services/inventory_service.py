# Overview: Service-layer operations for inventory; encapsulates business logic and database work.

# backend/estore/services/inventory_service.py

from flask import current_app

from ..extensions import db
from ..models import Inventory, OrderItem, Product
from ..errors import ConstraintViolation, InsufficientStock, InventoryNotFound, NotFound
from ..money import round_money
from estore.time_utils import utcnow
from .concurrency import begin_write, lock_for_update, run_atomically
"""
Inventory Invariants (authoritative)

Inventory model:
- One Inventory row per product holds the on-hand quantity as a mutable counter.
- quantity >= 0 at all times (CHECK constraint backs the service rule).

Order-line admission (add_order_item):
1. Admission check: lock the product's inventory row for the rest of the
   transaction. No row -> InventoryNotFound. quantity < requested ->
   InsufficientStock. Otherwise the line may be recorded.
2. Decrement: after the order line is flushed, subtract the requested
   quantity from the same locked row, in the same transaction.
Both steps commit together or not at all. Concurrent admissions for the same
product serialize on the row lock, so no stock unit is consumed twice.

Not covered here:
- Cancelling or refunding an order does NOT restock. Returning stock is an
  explicit receive_stock() call made by whoever handles the return.
"""


def require_positive_quantity(quantity) -> int:
    if isinstance(quantity, bool) or not isinstance(quantity, int):
        raise ConstraintViolation("quantity must be an integer", details={"quantity": quantity})
    if quantity <= 0:
        raise ConstraintViolation("quantity must be greater than zero", details={"quantity": quantity})
    return quantity


def _locked_inventory(product_id: int) -> Inventory | None:
    query = db.session.query(Inventory).filter_by(product_id=product_id)
    return lock_for_update(query).first()


def get_stock(product_id: int) -> int:
    inventory = db.session.query(Inventory).filter_by(product_id=product_id).first()
    if inventory is None:
        raise InventoryNotFound(
            "Inventory record not found for product",
            details={"product_id": product_id},
        )
    return inventory.quantity


def add_order_item(
    *,
    order_id: int,
    product_id: int,
    quantity: int,
    unit_price=None,
    line_total=None,
) -> OrderItem:
    """
    Record an order line and consume its stock as one unit of work.

    unit_price defaults to the product's current list price and line_total
    to unit_price * quantity. A caller-supplied line_total is stored as
    given; it is not reconciled against unit_price * quantity.

    Raises:
        ConstraintViolation: quantity is not a positive integer
        InventoryNotFound: the product has no inventory record
        InsufficientStock: on-hand quantity is below the requested quantity
        ReferenceViolation: order does not exist
    """
    require_positive_quantity(quantity)

    def _op():
        begin_write()

        # Step 1: admission check under an exclusive row lock
        inventory = _locked_inventory(product_id)
        if inventory is None:
            current_app.logger.warning(
                "Order line refused: no inventory for product %s (order %s)", product_id, order_id
            )
            raise InventoryNotFound(
                "Inventory record not found for product",
                details={"product_id": product_id},
            )

        available = inventory.quantity
        if available < quantity:
            current_app.logger.warning(
                "Order line refused: product %s has %s, %s requested (order %s)",
                product_id, available, quantity, order_id,
            )
            raise InsufficientStock(
                "Insufficient inventory for product",
                details={
                    "product_id": product_id,
                    "requested_quantity": quantity,
                    "available": available,
                },
            )

        price = unit_price
        if price is None:
            price = db.session.query(Product.price).filter_by(id=product_id).scalar()
        price = round_money(price)
        total = round_money(line_total) if line_total is not None else round_money(price * quantity)

        item = OrderItem(
            order_id=order_id,
            product_id=product_id,
            unit_price=price,
            quantity=quantity,
            line_total=total,
        )
        db.session.add(item)
        db.session.flush()

        # Step 2: decrement the row still held from step 1
        inventory.quantity = Inventory.quantity - quantity
        db.session.flush()

        current_app.logger.info(
            "Order %s: admitted %s x product %s (%s -> %s on hand)",
            order_id, quantity, product_id, available, available - quantity,
        )
        return item

    return run_atomically(_op)


def receive_stock(
    *,
    product_id: int,
    quantity: int,
    reorder_level: int | None = None,
) -> Inventory:
    """
    Add stock for a product, creating its inventory record if needed.

    Also the path for putting cancelled or returned units back on the shelf.
    """
    require_positive_quantity(quantity)

    def _op():
        begin_write()
        inventory = _locked_inventory(product_id)
        if inventory is None:
            if db.session.query(Product.id).filter_by(id=product_id).scalar() is None:
                raise NotFound("Product not found", details={"product_id": product_id})
            inventory = Inventory(product_id=product_id, quantity=0, reorder_level=reorder_level or 0)
            db.session.add(inventory)
            db.session.flush()

        inventory.quantity = Inventory.quantity + quantity
        if reorder_level is not None:
            inventory.reorder_level = reorder_level
        inventory.last_restocked = utcnow()
        db.session.flush()

        current_app.logger.info("Received %s units of product %s", quantity, product_id)
        return inventory

    return run_atomically(_op)
