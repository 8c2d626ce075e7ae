# Overview: Read-only aggregate queries (product stock status and order summary).

"""
Reporting Service

Python equivalents of the two SQL views created by the initial migration:

- vw_product_stock: every product with its on-hand quantity (0 when it has
  no inventory record) and reorder level.
- vw_order_summary: every order with the customer's display name, total,
  status and creation time.

Both are plain joins; they hold no state and never write.
"""

from __future__ import annotations

from sqlalchemy import func

from ..extensions import db
from ..models import Product, Inventory, Order, User
from ..money import money_str
from estore.time_utils import to_utc_z


def _product_stock_query():
    qty = func.coalesce(Inventory.quantity, 0)
    return (
        db.session.query(
            Product.id.label("product_id"),
            Product.sku,
            Product.name,
            qty.label("qty"),
            Inventory.reorder_level,
        )
        .outerjoin(Inventory, Inventory.product_id == Product.id)
    ), qty


def _stock_row(row) -> dict:
    return {
        "product_id": row.product_id,
        "sku": row.sku,
        "name": row.name,
        "qty": int(row.qty),
        "reorder_level": row.reorder_level,
    }


def product_stock() -> list[dict]:
    query, _ = _product_stock_query()
    return [
        _stock_row(row)
        for row in query.order_by(Product.id.asc()).all()
    ]


def low_stock() -> list[dict]:
    """Products at or below their reorder level."""
    query, qty = _product_stock_query()
    query = query.filter(Inventory.reorder_level.isnot(None), qty <= Inventory.reorder_level)
    return [
        _stock_row(row)
        for row in query.order_by(Product.id.asc()).all()
    ]


def order_summary(user_id: int | None = None) -> list[dict]:
    customer_name = User.first_name + " " + User.last_name
    query = db.session.query(
        Order.id.label("order_id"),
        Order.user_id,
        customer_name.label("customer_name"),
        Order.total,
        Order.order_status,
        Order.created_at,
    ).join(User, Order.user_id == User.id)
    if user_id is not None:
        query = query.filter(Order.user_id == user_id)

    return [
        {
            "order_id": row.order_id,
            "user_id": row.user_id,
            "customer_name": row.customer_name,
            "total": money_str(row.total),
            "order_status": row.order_status,
            "created_at": to_utc_z(row.created_at),
        }
        for row in query.order_by(Order.id.asc()).all()
    ]
