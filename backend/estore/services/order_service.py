# Overview: Service-layer operations for orders; order creation, status moves and reads.

"""
Order Service

create_order_half_upfront is the checkout entry point. It captures the
order with its pricing snapshot, opens a pending payment for half of the
total (the half-upfront business rule) and records an audit entry, all in
one transaction. Order lines are added afterwards through
inventory_service.add_order_item, which is where stock is consumed.
"""

from decimal import Decimal

from flask import current_app
from sqlalchemy import func

from ..extensions import db
from ..models import Order, OrderItem, Payment
from ..errors import ConstraintViolation, NotFound
from ..money import round_money
from .audit_service import append_audit_entry
from .concurrency import begin_write, lock_for_update, run_atomically
from . import lifecycle_service


UPFRONT_FRACTION = Decimal("0.5")
AUDIT_ACTION_CREATED = "created_pending_half_upfront"


def _non_negative(name: str, value) -> Decimal:
    amount = round_money(value)
    if amount < 0:
        raise ConstraintViolation(f"{name} must not be negative", details={name: str(amount)})
    return amount


def compute_total(subtotal, shipping_fee, tax, discount) -> Decimal:
    """total = subtotal + shipping_fee + tax - discount, to the cent."""
    return round_money(
        round_money(subtotal) + round_money(shipping_fee) + round_money(tax) - round_money(discount)
    )


def create_order_half_upfront(
    *,
    user_id: int,
    shipping_address_id: int,
    billing_address_id: int,
    subtotal,
    shipping_fee,
    tax,
    discount,
) -> int:
    """
    Create a pending order plus its half-upfront payment and audit entry.

    Returns the new order id. Missing user/address raises
    ReferenceViolation; a negative figure or total raises
    ConstraintViolation. Nothing is written unless all three inserts succeed.
    """
    subtotal = _non_negative("subtotal", subtotal)
    shipping_fee = _non_negative("shipping_fee", shipping_fee)
    tax = _non_negative("tax", tax)
    discount = _non_negative("discount", discount)
    total = compute_total(subtotal, shipping_fee, tax, discount)

    currency = current_app.config["DEFAULT_CURRENCY"]
    method = current_app.config["DEFAULT_PAYMENT_METHOD"]

    def _op():
        order = Order(
            user_id=user_id,
            shipping_address_id=shipping_address_id,
            billing_address_id=billing_address_id,
            subtotal=subtotal,
            shipping_fee=shipping_fee,
            tax=tax,
            discount=discount,
            total=total,
            order_status="pending",
        )
        db.session.add(order)
        db.session.flush()

        payment = Payment(
            order_id=order.id,
            payment_method=method,
            amount=round_money(total * UPFRONT_FRACTION),
            currency=currency,
            payment_status="pending",
        )
        db.session.add(payment)

        append_audit_entry(
            entity="order",
            entity_id=order.id,
            action=AUDIT_ACTION_CREATED,
            performed_by=user_id,
            details={"total": str(total)},
        )
        return order.id

    order_id = run_atomically(_op)
    current_app.logger.info("Order %s created for user %s (total %s)", order_id, user_id, total)
    return order_id


def get_order(order_id: int) -> Order:
    order = db.session.get(Order, order_id)
    if order is None:
        raise NotFound("Order not found", details={"order_id": order_id})
    return order


def order_detail(order_id: int) -> dict:
    order = get_order(order_id)
    return {
        "order": order.to_dict(),
        "items": [item.to_dict() for item in order.items],
        "payments": [payment.to_dict() for payment in order.payments],
        "shipment": order.shipment.to_dict() if order.shipment else None,
    }


def order_subtotal_from_items(order_id: int) -> Decimal:
    """Sum of line totals; equals Order.subtotal when the caller priced correctly."""
    value = db.session.query(
        func.coalesce(func.sum(OrderItem.line_total), 0)
    ).filter(OrderItem.order_id == order_id).scalar()
    return round_money(value)


def transition_order_status(order_id: int, new_status: str, actor_user_id: int | None = None) -> Order:
    """
    Move an order along its lifecycle (see lifecycle_service).

    Does not restock on cancelled/refunded.
    """
    def _op():
        begin_write()
        order = lock_for_update(db.session.query(Order).filter_by(id=order_id)).first()
        if order is None:
            raise NotFound("Order not found", details={"order_id": order_id})

        old_status = order.order_status
        lifecycle_service.ensure_transition(lifecycle_service.ORDER, old_status, new_status)
        order.order_status = new_status

        append_audit_entry(
            entity="order",
            entity_id=order.id,
            action=f"status_{new_status}",
            performed_by=actor_user_id,
            details={"from": old_status, "to": new_status},
        )
        return order

    order = run_atomically(_op)
    current_app.logger.info("Order %s moved to %s", order_id, new_status)
    return order
