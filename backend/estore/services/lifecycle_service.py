# Overview: Status machines for orders, payments and shipments.

"""
Status lifecycles

ORDER:
    pending -> paid -> processing -> shipped -> delivered
    cancelled: from pending, paid, processing (terminal)
    refunded:  from paid, processing, shipped, delivered (terminal)

PAYMENT:
    pending -> paid | failed
    paid -> refunded

SHIPMENT:
    label_created -> shipped -> in_transit -> out_for_delivery -> delivered
    exception: from any non-terminal state

The database only checks that a status is one of the known values; which
moves are legal is decided here, at the service boundary. Direct writes to
the status columns bypass these rules.
"""

from __future__ import annotations

from ..errors import ConstraintViolation
from ..models.orders import ORDER_STATUSES, PAYMENT_STATUSES, SHIPMENT_STATUSES


ORDER = "order"
PAYMENT = "payment"
SHIPMENT = "shipment"

_STATUSES = {
    ORDER: set(ORDER_STATUSES),
    PAYMENT: set(PAYMENT_STATUSES),
    SHIPMENT: set(SHIPMENT_STATUSES),
}

_TRANSITIONS = {
    ORDER: {
        ("pending", "paid"),
        ("paid", "processing"),
        ("processing", "shipped"),
        ("shipped", "delivered"),
        ("pending", "cancelled"),
        ("paid", "cancelled"),
        ("processing", "cancelled"),
        ("paid", "refunded"),
        ("processing", "refunded"),
        ("shipped", "refunded"),
        ("delivered", "refunded"),
    },
    PAYMENT: {
        ("pending", "paid"),
        ("pending", "failed"),
        ("paid", "refunded"),
    },
    SHIPMENT: {
        ("label_created", "shipped"),
        ("shipped", "in_transit"),
        ("in_transit", "out_for_delivery"),
        ("out_for_delivery", "delivered"),
        ("label_created", "exception"),
        ("shipped", "exception"),
        ("in_transit", "exception"),
        ("out_for_delivery", "exception"),
    },
}


def validate_status(machine: str, status: str) -> None:
    """Raise ConstraintViolation unless status belongs to the machine's vocabulary."""
    allowed = _STATUSES[machine]
    if status not in allowed:
        raise ConstraintViolation(
            f"Invalid {machine} status '{status}'. Must be one of: {', '.join(sorted(allowed))}",
            details={"machine": machine, "status": status},
        )


def can_transition(machine: str, from_status: str, to_status: str) -> bool:
    validate_status(machine, from_status)
    validate_status(machine, to_status)
    return (from_status, to_status) in _TRANSITIONS[machine]


def ensure_transition(machine: str, from_status: str, to_status: str) -> None:
    if not can_transition(machine, from_status, to_status):
        raise ConstraintViolation(
            f"Cannot move {machine} from {from_status} to {to_status}",
            details={"machine": machine, "from": from_status, "to": to_status},
        )


def is_terminal(machine: str, status: str) -> bool:
    validate_status(machine, status)
    return not any(src == status for src, _ in _TRANSITIONS[machine])
