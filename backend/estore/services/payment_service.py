# Overview: Service-layer operations for payment; encapsulates business logic and database work.

"""
Payment Service

Payments are recorded against orders (one order, many payments). Their
status moves on its own lifecycle, independent of the order status:

    pending -> paid | failed
    paid -> refunded

No gateway calls happen here; provider_transaction_id is whatever the
external provider handed back to the caller.
"""

from flask import current_app

from ..extensions import db
from ..models import Payment
from ..models.orders import PAYMENT_METHODS
from ..errors import ConstraintViolation, NotFound
from ..money import round_money
from .audit_service import append_audit_entry
from .concurrency import begin_write, lock_for_update, run_atomically
from . import lifecycle_service


def record_payment(
    *,
    order_id: int,
    method: str,
    amount,
    currency: str | None = None,
    provider_transaction_id: str | None = None,
    actor_user_id: int | None = None,
) -> Payment:
    if method not in PAYMENT_METHODS:
        raise ConstraintViolation(
            f"Invalid payment method: {method}. Must be one of {list(PAYMENT_METHODS)}",
            details={"method": method},
        )
    amount = round_money(amount)
    if amount < 0:
        raise ConstraintViolation("Payment amount must not be negative", details={"amount": str(amount)})

    def _op():
        payment = Payment(
            order_id=order_id,
            payment_method=method,
            amount=amount,
            currency=currency or current_app.config["DEFAULT_CURRENCY"],
            payment_status="pending",
            provider_transaction_id=provider_transaction_id,
        )
        db.session.add(payment)
        db.session.flush()

        append_audit_entry(
            entity="payment",
            entity_id=payment.id,
            action="recorded",
            performed_by=actor_user_id,
            details={"order_id": order_id, "amount": str(amount), "method": method},
        )
        return payment

    return run_atomically(_op)


def set_payment_status(
    payment_id: int,
    new_status: str,
    *,
    provider_transaction_id: str | None = None,
    actor_user_id: int | None = None,
) -> Payment:
    """Move a payment along its lifecycle; illegal moves raise ConstraintViolation."""
    def _op():
        begin_write()
        payment = lock_for_update(db.session.query(Payment).filter_by(id=payment_id)).first()
        if payment is None:
            raise NotFound("Payment not found", details={"payment_id": payment_id})

        old_status = payment.payment_status
        lifecycle_service.ensure_transition(lifecycle_service.PAYMENT, old_status, new_status)
        payment.payment_status = new_status
        if provider_transaction_id is not None:
            payment.provider_transaction_id = provider_transaction_id

        append_audit_entry(
            entity="payment",
            entity_id=payment.id,
            action=f"status_{new_status}",
            performed_by=actor_user_id,
            details={"order_id": payment.order_id, "from": old_status, "to": new_status},
        )
        return payment

    payment = run_atomically(_op)
    current_app.logger.info("Payment %s moved to %s", payment_id, new_status)
    return payment
