"""Payments, shipments and the status machines behind them."""

from decimal import Decimal

import pytest
from sqlalchemy import delete

from estore.errors import ConstraintViolation, NotFound
from estore.models import Order, OrderItem, Payment, Shipment
from estore.services import inventory_service, lifecycle_service, payment_service, shipment_service


class TestLifecycleTables:
    def test_order_happy_path(self):
        path = ["pending", "paid", "processing", "shipped", "delivered"]
        for src, dst in zip(path, path[1:]):
            assert lifecycle_service.can_transition(lifecycle_service.ORDER, src, dst)

    def test_order_cannot_skip_or_reverse(self):
        assert not lifecycle_service.can_transition(lifecycle_service.ORDER, "pending", "shipped")
        assert not lifecycle_service.can_transition(lifecycle_service.ORDER, "delivered", "pending")
        assert not lifecycle_service.can_transition(lifecycle_service.ORDER, "shipped", "cancelled")

    def test_terminal_states(self):
        assert lifecycle_service.is_terminal(lifecycle_service.ORDER, "cancelled")
        assert lifecycle_service.is_terminal(lifecycle_service.ORDER, "refunded")
        assert not lifecycle_service.is_terminal(lifecycle_service.ORDER, "delivered")
        assert lifecycle_service.is_terminal(lifecycle_service.PAYMENT, "failed")
        assert lifecycle_service.is_terminal(lifecycle_service.SHIPMENT, "delivered")
        assert lifecycle_service.is_terminal(lifecycle_service.SHIPMENT, "exception")

    def test_unknown_status(self):
        with pytest.raises(ConstraintViolation):
            lifecycle_service.validate_status(lifecycle_service.PAYMENT, "chargeback")


def test_record_and_settle_payment(db_session, pending_order):
    payment = payment_service.record_payment(order_id=pending_order.id, method="card", amount="824.00")
    assert payment.currency == "KES"
    assert payment.payment_status == "pending"

    payment_service.set_payment_status(payment.id, "paid", provider_transaction_id="TX-123")
    settled = db_session.get(Payment, payment.id)
    assert settled.payment_status == "paid"
    assert settled.provider_transaction_id == "TX-123"

    with pytest.raises(ConstraintViolation):
        payment_service.set_payment_status(payment.id, "failed")


def test_invalid_payment_method(db_session, pending_order):
    with pytest.raises(ConstraintViolation):
        payment_service.record_payment(order_id=pending_order.id, method="cheque", amount="10")


def test_unknown_payment(db_session):
    with pytest.raises(NotFound):
        payment_service.set_payment_status(9999, "paid")


def test_shipment_progress_stamps_times(db_session, pending_order):
    shipment = shipment_service.create_shipment(order_id=pending_order.id, carrier="G4S", tracking_number="TRK-1")
    assert shipment.status == "label_created"

    for status in ["shipped", "in_transit", "out_for_delivery", "delivered"]:
        shipment_service.set_shipment_status(shipment.id, status)

    done = db_session.get(Shipment, shipment.id)
    assert done.shipped_at is not None
    assert done.delivered_at is not None


def test_shipment_cannot_skip_steps(db_session, pending_order):
    shipment = shipment_service.create_shipment(order_id=pending_order.id)
    with pytest.raises(ConstraintViolation):
        shipment_service.set_shipment_status(shipment.id, "delivered")


def test_one_shipment_per_order(db_session, pending_order):
    shipment_service.create_shipment(order_id=pending_order.id, tracking_number="TRK-A")
    with pytest.raises(ConstraintViolation):
        shipment_service.create_shipment(order_id=pending_order.id, tracking_number="TRK-B")


def test_deleting_order_cascades_children(db_session, pending_order, tshirt):
    inventory_service.add_order_item(order_id=pending_order.id, product_id=tshirt.id, quantity=1)
    shipment_service.create_shipment(order_id=pending_order.id)
    order_id = pending_order.id

    db_session.execute(delete(Order).where(Order.id == order_id))
    db_session.commit()

    assert db_session.query(OrderItem).filter_by(order_id=order_id).count() == 0
    assert db_session.query(Payment).filter_by(order_id=order_id).count() == 0
    assert db_session.query(Shipment).filter_by(order_id=order_id).count() == 0
    # Stock is not returned by deleting an order
    assert inventory_service.get_stock(tshirt.id) == 99


def test_payment_amounts_are_money(db_session, pending_order):
    payment = payment_service.record_payment(order_id=pending_order.id, method="wallet", amount=0.1)
    assert db_session.get(Payment, payment.id).amount == Decimal("0.10")
