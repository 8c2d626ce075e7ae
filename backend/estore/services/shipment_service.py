# Overview: Service-layer operations for shipments; delivery tracking per order.

from datetime import date

from flask import current_app

from ..extensions import db
from ..models import Shipment
from ..errors import NotFound
from estore.time_utils import utcnow
from .audit_service import append_audit_entry
from .concurrency import begin_write, lock_for_update, run_atomically
from . import lifecycle_service


def create_shipment(
    *,
    order_id: int,
    carrier: str | None = None,
    tracking_number: str | None = None,
    estimated_delivery: date | None = None,
    actor_user_id: int | None = None,
) -> Shipment:
    """
    Open the shipment record for an order (status label_created).

    A second shipment for the same order, or a reused tracking number,
    raises ConstraintViolation.
    """
    def _op():
        shipment = Shipment(
            order_id=order_id,
            carrier=carrier,
            tracking_number=tracking_number,
            estimated_delivery=estimated_delivery,
            status="label_created",
        )
        db.session.add(shipment)
        db.session.flush()

        append_audit_entry(
            entity="shipment",
            entity_id=shipment.id,
            action="label_created",
            performed_by=actor_user_id,
            details={"order_id": order_id, "carrier": carrier, "tracking_number": tracking_number},
        )
        return shipment

    return run_atomically(_op)


def set_shipment_status(shipment_id: int, new_status: str, *, actor_user_id: int | None = None) -> Shipment:
    def _op():
        begin_write()
        shipment = lock_for_update(db.session.query(Shipment).filter_by(id=shipment_id)).first()
        if shipment is None:
            raise NotFound("Shipment not found", details={"shipment_id": shipment_id})

        old_status = shipment.status
        lifecycle_service.ensure_transition(lifecycle_service.SHIPMENT, old_status, new_status)
        shipment.status = new_status

        now = utcnow()
        if new_status == "shipped" and shipment.shipped_at is None:
            shipment.shipped_at = now
        elif new_status == "delivered":
            shipment.delivered_at = now

        append_audit_entry(
            entity="shipment",
            entity_id=shipment.id,
            action=f"status_{new_status}",
            performed_by=actor_user_id,
            details={"order_id": shipment.order_id, "from": old_status, "to": new_status},
        )
        return shipment

    shipment = run_atomically(_op)
    current_app.logger.info("Shipment %s moved to %s", shipment_id, new_status)
    return shipment
