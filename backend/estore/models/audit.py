from __future__ import annotations

from ..extensions import db
from estore.time_utils import to_utc_z


class AuditLog(db.Model):
    """
    Append-only audit trail.

    Rows are written by audit_service.append_audit_entry inside the same
    transaction as the change they describe and are never updated or
    deleted by the application. entity_id is a string so non-integer keys
    can be recorded too.
    """
    __tablename__ = "audit_log"
    __table_args__ = (
        db.Index("ix_audit_log_entity", "entity", "entity_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    entity = db.Column(db.String(100), nullable=False)
    entity_id = db.Column(db.String(100), nullable=True)
    action = db.Column(db.String(50), nullable=False)
    performed_by = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    details = db.Column(db.JSON, nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "entity": self.entity,
            "entity_id": self.entity_id,
            "action": self.action,
            "performed_by": self.performed_by,
            "details": self.details,
            "created_at": to_utc_z(self.created_at),
        }
