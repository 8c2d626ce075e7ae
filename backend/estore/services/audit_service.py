# Overview: Service-layer operations for the audit log; append-only writes and filtered reads.

from __future__ import annotations

from typing import Optional

from ..extensions import db
from ..models import AuditLog
"""
Audit Log Invariants (authoritative)

- Append-only: no updates or deletes of existing entries.
- Entries are written inside the same DB transaction as the change they record.
- Callers own the transaction; append_audit_entry only flushes.
"""


def append_audit_entry(
    *,
    entity: str,
    entity_id,
    action: str,
    performed_by: int | None = None,
    details: Optional[dict] = None,
) -> AuditLog:
    entry = AuditLog(
        entity=entity,
        entity_id=str(entity_id) if entity_id is not None else None,
        action=action,
        performed_by=performed_by,
        details=details,
    )
    db.session.add(entry)
    db.session.flush()  # ensures entry.id is assigned without committing
    return entry


def list_audit_entries(entity: str | None = None, entity_id=None) -> list[AuditLog]:
    q = db.session.query(AuditLog)
    if entity is not None:
        q = q.filter(AuditLog.entity == entity)
    if entity_id is not None:
        q = q.filter(AuditLog.entity_id == str(entity_id))
    return q.order_by(AuditLog.id.asc()).all()
