"""
Domain errors raised by the service layer.

Every error aborts the enclosing unit of work (see services/concurrency.py).
Nothing is retried automatically; retry is the caller's decision.
"""

from __future__ import annotations

from sqlalchemy.exc import IntegrityError


class StoreError(ValueError):
    """Base class for store domain errors."""
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


class NotFound(StoreError):
    """A service was asked to act on a row that does not exist."""


class InventoryNotFound(StoreError):
    """No inventory record exists for the product."""


class InsufficientStock(StoreError):
    """Requested quantity exceeds the available quantity."""


class ConstraintViolation(StoreError):
    """Uniqueness, range, enum or lifecycle rule violated by caller data."""


class ReferenceViolation(StoreError):
    """Foreign key target missing, or delete blocked by dependent rows."""


# PostgreSQL SQLSTATE / MySQL errno for FK failures
_PG_FOREIGN_KEY_VIOLATION = "23503"
_MYSQL_FK_ERRNOS = {1451, 1452}


def _is_foreign_key_failure(exc: IntegrityError) -> bool:
    orig = exc.orig
    if getattr(orig, "pgcode", None) == _PG_FOREIGN_KEY_VIOLATION:
        return True
    args = getattr(orig, "args", ()) or ()
    if args and args[0] in _MYSQL_FK_ERRNOS:
        return True
    return "foreign key" in str(orig).lower()


def translate_integrity_error(exc: IntegrityError) -> StoreError:
    """Map a driver-level IntegrityError onto the domain error kinds."""
    message = str(exc.orig)
    if _is_foreign_key_failure(exc):
        return ReferenceViolation(message, details={"statement": exc.statement})
    return ConstraintViolation(message, details={"statement": exc.statement})
