# Overview: Transaction helpers shared by the service layer; row locks and all-or-nothing units of work.

from __future__ import annotations

from sqlalchemy import text
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..errors import translate_integrity_error


def lock_for_update(query):
    """
    Apply row-level locking for critical operations.

    NOTE: SQLite ignores SELECT ... FOR UPDATE, but other DBs will honor it.
    Pair with begin_write() so SQLite serializes writers as well.
    """
    return query.with_for_update()


def begin_write() -> None:
    """
    Open the current transaction in write mode.

    On SQLite this issues BEGIN IMMEDIATE, taking the database write lock up
    front so a check-then-write sequence cannot interleave with another
    writer. Other dialects rely on lock_for_update().
    """
    if db.engine.dialect.name != "sqlite":
        return
    dbapi_connection = db.session.connection().connection.dbapi_connection
    if not dbapi_connection.in_transaction:
        db.session.execute(text("BEGIN IMMEDIATE"))


def run_atomically(func):
    """
    Run func as one unit of work: commit on success, roll back on any error.

    IntegrityError is translated to ConstraintViolation/ReferenceViolation.
    No retry; the caller decides whether to try again.
    """
    try:
        result = func()
        db.session.commit()
        return result
    except IntegrityError as exc:
        db.session.rollback()
        raise translate_integrity_error(exc) from exc
    except Exception:
        db.session.rollback()
        raise
