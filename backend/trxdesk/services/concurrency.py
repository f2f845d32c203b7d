# Overview: Storage-transaction helpers shared by every atomic unit.

from __future__ import annotations

import time

from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm.exc import StaleDataError

from ..errors import ConflictError
from ..extensions import db


def lock_for_update(query):
    """
    Apply row-level locking for critical operations.

    NOTE: SQLite ignores SELECT ... FOR UPDATE (it serializes writers at the
    database level instead); PostgreSQL/MySQL honor it and re-check the WHERE
    clause once a competing lock is released.
    """
    return query.with_for_update()


# SQLSTATE / MySQL error codes for lock and serialization failures
_RETRYABLE_SQLSTATES = {"40001", "40P01", "55P03"}
_RETRYABLE_MYSQL_CODES = {1205, 1213}
_RETRYABLE_MESSAGES = ("database is locked", "deadlock", "lock wait timeout", "could not serialize")


def is_retryable(exc: Exception) -> bool:
    """
    True for failures another attempt can succeed at.

    Stale versions and lock/serialization OperationalErrors qualify. A lost
    connection or any other storage failure does not.
    """
    if isinstance(exc, StaleDataError):
        return True
    if not isinstance(exc, OperationalError) or exc.connection_invalidated:
        return False

    orig = exc.orig
    code = getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)
    if code in _RETRYABLE_SQLSTATES:
        return True
    if orig is not None and orig.args and orig.args[0] in _RETRYABLE_MYSQL_CODES:
        return True
    message = str(orig).lower()
    return any(fragment in message for fragment in _RETRYABLE_MESSAGES)


def run_with_retry(func, *, attempts: int = 3, backoff_base: float = 0.1):
    """
    Execute an atomic unit with retry on concurrency-related failures.

    Retries on lock timeouts and deadlocks (OperationalError) and on
    StaleDataError (optimistic locking conflicts). The session is rolled back
    before every retry so the unit always starts from a clean state.
    """
    last_exc = None
    for attempt in range(attempts):
        try:
            return func()
        except (OperationalError, StaleDataError) as exc:
            db.session.rollback()
            if not is_retryable(exc):
                raise
            last_exc = exc
            if attempt >= attempts - 1:
                raise
            time.sleep(backoff_base * (2 ** attempt))
    if last_exc:
        raise last_exc


def commit_unit() -> None:
    """
    Commit the current unit of work.

    A unique-constraint, stale-version or lock failure here means another
    writer got in between; the unit is rolled back and reported as a Conflict
    the caller may retry. Any other storage failure is rolled back and
    re-raised for the route's internal error handler.
    """
    try:
        db.session.commit()
    except (IntegrityError, OperationalError, StaleDataError) as exc:
        db.session.rollback()
        if isinstance(exc, IntegrityError) or is_retryable(exc):
            raise ConflictError("Concurrent modification detected, please retry") from exc
        raise
