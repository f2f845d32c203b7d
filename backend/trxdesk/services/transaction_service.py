# backend/trxdesk/services/transaction_service.py
"""
Transaction repository: role-scoped CRUD over client service transactions.

ATOMIC UNITS (each runs under run_with_retry and only flushes; the API layer
commits):
- create: number allocation + row insert + "created" history entry
- update: field write + "updated" history entry
- delete: row delete, cascading to history and handover items

VISIBILITY:
- Admins and supervisors see and edit every transaction.
- Employees see and edit only transactions assigned to them.
"""
from __future__ import annotations

import math
from datetime import date

from sqlalchemy import func
from sqlalchemy.orm import joinedload

from ..errors import ForbiddenError, NotFoundError, ValidationError
from ..extensions import db
from ..identity import Requester
from ..models import Transaction
from ..models.transactions import HISTORY_UPDATED, STATUS_PENDING, TRANSACTION_STATUSES
from ..time_utils import utcnow
from ..validation import validate_transaction_payload
from .concurrency import lock_for_update, run_with_retry
from .diff_service import diff_changes
from .history_service import append_created, append_history, list_history
from .scoping import TransactionFilter, apply_scope, scope_filters
from .sequence_service import allocate_transaction_number, current_business_date, day_prefix


def _ensure_visible(txn: Transaction, requester: Requester) -> None:
    if requester.is_manager:
        return
    if txn.assigned_to != requester.id:
        raise ForbiddenError("Access denied")


def _require_manager(requester: Requester) -> None:
    if not requester.is_manager:
        raise ForbiddenError("Admin or supervisor role required")


def create_transaction(
    data: dict,
    requester: Requester,
    *,
    on_date: date | None = None,
) -> Transaction:
    """
    Create a transaction owned by its creator.

    Args:
        data: Request payload (camelCase wire names)
        requester: Verified caller; becomes both created_by and assigned_to
        on_date: Calendar day used for numbering (defaults to today in the
            configured numbering timezone)

    Returns:
        Transaction: The created transaction

    Raises:
        ValidationError: If any required field is missing or malformed
    """
    fields = validate_transaction_payload(data, partial=False)

    def _op():
        transaction_number = allocate_transaction_number(on_date)
        now = utcnow()

        values = dict(fields)
        values.setdefault("status", STATUS_PENDING)

        txn = Transaction(
            transaction_number=transaction_number,
            assigned_to=requester.id,
            created_by=requester.id,
            created_at=now,
            updated_at=now,
            **values,
        )
        db.session.add(txn)
        db.session.flush()  # Get ID

        append_created(txn.id, requester.id)

        return txn

    return run_with_retry(_op)


def get_transaction(transaction_id: int, requester: Requester) -> Transaction:
    txn = db.session.get(Transaction, transaction_id)
    if not txn:
        raise NotFoundError("Transaction not found")
    _ensure_visible(txn, requester)
    return txn


def get_transaction_detail(transaction_id: int, requester: Requester) -> dict:
    """Transaction plus its history, most recent entry first."""
    txn = get_transaction(transaction_id, requester)
    return {
        "transaction": txn.to_dict(),
        "history": [entry.to_dict() for entry in list_history(txn.id)],
    }


def list_transactions(
    filters: TransactionFilter,
    requester: Requester,
    *,
    page: int = 1,
    limit: int = 50,
) -> tuple[list[Transaction], dict]:
    """
    List transactions visible to the requester, newest first.

    Returns:
        (transactions, pagination) where pagination is
        {"page", "limit", "total", "pages"}
    """
    if filters.status and filters.status.strip() not in TRANSACTION_STATUSES:
        raise ValidationError(
            "Invalid filter",
            errors=[{"field": "status", "message": f"Status must be one of: {', '.join(TRANSACTION_STATUSES)}"}],
        )

    scoped = scope_filters(filters, requester)
    query = apply_scope(db.session.query(Transaction), scoped)

    total = query.count()
    rows = (
        query.options(joinedload(Transaction.assignee), joinedload(Transaction.creator))
        .order_by(Transaction.created_at.desc(), Transaction.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )

    return rows, {
        "page": page,
        "limit": limit,
        "total": total,
        "pages": math.ceil(total / limit) if limit else 0,
    }


def update_transaction(transaction_id: int, data: dict, requester: Requester) -> Transaction:
    """
    Apply a partial update and record exactly the fields that changed.

    Raises:
        NotFoundError: If the transaction does not exist
        ForbiddenError: If an employee targets a transaction they do not own
        ValidationError: If the payload is invalid or changes nothing
    """
    def _op():
        txn = lock_for_update(db.session.query(Transaction).filter_by(id=transaction_id)).first()
        if not txn:
            raise NotFoundError("Transaction not found")
        _ensure_visible(txn, requester)

        proposed = validate_transaction_payload(data, partial=True)
        changes, updates = diff_changes(txn, proposed)
        if not updates:
            raise ValidationError("No changes detected")

        for name, value in updates.items():
            setattr(txn, name, value)
        txn.updated_at = utcnow()
        db.session.flush()

        append_history(
            transaction_id=txn.id,
            action=HISTORY_UPDATED,
            changes=changes,
            modified_by=requester.id,
        )

        return txn

    return run_with_retry(_op)


def delete_transaction(transaction_id: int, requester: Requester) -> str:
    """
    Hard-delete a transaction (admin only).

    Irreversible: history entries and handover items referencing the
    transaction are removed with it. Its number is never reissued.

    Returns:
        str: The deleted transaction's number
    """
    if not requester.is_admin:
        raise ForbiddenError("Admin role required")

    def _op():
        txn = lock_for_update(db.session.query(Transaction).filter_by(id=transaction_id)).first()
        if not txn:
            raise NotFoundError("Transaction not found")

        number = txn.transaction_number
        db.session.delete(txn)
        db.session.flush()
        return number

    return run_with_retry(_op)


def stats_summary(requester: Requester) -> dict:
    """Counts by status plus the number of transactions numbered today."""
    _require_manager(requester)

    counts = {status: 0 for status in TRANSACTION_STATUSES}
    rows = (
        db.session.query(Transaction.status, func.count(Transaction.id))
        .group_by(Transaction.status)
        .all()
    )
    for status, count in rows:
        counts[status] = count

    today = (
        db.session.query(Transaction.id)
        .filter(Transaction.transaction_number.like(f"{day_prefix(current_business_date())}%"))
        .count()
    )

    return {
        "total": sum(counts.values()),
        **counts,
        "today": today,
    }
