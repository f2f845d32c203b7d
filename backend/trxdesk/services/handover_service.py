# backend/trxdesk/services/handover_service.py
"""
Handover workflow: supervisor-initiated batch transfer of transaction
ownership between two employees.

LIFECYCLE:
1. PENDING: Handover created. In the same DB transaction the items are pinned,
   every transaction is reassigned to to_employee and one "handover" history
   entry is written per transaction.
2. ACCEPTED: to_employee acknowledged it (terminal). Acceptance does not touch
   the transactions; ownership already moved at creation.

CONCURRENCY:
- Candidate transactions are read with SELECT ... FOR UPDATE (ordered by id so
  concurrent handovers lock in the same order). A competing handover naming an
  overlapping set waits, then re-evaluates "assigned_to = from_employee",
  finds fewer rows than requested and fails.
- Transaction rows carry a version column, so a stale read that slips through
  (e.g. SQLite, which ignores FOR UPDATE) fails the flush and the unit is
  re-run from scratch by run_with_retry.
- Acceptance is a compare-and-set on status, so two concurrent accepts cannot
  both succeed.
"""
from __future__ import annotations

import math

from sqlalchemy import func, update

from ..errors import ConflictError, ForbiddenError, NotFoundError, ValidationError
from ..extensions import db
from ..identity import Requester
from ..models import Handover, HandoverItem, Transaction, User
from ..models.auth import ROLE_EMPLOYEE, ROLE_SUPERVISOR
from ..models.handovers import HANDOVER_STATUS_ACCEPTED, HANDOVER_STATUS_PENDING
from ..models.transactions import HISTORY_HANDOVER
from ..time_utils import utcnow
from ..validation import validate_handover_payload
from .concurrency import lock_for_update, run_with_retry
from .history_service import append_history


def _validate_employees(from_employee: int, to_employee: int) -> None:
    if from_employee == to_employee:
        raise ValidationError(
            "Cannot hand over transactions to the same employee",
            errors=[{"field": "toEmployee", "message": "Must differ from fromEmployee"}],
        )

    users = db.session.query(User).filter(User.id.in_([from_employee, to_employee])).all()
    if len(users) != 2:
        raise ValidationError("One or both employees not found")

    if any(user.role != ROLE_EMPLOYEE for user in users):
        raise ValidationError("Handover can only be done between employees")

    receiver = next(user for user in users if user.id == to_employee)
    if not receiver.is_active:
        raise ValidationError("Receiving employee is not active")


def create_handover(data: dict, requester: Requester) -> Handover:
    """
    Create a handover and transfer ownership of its transactions.

    All-or-nothing: on any failure no Handover, HandoverItem, reassignment or
    history entry from this call survives (the caller rolls back).

    Args:
        data: {"fromEmployee", "toEmployee", "transactionIds", "notes"?}
        requester: Must be a supervisor; recorded as supervisor_id

    Raises:
        ForbiddenError: If the requester is not a supervisor
        ValidationError: If employees are invalid or any transaction is not
            currently owned by fromEmployee
    """
    if requester.role != ROLE_SUPERVISOR:
        raise ForbiddenError("Only supervisors can create handovers")

    params = validate_handover_payload(data)
    from_employee = params["from_employee"]
    to_employee = params["to_employee"]
    transaction_ids = params["transaction_ids"]

    def _op():
        _validate_employees(from_employee, to_employee)

        candidates = lock_for_update(
            db.session.query(Transaction)
            .filter(
                Transaction.id.in_(transaction_ids),
                Transaction.assigned_to == from_employee,
            )
            .order_by(Transaction.id)
        ).all()

        if len(candidates) != len(transaction_ids):
            raise ValidationError("Some transactions are invalid or not assigned to the from employee")

        now = utcnow()
        handover = Handover(
            from_employee=from_employee,
            to_employee=to_employee,
            supervisor_id=requester.id,
            status=HANDOVER_STATUS_PENDING,
            notes=params["notes"],
            created_at=now,
        )
        db.session.add(handover)
        db.session.flush()  # Get ID

        for txn in candidates:
            handover.items.append(HandoverItem(transaction_id=txn.id))
            txn.assigned_to = to_employee
            txn.updated_at = now
        db.session.flush()

        for txn in candidates:
            append_history(
                transaction_id=txn.id,
                action=HISTORY_HANDOVER,
                changes={"from": from_employee, "to": to_employee, "handover_id": handover.id},
                modified_by=requester.id,
            )

        return handover

    return run_with_retry(_op)


def accept_handover(handover_id: int, requester: Requester) -> Handover:
    """
    Acknowledge a pending handover (to_employee only).

    Raises:
        NotFoundError: If the handover does not exist
        ForbiddenError: If the requester is not the handover's to_employee
        ConflictError: If the handover was already accepted
    """
    def _op():
        handover = lock_for_update(db.session.query(Handover).filter_by(id=handover_id)).first()
        if not handover:
            raise NotFoundError("Handover not found")

        if handover.to_employee != requester.id:
            raise ForbiddenError("Access denied. This handover is not assigned to you.")

        if handover.status != HANDOVER_STATUS_PENDING:
            raise ConflictError(f"Cannot accept handover in {handover.status} status")

        stmt = (
            update(Handover)
            .where(Handover.id == handover_id, Handover.status == HANDOVER_STATUS_PENDING)
            .values(status=HANDOVER_STATUS_ACCEPTED, accepted_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        result = db.session.execute(stmt)
        if not result.rowcount:
            raise ConflictError("Handover was accepted concurrently")

        db.session.refresh(handover)
        return handover

    return run_with_retry(_op)


def _with_counts(query):
    count_col = func.count(HandoverItem.id)
    return (
        query.add_columns(count_col)
        .outerjoin(HandoverItem, HandoverItem.handover_id == Handover.id)
        .group_by(Handover.id)
        .order_by(Handover.created_at.desc(), Handover.id.desc())
    )


def list_pending_for(employee_id: int) -> list[dict]:
    """Pending handovers addressed to an employee, each with its item count."""
    rows = _with_counts(
        db.session.query(Handover).filter(
            Handover.to_employee == employee_id,
            Handover.status == HANDOVER_STATUS_PENDING,
        )
    ).all()
    return [{**handover.to_dict(), "transaction_count": count} for handover, count in rows]


def list_handovers(requester: Requester, *, page: int = 1, limit: int = 50) -> tuple[list[dict], dict]:
    """All handovers, newest first (admin/supervisor)."""
    if not requester.is_manager:
        raise ForbiddenError("Admin or supervisor role required")

    total = db.session.query(func.count(Handover.id)).scalar() or 0
    rows = _with_counts(db.session.query(Handover)).offset((page - 1) * limit).limit(limit).all()

    return [{**handover.to_dict(), "transaction_count": count} for handover, count in rows], {
        "page": page,
        "limit": limit,
        "total": total,
        "pages": math.ceil(total / limit) if limit else 0,
    }


def get_handover_detail(handover_id: int, requester: Requester) -> dict:
    """Handover plus the transactions it pinned (admin/supervisor)."""
    if not requester.is_manager:
        raise ForbiddenError("Admin or supervisor role required")

    handover = db.session.get(Handover, handover_id)
    if not handover:
        raise NotFoundError("Handover not found")

    return {
        "handover": handover.to_dict(),
        "items": [item.to_dict() for item in handover.items],
    }
