# Overview: Service-layer operations for the transaction audit trail; encapsulates business logic and database work.

from __future__ import annotations

from ..extensions import db
from ..models import TransactionHistory
from ..models.transactions import HISTORY_ACTIONS, HISTORY_CREATED
from ..time_utils import utcnow
"""
Transaction History Invariants (authoritative)

- Append-only: this module exposes no update or delete.
- Every accepted mutation of a transaction's fields or ownership has exactly
  one entry, written inside the same DB transaction as the mutation.
- Entries live exactly as long as their parent transaction.
"""

CREATED_PAYLOAD = {"message": "Transaction created"}


def append_history(
    *,
    transaction_id: int,
    action: str,
    changes: dict,
    modified_by: int,
) -> TransactionHistory:
    """
    Append-only history entry.

    - No domain logic here.
    - Flushes without committing; the caller owns the unit of work.
    """
    if action not in HISTORY_ACTIONS:
        raise ValueError(f"Unknown history action: {action}")

    entry = TransactionHistory(
        transaction_id=transaction_id,
        action=action,
        changes=changes,
        modified_by=modified_by,
        modified_at=utcnow(),
    )
    db.session.add(entry)
    db.session.flush()  # ensures entry.id is assigned without committing
    return entry


def append_created(transaction_id: int, modified_by: int) -> TransactionHistory:
    return append_history(
        transaction_id=transaction_id,
        action=HISTORY_CREATED,
        changes=dict(CREATED_PAYLOAD),
        modified_by=modified_by,
    )


def list_history(transaction_id: int) -> list[TransactionHistory]:
    """Entries for one transaction, most recent first."""
    return (
        db.session.query(TransactionHistory)
        .filter(TransactionHistory.transaction_id == transaction_id)
        .order_by(TransactionHistory.modified_at.desc(), TransactionHistory.id.desc())
        .all()
    )
