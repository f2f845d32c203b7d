from __future__ import annotations

from ..extensions import db
from trxdesk.time_utils import to_iso_date, to_utc_z, utcnow

STATUS_PENDING = "pending"
STATUS_IN_PROGRESS = "in_progress"
STATUS_READY = "ready"
STATUS_DELIVERED = "delivered"
STATUS_CANCELLED = "cancelled"
TRANSACTION_STATUSES = (
    STATUS_PENDING,
    STATUS_IN_PROGRESS,
    STATUS_READY,
    STATUS_DELIVERED,
    STATUS_CANCELLED,
)

HISTORY_CREATED = "created"
HISTORY_UPDATED = "updated"
HISTORY_HANDOVER = "handover"
HISTORY_ACTIONS = (HISTORY_CREATED, HISTORY_UPDATED, HISTORY_HANDOVER)


class Transaction(db.Model):
    """
    A tracked unit of client service work (e.g., a document-processing request).

    OWNERSHIP:
    - assigned_to is the owning employee; created_by never changes.
    - assigned_to only changes through a handover, never through a field update.

    NUMBERING: transaction_number ("TRX-YYYYMMDD-NNNN") is globally unique and
    immutable. See services/sequence_service.py.

    DELETION: Admin hard-delete removes the row together with its history and
    any handover items that reference it.
    """
    __tablename__ = "transactions"
    __table_args__ = (
        db.UniqueConstraint("transaction_number", name="uq_transactions_number"),
        db.Index("ix_transactions_assigned_status", "assigned_to", "status"),
        db.Index("ix_transactions_created_at", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    transaction_number = db.Column(db.String(32), nullable=False)

    service_type = db.Column(db.String(128), nullable=False)
    transaction_type = db.Column(db.String(128), nullable=False)
    client_name = db.Column(db.String(255), nullable=False)
    passport_id = db.Column(db.String(64), nullable=False)
    mobile_number = db.Column(db.String(32), nullable=False)

    # pending, in_progress, ready, delivered, cancelled
    status = db.Column(db.String(16), nullable=False, default=STATUS_PENDING, index=True)

    receive_date = db.Column(db.Date, nullable=False)
    expected_delivery = db.Column(db.Date, nullable=False)
    notes = db.Column(db.Text, nullable=True)

    assigned_to = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    created_by = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    version_id = db.Column(db.Integer, nullable=False, default=1)
    __mapper_args__ = {"version_id_col": version_id}

    assignee = db.relationship("User", foreign_keys=[assigned_to])
    creator = db.relationship("User", foreign_keys=[created_by])

    history = db.relationship(
        "TransactionHistory",
        back_populates="transaction",
        cascade="all, delete",
        order_by="TransactionHistory.id",
    )
    handover_items = db.relationship(
        "HandoverItem",
        back_populates="transaction",
        cascade="all, delete",
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "transaction_number": self.transaction_number,
            "service_type": self.service_type,
            "transaction_type": self.transaction_type,
            "client_name": self.client_name,
            "passport_id": self.passport_id,
            "mobile_number": self.mobile_number,
            "status": self.status,
            "receive_date": to_iso_date(self.receive_date),
            "expected_delivery": to_iso_date(self.expected_delivery),
            "notes": self.notes,
            "assigned_to": self.assigned_to,
            "assigned_employee_name": self.assignee.full_name if self.assignee else None,
            "created_by": self.created_by,
            "created_by_name": self.creator.full_name if self.creator else None,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class TransactionSequence(db.Model):
    """
    Atomic per-day transaction number counter.

    WHY: "count existing rows + 1" races under concurrent creation. A single
    counter row per calendar day is incremented with UPDATE, which holds a row
    lock until the enclosing transaction ends.
    """
    __tablename__ = "transaction_sequences"
    __table_args__ = (
        db.UniqueConstraint("sequence_date", name="uq_transaction_sequences_date"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    # YYYYMMDD in the configured numbering timezone
    sequence_date = db.Column(db.String(8), nullable=False, index=True)
    next_number = db.Column(db.Integer, nullable=False, default=1)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)


class TransactionHistory(db.Model):
    """
    Append-only audit record of one mutation to a transaction.

    IMMUTABLE: Never update or delete individually. Rows disappear only with
    their parent transaction (admin hard-delete).

    changes shape depends on action:
    - created:  {"message": "Transaction created"}
    - updated:  {"<field>": {"from": old, "to": new}, ...}
    - handover: {"from": user_id, "to": user_id, "handover_id": id}
    """
    __tablename__ = "transaction_history"
    __table_args__ = (
        db.Index("ix_transaction_history_txn_modified", "transaction_id", "modified_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    transaction_id = db.Column(
        db.Integer,
        db.ForeignKey("transactions.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    # created, updated, handover
    action = db.Column(db.String(16), nullable=False, index=True)
    changes = db.Column(db.JSON, nullable=False)

    modified_by = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    modified_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    transaction = db.relationship("Transaction", back_populates="history")
    modifier = db.relationship("User", foreign_keys=[modified_by])

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "transaction_id": self.transaction_id,
            "action": self.action,
            "changes": self.changes,
            "modified_by": self.modified_by,
            "modified_by_name": self.modifier.full_name if self.modifier else None,
            "modified_at": to_utc_z(self.modified_at),
        }
