from __future__ import annotations

from ..extensions import db
from trxdesk.time_utils import to_utc_z, utcnow

HANDOVER_STATUS_PENDING = "pending"
HANDOVER_STATUS_ACCEPTED = "accepted"


class Handover(db.Model):
    """
    Supervisor-initiated transfer of a fixed batch of transactions between
    two employees.

    LIFECYCLE:
    1. PENDING: Created by a supervisor. Ownership of every item has already
       moved to to_employee in the same database transaction.
    2. ACCEPTED: Acknowledged by to_employee (terminal). accepted_at is set
       exactly once, on this transition only.

    There is no rejected/cancelled state.
    """
    __tablename__ = "handovers"
    __table_args__ = (
        db.Index("ix_handovers_to_status", "to_employee", "status"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    from_employee = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    to_employee = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    supervisor_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)

    # pending, accepted
    status = db.Column(db.String(16), nullable=False, default=HANDOVER_STATUS_PENDING, index=True)
    notes = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    accepted_at = db.Column(db.DateTime(timezone=True), nullable=True)

    from_user = db.relationship("User", foreign_keys=[from_employee])
    to_user = db.relationship("User", foreign_keys=[to_employee])
    supervisor = db.relationship("User", foreign_keys=[supervisor_id])

    items = db.relationship(
        "HandoverItem",
        back_populates="handover",
        cascade="all, delete",
        order_by="HandoverItem.id",
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "from_employee": self.from_employee,
            "from_employee_name": self.from_user.full_name if self.from_user else None,
            "to_employee": self.to_employee,
            "to_employee_name": self.to_user.full_name if self.to_user else None,
            "supervisor_id": self.supervisor_id,
            "supervisor_name": self.supervisor.full_name if self.supervisor else None,
            "status": self.status,
            "notes": self.notes,
            "created_at": to_utc_z(self.created_at),
            "accepted_at": to_utc_z(self.accepted_at),
        }


class HandoverItem(db.Model):
    """
    Pins one transaction to one handover batch.

    IMMUTABLE: Written once, together with its Handover.
    """
    __tablename__ = "handover_items"
    __table_args__ = (
        db.UniqueConstraint("handover_id", "transaction_id", name="uq_handover_items_handover_txn"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    handover_id = db.Column(
        db.Integer,
        db.ForeignKey("handovers.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    transaction_id = db.Column(
        db.Integer,
        db.ForeignKey("transactions.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    handover = db.relationship("Handover", back_populates="items")
    transaction = db.relationship("Transaction", back_populates="handover_items")

    def to_dict(self) -> dict:
        txn = self.transaction
        return {
            "id": self.id,
            "handover_id": self.handover_id,
            "transaction_id": self.transaction_id,
            "transaction_number": txn.transaction_number if txn else None,
            "client_name": txn.client_name if txn else None,
            "service_type": txn.service_type if txn else None,
            "status": txn.status if txn else None,
        }
