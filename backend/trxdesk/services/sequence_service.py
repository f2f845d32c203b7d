# Overview: Service-layer operations for transaction numbering; encapsulates business logic and database work.

"""
Transaction number allocation.

FORMAT: TRX-YYYYMMDD-NNNN
- YYYYMMDD is the calendar day in TRANSACTION_NUMBER_TIMEZONE (default UTC).
- NNNN is a 4-digit, zero-padded counter scoped to that day.

INVARIANTS:
- Numbers are unique (transactions.transaction_number has a unique constraint).
- Per-day counters only move forward. Deleting a transaction never frees its
  number, so sequences are monotonic but not gap-free.
- The counter row is incremented with a single UPDATE, which holds its row lock
  until the caller's storage transaction ends. Two concurrent creators on the
  same day therefore serialize on that row instead of both reading the same
  "count + 1".
"""
from __future__ import annotations

from datetime import date

from flask import current_app
from sqlalchemy import update
from sqlalchemy.exc import IntegrityError

from ..errors import ConflictError
from ..extensions import db
from ..models import Transaction, TransactionSequence
from ..time_utils import business_date

TRANSACTION_NUMBER_PREFIX = "TRX"
SEQUENCE_PAD = 4
MAX_DAILY_SEQUENCE = 10 ** SEQUENCE_PAD - 1


def current_business_date() -> date:
    """Today in the configured numbering timezone."""
    return business_date(current_app.config.get("TRANSACTION_NUMBER_TIMEZONE", "UTC"))


def day_prefix(on_date: date) -> str:
    return f"{TRANSACTION_NUMBER_PREFIX}-{on_date:%Y%m%d}-"


def format_transaction_number(on_date: date, sequence: int) -> str:
    return f"{day_prefix(on_date)}{sequence:0{SEQUENCE_PAD}d}"


def _count_numbers_for_day(on_date: date) -> int:
    return (
        db.session.query(Transaction.id)
        .filter(Transaction.transaction_number.like(f"{day_prefix(on_date)}%"))
        .count()
    )


def _increment_existing(sequence_date: str) -> int | None:
    stmt = (
        update(TransactionSequence)
        .where(TransactionSequence.sequence_date == sequence_date)
        .values(next_number=TransactionSequence.next_number + 1)
        .execution_options(synchronize_session=False)
    )
    result = db.session.execute(stmt)
    if not result.rowcount:
        return None
    current = (
        db.session.query(TransactionSequence.next_number)
        .filter_by(sequence_date=sequence_date)
        .scalar()
    )
    return current - 1


def _next_sequence_value(on_date: date) -> int:
    sequence_date = f"{on_date:%Y%m%d}"

    next_num = _increment_existing(sequence_date)
    if next_num is not None:
        return next_num

    # First allocation of the day: seed from rows that predate the counter
    start = _count_numbers_for_day(on_date) + 1
    db.session.add(TransactionSequence(sequence_date=sequence_date, next_number=start + 1))
    try:
        db.session.flush()
        return start
    except IntegrityError:
        # Another creator seeded the same day first; fall back to its row.
        db.session.rollback()
        next_num = _increment_existing(sequence_date)
        if next_num is None:
            raise
        return next_num


def allocate_transaction_number(on_date: date | None = None) -> str:
    """
    Allocate the next transaction number for a calendar day.

    Must run inside the caller's unit of work, as its first write: the counter
    increment commits or rolls back together with the transaction insert.
    Numbers already taken (rows created before the counter existed) are skipped.

    Raises:
        ConflictError: If the day's 4-digit sequence is exhausted
    """
    if on_date is None:
        on_date = current_business_date()

    while True:
        sequence = _next_sequence_value(on_date)
        if sequence > MAX_DAILY_SEQUENCE:
            raise ConflictError(f"Transaction sequence exhausted for {on_date:%Y-%m-%d}")

        number = format_transaction_number(on_date, sequence)
        taken = db.session.query(Transaction.id).filter_by(transaction_number=number).first()
        if not taken:
            return number
