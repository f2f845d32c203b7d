"""
Transaction numbering tests.

Verifies:
- TRX-YYYYMMDD-NNNN format and per-day sequencing
- Counters restart each day
- Deleted numbers are never reissued
- Rows numbered before the counter existed are respected
- The 4-digit daily sequence is bounded
"""

from datetime import date

import pytest

from conftest import as_requester, transaction_payload
from trxdesk.errors import ConflictError
from trxdesk.models import Transaction, TransactionSequence
from trxdesk.services import transaction_service
from trxdesk.services.sequence_service import (
    allocate_transaction_number,
    current_business_date,
    day_prefix,
    format_transaction_number,
)


MARCH_1 = date(2024, 3, 1)


def _create(user, on_date=MARCH_1):
    return transaction_service.create_transaction(
        transaction_payload(), as_requester(user), on_date=on_date
    )


def _legacy_transaction(db_session, number, owner):
    """A row numbered before any sequence counter existed."""
    txn = Transaction(
        transaction_number=number,
        service_type="Visa",
        transaction_type="Renewal",
        client_name="Legacy Client",
        passport_id="L000001",
        mobile_number="+971500000009",
        receive_date=MARCH_1,
        expected_delivery=MARCH_1,
        assigned_to=owner.id,
        created_by=owner.id,
    )
    db_session.add(txn)
    db_session.commit()
    return txn


class TestFormat:

    def test_zero_pads_sequence(self):
        assert format_transaction_number(MARCH_1, 7) == "TRX-20240301-0007"

    def test_full_width_sequence(self):
        assert format_transaction_number(date(2024, 12, 31), 9999) == "TRX-20241231-9999"


class TestAllocation:

    def test_third_of_the_day(self, db_session, employee_a):
        numbers = []
        for _ in range(3):
            numbers.append(_create(employee_a).transaction_number)
            db_session.commit()

        assert numbers == [
            "TRX-20240301-0001",
            "TRX-20240301-0002",
            "TRX-20240301-0003",
        ]

    def test_counter_restarts_each_day(self, db_session, employee_a):
        _create(employee_a)
        _create(employee_a)
        db_session.commit()

        txn = _create(employee_a, on_date=date(2024, 3, 2))
        db_session.commit()

        assert txn.transaction_number == "TRX-20240302-0001"

    def test_numbers_are_unique_within_a_day(self, db_session, employee_a):
        for _ in range(5):
            _create(employee_a)
            db_session.commit()

        numbers = [row.transaction_number for row in db_session.query(Transaction).all()]
        assert len(numbers) == len(set(numbers)) == 5

    def test_deleted_number_is_not_reissued(self, db_session, admin, employee_a):
        _create(employee_a)
        second = _create(employee_a)
        db_session.commit()

        transaction_service.delete_transaction(second.id, as_requester(admin))
        db_session.commit()

        third = _create(employee_a)
        db_session.commit()

        assert third.transaction_number == "TRX-20240301-0003"

    def test_seeds_from_rows_without_a_counter(self, db_session, employee_a):
        _legacy_transaction(db_session, "TRX-20240301-0001", employee_a)
        _legacy_transaction(db_session, "TRX-20240301-0002", employee_a)

        txn = _create(employee_a)
        db_session.commit()

        assert txn.transaction_number == "TRX-20240301-0003"

    def test_skips_numbers_already_taken(self, db_session, employee_a):
        _legacy_transaction(db_session, "TRX-20240301-0001", employee_a)
        _legacy_transaction(db_session, "TRX-20240301-0003", employee_a)

        txn = _create(employee_a)
        db_session.commit()

        assert txn.transaction_number == "TRX-20240301-0004"

    def test_exhausted_day_is_a_conflict(self, db_session):
        db_session.add(TransactionSequence(sequence_date="20240301", next_number=10000))
        db_session.commit()

        with pytest.raises(ConflictError):
            allocate_transaction_number(MARCH_1)

    def test_uses_configured_business_day_by_default(self, db_session, employee_a):
        txn = transaction_service.create_transaction(transaction_payload(), as_requester(employee_a))
        db_session.commit()

        assert txn.transaction_number.startswith(day_prefix(current_business_date()))
        assert txn.transaction_number.endswith("-0001")
