"""
Change-set diff tests (pure, no database).
"""

from datetime import date

from trxdesk.services.diff_service import MUTABLE_FIELDS, diff_changes


def _existing(**overrides):
    row = {
        "service_type": "Visa",
        "transaction_type": "New",
        "client_name": "Layla Haddad",
        "passport_id": "P1234567",
        "mobile_number": "+971500000001",
        "status": "pending",
        "receive_date": date(2024, 3, 1),
        "expected_delivery": date(2024, 3, 10),
        "notes": None,
        "assigned_to": 7,
    }
    row.update(overrides)
    return row


class TestDiffChanges:

    def test_only_changed_fields_are_reported(self):
        changes, updates = diff_changes(
            _existing(),
            {"status": "ready", "client_name": "Layla Haddad"},
        )

        assert changes == {"status": {"from": "pending", "to": "ready"}}
        assert updates == {"status": "ready"}

    def test_identical_values_produce_empty_delta(self):
        changes, updates = diff_changes(_existing(), {"status": "pending", "notes": None})

        assert changes == {}
        assert updates == {}

    def test_absent_keys_are_left_untouched(self):
        changes, _ = diff_changes(_existing(), {})
        assert changes == {}

    def test_dates_are_recorded_as_iso_strings(self):
        changes, updates = diff_changes(
            _existing(),
            {"expected_delivery": date(2024, 3, 15)},
        )

        assert changes == {"expected_delivery": {"from": "2024-03-10", "to": "2024-03-15"}}
        assert updates == {"expected_delivery": date(2024, 3, 15)}

    def test_null_to_value_and_back(self):
        changes, _ = diff_changes(_existing(), {"notes": "Call client"})
        assert changes == {"notes": {"from": None, "to": "Call client"}}

        changes, _ = diff_changes(_existing(notes="Call client"), {"notes": None})
        assert changes == {"notes": {"from": "Call client", "to": None}}

    def test_owner_is_not_a_mutable_field(self):
        assert "assigned_to" not in MUTABLE_FIELDS

        changes, updates = diff_changes(_existing(), {"assigned_to": 99})

        assert changes == {}
        assert updates == {}

    def test_multiple_fields(self):
        changes, _ = diff_changes(
            _existing(),
            {"status": "in_progress", "mobile_number": "+971500000002", "service_type": "Visa"},
        )

        assert set(changes) == {"status", "mobile_number"}

    def test_reads_model_attributes(self):
        class Row:
            status = "pending"
            notes = None

        changes, _ = diff_changes(Row(), {"status": "cancelled"}, fields=("status", "notes"))
        assert changes == {"status": {"from": "pending", "to": "cancelled"}}
