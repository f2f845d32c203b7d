"""
Visibility scoping tests (pure, no database).
"""

import pytest

from trxdesk.identity import Requester
from trxdesk.services.scoping import (
    EMPLOYEE_SEARCH_FIELDS,
    MANAGER_SEARCH_FIELDS,
    TransactionFilter,
    scope_filters,
)


class TestScopeFilters:

    def test_employee_is_pinned_to_self(self):
        scoped = scope_filters(TransactionFilter(assigned_to=99), Requester(id=5, role="employee"))

        assert scoped.assigned_to == 5
        assert scoped.search_fields == EMPLOYEE_SEARCH_FIELDS

    @pytest.mark.parametrize("role", ["admin", "supervisor"])
    def test_managers_keep_requested_assignee(self, role):
        scoped = scope_filters(TransactionFilter(assigned_to=99), Requester(id=1, role=role))

        assert scoped.assigned_to == 99
        assert scoped.search_fields == MANAGER_SEARCH_FIELDS

    def test_managers_without_assignee_see_all(self):
        scoped = scope_filters(TransactionFilter(), Requester(id=1, role="supervisor"))
        assert scoped.assigned_to is None

    def test_unknown_role_gets_employee_scope(self):
        scoped = scope_filters(TransactionFilter(), Requester(id=8, role="auditor"))

        assert scoped.assigned_to == 8
        assert scoped.search_fields == EMPLOYEE_SEARCH_FIELDS

    def test_blank_values_are_dropped(self):
        scoped = scope_filters(
            TransactionFilter(status="  ", service_type="", search=" visa "),
            Requester(id=1, role="admin"),
        )

        assert scoped.status is None
        assert scoped.service_type is None
        assert scoped.search == "visa"

    def test_employee_search_excludes_passport(self):
        assert "passport_id" not in EMPLOYEE_SEARCH_FIELDS
        assert "passport_id" in MANAGER_SEARCH_FIELDS
