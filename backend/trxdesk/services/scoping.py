# Overview: Role-conditional visibility rules for transaction listing.

"""
Visibility scoping for transaction queries.

scope_filters() is a pure function of (requested filters, requester). It is the
single place where the "employees only ever see their own work" rule lives:

- Employees are pinned to assigned_to = requester.id, whatever they ask for.
  An assignedTo filter from an employee is ignored, not rejected.
- Employees search client_name and mobile_number only.
- Admins and supervisors may filter by assignee and search every text field.

apply_scope() turns the result into SQLAlchemy criteria.
"""
from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy import or_

from ..identity import Requester
from ..models import Transaction

EMPLOYEE_SEARCH_FIELDS = ("client_name", "mobile_number")
MANAGER_SEARCH_FIELDS = (
    "transaction_number",
    "client_name",
    "mobile_number",
    "passport_id",
    "service_type",
    "notes",
)


@dataclass(frozen=True)
class TransactionFilter:
    """Filters as requested by the caller (all optional)."""
    status: str | None = None
    service_type: str | None = None
    assigned_to: int | None = None
    search: str | None = None


@dataclass(frozen=True)
class ScopedFilter:
    """Filters after the requester's visibility rules have been applied."""
    status: str | None
    service_type: str | None
    assigned_to: int | None
    search: str | None
    search_fields: tuple[str, ...]


def _clean(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    return value or None


def scope_filters(filters: TransactionFilter, requester: Requester) -> ScopedFilter:
    if requester.is_manager:
        assigned_to = filters.assigned_to
        search_fields = MANAGER_SEARCH_FIELDS
    else:
        # Anything that is not admin/supervisor gets the employee scope
        assigned_to = requester.id
        search_fields = EMPLOYEE_SEARCH_FIELDS

    return ScopedFilter(
        status=_clean(filters.status),
        service_type=_clean(filters.service_type),
        assigned_to=assigned_to,
        search=_clean(filters.search),
        search_fields=search_fields,
    )


def apply_scope(query, scoped: ScopedFilter):
    if scoped.assigned_to is not None:
        query = query.filter(Transaction.assigned_to == scoped.assigned_to)

    if scoped.status:
        query = query.filter(Transaction.status == scoped.status)

    if scoped.service_type:
        query = query.filter(Transaction.service_type.icontains(scoped.service_type, autoescape=True))

    if scoped.search:
        clauses = [
            getattr(Transaction, name).icontains(scoped.search, autoescape=True)
            for name in scoped.search_fields
        ]
        query = query.filter(or_(*clauses))

    return query
