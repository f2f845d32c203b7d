# Overview: Field-level change-set computation for partial transaction updates.

"""
Change-set diff engine.

diff_changes() is pure: it never touches the session. Its `changes` output is
written verbatim as the payload of an "updated" history entry, so every value
in it is JSON-serialisable (dates become ISO strings).
"""
from __future__ import annotations

from datetime import date, datetime
from typing import Any, Iterable, Mapping

# Fields a caller may change through an update. assigned_to is deliberately
# absent: ownership only moves through a handover.
MUTABLE_FIELDS = (
    "service_type",
    "transaction_type",
    "client_name",
    "passport_id",
    "mobile_number",
    "status",
    "receive_date",
    "expected_delivery",
    "notes",
)


def _read(existing: Any, field: str) -> Any:
    if isinstance(existing, Mapping):
        return existing.get(field)
    return getattr(existing, field, None)


def _jsonable(value: Any) -> Any:
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return value


def diff_changes(
    existing: Any,
    proposed: Mapping[str, Any],
    fields: Iterable[str] = MUTABLE_FIELDS,
) -> tuple[dict, dict]:
    """
    Compute the minimal delta between an entity and a proposed partial state.

    Args:
        existing: Current entity (model instance or mapping)
        proposed: Already-validated values keyed by attribute name. Keys that
            are absent are left untouched (PATCH, not PUT).
        fields: Attribute names considered mutable

    Returns:
        (changes, updates) where changes is {field: {"from": old, "to": new}}
        and updates is {field: new} for the same fields. Both are empty when
        nothing differs.
    """
    changes: dict = {}
    updates: dict = {}

    for field in fields:
        if field not in proposed:
            continue
        new_value = proposed[field]
        old_value = _read(existing, field)
        if new_value == old_value:
            continue
        changes[field] = {"from": _jsonable(old_value), "to": _jsonable(new_value)}
        updates[field] = new_value

    return changes, updates
