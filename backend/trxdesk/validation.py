from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy import Boolean, Date, Integer, String, Text
from sqlalchemy.orm import DeclarativeMeta

from trxdesk.errors import ValidationError
from trxdesk.models import Transaction, User
from trxdesk.models.auth import ROLES
from trxdesk.models.transactions import TRANSACTION_STATUSES
from trxdesk.time_utils import parse_iso_date

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    Central policy layer:
    - aliases: wire name (camelCase) -> model attribute
    - writable_fields: attributes clients are allowed to set (security boundary)
    - required_on_create: attributes required for POST
    - labels: human names used in error messages
    - choices: attributes restricted to a fixed set of values
    """
    aliases: dict[str, str]
    writable_fields: set[str]
    required_on_create: set[str] = field(default_factory=set)
    labels: dict[str, str] = field(default_factory=dict)
    choices: dict[str, tuple] = field(default_factory=dict)


TRANSACTION_POLICY = ModelValidationPolicy(
    aliases={
        "serviceType": "service_type",
        "transactionType": "transaction_type",
        "clientName": "client_name",
        "passportId": "passport_id",
        "mobileNumber": "mobile_number",
        "status": "status",
        "receiveDate": "receive_date",
        "expectedDelivery": "expected_delivery",
        "notes": "notes",
    },
    writable_fields={
        "service_type", "transaction_type", "client_name", "passport_id",
        "mobile_number", "status", "receive_date", "expected_delivery", "notes",
    },
    required_on_create={
        "service_type", "transaction_type", "client_name", "passport_id",
        "mobile_number", "receive_date", "expected_delivery",
    },
    labels={
        "service_type": "Service type",
        "transaction_type": "Transaction type",
        "client_name": "Client name",
        "passport_id": "Passport/ID",
        "mobile_number": "Mobile number",
        "status": "Status",
        "receive_date": "Receive date",
        "expected_delivery": "Expected delivery date",
        "notes": "Notes",
    },
    choices={"status": TRANSACTION_STATUSES},
)

USER_POLICY = ModelValidationPolicy(
    aliases={
        "email": "email",
        "fullName": "full_name",
        "role": "role",
        "phone": "phone",
        "isActive": "is_active",
    },
    writable_fields={"email", "full_name", "role", "phone", "is_active"},
    required_on_create={"email", "full_name", "role"},
    labels={
        "email": "Email",
        "full_name": "Full name",
        "role": "Role",
        "phone": "Phone",
        "is_active": "Active flag",
    },
    choices={"role": ROLES},
)


def _columns_by_key(model: DeclarativeMeta) -> dict[str, Any]:
    mapper = model.__mapper__
    return {c.key: c for c in mapper.columns}


def _wire_names(policy: ModelValidationPolicy) -> dict[str, str]:
    return {attr: wire for wire, attr in policy.aliases.items()}


def coerce_int(name: str, value: Any) -> int:
    """
    Strict integer coercion: rejects bools, floats, decimals and scientific notation.
    """
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    if isinstance(value, str):
        stripped = value.strip()
        if stripped and re.fullmatch(r"-?\d+", stripped):
            return int(stripped)
    raise ValueError(f"{name} must be an integer")


def _coerce_value(col, label: str, value: Any):
    coltype = col.type

    if isinstance(coltype, Integer):
        return coerce_int(label, value)

    if isinstance(coltype, Boolean):
        if isinstance(value, bool):
            return value
        raise ValueError(f"{label} must be true or false")

    # Dates (accept YYYY-MM-DD or a full ISO-8601 datetime)
    if isinstance(coltype, Date):
        try:
            parsed = parse_iso_date(value)
        except (TypeError, ValueError):
            raise ValueError(f"{label} must be an ISO-8601 date (YYYY-MM-DD)")
        if parsed is None:
            raise ValueError(f"{label} is required")
        return parsed

    if isinstance(coltype, (String, Text)):
        if isinstance(value, (dict, list)):
            raise ValueError(f"{label} must be a string")
        return str(value).strip()

    return value


def validate_payload(
    *,
    model: DeclarativeMeta,
    payload: Any,
    policy: ModelValidationPolicy,
    partial: bool,
) -> dict:
    """
    Validates + normalizes incoming JSON against:
    - SQLAlchemy column metadata (nullable, type, String length)
    - a policy allowlist (writable_fields, addressed by wire name or attribute name)
    - required_on_create (if partial=False)
    - fixed choices

    Every problem is collected; a single ValidationError carries the full list
    as [{"field": <wire name>, "message": ...}, ...].

    partial=False: create semantics (enforce required_on_create)
    partial=True: patch semantics (validate only provided keys)
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    cols = _columns_by_key(model)
    wire = _wire_names(policy)
    errors: list[dict] = []
    patch: dict = {}

    def _fail(attr: str, message: str) -> None:
        errors.append({"field": wire.get(attr, attr), "message": message})

    provided: dict[str, Any] = {}
    for key, raw in payload.items():
        attr = policy.aliases.get(key, key)
        if attr not in policy.writable_fields or attr not in cols:
            errors.append({"field": key, "message": f"Field not allowed: {key}"})
            continue
        provided[attr] = raw

    if not partial:
        for attr in sorted(policy.required_on_create):
            raw = provided.get(attr)
            if raw is None or (isinstance(raw, str) and not raw.strip()):
                _fail(attr, f"{policy.labels.get(attr, attr)} is required")
                provided.pop(attr, None)

    for attr, raw in provided.items():
        col = cols[attr]
        label = policy.labels.get(attr, attr)

        if raw is None:
            if not col.nullable:
                _fail(attr, f"{label} cannot be empty")
                continue
            patch[attr] = None
            continue

        try:
            val = _coerce_value(col, label, raw)
        except ValueError as exc:
            _fail(attr, str(exc))
            continue

        if isinstance(col.type, (String, Text)) and val == "":
            if not col.nullable:
                _fail(attr, f"{label} cannot be empty")
                continue
            val = None

        if isinstance(col.type, String) and col.type.length and isinstance(val, str):
            if len(val) > col.type.length:
                _fail(attr, f"{label} exceeds max length {col.type.length}")
                continue

        allowed = policy.choices.get(attr)
        if allowed and val not in allowed:
            _fail(attr, f"{label} must be one of: {', '.join(allowed)}")
            continue

        patch[attr] = val

    if errors:
        raise ValidationError("Validation failed", errors=errors)

    return patch


def validate_transaction_payload(payload: Any, *, partial: bool) -> dict:
    return validate_payload(
        model=Transaction,
        payload=payload,
        policy=TRANSACTION_POLICY,
        partial=partial,
    )


def validate_user_payload(payload: Any, *, partial: bool) -> dict:
    password = None
    if isinstance(payload, dict) and "password" in payload:
        payload = dict(payload)
        password = payload.pop("password")

    errors: list[dict] = []
    try:
        patch = validate_payload(model=User, payload=payload, policy=USER_POLICY, partial=partial)
    except ValidationError as exc:
        if not exc.errors:
            raise
        errors.extend(exc.errors)
        patch = {}

    raw_email = payload.get("email") if isinstance(payload, dict) else None
    if isinstance(raw_email, str) and raw_email.strip():
        if not EMAIL_RE.match(raw_email.strip()):
            errors.append({"field": "email", "message": "Please enter a valid email"})
    if "email" in patch:
        patch["email"] = patch["email"].lower()

    if not partial:
        if not isinstance(password, str) or not password:
            errors.append({"field": "password", "message": "Password is required"})
        else:
            patch["password"] = password
    elif password is not None:
        errors.append({"field": "password", "message": "Field not allowed: password"})

    if errors:
        raise ValidationError("Validation failed", errors=errors)
    return patch


def validate_handover_payload(payload: Any) -> dict:
    """
    Validate a handover creation request.

    Returns {"from_employee", "to_employee", "transaction_ids", "notes"}.
    """
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    errors: list[dict] = []
    result: dict = {}

    for wire_name, attr, message in (
        ("fromEmployee", "from_employee", "From employee ID is required"),
        ("toEmployee", "to_employee", "To employee ID is required"),
    ):
        try:
            result[attr] = coerce_int(wire_name, payload.get(wire_name))
        except ValueError:
            errors.append({"field": wire_name, "message": message})

    raw_ids = payload.get("transactionIds")
    if not isinstance(raw_ids, list):
        errors.append({"field": "transactionIds", "message": "Transaction IDs must be an array"})
    elif not raw_ids:
        errors.append({"field": "transactionIds", "message": "At least one transaction must be selected"})
    else:
        ids: list[int] = []
        for raw in raw_ids:
            try:
                ids.append(coerce_int("transactionIds", raw))
            except ValueError:
                errors.append({"field": "transactionIds", "message": "Transaction IDs must be integers"})
                break
        else:
            if len(set(ids)) != len(ids):
                errors.append({"field": "transactionIds", "message": "Transaction IDs must not repeat"})
            result["transaction_ids"] = ids

    notes = payload.get("notes")
    if notes is not None and not isinstance(notes, str):
        errors.append({"field": "notes", "message": "Notes must be a string"})
    elif notes is None:
        result["notes"] = None
    else:
        result["notes"] = notes.strip() or None

    if errors:
        raise ValidationError("Validation failed", errors=errors)
    return result


def parse_pagination(args, *, default_limit: int, max_limit: int) -> tuple[int, int]:
    """Parse ?page=&limit= query params. Both must be positive integers."""
    errors: list[dict] = []
    values = {}
    for name, default in (("page", 1), ("limit", default_limit)):
        raw = args.get(name)
        if raw is None or raw == "":
            values[name] = default
            continue
        try:
            value = coerce_int(name, raw)
        except ValueError as exc:
            errors.append({"field": name, "message": str(exc)})
            continue
        if value < 1:
            errors.append({"field": name, "message": f"{name} must be >= 1"})
            continue
        values[name] = value
    if errors:
        raise ValidationError("Invalid pagination parameters", errors=errors)
    return values["page"], min(values["limit"], max_limit)
