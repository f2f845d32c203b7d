# Overview: Service-layer operations for user administration.

"""
User administration.

Users are never hard-deleted: transactions, history entries and handovers keep
pointing at them. "Deleting" a user deactivates the account and revokes its
sessions.
"""
from __future__ import annotations

from ..errors import ConflictError, ForbiddenError, NotFoundError, ValidationError
from ..extensions import db
from ..identity import Requester
from ..models import User
from ..models.auth import ROLES
from ..time_utils import utcnow
from ..validation import validate_user_payload
from . import session_service
from .auth_service import PasswordValidationError, hash_password


def _require_admin(requester: Requester) -> None:
    if not requester.is_admin:
        raise ForbiddenError("Admin role required")


def _email_taken(email: str, exclude_id: int | None = None) -> bool:
    query = db.session.query(User.id).filter(User.email == email)
    if exclude_id is not None:
        query = query.filter(User.id != exclude_id)
    return query.first() is not None


def _hash_or_reject(password: str) -> str:
    try:
        return hash_password(password)
    except PasswordValidationError as exc:
        raise ValidationError(
            "Validation failed",
            errors=[{"field": "password", "message": str(exc)}],
        ) from exc


def list_users(
    requester: Requester,
    *,
    role: str | None = None,
    include_inactive: bool = False,
) -> list[User]:
    """Users ordered by name (admin/supervisor). Active only unless asked otherwise."""
    if not requester.is_manager:
        raise ForbiddenError("Admin or supervisor role required")

    query = db.session.query(User)
    if role:
        if role not in ROLES:
            raise ValidationError(
                "Invalid filter",
                errors=[{"field": "role", "message": f"Role must be one of: {', '.join(ROLES)}"}],
            )
        query = query.filter(User.role == role)
    if not include_inactive:
        query = query.filter(User.is_active.is_(True))

    return query.order_by(User.full_name, User.id).all()


def get_user(user_id: int, requester: Requester) -> User:
    if not requester.is_manager and requester.id != user_id:
        raise ForbiddenError("Access denied")
    user = db.session.get(User, user_id)
    if not user:
        raise NotFoundError("User not found")
    return user


def create_user(data: dict, requester: Requester) -> User:
    """
    Create a user account (admin only). Flushes; caller commits.

    Raises:
        ValidationError: Missing/invalid fields or a weak password
        ConflictError: Email already registered
    """
    _require_admin(requester)

    fields = validate_user_payload(data, partial=False)
    password = fields.pop("password")

    if _email_taken(fields["email"]):
        raise ConflictError("Email is already registered")

    now = utcnow()
    user = User(
        password_hash=_hash_or_reject(password),
        created_at=now,
        updated_at=now,
        **fields,
    )
    db.session.add(user)
    db.session.flush()
    return user


def update_user(user_id: int, data: dict, requester: Requester) -> User:
    """Partial update of profile, role or active flag (admin only)."""
    _require_admin(requester)

    user = db.session.get(User, user_id)
    if not user:
        raise NotFoundError("User not found")

    fields = validate_user_payload(data, partial=True)
    if not fields:
        raise ValidationError("No changes detected")

    if "email" in fields and _email_taken(fields["email"], exclude_id=user.id):
        raise ConflictError("Email is already registered")

    if user.id == requester.id and (
        fields.get("is_active") is False or fields.get("role", user.role) != user.role
    ):
        raise ValidationError("You cannot change your own role or deactivate yourself")

    for name, value in fields.items():
        setattr(user, name, value)
    user.updated_at = utcnow()

    if fields.get("is_active") is False:
        session_service.revoke_all_user_sessions(user.id, reason="User account deactivated")

    db.session.flush()
    return user


def deactivate_user(user_id: int, requester: Requester) -> User:
    """
    Deactivate a user and revoke all of their sessions (admin only).

    Raises:
        ValidationError: If the admin targets their own account
    """
    _require_admin(requester)

    if user_id == requester.id:
        raise ValidationError("You cannot deactivate your own account")

    user = db.session.get(User, user_id)
    if not user:
        raise NotFoundError("User not found")

    if user.is_active:
        user.is_active = False
        user.updated_at = utcnow()
        session_service.revoke_all_user_sessions(user.id, reason="User account deactivated")
        db.session.flush()

    return user
