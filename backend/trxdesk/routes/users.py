# Overview: Flask API routes for user administration.

# backend/trxdesk/routes/users.py
"""
User administration routes.

Supervisors may list users (to pick handover participants); everything that
writes is admin-only. DELETE deactivates, it never removes the row.
"""
from flask import Blueprint, current_app, g, request

from ..decorators import require_auth, require_roles
from ..errors import ServiceError
from ..models.auth import ROLE_ADMIN, ROLE_SUPERVISOR
from ..responses import internal_error, ok, service_error
from ..services import user_service
from ..services.concurrency import commit_unit


users_bp = Blueprint("users", __name__, url_prefix="/api/users")


def _flag(value: str | None) -> bool:
    return (value or "").strip().lower() in ("1", "true", "yes")


@users_bp.get("")
@require_auth
@require_roles(ROLE_ADMIN, ROLE_SUPERVISOR)
def list_users_route():
    """
    List users.

    Query params:
    - role: admin | supervisor | employee
    - includeInactive: true to include deactivated accounts
    """
    try:
        users = user_service.list_users(
            g.requester,
            role=request.args.get("role") or None,
            include_inactive=_flag(request.args.get("includeInactive")),
        )
        return ok({"users": [user.to_dict() for user in users]})

    except ServiceError as e:
        return service_error(e)
    except Exception:
        return internal_error("Failed to fetch users")


@users_bp.get("/<int:user_id>")
@require_auth
def get_user_route(user_id: int):
    try:
        return ok({"user": user_service.get_user(user_id, g.requester).to_dict()})
    except ServiceError as e:
        return service_error(e)
    except Exception:
        return internal_error("Failed to fetch user")


@users_bp.post("")
@require_auth
@require_roles(ROLE_ADMIN)
def create_user_route():
    """
    Create a user.

    Request body:
    - email: str (required)
    - fullName: str (required)
    - password: str (required, strength-checked)
    - role: admin | supervisor | employee (required)
    - phone: str (optional)
    """
    try:
        user = user_service.create_user(request.get_json(silent=True), g.requester)
        commit_unit()

        current_app.logger.info("User %s (%s) created by admin %s", user.id, user.role, g.requester.id)
        return ok({"user": user.to_dict()}, message="User created successfully", status=201)

    except ServiceError as e:
        return service_error(e)
    except Exception:
        return internal_error("Failed to create user")


@users_bp.put("/<int:user_id>")
@require_auth
@require_roles(ROLE_ADMIN)
def update_user_route(user_id: int):
    """Partial update: email, fullName, role, phone, isActive."""
    try:
        user = user_service.update_user(user_id, request.get_json(silent=True), g.requester)
        commit_unit()

        return ok({"user": user.to_dict()}, message="User updated successfully")

    except ServiceError as e:
        return service_error(e)
    except Exception:
        return internal_error("Failed to update user")


@users_bp.delete("/<int:user_id>")
@require_auth
@require_roles(ROLE_ADMIN)
def deactivate_user_route(user_id: int):
    """
    Deactivate a user and revoke their sessions.

    The row is kept: transactions, history and handovers still reference it.
    """
    try:
        user_service.deactivate_user(user_id, g.requester)
        commit_unit()

        current_app.logger.info("User %s deactivated by admin %s", user_id, g.requester.id)
        return ok(message="User deactivated successfully")

    except ServiceError as e:
        return service_error(e)
    except Exception:
        return internal_error("Failed to deactivate user")
