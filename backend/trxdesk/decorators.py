# Overview: Request and role decorators for API routes.

from functools import wraps
from flask import request, jsonify, g

from .services import session_service


def _unauthorized(message: str):
    return jsonify({"success": False, "kind": "unauthorized", "message": message}), 401


def _is_authenticated() -> bool:
    return hasattr(g, 'current_user') and hasattr(g, 'requester')


def require_auth(f):
    """
    Require authentication and establish the caller's identity.

    Sets the following Flask g attributes:
    - g.current_user: The authenticated User object
    - g.requester: Requester(id, role) handed to every service call

    SECURITY: Returns 401 if:
    - No Authorization header
    - Invalid or expired token
    - User account deactivated
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        auth_header = request.headers.get("Authorization")

        if not auth_header or not auth_header.startswith("Bearer "):
            return _unauthorized("Authentication required")

        token = auth_header.split(" ", 1)[1]

        context = session_service.validate_session(token)

        if not context:
            return _unauthorized("Invalid or expired token")

        g.current_user = context.user
        g.requester = context.requester

        return f(*args, **kwargs)

    return decorated_function


def require_roles(*roles: str):
    """
    Require the caller to hold one of the given roles.

    Must be stacked below @require_auth.
    """
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not _is_authenticated():
                return _unauthorized("Authentication required")

            if g.requester.role not in roles:
                return jsonify({
                    "success": False,
                    "kind": "forbidden",
                    "message": f"Access denied. Required role: {' or '.join(roles)}",
                }), 403

            return f(*args, **kwargs)

        return decorated_function
    return decorator
