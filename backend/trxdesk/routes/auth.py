# Overview: Flask API routes for auth operations; parses input and returns JSON responses.

# backend/trxdesk/routes/auth.py
"""
Authentication API routes

SECURITY FEATURES:
- bcrypt password verification
- Opaque bearer session tokens (hashed at rest)
- Deactivated accounts cannot log in
- Self-registration is not offered; admins create users via /api/users
"""

from flask import Blueprint, request, jsonify, g

from ..services import auth_service
from ..services import session_service
from ..decorators import require_auth
from ..responses import internal_error, ok


auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


def _bearer_token() -> str | None:
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        return None
    return auth_header.split(" ", 1)[1]


@auth_bp.post("/login")
def login_route():
    """
    Authenticate user and create session token.

    Request body: {"email": str, "password": str}

    Token must be included in Authorization header for protected routes.
    """
    try:
        data = request.get_json(silent=True) or {}
        email = data.get("email")
        password = data.get("password")

        if not isinstance(email, str) or not isinstance(password, str) or not email or not password:
            return jsonify({
                "success": False,
                "kind": "validation_error",
                "message": "Email and password are required",
            }), 400

        user = auth_service.authenticate(email, password)

        if not user:
            return jsonify({
                "success": False,
                "kind": "unauthorized",
                "message": "Invalid credentials",
            }), 401

        session, token = session_service.create_session(
            user_id=user.id,
            user_agent=request.headers.get("User-Agent"),
            ip_address=request.remote_addr
        )

        return ok({
            "user": user.to_dict(),
            "token": token,
            "session": session.to_dict(),
        }, message="Login successful")

    except Exception:
        return internal_error("Failed to login user")


@auth_bp.post("/logout")
def logout_route():
    """
    Revoke session token (logout).

    Expects Authorization header: Bearer <token>
    """
    try:
        token = _bearer_token()
        if not token:
            return jsonify({
                "success": False,
                "kind": "unauthorized",
                "message": "Authorization header required",
            }), 401

        if not session_service.revoke_session(token, reason="User logout"):
            return jsonify({
                "success": False,
                "kind": "unauthorized",
                "message": "Invalid or expired token",
            }), 401

        return ok(message="Logout successful")

    except Exception:
        return internal_error("Failed to logout user")


@auth_bp.get("/me")
@require_auth
def me_route():
    """Current user profile for the presented token."""
    return ok({"user": g.current_user.to_dict()})
