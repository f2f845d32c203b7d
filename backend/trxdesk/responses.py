# Overview: JSON envelope helpers shared by every blueprint.

from flask import current_app, jsonify

from .errors import ServiceError
from .extensions import db


def ok(data=None, *, message: str | None = None, status: int = 200):
    body = {"success": True}
    if message:
        body["message"] = message
    if data is not None:
        body["data"] = data
    return jsonify(body), status


def service_error(exc: ServiceError):
    """Roll back the unit of work and answer with the error's kind and status."""
    db.session.rollback()
    return jsonify(exc.to_dict()), exc.status_code


def internal_error(log_message: str):
    """Roll back, log the traceback, and answer without leaking details."""
    db.session.rollback()
    current_app.logger.exception(log_message)
    return jsonify({"success": False, "kind": "internal", "message": "Internal server error"}), 500
