# Overview: Flask API routes for handovers; parses input and returns JSON envelopes.

# backend/trxdesk/routes/handovers.py
"""
Handover API routes.

POST creates the handover AND moves ownership in one commit; PUT .../accept is
only an acknowledgement by the receiving employee.
"""
from flask import Blueprint, current_app, g, request

from ..decorators import require_auth, require_roles
from ..errors import ServiceError
from ..models.auth import ROLE_ADMIN, ROLE_SUPERVISOR
from ..responses import internal_error, ok, service_error
from ..services import handover_service
from ..services.concurrency import commit_unit
from ..validation import parse_pagination


handovers_bp = Blueprint("handovers", __name__, url_prefix="/api/handovers")


@handovers_bp.get("")
@require_auth
@require_roles(ROLE_ADMIN, ROLE_SUPERVISOR)
def list_handovers_route():
    """All handovers, newest first, with participant names and item counts."""
    try:
        page, limit = parse_pagination(
            request.args,
            default_limit=current_app.config["DEFAULT_PAGE_LIMIT"],
            max_limit=current_app.config["MAX_PAGE_LIMIT"],
        )
        rows, pagination = handover_service.list_handovers(g.requester, page=page, limit=limit)

        return ok({"handovers": rows, "pagination": pagination})

    except ServiceError as e:
        return service_error(e)
    except Exception:
        return internal_error("Failed to fetch handovers")


@handovers_bp.post("")
@require_auth
@require_roles(ROLE_SUPERVISOR)
def create_handover_route():
    """
    Hand a batch of transactions from one employee to another.

    Request body:
    {
        "fromEmployee": int,
        "toEmployee": int,
        "transactionIds": [int, ...],
        "notes": str (optional)
    }

    Returns:
        201: Handover created; every listed transaction now belongs to toEmployee
        400: Invalid employees, or a transaction not currently owned by fromEmployee
        403: Caller is not a supervisor
        409: A concurrent writer touched the same transactions; retry
    """
    try:
        handover = handover_service.create_handover(request.get_json(silent=True), g.requester)
        commit_unit()

        current_app.logger.info(
            "Handover %s created by supervisor %s: %s transaction(s) from user %s to user %s",
            handover.id,
            g.requester.id,
            len(handover.items),
            handover.from_employee,
            handover.to_employee,
        )
        return ok(
            {"handover": handover.to_dict()},
            message="Handover created successfully",
            status=201,
        )

    except ServiceError as e:
        return service_error(e)
    except Exception:
        return internal_error("Failed to create handover")


@handovers_bp.get("/my/pending")
@require_auth
def my_pending_handovers_route():
    """Pending handovers addressed to the caller."""
    try:
        return ok({"handovers": handover_service.list_pending_for(g.requester.id)})
    except ServiceError as e:
        return service_error(e)
    except Exception:
        return internal_error("Failed to fetch pending handovers")


@handovers_bp.get("/<int:handover_id>")
@require_auth
@require_roles(ROLE_ADMIN, ROLE_SUPERVISOR)
def get_handover_route(handover_id: int):
    """Handover with the transactions it moved."""
    try:
        return ok(handover_service.get_handover_detail(handover_id, g.requester))
    except ServiceError as e:
        return service_error(e)
    except Exception:
        return internal_error("Failed to fetch handover")


@handovers_bp.put("/<int:handover_id>/accept")
@require_auth
def accept_handover_route(handover_id: int):
    """
    Acknowledge a pending handover (receiving employee only).

    Returns:
        200: Accepted
        403: Caller is not the handover's toEmployee
        404: Handover not found
        409: Already accepted
    """
    try:
        handover = handover_service.accept_handover(handover_id, g.requester)
        commit_unit()

        current_app.logger.info("Handover %s accepted by user %s", handover.id, g.requester.id)
        return ok({"handover": handover.to_dict()}, message="Handover accepted successfully")

    except ServiceError as e:
        return service_error(e)
    except Exception:
        return internal_error("Failed to accept handover")
