# Overview: Flask API routes for transactions; parses input and returns JSON envelopes.

# backend/trxdesk/routes/transactions.py
"""
Transaction API routes.

Every route resolves the caller to a Requester (via @require_auth) and hands it
to transaction_service, which owns all visibility and authorization rules.
Mutating routes commit the unit of work here; any failure rolls it back.
"""
from flask import Blueprint, current_app, g, request

from ..decorators import require_auth, require_roles
from ..errors import ServiceError, ValidationError
from ..models.auth import ROLE_ADMIN, ROLE_SUPERVISOR
from ..responses import internal_error, ok, service_error
from ..services import transaction_service
from ..services.concurrency import commit_unit
from ..services.scoping import TransactionFilter
from ..validation import coerce_int, parse_pagination


transactions_bp = Blueprint("transactions", __name__, url_prefix="/api/transactions")


def _parse_filters(args, requester) -> TransactionFilter:
    # Employees are pinned to themselves; their assignedTo is ignored
    assigned_to = args.get("assignedTo") if requester.is_manager else None
    if assigned_to not in (None, ""):
        try:
            assigned_to = coerce_int("assignedTo", assigned_to)
        except ValueError as exc:
            raise ValidationError(
                "Invalid filter",
                errors=[{"field": "assignedTo", "message": str(exc)}],
            ) from exc
    else:
        assigned_to = None

    return TransactionFilter(
        status=args.get("status"),
        service_type=args.get("serviceType"),
        assigned_to=assigned_to,
        search=args.get("search"),
    )


@transactions_bp.get("")
@require_auth
def list_transactions_route():
    """
    List transactions visible to the caller, newest first.

    Query params: status, serviceType, assignedTo (admin/supervisor only),
    search, page, limit.

    Employees always get only their own transactions.
    """
    try:
        filters = _parse_filters(request.args, g.requester)
        page, limit = parse_pagination(
            request.args,
            default_limit=current_app.config["DEFAULT_PAGE_LIMIT"],
            max_limit=current_app.config["MAX_PAGE_LIMIT"],
        )

        rows, pagination = transaction_service.list_transactions(
            filters, g.requester, page=page, limit=limit
        )

        return ok({
            "transactions": [txn.to_dict() for txn in rows],
            "pagination": pagination,
        })

    except ServiceError as e:
        return service_error(e)
    except Exception:
        return internal_error("Failed to fetch transactions")


@transactions_bp.get("/stats/summary")
@require_auth
@require_roles(ROLE_ADMIN, ROLE_SUPERVISOR)
def stats_summary_route():
    """Counts by status plus transactions numbered today."""
    try:
        return ok(transaction_service.stats_summary(g.requester))
    except ServiceError as e:
        return service_error(e)
    except Exception:
        return internal_error("Failed to fetch transaction statistics")


@transactions_bp.get("/<int:transaction_id>")
@require_auth
def get_transaction_route(transaction_id: int):
    """Single transaction with its history, most recent entry first."""
    try:
        return ok(transaction_service.get_transaction_detail(transaction_id, g.requester))
    except ServiceError as e:
        return service_error(e)
    except Exception:
        return internal_error("Failed to fetch transaction")


@transactions_bp.post("")
@require_auth
def create_transaction_route():
    """
    Create a transaction owned by the caller.

    Request body:
    {
        "serviceType": str,
        "transactionType": str,
        "clientName": str,
        "passportId": str,
        "mobileNumber": str,
        "receiveDate": "YYYY-MM-DD",
        "expectedDelivery": "YYYY-MM-DD",
        "status": str (optional, default "pending"),
        "notes": str (optional)
    }

    Returns:
        201: Transaction created, with its TRX-YYYYMMDD-NNNN number
        400: Validation failed (every field error listed)
        409: Number allocation lost a race; retry
    """
    try:
        txn = transaction_service.create_transaction(request.get_json(silent=True), g.requester)
        commit_unit()

        current_app.logger.info(
            "Transaction %s created by user %s", txn.transaction_number, g.requester.id
        )
        return ok(
            {"transaction": txn.to_dict()},
            message="Transaction created successfully",
            status=201,
        )

    except ServiceError as e:
        return service_error(e)
    except Exception:
        return internal_error("Failed to create transaction")


@transactions_bp.put("/<int:transaction_id>")
@require_auth
def update_transaction_route(transaction_id: int):
    """
    Partially update a transaction. Only changed fields are written and
    recorded in history; a request that changes nothing is rejected (400).
    """
    try:
        txn = transaction_service.update_transaction(
            transaction_id, request.get_json(silent=True), g.requester
        )
        commit_unit()

        return ok({"transaction": txn.to_dict()}, message="Transaction updated successfully")

    except ServiceError as e:
        return service_error(e)
    except Exception:
        return internal_error("Failed to update transaction")


@transactions_bp.delete("/<int:transaction_id>")
@require_auth
@require_roles(ROLE_ADMIN)
def delete_transaction_route(transaction_id: int):
    """
    Hard-delete a transaction (admin only).

    DATA LOSS: the transaction's history and handover items are deleted with it.
    """
    try:
        number = transaction_service.delete_transaction(transaction_id, g.requester)
        commit_unit()

        current_app.logger.info(
            "Transaction %s (id=%s) deleted by admin %s", number, transaction_id, g.requester.id
        )
        return ok(message="Transaction deleted successfully")

    except ServiceError as e:
        return service_error(e)
    except Exception:
        return internal_error("Failed to delete transaction")
