# Overview: Flask API routes for orders; parses input and returns JSON responses.

"""
Order routes.

SECURITY:
- Anyone may place an order and look one up by tracking code
- Signed-in customers list their own orders (and, through the public
  tracking rule, can read any single order)
- Updates, deletes and stage advances require an admin caller
"""
from flask import Blueprint, request, g

from ..models import Order, ORDER_STATUSES
from ..policies import Operation
from ..services import order_service, lifecycle_service
from ..services import record_service
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    enforce_rules_order,
    ValidationError,
)
from ..decorators import with_caller, require_table_access
from ..time_utils import parse_iso_datetime
from ._errors import error_response

ORDER_CREATE_POLICY = ModelValidationPolicy(
    writable_fields={
        "customer_id", "fabric_id", "garment_id", "tracking_id",
        "customizations_json", "measurements_json", "price", "status",
        "urgent", "special_instructions", "estimated_completion",
    },
    required_on_create=set(),
)

# tracking_id is issued once and never rewritten.
ORDER_UPDATE_POLICY = ModelValidationPolicy(
    writable_fields=set(order_service.ORDER_MUTABLE_FIELDS),
)

orders_bp = Blueprint("orders", __name__, url_prefix="/api/orders")


def _datetime_arg(name: str):
    raw = request.args.get(name)
    if not raw:
        return None
    try:
        return parse_iso_datetime(raw)
    except ValueError:
        raise ValidationError(f"{name} must be an ISO-8601 datetime")


def _urgent_arg():
    raw = request.args.get("urgent")
    if raw is None or raw == "":
        return None
    lowered = raw.strip().lower()
    if lowered not in {"true", "false"}:
        raise ValidationError("urgent must be true or false")
    return lowered == "true"


@orders_bp.get("/statuses")
def list_statuses():
    """Pipeline stages in order, with display labels."""
    return {
        "statuses": [
            {"status": s, "label": lifecycle_service.STATUS_LABELS[s]}
            for s in ORDER_STATUSES
        ],
        "default": lifecycle_service.DEFAULT_STATUS,
    }


@orders_bp.get("")
@with_caller
@require_table_access("orders", Operation.SELECT)
def list_orders():
    """
    List orders, newest first.

    Query params:
    - status: str (optional) - one of the pipeline stages
    - customer_id: str (optional)
    - urgent: true|false (optional)
    - created_after / created_before: ISO-8601 datetime (optional, inclusive)
    - page: int (optional) - page number (1-indexed). If omitted, returns all items.
    - per_page: int (optional) - items per page (default 20, max 100)
    """
    try:
        result = order_service.list_orders(
            g.caller,
            status=request.args.get("status") or None,
            customer_id=request.args.get("customer_id") or None,
            urgent=_urgent_arg(),
            created_after=_datetime_arg("created_after"),
            created_before=_datetime_arg("created_before"),
            page=request.args.get("page", type=int),
            per_page=request.args.get("per_page", type=int),
        )
    except Exception as e:
        return error_response(e, "list orders")

    result["items"] = [o.to_dict() for o in result["items"]]
    return result


@orders_bp.post("")
@with_caller
@require_table_access("orders", Operation.INSERT)
def create_order_route():
    """
    Place an order. The tracking code is issued by the server unless one is
    supplied; the response carries it.
    """
    payload = request.get_json(silent=True) or {}
    if isinstance(payload, dict) and isinstance(payload.get("tracking_id"), str) and not payload["tracking_id"].strip():
        payload = {k: v for k, v in payload.items() if k != "tracking_id"}

    try:
        patch = validate_payload(model=Order, payload=payload, policy=ORDER_CREATE_POLICY, partial=False)
        enforce_rules_order(patch)
        created = order_service.create_order(g.caller, patch)
    except Exception as e:
        return error_response(e, "create order")

    return created.to_dict(), 201


@orders_bp.get("/track/<tracking_id>")
@with_caller
@require_table_access("orders", Operation.SELECT)
def track_order_route(tracking_id: str):
    """Public order lookup by tracking code, with pipeline progress."""
    try:
        order = order_service.track_order(g.caller, tracking_id)
        progress = lifecycle_service.progress(order.status or lifecycle_service.DEFAULT_STATUS)
    except Exception as e:
        return error_response(e, "track order")

    return {"order": order.to_dict(), "progress": progress}


@orders_bp.get("/<order_id>")
@with_caller
@require_table_access("orders", Operation.SELECT)
def get_order_route(order_id: str):
    try:
        order = record_service.get_row(g.caller, "orders", order_id)
    except Exception as e:
        return error_response(e, "fetch order")
    return order.to_dict()


@orders_bp.put("/<order_id>")
@with_caller
@require_table_access("orders", Operation.UPDATE)
def update_order_route(order_id: str):
    """Staff update: status, special instructions and estimated completion."""
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=Order, payload=payload, policy=ORDER_UPDATE_POLICY, partial=True)
        updated = order_service.update_order(g.caller, order_id, patch)
    except Exception as e:
        return error_response(e, "update order")

    return updated.to_dict(), 200


@orders_bp.post("/<order_id>/advance")
@with_caller
@require_table_access("orders", Operation.UPDATE)
def advance_order_route(order_id: str):
    try:
        order = order_service.advance_order(g.caller, order_id)
    except Exception as e:
        return error_response(e, "advance order")
    return order.to_dict(), 200


@orders_bp.delete("/<order_id>")
@with_caller
@require_table_access("orders", Operation.DELETE)
def delete_order_route(order_id: str):
    try:
        record_service.delete_row(g.caller, "orders", order_id)
    except Exception as e:
        return error_response(e, "delete order")
    return {"ok": True}, 200
