# Overview: Order placement, tracking and the staff status pipeline.

from __future__ import annotations

from datetime import datetime

from ..extensions import db
from ..models import Customer, Order
from ..policies import Caller, Operation
from ..validation import ValidationError
from . import access_service, lifecycle_service, record_service

# Fields staff advance after an order is placed.
ORDER_MUTABLE_FIELDS = {"status", "special_instructions", "estimated_completion"}


def create_order(caller: Caller, patch: dict) -> Order:
    """
    Place an order.

    When no measurement map is sent, the customer's current measurements are
    copied onto the order, provided the caller may read that customer. The
    copy is a snapshot: later edits to the customer do not change the order.
    """
    values = dict(patch)
    values.setdefault("status", lifecycle_service.DEFAULT_STATUS)

    customer_id = values.get("customer_id")
    if customer_id and not values.get("measurements_json"):
        customer = db.session.get(Customer, customer_id)
        if customer is not None and access_service.is_allowed(caller, "customers", Operation.SELECT, customer):
            values["measurements_json"] = dict(customer.measurements_json or {})

    return record_service.insert_row(caller, "orders", values)


def list_orders(
    caller: Caller,
    *,
    status: str | None = None,
    customer_id: str | None = None,
    urgent: bool | None = None,
    created_after: datetime | None = None,
    created_before: datetime | None = None,
    page: int | None = None,
    per_page: int | None = None,
) -> dict:
    filters = {}
    if status is not None:
        lifecycle_service.validate_status(status)
        filters["status"] = status
    if customer_id is not None:
        filters["customer_id"] = customer_id
    if urgent is not None:
        filters["urgent"] = urgent
    return record_service.list_rows(
        caller,
        "orders",
        filters=filters,
        created_after=created_after,
        created_before=created_before,
        page=page,
        per_page=per_page,
    )


def track_order(caller: Caller, tracking_id: str) -> Order:
    """Look an order up by its tracking code. Works for anonymous callers."""
    if not tracking_id or not tracking_id.strip():
        raise ValidationError("tracking_id is required")
    return record_service.find_row(caller, "orders", tracking_id=tracking_id.strip())


def update_order(caller: Caller, order_id: str, patch: dict) -> Order:
    if "status" in patch:
        lifecycle_service.validate_status(patch["status"])
        if lifecycle_service.sequence_enforced():
            current = record_service.get_row(caller, "orders", order_id, operation=Operation.UPDATE)
            lifecycle_service.check_transition(current.status, patch["status"])
    return record_service.update_row(caller, "orders", order_id, patch)


def advance_order(caller: Caller, order_id: str) -> Order:
    """Move an order to the next pipeline stage."""
    order = record_service.get_row(caller, "orders", order_id, operation=Operation.UPDATE)
    current = order.status or lifecycle_service.DEFAULT_STATUS
    following = lifecycle_service.next_status(current)
    if following is None:
        raise lifecycle_service.LifecycleError(f"Order {order_id} is already {current}")
    return record_service.update_row(caller, "orders", order_id, {"status": following})
