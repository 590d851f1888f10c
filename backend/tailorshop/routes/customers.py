# Overview: Flask API routes for customer records; parses input and returns JSON responses.

"""
Customer routes.

SECURITY:
- Anyone may create a customer row (walk-in booking form)
- A signed-in customer reads only their own row
- Admins manage every row
"""
from flask import Blueprint, request, g

from ..models import Customer
from ..policies import Operation
from ..services import record_service
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    enforce_rules_customer,
)
from ..decorators import with_caller, require_table_access
from ._errors import error_response

CUSTOMER_POLICY = ModelValidationPolicy(
    writable_fields={"name", "phone", "email", "measurements_json"},
    required_on_create={"name", "phone", "email"},
)

customers_bp = Blueprint("customers", __name__, url_prefix="/api/customers")


@customers_bp.get("")
@with_caller
@require_table_access("customers", Operation.SELECT)
def list_customers():
    """
    Customers visible to the caller, newest first.

    Query params:
    - page: int (optional) - page number (1-indexed). If omitted, returns all items.
    - per_page: int (optional) - items per page (default 20, max 100)
    """
    page = request.args.get("page", type=int)
    per_page = request.args.get("per_page", type=int)

    try:
        result = record_service.list_rows(g.caller, "customers", page=page, per_page=per_page)
    except Exception as e:
        return error_response(e, "list customers")

    result["items"] = [c.to_dict() for c in result["items"]]
    return result


@customers_bp.post("")
@with_caller
@require_table_access("customers", Operation.INSERT)
def create_customer_route():
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=Customer, payload=payload, policy=CUSTOMER_POLICY, partial=False)
        enforce_rules_customer(patch)
        created = record_service.insert_row(g.caller, "customers", patch)
    except Exception as e:
        return error_response(e, "create customer")

    return created.to_dict(), 201


@customers_bp.get("/<customer_id>")
@with_caller
@require_table_access("customers", Operation.SELECT)
def get_customer_route(customer_id: str):
    try:
        customer = record_service.get_row(g.caller, "customers", customer_id)
    except Exception as e:
        return error_response(e, "fetch customer")
    return customer.to_dict()


@customers_bp.put("/<customer_id>")
@with_caller
@require_table_access("customers", Operation.UPDATE)
def update_customer_route(customer_id: str):
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=Customer, payload=payload, policy=CUSTOMER_POLICY, partial=True)
        enforce_rules_customer(patch)
        updated = record_service.update_row(g.caller, "customers", customer_id, patch)
    except Exception as e:
        return error_response(e, "update customer")

    return updated.to_dict(), 200


@customers_bp.delete("/<customer_id>")
@with_caller
@require_table_access("customers", Operation.DELETE)
def delete_customer_route(customer_id: str):
    """Delete a customer. Their orders are removed with them."""
    try:
        record_service.delete_row(g.caller, "customers", customer_id)
    except Exception as e:
        return error_response(e, "delete customer")
    return {"ok": True}, 200
