# Overview: Flask API routes for the fabric catalog; parses input and returns JSON responses.

"""
Fabric catalog routes.

SECURITY:
- Read operations are public
- Write operations (including toggle-featured) require an admin caller
"""
from flask import Blueprint, request, g

from ..models import Fabric
from ..policies import Operation
from ..services import catalog_service, record_service
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    enforce_rules_fabric,
    ValidationError,
)
from ..decorators import with_caller, require_table_access
from ._errors import error_response

FABRIC_POLICY = ModelValidationPolicy(
    writable_fields={
        "name", "material", "price_per_meter", "color", "stock",
        "images_json", "featured", "description",
    },
    required_on_create={"name", "material", "price_per_meter", "color"},
)

fabrics_bp = Blueprint("fabrics", __name__, url_prefix="/api/fabrics")


def _bool_arg(name: str):
    raw = request.args.get(name)
    if raw is None or raw == "" or raw == catalog_service.ALL:
        return None
    lowered = raw.strip().lower()
    if lowered not in {"true", "false"}:
        raise ValidationError(f"{name} must be true or false")
    return lowered == "true"


@fabrics_bp.get("")
@with_caller
@require_table_access("fabrics", Operation.SELECT)
def list_fabrics():
    """
    List fabrics, newest first.

    Query params:
    - search: str (optional) - matches name, material, color or description
    - material: str (optional) - exact material, "all" for any
    - featured: true|false (optional)
    """
    try:
        result = catalog_service.list_fabrics(
            g.caller,
            search=request.args.get("search"),
            material=request.args.get("material"),
            featured=_bool_arg("featured"),
        )
    except Exception as e:
        return error_response(e, "list fabrics")

    result["items"] = [f.to_dict() for f in result["items"]]
    return result


@fabrics_bp.post("")
@with_caller
@require_table_access("fabrics", Operation.INSERT)
def create_fabric_route():
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=Fabric, payload=payload, policy=FABRIC_POLICY, partial=False)
        enforce_rules_fabric(patch)
        created = record_service.insert_row(g.caller, "fabrics", patch)
    except Exception as e:
        return error_response(e, "create fabric")

    return created.to_dict(), 201


@fabrics_bp.get("/<fabric_id>")
@with_caller
@require_table_access("fabrics", Operation.SELECT)
def get_fabric_route(fabric_id: str):
    try:
        fabric = record_service.get_row(g.caller, "fabrics", fabric_id)
    except Exception as e:
        return error_response(e, "fetch fabric")
    return fabric.to_dict()


@fabrics_bp.put("/<fabric_id>")
@with_caller
@require_table_access("fabrics", Operation.UPDATE)
def update_fabric_route(fabric_id: str):
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=Fabric, payload=payload, policy=FABRIC_POLICY, partial=True)
        enforce_rules_fabric(patch)
        updated = record_service.update_row(g.caller, "fabrics", fabric_id, patch)
    except Exception as e:
        return error_response(e, "update fabric")

    return updated.to_dict(), 200


@fabrics_bp.post("/<fabric_id>/toggle-featured")
@with_caller
@require_table_access("fabrics", Operation.UPDATE)
def toggle_featured_route(fabric_id: str):
    try:
        fabric = catalog_service.toggle_featured(g.caller, fabric_id)
    except Exception as e:
        return error_response(e, "toggle featured fabric")
    return fabric.to_dict(), 200


@fabrics_bp.delete("/<fabric_id>")
@with_caller
@require_table_access("fabrics", Operation.DELETE)
def delete_fabric_route(fabric_id: str):
    """Delete a fabric. Orders that reference it are left untouched."""
    try:
        record_service.delete_row(g.caller, "fabrics", fabric_id)
    except Exception as e:
        return error_response(e, "delete fabric")
    return {"ok": True}, 200
