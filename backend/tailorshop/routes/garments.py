# Overview: Flask API routes for the garment catalog; parses input and returns JSON responses.

from flask import Blueprint, request, g

from ..models import Garment
from ..policies import Operation
from ..services import catalog_service, record_service
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    enforce_rules_garment,
)
from ..decorators import with_caller, require_table_access
from ._errors import error_response

GARMENT_POLICY = ModelValidationPolicy(
    writable_fields={"name", "category", "base_price", "description", "image_url", "customization_options"},
    required_on_create={"name", "category", "base_price"},
)

garments_bp = Blueprint("garments", __name__, url_prefix="/api/garments")


@garments_bp.get("")
@with_caller
@require_table_access("garments", Operation.SELECT)
def list_garments():
    """
    List garments, newest first.

    Query params:
    - search: str (optional) - matches name, category or description
    - category: str (optional) - exact category, "all" for any
    """
    try:
        result = catalog_service.list_garments(
            g.caller,
            search=request.args.get("search"),
            category=request.args.get("category"),
        )
    except Exception as e:
        return error_response(e, "list garments")

    result["items"] = [item.to_dict() for item in result["items"]]
    return result


@garments_bp.post("")
@with_caller
@require_table_access("garments", Operation.INSERT)
def create_garment_route():
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=Garment, payload=payload, policy=GARMENT_POLICY, partial=False)
        enforce_rules_garment(patch)
        created = record_service.insert_row(g.caller, "garments", patch)
    except Exception as e:
        return error_response(e, "create garment")

    return created.to_dict(), 201


@garments_bp.get("/<garment_id>")
@with_caller
@require_table_access("garments", Operation.SELECT)
def get_garment_route(garment_id: str):
    try:
        garment = record_service.get_row(g.caller, "garments", garment_id)
    except Exception as e:
        return error_response(e, "fetch garment")
    return garment.to_dict()


@garments_bp.put("/<garment_id>")
@with_caller
@require_table_access("garments", Operation.UPDATE)
def update_garment_route(garment_id: str):
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=Garment, payload=payload, policy=GARMENT_POLICY, partial=True)
        enforce_rules_garment(patch)
        updated = record_service.update_row(g.caller, "garments", garment_id, patch)
    except Exception as e:
        return error_response(e, "update garment")

    return updated.to_dict(), 200


@garments_bp.delete("/<garment_id>")
@with_caller
@require_table_access("garments", Operation.DELETE)
def delete_garment_route(garment_id: str):
    try:
        record_service.delete_row(g.caller, "garments", garment_id)
    except Exception as e:
        return error_response(e, "delete garment")
    return {"ok": True}, 200
