from __future__ import annotations
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from tailorshop.time_utils import parse_iso_date, parse_iso_datetime

from dataclasses import dataclass, field
from typing import Any

from sqlalchemy import JSON, Boolean, Date, DateTime, Integer, Numeric, String, Text
from sqlalchemy.orm import DeclarativeMeta


# Upper bound for money columns: Numeric(12, 2)
MAX_AMOUNT = Decimal("9999999999.99")


class ValidationError(ValueError):
    """400-level input problem."""


class ConflictError(ValueError):
    """409-level business rule conflict."""


class NotFoundError(LookupError):
    """404-level: the target row does not exist."""


class ConstraintViolation(ValueError):
    """
    A write broke a schema constraint (foreign key, uniqueness, enumeration).

    `constraint` names the violated constraint the same way the schema does,
    e.g. "orders_status_check" or "orders_tracking_id_key".
    """

    FOREIGN_KEY = "foreign_key"
    UNIQUE = "unique"
    CHECK = "check"

    def __init__(self, message: str, *, constraint: str, kind: str):
        super().__init__(message)
        self.constraint = constraint
        self.kind = kind

    def to_dict(self) -> dict:
        return {"error": str(self), "constraint": self.constraint, "kind": self.kind}


@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    Central policy layer:
    - writable_fields: what clients are allowed to set (security boundary)
    - required_on_create: fields required for POST
    - server_managed: fields the server always sets; accepted in a payload
      but discarded, so a client can round-trip a row it fetched
    """
    writable_fields: set[str]
    required_on_create: set[str] = None  # type: ignore
    server_managed: frozenset[str] = field(
        default_factory=lambda: frozenset({"id", "created_at", "updated_at"})
    )


def _columns_by_key(model: DeclarativeMeta) -> dict[str, Any]:
    mapper = model.__mapper__
    return {c.key: c for c in mapper.columns}


def _coerce_decimal(col, value: Any) -> Decimal:
    if isinstance(value, bool):
        raise ValidationError(f"{col.key} must be a number")
    if isinstance(value, (int, float, Decimal)):
        raw = str(value)
    elif isinstance(value, str):
        raw = value.strip()
        if not raw:
            raise ValidationError(f"{col.key} must be a number")
    else:
        raise ValidationError(f"{col.key} must be a number")
    try:
        amount = Decimal(raw)
    except InvalidOperation:
        raise ValidationError(f"{col.key} must be a number")
    if not amount.is_finite():
        raise ValidationError(f"{col.key} must be a finite number")
    return amount


def _coerce_value(col, value: Any):
    coltype = col.type

    if value is None:
        return None

    # Integers - strict validation to reject floats and scientific notation
    if isinstance(coltype, Integer):
        # Already an int (but not bool which is a subclass of int)
        if isinstance(value, int) and not isinstance(value, bool):
            return value
        # String input - must be plain digits (with optional leading minus)
        if isinstance(value, str):
            stripped = value.strip()
            if not stripped:
                raise ValidationError(f"{col.key} must be an integer")
            if 'e' in stripped.lower():
                raise ValidationError(f"{col.key} must be a plain integer (scientific notation not allowed)")
            if '.' in stripped:
                raise ValidationError(f"{col.key} must be an integer (no decimals)")
            try:
                return int(stripped)
            except ValueError:
                raise ValidationError(f"{col.key} must be an integer")
        if isinstance(value, float):
            raise ValidationError(f"{col.key} must be an integer, not a decimal")
        raise ValidationError(f"{col.key} must be an integer")

    if isinstance(coltype, Numeric):
        return _coerce_decimal(col, value)

    # Booleans
    if isinstance(coltype, Boolean):
        if isinstance(value, bool):
            return value
        if isinstance(value, str) and value.strip().lower() in {"true", "false"}:
            return value.strip().lower() == "true"
        raise ValidationError(f"{col.key} must be a boolean")

    # Datetimes (accept ISO-8601 strings; normalize to UTC)
    if isinstance(coltype, DateTime):
        if isinstance(value, datetime):
            return value
        if isinstance(value, str):
            try:
                dt = parse_iso_datetime(value)
            except ValueError:
                raise ValidationError(f"{col.key} must be an ISO-8601 datetime")
            if dt is None:
                raise ValidationError(f"{col.key} must be an ISO-8601 datetime")
            return dt
        raise ValidationError(f"{col.key} must be a datetime")

    if isinstance(coltype, Date):
        if isinstance(value, date) and not isinstance(value, datetime):
            return value
        if isinstance(value, str):
            try:
                d = parse_iso_date(value)
            except ValueError:
                raise ValidationError(f"{col.key} must be an ISO-8601 date (YYYY-MM-DD)")
            if d is None:
                raise ValidationError(f"{col.key} must be an ISO-8601 date (YYYY-MM-DD)")
            return d
        raise ValidationError(f"{col.key} must be a date")

    # JSON attributes are opaque; only the top-level container is checked.
    if isinstance(coltype, JSON):
        if isinstance(value, (dict, list)):
            return value
        raise ValidationError(f"{col.key} must be a JSON object or array")

    # Strings / Text
    if isinstance(coltype, (String, Text)):
        return str(value).strip()

    return value


def validate_payload(
    *,
    model: DeclarativeMeta,
    payload: dict,
    policy: ModelValidationPolicy,
    partial: bool,
) -> dict:
    """
    Validates + normalizes incoming JSON against:
    - SQLAlchemy column metadata (nullable, type, String length)
    - a policy allowlist (writable_fields)
    - required_on_create (if partial=False)
    Returns a cleaned patch dict with only writable fields.

    partial=False: create semantics (enforce required_on_create)
    partial=True: patch semantics (validate only provided keys)
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    payload = {k: v for k, v in payload.items() if k not in policy.server_managed}

    required = policy.required_on_create or set()
    if not partial:
        missing = sorted(f for f in required if f not in payload)
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    cols = _columns_by_key(model)

    # Reject unknown / non-writable fields
    for k in payload.keys():
        if k not in policy.writable_fields:
            raise ValidationError(f"Field not allowed: {k}")
        if k not in cols:
            raise ValidationError(f"Unknown field: {k}")

    patch: dict = {}

    for k, raw in payload.items():
        col = cols[k]

        if raw is None:
            if not col.nullable:
                raise ValidationError(f"{k} cannot be null")
            patch[k] = None
            continue

        val = _coerce_value(col, raw)

        # Blank string check for non-nullable text fields
        if isinstance(col.type, (String, Text)) and not col.nullable:
            if isinstance(val, str) and val == "":
                raise ValidationError(f"{k} cannot be blank")

        # Max length check for String(n)
        if isinstance(col.type, String) and col.type.length and isinstance(val, str):
            if len(val) > col.type.length:
                raise ValidationError(f"{k} exceeds max length {col.type.length}")

        patch[k] = val

    return patch


def _check_amount(patch: dict, key: str) -> None:
    if key in patch and patch[key] is not None:
        amount = patch[key]
        if amount < 0:
            raise ValidationError(f"{key} must be >= 0")
        if amount > MAX_AMOUNT:
            raise ValidationError(f"{key} cannot exceed {MAX_AMOUNT}")


def enforce_rules_fabric(patch: dict) -> None:
    """
    Business rules that are not captured by SQLAlchemy metadata alone.
    Keep these small and centralized.
    """
    _check_amount(patch, "price_per_meter")
    if "stock" in patch and patch["stock"] is not None and patch["stock"] < 0:
        raise ValidationError("stock must be >= 0")
    if "images_json" in patch and patch["images_json"] is not None:
        images = patch["images_json"]
        if not isinstance(images, list):
            raise ValidationError("images_json must be a list")
        # Blank entries come from empty form rows
        patch["images_json"] = [
            img.strip() if isinstance(img, str) else img
            for img in images
            if not (isinstance(img, str) and img.strip() == "")
        ]


def enforce_rules_garment(patch: dict) -> None:
    _check_amount(patch, "base_price")
    if "customization_options" in patch and patch["customization_options"] is not None:
        if not isinstance(patch["customization_options"], dict):
            raise ValidationError("customization_options must be an object")


def enforce_rules_customer(patch: dict) -> None:
    if "measurements_json" in patch and patch["measurements_json"] is not None:
        if not isinstance(patch["measurements_json"], dict):
            raise ValidationError("measurements_json must be an object")


def enforce_rules_order(patch: dict) -> None:
    _check_amount(patch, "price")
    for key in ("customizations_json", "measurements_json"):
        if key in patch and patch[key] is not None and not isinstance(patch[key], dict):
            raise ValidationError(f"{key} must be an object")
