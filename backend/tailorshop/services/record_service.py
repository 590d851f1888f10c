# Overview: Record store for customers, fabrics, garments and orders.

"""
Record Store

Single entry point for reads and writes on the four shop tables. Every
operation runs the same pipeline:

    access check -> constraint checks -> derived-field hooks -> flush/commit

CONSTRAINTS: The store checks foreign keys, uniqueness and the status
enumeration explicitly and raises ConstraintViolation with the schema's
constraint name. Database constraints stay in place as the final arbiter;
IntegrityError from a flush is translated the same way.

ATOMICITY: Each call commits once. On any failure the session is rolled
back, so multi-row inserts are all-or-nothing.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from flask import current_app
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import TABLE_MODELS, Customer, Fabric, Garment, Order
from ..policies import Caller, Operation
from ..validation import ConstraintViolation, NotFoundError, ValidationError
from . import access_service, derived_fields_service, lifecycle_service, tracking_service
from .concurrency import run_with_retry

# Insert attempts when a concurrently issued tracking code wins the race.
TRACKING_INSERT_ATTEMPTS = 5

# Catalog references checked on write. Not database foreign keys, so
# referenced fabrics/garments remain deletable.
ORDER_REFERENCES = {
    "customer_id": (Customer, "orders_customer_id_fkey"),
    "fabric_id": (Fabric, "orders_fabric_id_fkey"),
    "garment_id": (Garment, "orders_garment_id_fkey"),
}

# Amount columns that must not go negative, with their CHECK constraint names.
NON_NEGATIVE_COLUMNS = {
    "fabrics": {"price_per_meter": "fabrics_price_per_meter_check", "stock": "fabrics_stock_check"},
    "garments": {"base_price": "garments_base_price_check"},
    "orders": {"price": "orders_price_check"},
}


def get_model(table: str):
    model = TABLE_MODELS.get(table)
    if model is None:
        raise ValidationError(f"Unknown table: {table}")
    return model


# -- Constraint checks --

def check_references(table: str, values: dict) -> None:
    if table != "orders":
        return
    with db.session.no_autoflush:
        for column, (model, constraint) in ORDER_REFERENCES.items():
            ref_id = values.get(column)
            if ref_id is None:
                continue
            if db.session.get(model, ref_id) is None:
                raise ConstraintViolation(
                    f"{column} references a missing {model.__tablename__} row",
                    constraint=constraint,
                    kind=ConstraintViolation.FOREIGN_KEY,
                )


def check_unique(table: str, values: dict, *, exclude_id: str | None = None) -> None:
    if table != "orders":
        return
    code = values.get("tracking_id")
    if code is None or str(code).strip() == "":
        return
    with db.session.no_autoflush:
        query = db.session.query(Order.id).filter(Order.tracking_id == code)
        if exclude_id is not None:
            query = query.filter(Order.id != exclude_id)
        taken = query.first() is not None
    if taken or code in tracking_service.pending_tracking_codes():
        raise ConstraintViolation(
            f"tracking_id '{code}' already exists",
            constraint=tracking_service.TRACKING_CONSTRAINT,
            kind=ConstraintViolation.UNIQUE,
        )


def check_enumerations(table: str, values: dict) -> None:
    if table == "orders" and "status" in values:
        lifecycle_service.validate_status(values["status"])


def check_amounts(table: str, values: dict) -> None:
    for column, constraint in NON_NEGATIVE_COLUMNS.get(table, {}).items():
        value = values.get(column)
        if isinstance(value, (int, float, Decimal)) and not isinstance(value, bool) and value < 0:
            raise ConstraintViolation(
                f"{column} must be >= 0",
                constraint=constraint,
                kind=ConstraintViolation.CHECK,
            )


def check_constraints(table: str, values: dict, *, exclude_id: str | None = None) -> None:
    check_enumerations(table, values)
    check_amounts(table, values)
    check_references(table, values)
    check_unique(table, values, exclude_id=exclude_id)


def translate_integrity_error(exc: IntegrityError, table: str) -> ConstraintViolation:
    """Map a driver IntegrityError (SQLite or PostgreSQL wording) to a ConstraintViolation."""
    message = str(getattr(exc, "orig", exc))
    lowered = message.lower()
    if "tracking_id" in lowered:
        return ConstraintViolation(
            "tracking_id already exists",
            constraint=tracking_service.TRACKING_CONSTRAINT,
            kind=ConstraintViolation.UNIQUE,
        )
    for constraint in NON_NEGATIVE_COLUMNS.get(table, {}).values():
        if constraint in lowered:
            return ConstraintViolation(
                "Amount must be >= 0",
                constraint=constraint,
                kind=ConstraintViolation.CHECK,
            )
    if "foreign key" in lowered:
        return ConstraintViolation(
            "Referenced row does not exist",
            constraint=f"{table}_fkey",
            kind=ConstraintViolation.FOREIGN_KEY,
        )
    if "check constraint" in lowered or "status" in lowered:
        return ConstraintViolation(
            "Value not allowed",
            constraint=lifecycle_service.STATUS_CONSTRAINT if table == "orders" else f"{table}_check",
            kind=ConstraintViolation.CHECK,
        )
    return ConstraintViolation(
        "Duplicate or invalid value",
        constraint=f"{table}_constraint",
        kind=ConstraintViolation.UNIQUE if "unique" in lowered else ConstraintViolation.CHECK,
    )


def _tracking_code_issued(table: str, values: dict) -> bool:
    return table == "orders" and not str(values.get("tracking_id") or "").strip()


# -- Reads --

def list_rows(
    caller: Caller,
    table: str,
    *,
    filters: dict | None = None,
    created_after: datetime | None = None,
    created_before: datetime | None = None,
    page: int | None = None,
    per_page: int | None = None,
) -> dict:
    """
    Rows visible to the caller, newest first.

    Args:
        filters: column -> value (equality) or list of values (IN)
        created_after / created_before: inclusive creation-time range
        page: Page number (1-indexed). If None, returns all items.
        per_page: Items per page (default 20, max 100)

    Returns:
        Dict with 'items' (model instances), 'count', and pagination
        metadata if paginated.
    """
    model = get_model(table)
    access_service.authorize_table(caller, table, Operation.SELECT)

    query = db.session.query(model)
    for column, value in (filters or {}).items():
        attr = model.__table__.columns.get(column)
        if attr is None:
            raise ValidationError(f"Unknown filter field: {column}")
        if isinstance(value, (list, tuple, set)):
            query = query.filter(attr.in_(list(value)))
        else:
            query = query.filter(attr == value)
    if created_after is not None:
        query = query.filter(model.created_at >= created_after)
    if created_before is not None:
        query = query.filter(model.created_at <= created_before)

    query = query.order_by(model.created_at.desc(), model.id.asc())
    rows = access_service.filter_rows(caller, table, query.all())

    if page is None:
        return {"items": rows, "count": len(rows)}

    per_page = min(per_page or 20, 100)
    page = max(page, 1)
    total = len(rows)
    total_pages = (total + per_page - 1) // per_page if total > 0 else 1
    items = rows[(page - 1) * per_page: page * per_page]

    return {
        "items": items,
        "count": len(items),
        "pagination": {
            "page": page,
            "per_page": per_page,
            "total": total,
            "total_pages": total_pages,
            "has_next": page < total_pages,
            "has_prev": page > 1,
        },
    }


def _authorize_found(caller: Caller, table: str, operation: str, row, description: str):
    if row is None:
        # Same answer as for an existing row unless the caller could see it regardless.
        if access_service.is_allowed(caller, table, operation, None):
            raise NotFoundError(f"{description} not found")
        access_service.deny(caller, table, operation)
    access_service.authorize(caller, table, operation, row)
    return row


def get_row(caller: Caller, table: str, row_id: str, *, operation: str = Operation.SELECT):
    model = get_model(table)
    row = db.session.get(model, row_id)
    return _authorize_found(caller, table, operation, row, f"{table} row {row_id}")


def find_row(caller: Caller, table: str, **criteria):
    """Point lookup by unique column(s), e.g. find_row(c, "orders", tracking_id="RT...")."""
    model = get_model(table)
    row = db.session.query(model).filter_by(**criteria).first()
    return _authorize_found(caller, table, Operation.SELECT, row, f"{table} row")


# -- Writes --

def _prepare_row(caller: Caller, table: str, values: dict, row_id: str | None):
    """Build the row and check the insert rule against it. Nothing is added to the session."""
    model = get_model(table)
    row = model(**derived_fields_service.strip_server_managed(values))
    if row_id is not None:
        row.id = row_id
    # WITH CHECK semantics: the rule sees the row as it would be stored.
    access_service.authorize(caller, table, Operation.INSERT, row)
    return row


def _stage_row(table: str, row, values: dict) -> None:
    check_constraints(table, values)
    derived_fields_service.run_insert_hooks(table, row)
    db.session.add(row)


def insert_row(caller: Caller, table: str, values: dict, *, row_id: str | None = None):
    """
    Insert one row and return it with server-stamped fields populated.

    row_id pins the primary key (used when an account and its customer row
    share an identity); otherwise a UUID is generated.
    """
    retry_tracking = (
        _tracking_code_issued(table, values)
        and tracking_service.collision_policy() == tracking_service.POLICY_ADVANCE
    )
    attempts = TRACKING_INSERT_ATTEMPTS if retry_tracking else 1

    def _op():
        row = _prepare_row(caller, table, dict(values), row_id)
        _stage_row(table, row, values)
        db.session.flush()
        db.session.commit()
        return row

    for attempt in range(attempts):
        try:
            return run_with_retry(_op)
        except IntegrityError as exc:
            db.session.rollback()
            violation = translate_integrity_error(exc, table)
            if (
                retry_tracking
                and violation.constraint == tracking_service.TRACKING_CONSTRAINT
                and attempt < attempts - 1
            ):
                current_app.logger.info("Tracking code race on insert, retrying (attempt %d)", attempt + 1)
                continue
            raise violation from exc
        except Exception:
            db.session.rollback()
            raise


def insert_rows(caller: Caller, table: str, rows: list[dict]) -> list:
    """Insert several rows in one transaction; any failure inserts none."""
    if not isinstance(rows, list) or not rows:
        raise ValidationError("rows must be a non-empty list")

    def _op():
        # Every row is authorized before any is staged, so a denial (which
        # commits its audit event) cannot commit part of the batch.
        prepared = [(_prepare_row(caller, table, dict(values), None), values) for values in rows]
        created = []
        for row, values in prepared:
            _stage_row(table, row, values)
            created.append(row)
        db.session.flush()
        db.session.commit()
        return created

    try:
        return run_with_retry(_op)
    except IntegrityError as exc:
        db.session.rollback()
        raise translate_integrity_error(exc, table) from exc
    except Exception:
        db.session.rollback()
        raise


def update_row(caller: Caller, table: str, row_id: str, patch: dict):
    """
    Partial update by id. updated_at is always re-stamped; id, created_at
    and immutable columns are guarded by derived_fields_service.
    """
    row = get_row(caller, table, row_id, operation=Operation.UPDATE)
    patch = derived_fields_service.guard_update_patch(table, row, patch)
    previous_updated_at = row.updated_at

    def _op():
        check_constraints(table, patch, exclude_id=row.id)
        for key, value in patch.items():
            setattr(row, key, value)

        if not access_service.is_allowed(caller, table, Operation.UPDATE, row):
            db.session.rollback()
            access_service.deny(caller, table, Operation.UPDATE, reason="Updated row fails the update rule")

        derived_fields_service.run_update_hooks(table, row, previous_updated_at)
        db.session.flush()
        db.session.commit()
        return row

    try:
        return run_with_retry(_op)
    except IntegrityError as exc:
        db.session.rollback()
        raise translate_integrity_error(exc, table) from exc
    except Exception:
        db.session.rollback()
        raise


def delete_row(caller: Caller, table: str, row_id: str) -> None:
    """
    Delete by id.

    Deleting a customer removes their orders. Fabrics and garments are
    deleted without touching orders that reference them.
    """
    row = get_row(caller, table, row_id, operation=Operation.DELETE)
    def _op():
        db.session.delete(row)
        db.session.flush()
        db.session.commit()

    try:
        run_with_retry(_op)
    except IntegrityError as exc:
        db.session.rollback()
        raise translate_integrity_error(exc, table) from exc
    except Exception:
        db.session.rollback()
        raise
