# Overview: Catalog listing with the storefront's search and filter behavior.

"""
The storefront and admin screens fetch a whole table (newest first) and
narrow it in memory:

- a case-insensitive substring search over a few text fields
- an exact match on one categorical field, where "all" means no filter

Those two filters are plain functions so the screens and the API share them.
"""

from __future__ import annotations

from typing import Iterable

from ..models import Fabric
from ..policies import Caller, Operation
from . import record_service

ALL = "all"

FABRIC_SEARCH_FIELDS = ("name", "material", "color", "description")
GARMENT_SEARCH_FIELDS = ("name", "category", "description")


def _field_value(row, field: str):
    if isinstance(row, dict):
        return row.get(field)
    return getattr(row, field, None)


def search_rows(rows: Iterable, term: str | None, fields: Iterable[str]) -> list:
    """Rows where any of `fields` contains `term`, ignoring case. Empty term keeps all rows."""
    rows = list(rows)
    if not term or not term.strip():
        return rows
    needle = term.strip().lower()
    fields = tuple(fields)
    matched = []
    for row in rows:
        for field in fields:
            value = _field_value(row, field)
            if value is not None and needle in str(value).lower():
                matched.append(row)
                break
    return matched


def match_field(rows: Iterable, field: str, value) -> list:
    """Exact match on one field. None, "" and "all" keep every row."""
    rows = list(rows)
    if value is None or value == "" or value == ALL:
        return rows
    return [row for row in rows if _field_value(row, field) == value]


def distinct_values(rows: Iterable, field: str) -> list:
    """Sorted distinct non-empty values, for filter dropdowns."""
    return sorted({_field_value(row, field) for row in rows if _field_value(row, field)})


def list_fabrics(
    caller: Caller,
    *,
    search: str | None = None,
    material: str | None = None,
    featured: bool | None = None,
) -> dict:
    filters = {}
    if featured is not None:
        filters["featured"] = featured
    rows = record_service.list_rows(caller, "fabrics", filters=filters)["items"]
    materials = distinct_values(rows, "material")
    rows = match_field(search_rows(rows, search, FABRIC_SEARCH_FIELDS), "material", material)
    return {
        "items": rows,
        "count": len(rows),
        "materials": materials,
        "featured_count": sum(1 for row in rows if row.featured),
    }


def list_garments(
    caller: Caller,
    *,
    search: str | None = None,
    category: str | None = None,
) -> dict:
    rows = record_service.list_rows(caller, "garments")["items"]
    categories = distinct_values(rows, "category")
    rows = match_field(search_rows(rows, search, GARMENT_SEARCH_FIELDS), "category", category)
    return {
        "items": rows,
        "count": len(rows),
        "categories": categories,
    }


def toggle_featured(caller: Caller, fabric_id: str) -> Fabric:
    fabric = record_service.get_row(caller, "fabrics", fabric_id, operation=Operation.UPDATE)
    return record_service.update_row(caller, "fabrics", fabric_id, {"featured": not bool(fabric.featured)})
