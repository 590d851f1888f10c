# Overview: Pre-write hooks that stamp server-managed fields.

"""
Derived fields are set by the write path, never by the writer:

- insert: created_at and updated_at are stamped; orders get a tracking code.
- update: updated_at moves strictly forward, whatever the client sent.
  id and created_at are never rewritten, and an order keeps its tracking
  code for life.

The record store calls run_insert_hooks / run_update_hooks on every row it
writes, right before flushing.
"""

from __future__ import annotations

from datetime import datetime

from ..time_utils import after, utcnow
from ..validation import ConstraintViolation
from .tracking_service import issue_tracking_code

# Set by the write path only; dropped from any patch a writer sends.
SERVER_MANAGED_COLUMNS = frozenset({"id", "created_at", "updated_at"})

# Assigned once on insert; an update may repeat the value but not change it.
IMMUTABLE_COLUMNS = {
    "orders": {"tracking_id": "orders_tracking_id_immutable"},
}


def stamp_timestamps(row) -> None:
    now = utcnow()
    row.created_at = now
    row.updated_at = now


def stamp_updated_at(row, previous: datetime | None = None) -> None:
    row.updated_at = after(previous if previous is not None else row.updated_at)


def strip_server_managed(values: dict) -> dict:
    return {k: v for k, v in values.items() if k not in SERVER_MANAGED_COLUMNS}


def guard_update_patch(table: str, row, patch: dict) -> dict:
    """
    The patch an update may apply to row: server-managed columns removed,
    unchanged immutable columns removed, changed ones rejected.
    """
    guarded = strip_server_managed(patch)
    for column, constraint in IMMUTABLE_COLUMNS.get(table, {}).items():
        if column not in guarded:
            continue
        if guarded[column] != getattr(row, column):
            raise ConstraintViolation(
                f"{column} cannot be changed once assigned",
                constraint=constraint,
                kind=ConstraintViolation.CHECK,
            )
        del guarded[column]
    return guarded


INSERT_HOOKS = {
    "customers": [stamp_timestamps],
    "fabrics": [stamp_timestamps],
    "garments": [stamp_timestamps],
    "orders": [stamp_timestamps, issue_tracking_code],
}

UPDATE_HOOKS = {
    "customers": [stamp_updated_at],
    "fabrics": [stamp_updated_at],
    "garments": [stamp_updated_at],
    "orders": [stamp_updated_at],
}


def run_insert_hooks(table: str, row) -> None:
    for hook in INSERT_HOOKS.get(table, [stamp_timestamps]):
        hook(row)


def run_update_hooks(table: str, row, previous_updated_at: datetime | None) -> None:
    for hook in UPDATE_HOOKS.get(table, [stamp_updated_at]):
        hook(row, previous_updated_at)
