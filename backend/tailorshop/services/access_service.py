# Overview: Row-level access evaluation over the rule table, plus the denial audit trail.

"""
Access Evaluation

Every record-store operation is checked here before it touches a row.

MODEL:
- Rules live in tailorshop.policies as data, one list per table.
- A rule applies when the caller's classes intersect the rule's callers and
  the rule covers the operation (or is an "all" rule).
- A request is allowed iff at least one applicable rule's predicate holds
  for the target row.

LISTS: Row-filtered. A caller with no applicable rule at all is denied; a
caller with applicable rules gets only the rows some predicate accepts.

MISSING ROWS: Predicates are evaluated with row=None. Only row-independent
rules (always / role checks) pass, so a caller who could not read the row
anyway gets the same denial whether or not it exists.
"""

from __future__ import annotations

from flask import current_app, has_request_context, request

from ..extensions import db
from ..models import SecurityEvent
from ..policies import ACCESS_RULES, Caller, Operation
from tailorshop.time_utils import utcnow


class AuthorizationError(Exception):
    """Raised when no applicable rule permits the operation."""

    def __init__(self, message: str, *, table: str, operation: str, caller: Caller):
        super().__init__(message)
        self.table = table
        self.operation = operation
        self.caller = caller


def applicable_rules(caller: Caller, table: str, operation: str, rules=None) -> list:
    return [
        rule
        for rule in (rules if rules is not None else ACCESS_RULES)
        if rule.table == table and rule.covers(operation) and rule.applies_to(caller)
    ]


def can_access_table(caller: Caller, table: str, operation: str, rules=None) -> bool:
    """Table-level gate: does any rule apply to this caller at all?"""
    return bool(applicable_rules(caller, table, operation, rules))


def is_allowed(caller: Caller, table: str, operation: str, row=None, rules=None) -> bool:
    return any(rule.predicate(caller, row) for rule in applicable_rules(caller, table, operation, rules))


def filter_rows(caller: Caller, table: str, rows, rules=None) -> list:
    """Keep rows the caller may read."""
    candidates = applicable_rules(caller, table, Operation.SELECT, rules)
    return [row for row in rows if any(rule.predicate(caller, row) for rule in candidates)]


def log_security_event(
    caller: Caller,
    event_type: str,
    success: bool,
    resource: str | None = None,
    action: str | None = None,
    reason: str | None = None,
) -> SecurityEvent:
    """
    Append a security event.

    Runs in its own commit, so callers must not have pending writes.
    """
    ip_address = None
    user_agent = None
    if has_request_context():
        ip_address = request.remote_addr
        user_agent = request.headers.get("User-Agent")

    event = SecurityEvent(
        user_id=caller.user_id,
        caller_class=caller.label,
        event_type=event_type,
        resource=resource,
        action=action,
        success=success,
        reason=reason,
        ip_address=ip_address,
        user_agent=user_agent,
        occurred_at=utcnow(),
    )
    db.session.add(event)
    db.session.commit()
    return event


def deny(caller: Caller, table: str, operation: str, reason: str | None = None) -> None:
    """Record the denial and raise AuthorizationError."""
    reason = reason or f"No {operation} rule on {table} for {caller.label} caller"
    current_app.logger.warning(
        "Access denied: %s %s by %s (%s)", operation, table, caller.label, caller.user_id or "-"
    )
    log_security_event(
        caller,
        event_type="ACCESS_DENIED",
        success=False,
        resource=table,
        action=operation,
        reason=reason,
    )
    raise AuthorizationError("Permission denied", table=table, operation=operation, caller=caller)


def authorize(caller: Caller, table: str, operation: str, row=None) -> None:
    """Raise AuthorizationError unless some applicable rule accepts the row."""
    if not is_allowed(caller, table, operation, row):
        deny(caller, table, operation)


def authorize_table(caller: Caller, table: str, operation: str) -> None:
    if not can_access_table(caller, table, operation):
        deny(caller, table, operation)


def access_matrix(caller: Caller, tables) -> dict:
    """
    Table-level capabilities for a caller, e.g. for a UI deciding which
    admin screens to show. Row predicates are not evaluated.
    """
    from ..policies import OPERATIONS

    return {
        table: {op: can_access_table(caller, table, op) for op in OPERATIONS}
        for table in tables
    }
