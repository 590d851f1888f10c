# Overview: Order status progression through the workshop pipeline.

"""
Order Lifecycle

PIPELINE (forward order):
    confirmed -> fabric_ready -> cutting -> stitching -> embroidery
              -> quality_check -> ready -> completed

STORED RULE: status must be one of the eight values. That is the only
constraint the store applies; staff may move an order to any stage,
including backwards or skipping stages.

OPTIONAL SEQUENCING: With ORDER_STATUS_ENFORCE_SEQUENCE on, a status
change must either keep the current stage or move exactly one stage
forward.
"""

from __future__ import annotations

from flask import current_app, has_app_context

from ..models import ORDER_STATUSES
from ..validation import ConstraintViolation

STATUS_CONSTRAINT = "orders_status_check"
DEFAULT_STATUS = ORDER_STATUSES[0]
FINAL_STATUS = ORDER_STATUSES[-1]

STATUS_LABELS = {
    "confirmed": "Order Confirmed",
    "fabric_ready": "Fabric Ready",
    "cutting": "Cutting",
    "stitching": "Stitching",
    "embroidery": "Embroidery",
    "quality_check": "Quality Check",
    "ready": "Ready for Pickup",
    "completed": "Completed",
}


class LifecycleError(ValueError):
    """
    Raised when a status change breaks the sequencing rule.

    Only raised when sequencing is enforced; membership failures are
    ConstraintViolation.
    """
    pass


def validate_status(status) -> None:
    if status not in ORDER_STATUSES:
        raise ConstraintViolation(
            f"Invalid status '{status}'. Must be one of: {', '.join(ORDER_STATUSES)}",
            constraint=STATUS_CONSTRAINT,
            kind=ConstraintViolation.CHECK,
        )


def status_index(status: str) -> int:
    validate_status(status)
    return ORDER_STATUSES.index(status)


def next_status(status: str) -> str | None:
    """Following stage, or None once completed."""
    idx = status_index(status)
    if idx + 1 >= len(ORDER_STATUSES):
        return None
    return ORDER_STATUSES[idx + 1]


def sequence_enforced() -> bool:
    if not has_app_context():
        return False
    return bool(current_app.config.get("ORDER_STATUS_ENFORCE_SEQUENCE", False))


def can_transition(from_status: str, to_status: str, *, enforce_sequence: bool | None = None) -> bool:
    validate_status(to_status)
    if enforce_sequence is None:
        enforce_sequence = sequence_enforced()
    if not enforce_sequence:
        return True

    # Legacy rows may carry a null status; treat them as not yet started.
    from_idx = status_index(from_status) if from_status is not None else -1
    to_idx = status_index(to_status)
    return to_idx in (from_idx, from_idx + 1)


def check_transition(from_status: str, to_status: str, *, enforce_sequence: bool | None = None) -> None:
    if not can_transition(from_status, to_status, enforce_sequence=enforce_sequence):
        raise LifecycleError(
            f"Cannot move order from '{from_status}' to '{to_status}': "
            f"stages must advance one at a time"
        )


def progress(status: str) -> dict:
    """Stage position for the tracking screen."""
    idx = status_index(status)
    return {
        "status": status,
        "label": STATUS_LABELS[status],
        "step": idx + 1,
        "total_steps": len(ORDER_STATUSES),
        "is_complete": status == FINAL_STATUS,
        "next_status": next_status(status),
        "stages": [
            {"status": s, "label": STATUS_LABELS[s], "done": i <= idx}
            for i, s in enumerate(ORDER_STATUSES)
        ],
    }
