# Overview: Tracking-code issuance for new orders.

"""
Tracking codes are "RT" followed by the Unix epoch second of creation,
left-padded with zeros to 10 digits (and cut to 10 characters, matching the
LPAD semantics of the schema default).

Two orders created in the same second would get the same code. The
behavior is chosen by TRACKING_CODE_COLLISION_POLICY:

- "advance": take the next free second (RT<epoch+1>, ...). Codes keep the
  RT + 10 digits shape and stay unique; a code may run a few seconds ahead
  of the order's created_at.
- "reject": issue RT<epoch> regardless; the unique constraint rejects the
  second insert.
"""

from __future__ import annotations

import re

from flask import current_app

from .. import time_utils
from ..extensions import db
from ..models import Order
from ..validation import ConstraintViolation

TRACKING_PREFIX = "RT"
TRACKING_DIGITS = 10
TRACKING_CODE_RE = re.compile(r"^RT\d{10}$")
TRACKING_CONSTRAINT = "orders_tracking_id_key"

POLICY_ADVANCE = "advance"
POLICY_REJECT = "reject"
COLLISION_POLICIES = {POLICY_ADVANCE, POLICY_REJECT}


def format_tracking_code(epoch: int) -> str:
    return TRACKING_PREFIX + str(int(epoch)).rjust(TRACKING_DIGITS, "0")[:TRACKING_DIGITS]


def is_tracking_code(value) -> bool:
    return isinstance(value, str) and bool(TRACKING_CODE_RE.match(value))


def collision_policy() -> str:
    policy = current_app.config.get("TRACKING_CODE_COLLISION_POLICY", POLICY_ADVANCE)
    if policy not in COLLISION_POLICIES:
        raise ValueError(
            f"TRACKING_CODE_COLLISION_POLICY must be one of: {', '.join(sorted(COLLISION_POLICIES))}"
        )
    return policy


def pending_tracking_codes() -> set[str]:
    return {
        obj.tracking_id
        for obj in db.session.new
        if isinstance(obj, Order) and obj.tracking_id
    }


def tracking_code_taken(code: str) -> bool:
    if code in pending_tracking_codes():
        return True
    with db.session.no_autoflush:
        return db.session.query(Order.id).filter(Order.tracking_id == code).first() is not None


def next_tracking_code(*, now: int | None = None, policy: str | None = None, max_probes: int | None = None) -> str:
    """
    Pick the tracking code for an order created at `now` (epoch seconds).

    Raises ConstraintViolation under the advance policy when max_probes
    consecutive seconds are already taken.
    """
    epoch = time_utils.epoch_seconds() if now is None else int(now)
    policy = policy or collision_policy()

    if policy == POLICY_REJECT:
        return format_tracking_code(epoch)

    if max_probes is None:
        max_probes = current_app.config.get("TRACKING_CODE_MAX_PROBES", 60)

    for offset in range(max_probes):
        candidate = format_tracking_code(epoch + offset)
        if not tracking_code_taken(candidate):
            if offset:
                current_app.logger.info(
                    "Tracking code %s taken, issued %s", format_tracking_code(epoch), candidate
                )
            return candidate

    raise ConstraintViolation(
        "Could not issue a unique tracking code",
        constraint=TRACKING_CONSTRAINT,
        kind=ConstraintViolation.UNIQUE,
    )


def issue_tracking_code(order: Order, *, now: int | None = None) -> None:
    """Insert hook: fill tracking_id when it is missing or empty."""
    if order.tracking_id is None or str(order.tracking_id).strip() == "":
        order.tracking_id = next_tracking_code(now=now)
