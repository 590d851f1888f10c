from __future__ import annotations

import uuid
from decimal import Decimal


def new_uuid() -> str:
    return str(uuid.uuid4())


def to_number(value):
    """Numeric columns come back as Decimal; JSON consumers expect numbers."""
    if value is None:
        return None
    if isinstance(value, Decimal):
        return float(value)
    return value
