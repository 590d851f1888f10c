# Overview: Row-level access rules per table, expressed as data.
# Each rule is: (name, table, operation, callers, predicate)

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable

from .caller import Caller, CallerClass
from .operations import Operation


Predicate = Callable[[Caller, Any], bool]


@dataclass(frozen=True)
class AccessRule:
    name: str
    table: str
    operation: str
    callers: frozenset[str]
    predicate: Predicate

    @property
    def unconditional(self) -> bool:
        """True when the predicate ignores the row, so it also holds for rows that do not exist."""
        return getattr(self.predicate, "row_independent", False)

    def covers(self, operation: str) -> bool:
        return self.operation == Operation.ALL or self.operation == operation

    def applies_to(self, caller: Caller) -> bool:
        return bool(self.callers & caller.classes)


# -- Predicates --

def always(caller: Caller, row: Any) -> bool:
    return True


always.row_independent = True


def owns_row(column: str) -> Predicate:
    """Caller identity equals row.<column>."""
    def _predicate(caller: Caller, row: Any) -> bool:
        if row is None or caller.user_id is None:
            return False
        return str(getattr(row, column, None)) == str(caller.user_id)
    _predicate.__name__ = f"owns_row_{column}"
    return _predicate


def has_role(role: str) -> Predicate:
    def _predicate(caller: Caller, row: Any) -> bool:
        return caller.role == role
    _predicate.__name__ = f"has_role_{role}"
    _predicate.row_independent = True
    return _predicate


# -- Caller sets --

ANYONE = frozenset({CallerClass.ANONYMOUS, CallerClass.AUTHENTICATED})
AUTHENTICATED = frozenset({CallerClass.AUTHENTICATED})
ADMINS = frozenset({CallerClass.ADMIN})


_rule = AccessRule


# -- CUSTOMERS --

CUSTOMER_RULES = [
    _rule("Anyone can insert customer data", "customers", Operation.INSERT, ANYONE, always),
    _rule("Customers can view their own data", "customers", Operation.SELECT, AUTHENTICATED, owns_row("id")),
    _rule("Admins can view all customers", "customers", Operation.ALL, ADMINS, has_role("admin")),
]


# -- FABRICS --

FABRIC_RULES = [
    _rule("Anyone can view fabrics", "fabrics", Operation.SELECT, ANYONE, always),
    _rule("Admins can manage fabrics", "fabrics", Operation.ALL, ADMINS, has_role("admin")),
]


# -- GARMENTS --

GARMENT_RULES = [
    _rule("Anyone can view garments", "garments", Operation.SELECT, ANYONE, always),
    _rule("Admins can manage garments", "garments", Operation.ALL, ADMINS, has_role("admin")),
]


# -- ORDERS --
# "Anyone can track orders" makes every order readable by every caller, so the
# owner-scoped select below never changes an outcome. Both are kept as-is;
# narrowing public reads is a product decision, not a rule-table fix.

ORDER_RULES = [
    _rule("Anyone can track orders by tracking_id", "orders", Operation.SELECT, ANYONE, always),
    _rule("Customers can create orders", "orders", Operation.INSERT, ANYONE, always),
    _rule("Customers can view their own orders", "orders", Operation.SELECT, AUTHENTICATED, owns_row("customer_id")),
    _rule("Admins can manage all orders", "orders", Operation.ALL, ADMINS, has_role("admin")),
]


ACCESS_RULES = [
    *CUSTOMER_RULES,
    *FABRIC_RULES,
    *GARMENT_RULES,
    *ORDER_RULES,
]
