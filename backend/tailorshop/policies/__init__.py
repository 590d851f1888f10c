# Overview: Access policy package.
# Re-exports the rule table and caller types.

from .caller import Caller, CallerClass
from .operations import Operation, OPERATIONS
from .rules import (
    AccessRule,
    ACCESS_RULES,
    CUSTOMER_RULES,
    FABRIC_RULES,
    GARMENT_RULES,
    ORDER_RULES,
    always,
    owns_row,
    has_role,
)
from .helpers import get_protected_tables, get_rules_for_table, describe_rule

__all__ = [
    "Caller",
    "CallerClass",
    "Operation",
    "OPERATIONS",
    "AccessRule",
    "ACCESS_RULES",
    "CUSTOMER_RULES",
    "FABRIC_RULES",
    "GARMENT_RULES",
    "ORDER_RULES",
    "always",
    "owns_row",
    "has_role",
    "get_protected_tables",
    "get_rules_for_table",
    "describe_rule",
]
