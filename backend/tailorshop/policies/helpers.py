# Overview: Lookups over the access rule table.

from .rules import ACCESS_RULES


def get_protected_tables():
    """Tables that have at least one rule (row security enabled)."""
    return sorted({rule.table for rule in ACCESS_RULES})


def get_rules_for_table(table, rules=None):
    """All rules declared for a table."""
    return [rule for rule in (rules or ACCESS_RULES) if rule.table == table]


def describe_rule(rule):
    """Serializable view of a rule, for the admin policy listing."""
    return {
        "name": rule.name,
        "table": rule.table,
        "operation": rule.operation,
        "callers": sorted(rule.callers),
        "predicate": getattr(rule.predicate, "__name__", "predicate"),
    }
