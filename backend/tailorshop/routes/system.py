# backend/tailorshop/routes/system.py
"""
System health and access-policy endpoints.

Checks the database and the session table and reports catalog/order
counts for deployment debugging.
"""

import time
from flask import Blueprint, current_app, g
from ..extensions import db
from ..models import Customer, Fabric, Garment, Order, SessionToken
from ..policies import ACCESS_RULES, describe_rule, get_protected_tables
from ..services import access_service
from ..decorators import with_caller
from tailorshop.time_utils import utcnow

system_bp = Blueprint("system", __name__)


def check_database_health() -> dict:
    """
    Check database connectivity by counting the shop tables.

    Returns dict with status and details.
    """
    start_time = time.time()
    try:
        details = {
            "customers": db.session.query(Customer).count(),
            "fabrics": db.session.query(Fabric).count(),
            "garments": db.session.query(Garment).count(),
            "orders": db.session.query(Order).count(),
        }
        elapsed_ms = (time.time() - start_time) * 1000

        degraded = details["fabrics"] == 0 and details["garments"] == 0
        result = {
            "status": "degraded" if degraded else "healthy",
            "latency_ms": round(elapsed_ms, 2),
            "details": details,
        }
        if degraded:
            result["warning"] = "Catalog is empty. Run 'flask catalog seed'."
        return result
    except Exception:
        elapsed_ms = (time.time() - start_time) * 1000
        current_app.logger.exception("Database health check failed")
        return {
            "status": "unhealthy",
            "latency_ms": round(elapsed_ms, 2),
            "error": "Database error"
        }


def check_session_service_health() -> dict:
    start_time = time.time()
    try:
        active_sessions = db.session.query(SessionToken).filter_by(is_revoked=False).count()
        expired_sessions = db.session.query(SessionToken).filter(
            SessionToken.expires_at < utcnow(),
            SessionToken.is_revoked.is_(False),
        ).count()
        elapsed_ms = (time.time() - start_time) * 1000
        return {
            "status": "healthy",
            "latency_ms": round(elapsed_ms, 2),
            "details": {
                "active_sessions": active_sessions,
                "expired_pending_cleanup": expired_sessions,
            }
        }
    except Exception:
        elapsed_ms = (time.time() - start_time) * 1000
        current_app.logger.exception("Session service health check failed")
        return {
            "status": "unhealthy",
            "latency_ms": round(elapsed_ms, 2),
            "error": "Session service error"
        }


@system_bp.get("/health")
def health():
    """
    Returns:
    - 200: healthy or degraded (empty catalog is still operational)
    - 503: a dependency is unhealthy
    """
    start_time = time.time()

    database_health = check_database_health()
    session_health = check_session_service_health()

    all_checks = [database_health, session_health]
    if any(check["status"] == "unhealthy" for check in all_checks):
        overall_status, http_status = "unhealthy", 503
    elif any(check["status"] == "degraded" for check in all_checks):
        overall_status, http_status = "degraded", 200
    else:
        overall_status, http_status = "healthy", 200

    response = {
        "status": overall_status,
        "timestamp": utcnow().isoformat() + "Z",
        "total_latency_ms": round((time.time() - start_time) * 1000, 2),
        "checks": {
            "database": database_health,
            "session_service": session_health,
        }
    }

    return response, http_status


@system_bp.get("/api/policies")
@with_caller
def list_policies():
    """
    The access rule table, plus what the caller may do per table.

    Rules are not secret; listing them lets clients explain a 403.
    """
    return {
        "tables": get_protected_tables(),
        "rules": [describe_rule(rule) for rule in ACCESS_RULES],
        "caller_class": g.caller.label,
        "access": access_service.access_matrix(g.caller, get_protected_tables()),
    }
