# Overview: Request caller resolution and table-access decorators for API routes.

from functools import wraps
from flask import request, jsonify, g

from .policies import Caller
from .services import session_service, access_service
from .services.access_service import AuthorizationError


def _bearer_token() -> str | None:
    auth_header = request.headers.get("Authorization")
    if not auth_header:
        return None
    if not auth_header.startswith("Bearer "):
        return ""
    return auth_header.split(" ", 1)[1].strip()


def with_caller(f):
    """
    Resolve the request caller and store it on Flask g.

    Sets:
    - g.caller: Caller (anonymous when no Authorization header is sent)
    - g.current_user: the User, or None for anonymous callers
    - g.session_context: SessionContext, or None

    SECURITY: A header that is present but malformed, unknown, revoked or
    expired is a 401. It never silently downgrades to anonymous.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        token = _bearer_token()

        if token is None:
            g.caller = Caller.anonymous()
            g.current_user = None
            g.session_context = None
            return f(*args, **kwargs)

        context = session_service.validate_session(token) if token else None
        if not context:
            return jsonify({"error": "Invalid or expired token"}), 401

        g.caller = context.caller
        g.current_user = context.user
        g.session_context = context
        return f(*args, **kwargs)

    return decorated_function


def require_auth(f):
    """Like with_caller, but anonymous callers get 401."""
    @wraps(f)
    @with_caller
    def decorated_function(*args, **kwargs):
        if not g.caller.is_authenticated:
            return jsonify({"error": "Authentication required"}), 401
        return f(*args, **kwargs)

    return decorated_function


def authorization_error_response(e: AuthorizationError):
    if e.caller.is_authenticated:
        return jsonify({"error": "Permission denied", "table": e.table, "operation": e.operation}), 403
    return jsonify({"error": "Authentication required"}), 401


def require_table_access(table: str, operation: str):
    """
    Table-level gate: some rule must apply to the caller for this
    operation. Row predicates are checked later by the record store.

    Must sit below @with_caller (or @require_auth).
    """
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            caller = getattr(g, "caller", None)
            if caller is None:
                return jsonify({"error": "Authentication required"}), 401
            try:
                access_service.authorize_table(caller, table, operation)
            except AuthorizationError as e:
                return authorization_error_response(e)
            return f(*args, **kwargs)

        return decorated_function
    return decorator
