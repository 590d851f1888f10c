# Overview: Shared mapping from service exceptions to JSON error responses.

from flask import current_app, jsonify

from ..decorators import authorization_error_response
from ..services.access_service import AuthorizationError
from ..services.auth_service import PasswordValidationError
from ..services.lifecycle_service import LifecycleError
from ..validation import ConflictError, ConstraintViolation, NotFoundError, ValidationError


def error_response(e: Exception, action: str):
    """
    Translate a known service exception; anything else is logged and
    returned as a generic 500.
    """
    if isinstance(e, AuthorizationError):
        return authorization_error_response(e)
    if isinstance(e, ConstraintViolation):
        # Enumeration failures are bad input; key violations are conflicts.
        status = 400 if e.kind == ConstraintViolation.CHECK else 409
        return jsonify(e.to_dict()), status
    if isinstance(e, (ValidationError, PasswordValidationError)):
        return jsonify({"error": str(e)}), 400
    if isinstance(e, NotFoundError):
        return jsonify({"error": str(e)}), 404
    if isinstance(e, (ConflictError, LifecycleError)):
        return jsonify({"error": str(e)}), 409

    current_app.logger.exception("Failed to %s", action)
    return jsonify({"error": "Internal server error"}), 500
