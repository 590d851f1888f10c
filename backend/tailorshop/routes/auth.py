# Overview: Flask API routes for auth operations; parses input and returns JSON responses.

"""
Authentication API routes

- Customer self-registration (account + customer row share one id)
- Email/password login returning a bearer token
- Logout revokes the token
- /me reports who the caller is and what the rule set lets them do
"""

from flask import Blueprint, request, jsonify, current_app, g

from ..extensions import db
from ..models import Customer, TABLE_MODELS
from ..policies import Caller
from ..services import access_service, auth_service, session_service
from ..decorators import require_auth
from ._errors import error_response


auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


def _client_info():
    return request.headers.get("User-Agent"), request.remote_addr


@auth_bp.post("/register")
def register_route():
    """
    Customer sign-up.

    Body: name, phone, email, password, measurements (optional object).
    Returns the account, the customer row and a session token.
    """
    data = request.get_json(silent=True) or {}
    missing = [k for k in ("name", "phone", "email", "password") if not data.get(k)]
    if missing:
        return jsonify({"error": f"Missing required fields: {', '.join(missing)}"}), 400

    measurements = data.get("measurements")
    if measurements is not None and not isinstance(measurements, dict):
        return jsonify({"error": "measurements must be an object"}), 400

    try:
        user, customer = auth_service.register_customer(
            name=str(data["name"]).strip(),
            phone=str(data["phone"]).strip(),
            email=str(data["email"]),
            password=str(data["password"]),
            measurements=measurements,
        )
        user_agent, ip_address = _client_info()
        session, token = session_service.create_session(user.id, user_agent, ip_address)
    except Exception as e:
        db.session.rollback()
        return error_response(e, "register customer")

    current_app.logger.info("Registered customer account %s", user.id)
    return jsonify({
        "user": user.to_dict(),
        "customer": customer.to_dict(),
        "token": token,
        "session": session.to_dict(),
    }), 201


@auth_bp.post("/login")
def login_route():
    """
    Authenticate and create a session token.

    Token must be sent as "Authorization: Bearer <token>" on later requests.
    """
    try:
        data = request.get_json(silent=True) or {}
        email = data.get("email")
        password = data.get("password")

        if not all([email, password]):
            return jsonify({"error": "email and password required"}), 400

        user = auth_service.authenticate(email, password)
        if not user:
            access_service.log_security_event(
                Caller.anonymous(),
                event_type="LOGIN_FAILED",
                success=False,
                resource="auth",
                action="login",
                reason="Invalid credentials",
            )
            return jsonify({"error": "Invalid credentials"}), 401

        user_agent, ip_address = _client_info()
        session, token = session_service.create_session(
            user_id=user.id,
            user_agent=user_agent,
            ip_address=ip_address,
        )

        return jsonify({
            "user": user.to_dict(),
            "token": token,
            "session": session.to_dict(),
            "message": "Login successful",
        }), 200

    except Exception:
        current_app.logger.exception("Failed to login user")
        return jsonify({"error": "Internal server error"}), 500


@auth_bp.post("/logout")
def logout_route():
    """Revoke the bearer token."""
    try:
        auth_header = request.headers.get("Authorization")
        if not auth_header or not auth_header.startswith("Bearer "):
            return jsonify({"error": "Authorization header required"}), 401

        token = auth_header.split(" ", 1)[1]
        if not session_service.revoke_session(token):
            return jsonify({"error": "Invalid or expired token"}), 401

        return jsonify({"message": "Logout successful"}), 200

    except Exception:
        current_app.logger.exception("Failed to logout user")
        return jsonify({"error": "Internal server error"}), 500


@auth_bp.get("/me")
@require_auth
def me_route():
    """
    Current account, its customer row (if any) and table-level access.

    The access map lets the UI hide admin screens; rows are still
    checked on every request.
    """
    caller = g.caller
    customer = db.session.get(Customer, caller.user_id)
    return jsonify({
        "user": g.current_user.to_dict(),
        "caller_class": caller.label,
        "customer": customer.to_dict() if customer else None,
        "access": access_service.access_matrix(caller, TABLE_MODELS.keys()),
    })
