# Overview: Service-layer operations for auth; encapsulates business logic and database work.

"""
Accounts and Passwords

SECURITY NOTES:
- Passwords hashed with bcrypt (cost from BCRYPT_ROUNDS, default 12)
- Minimum 8 characters, upper, lower, digit and special character
- Session tokens managed separately (see session_service.py)

IDENTITY: Customer sign-up creates the account and the customer row with
the same id. The owner-scoped access rules compare the caller's account id
against customers.id and orders.customer_id.
"""

import re

import bcrypt
from flask import current_app

from ..extensions import db
from ..models import User, Customer, ROLE_ADMIN, ROLE_CUSTOMER, VALID_ROLES
from ..policies import Caller
from ..validation import ConflictError, ValidationError
from tailorshop.time_utils import utcnow


class PasswordValidationError(Exception):
    """Raised when password doesn't meet strength requirements."""
    pass


def validate_password_strength(password: str) -> None:
    """
    Validate password meets strength requirements.

    Requirements:
    - Minimum 8 characters
    - At least one uppercase letter
    - At least one lowercase letter
    - At least one digit
    - At least one special character (!@#$%^&*(),.'":{}|<>)

    Raises PasswordValidationError if requirements not met.
    """
    if len(password) < 8:
        raise PasswordValidationError("Password must be at least 8 characters long")

    if not re.search(r'[A-Z]', password):
        raise PasswordValidationError("Password must contain at least one uppercase letter")

    if not re.search(r'[a-z]', password):
        raise PasswordValidationError("Password must contain at least one lowercase letter")

    if not re.search(r'\d', password):
        raise PasswordValidationError("Password must contain at least one digit")

    if not re.search(r"[!@#$%^&*(),.'\":{}|<>]", password):
        raise PasswordValidationError("Password must contain at least one special character")


def hash_password(password: str) -> str:
    """Validate strength, then bcrypt-hash the password."""
    validate_password_strength(password)
    rounds = current_app.config.get("BCRYPT_ROUNDS", 12)
    salt = bcrypt.gensalt(rounds=rounds)
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')  # Store as string in database


def verify_password(password: str, password_hash: str) -> bool:
    """
    Verify password against bcrypt hash.

    bcrypt.checkpw() is constant-time; a malformed hash counts as a mismatch.
    """
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        return False


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


def create_user(email: str, password: str, role: str = ROLE_CUSTOMER, *, user_id: str | None = None) -> User:
    """
    Create an account. Does not commit.

    Raises:
        ValidationError: bad email or role
        ConflictError: email already registered
        PasswordValidationError: weak password
    """
    email = normalize_email(email)
    if not email or "@" not in email:
        raise ValidationError("A valid email is required")
    if role not in VALID_ROLES:
        raise ValidationError(f"role must be one of: {', '.join(sorted(VALID_ROLES))}")
    if db.session.query(User).filter_by(email=email).first():
        raise ConflictError("Email already registered")

    user = User(email=email, password_hash=hash_password(password), role=role, is_active=True)
    if user_id is not None:
        user.id = user_id
    db.session.add(user)
    db.session.flush()
    return user


def create_admin(email: str, password: str) -> User:
    user = create_user(email, password, ROLE_ADMIN)
    db.session.commit()
    return user


def register_customer(
    *,
    name: str,
    phone: str,
    email: str,
    password: str,
    measurements: dict | None = None,
) -> tuple[User, Customer]:
    """
    Customer sign-up: account + customer row sharing one id.

    The customer row is written through the record store as the new account,
    so it is stamped and checked like any other insert.
    """
    from . import record_service

    user = create_user(email, password, ROLE_CUSTOMER)
    caller = Caller(user_id=user.id, role=user.role)
    # insert_row commits the account with the customer row, or rolls both back.
    customer = record_service.insert_row(
        caller,
        "customers",
        {
            "name": name,
            "phone": phone,
            "email": normalize_email(email),
            "measurements_json": measurements or {},
        },
        row_id=user.id,
    )
    return user, customer


def authenticate(email: str, password: str) -> User | None:
    """Return the active user for these credentials, or None."""
    user = db.session.query(User).filter_by(email=normalize_email(email)).first()
    if not user or not user.is_active:
        return None
    if not verify_password(password, user.password_hash):
        return None

    user.last_login_at = utcnow()
    db.session.commit()
    return user
