# backend/tailorshop/config.py
from __future__ import annotations
import os


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/tailorshop.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///tailorshop.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    CORS_ALLOWED_ORIGINS = {
        origin.strip()
        for origin in os.environ.get(
            "CORS_ALLOWED_ORIGINS",
            "http://localhost:5173,http://127.0.0.1:5173",
        ).split(",")
        if origin.strip()
    }

    # "advance" probes forward to the next free second, "reject" lets the
    # unique constraint fail the second same-second insert.
    TRACKING_CODE_COLLISION_POLICY = os.environ.get("TRACKING_CODE_COLLISION_POLICY", "advance")
    TRACKING_CODE_MAX_PROBES = int(os.environ.get("TRACKING_CODE_MAX_PROBES", "60"))

    # Off by default: any valid status may follow any other.
    ORDER_STATUS_ENFORCE_SEQUENCE = _env_bool("ORDER_STATUS_ENFORCE_SEQUENCE", False)

    SESSION_ABSOLUTE_TIMEOUT_HOURS = int(os.environ.get("SESSION_ABSOLUTE_TIMEOUT_HOURS", "24"))
    SESSION_IDLE_TIMEOUT_HOURS = int(os.environ.get("SESSION_IDLE_TIMEOUT_HOURS", "2"))

    # bcrypt cost factor; tests lower it to keep hashing fast.
    BCRYPT_ROUNDS = int(os.environ.get("BCRYPT_ROUNDS", "12"))
