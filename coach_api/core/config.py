"""
Environment-backed settings.

Every value is read on call so tests can patch `os.environ` freely.
"""

from __future__ import annotations

import os

DEFAULT_PORT = 3000
DEFAULT_ADMIN_EMAIL = "mils@admin.com"
DEFAULT_ADMIN_PASSWORD = "mils123"


def _env_str(name: str, default: str = "") -> str:
    return os.environ.get(name, "").strip() or default


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def supabase_url() -> str:
    return _env_str("SUPABASE_URL").rstrip("/")


def supabase_service_key() -> str:
    # The service_role key bypasses RLS; the plain key is accepted for older deployments.
    return _env_str("SUPABASE_SERVICE_KEY") or _env_str("SUPABASE_KEY")


def database_url() -> str:
    return _env_str("DATABASE_URL")


def store_backend() -> str:
    return _env_str("COACH_STORE_BACKEND", "auto").lower()


def store_timeout_s() -> float:
    return _env_float("STORE_TIMEOUT_S", 30.0)


def login_timeout_s() -> float:
    return _env_float("LOGIN_TIMEOUT_S", 10.0)


def port() -> int:
    return _env_int("PORT", DEFAULT_PORT)


def site_url() -> str:
    return _env_str("SITE_URL", f"http://localhost:{port()}").rstrip("/")


def uploads_dir() -> str:
    return _env_str("UPLOADS_DIR", "uploads")


def admin_email() -> str:
    return _env_str("ADMIN_EMAIL", DEFAULT_ADMIN_EMAIL).lower()


def admin_password() -> str:
    return _env_str("ADMIN_PASSWORD", DEFAULT_ADMIN_PASSWORD)


def cors_allow_origins() -> list[str]:
    raw = _env_str("CORS_ALLOW_ORIGINS", "*")
    return [origin.strip() for origin in raw.split(",") if origin.strip()]


def log_level() -> str:
    return _env_str("LOG_LEVEL", "INFO").upper()
