"""
Password helpers.

New passwords are stored as bcrypt hashes. Rows created before hashing was
introduced still hold the plaintext value; those are compared in constant time.
"""

from __future__ import annotations

import hmac
from functools import lru_cache
from typing import Any

import bcrypt

_BCRYPT_PREFIXES = ("$2a$", "$2b$", "$2y$")

# bcrypt only reads the first 72 bytes; newer releases reject longer input.
MAX_PASSWORD_BYTES = 72


class PasswordError(ValueError):
    pass


def is_bcrypt_hash(value: str) -> bool:
    return (value or "").startswith(_BCRYPT_PREFIXES)


def check_password_length(plain_password: str) -> str:
    if len((plain_password or "").encode("utf-8")) > MAX_PASSWORD_BYTES:
        raise PasswordError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes.")
    return plain_password


def hash_password(plain_password: str) -> str:
    password = (plain_password or "").encode("utf-8")
    if not password:
        raise PasswordError("Password is empty.")
    check_password_length(plain_password)
    return bcrypt.hashpw(password, bcrypt.gensalt()).decode("utf-8")


def verify_password(plain_password: str, stored: str) -> bool:
    password = (plain_password or "").encode("utf-8")
    stored = stored or ""
    if not password or not stored:
        return False
    if is_bcrypt_hash(stored):
        try:
            return bcrypt.checkpw(password, stored.encode("utf-8"))
        except ValueError:
            return False
    return hmac.compare_digest(password, stored.encode("utf-8"))


@lru_cache(maxsize=1)
def _dummy_hash() -> str:
    return hash_password("not-a-real-password")


def dummy_verify(plain_password: str) -> bool:
    """
    Spend one bcrypt check when there is no user, so an unknown email takes
    as long as a wrong password.
    """
    password = (plain_password or "").encode("utf-8")[:MAX_PASSWORD_BYTES] or b"x"
    bcrypt.checkpw(password, _dummy_hash().encode("utf-8"))
    return False


def public_user(row: dict[str, Any]) -> dict[str, Any]:
    """A user row without its password column."""
    return {k: v for k, v in row.items() if k != "senha"}
