"""Password hashing helpers."""
from __future__ import annotations

import hmac

from passlib.context import CryptContext

_pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


def hash_password(password: str) -> str:
    if not password:
        raise ValueError("Password must not be empty")
    return _pwd_context.hash(password)


def is_password_hash(value: object) -> bool:
    if not isinstance(value, str):
        return False
    return _pwd_context.identify(value) is not None


def verify_password(password: str, stored: object) -> bool:
    """Return ``True`` if ``password`` matches the stored value.

    Records written before hashing was introduced hold the plaintext password;
    those are compared in constant time instead of through the hash verifier.
    """

    if not isinstance(password, str) or not isinstance(stored, str) or not stored:
        return False

    if not is_password_hash(stored):
        return hmac.compare_digest(password.encode("utf-8"), stored.encode("utf-8"))

    try:
        return _pwd_context.verify(password, stored)
    except ValueError:
        return False


__all__ = ["hash_password", "is_password_hash", "verify_password"]
