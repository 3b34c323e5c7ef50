"""Token, record id and password helpers for the in-process backend."""

from __future__ import annotations

import secrets
import string
import time

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError

TOKEN_BYTES = 24
RECORD_ID_LENGTH = 15
_ID_ALPHABET = string.digits + string.ascii_lowercase
_STAMP_LENGTH = 11

_hasher = PasswordHasher()


def generate_token() -> str:
    """Generate a URL-safe session token."""
    return secrets.token_urlsafe(TOKEN_BYTES)


def _to_base36(value: int, width: int) -> str:
    digits = []
    while value:
        value, remainder = divmod(value, 36)
        digits.append(_ID_ALPHABET[remainder])
    return "".join(reversed(digits)).rjust(width, "0")


class RecordIdGenerator:
    """Produce 15 character ``[0-9a-z]`` ids whose string order follows creation order."""

    def __init__(self) -> None:
        self._last_stamp = 0

    def __call__(self) -> str:
        stamp = max(time.time_ns() // 1000, self._last_stamp + 1)
        self._last_stamp = stamp
        suffix_length = RECORD_ID_LENGTH - _STAMP_LENGTH
        suffix = "".join(secrets.choice(_ID_ALPHABET) for _ in range(suffix_length))
        return _to_base36(stamp, _STAMP_LENGTH) + suffix


def hash_password(password: str) -> str:
    """Hash a password with Argon2id; salt and parameters are embedded in the result."""
    return _hasher.hash(password)


def verify_password(raw_password: str, password_hash: str) -> bool:
    """Check a password against a stored Argon2 hash."""
    try:
        return _hasher.verify(password_hash, raw_password)
    except (VerificationError, InvalidHashError):
        return False
