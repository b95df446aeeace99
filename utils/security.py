"""
security helpers:
- Argon2 password hashing via argon2-cffi
- opaque refresh token generation and digesting
- JTI generation for token identifiers
"""
from __future__ import annotations

import hashlib
import secrets
import uuid
from datetime import datetime, timezone

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError

ph = PasswordHasher()

# Compared against when the username does not exist so both failure paths cost one verify
_dummy_hash = ph.hash(secrets.token_urlsafe(16))


def hash_password(password: str) -> str:
    """Hash a plaintext password using Argon2
    """
    return ph.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    """ Verify a plaintext password using argon2
    """
    try:
        return ph.verify(password_hash, password)
    except (VerificationError, InvalidHashError):
        return False


def burn_password_check(password: str) -> None:
    """Run a verification that always fails, for unknown usernames."""
    verify_password(password, _dummy_hash)


def generate_jti() -> str:
    """Generate a unique JTI (JWT ID).
    """
    return str(uuid.uuid4())


def generate_refresh_token() -> str:
    """Opaque, URL-safe refresh token value (384 bits)."""
    return secrets.token_urlsafe(48)


def hash_token(token: str) -> str:
    """SHA-256 hex digest used as the storage key for a refresh token."""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def utcnow() -> datetime:
    """Naive UTC now; refresh token timestamps are stored naive in UTC."""
    return datetime.now(timezone.utc).replace(tzinfo=None)
