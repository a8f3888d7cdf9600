# session_authority/core/security.py
from __future__ import annotations

import secrets
from datetime import datetime, timezone
from hashlib import sha256

from passlib.context import CryptContext

pwd_context = CryptContext(schemes=["argon2"], deprecated="auto")


# -------------------------
# Password hashing
# -------------------------
def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    return pwd_context.verify(password, password_hash)


# -------------------------
# Clock helpers
# -------------------------
def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """
    SQLite round-trips tz-aware datetimes as naive. Everything we store is UTC,
    so a naive value is read as UTC.
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


# -------------------------
# Refresh token helpers
# -------------------------
def generate_refresh_token() -> str:
    """
    Generate a cryptographically secure refresh token (512 bits).
    This raw token is ONLY returned to the client once.
    Backend stores ONLY a hash.
    """
    return secrets.token_urlsafe(64)


def hash_refresh_token(token: str) -> str:
    """
    Hash refresh token for DB storage (never store the raw token).
    """
    return sha256(token.encode("utf-8")).hexdigest()
