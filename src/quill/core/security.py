"""Password hashing and access token helpers."""
from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import Any

import bcrypt
from jose import JWTError, jwt

from quill.core.settings import settings


def hash_password(password: str) -> str:
    """Return a bcrypt hash of ``password``."""
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, hashed: str) -> bool:
    """Return True when ``password`` matches the stored bcrypt hash."""
    try:
        return bcrypt.checkpw(password.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        return False


def create_access_token(
    subject: int | str,
    extra_claims: dict[str, Any] | None = None,
    expires_minutes: int | None = None,
) -> str:
    """Create a JWT access token for a user.

    Args:
        subject: User id stored in the ``sub`` claim
        extra_claims: Additional claims to embed in the token
        expires_minutes: Override of the configured token lifetime

    Returns:
        Encoded JWT token string
    """
    minutes = expires_minutes if expires_minutes is not None else settings.access_token_expire_minutes
    to_encode: dict[str, Any] = {
        "sub": str(subject),
        "exp": datetime.now(UTC) + timedelta(minutes=minutes),
    }
    if extra_claims:
        to_encode.update(extra_claims)
    return jwt.encode(to_encode, settings.secret_key, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> int | None:
    """Return the user id carried by ``token`` or None if it is invalid."""
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError:
        return None
    subject = payload.get("sub")
    if subject is None or not str(subject).isdigit():
        return None
    return int(subject)


def bearer(token: str) -> str:
    """Format a token the way the API hands it to clients."""
    return f"Bearer {token}"
