"""
Credential utilities.

Provides:
- Password hashing with bcrypt
- Access token creation and verification with PyJWT
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

import bcrypt
import jwt

from core.config import settings
from core.errors import Unauthenticated

logger = logging.getLogger(__name__)

# bcrypt only looks at the first 72 bytes
BCRYPT_MAX_BYTES = 72


def _password_bytes(password: str) -> bytes:
    return password.encode("utf-8")[:BCRYPT_MAX_BYTES]


def hash_password(password: str) -> str:
    """Hash a password with a fresh bcrypt salt."""
    return bcrypt.hashpw(_password_bytes(password), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, hashed: str) -> bool:
    """Check a password against a stored bcrypt hash."""
    try:
        return bcrypt.checkpw(_password_bytes(password), hashed.encode("utf-8"))
    except (ValueError, TypeError):
        logger.warning("Stored password hash is malformed")
        return False


@dataclass(frozen=True)
class TokenPayload:
    """Decoded access token."""

    user_id: int
    email: str
    active_institution_id: Optional[int]
    expires_at: datetime


def create_access_token(
    user_id: int,
    email: str,
    active_institution_id: Optional[int] = None,
    expires_delta: Optional[timedelta] = None,
) -> str:
    """
    Issue a signed access token.

    The active institution is carried for clients only; authorization
    always re-reads it from the database.
    """
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(minutes=settings.access_token_expire_minutes))
    payload = {
        "sub": str(user_id),
        "email": email,
        "active_institution_id": active_institution_id,
        "iat": now,
        "exp": expire,
    }
    return jwt.encode(payload, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> TokenPayload:
    """
    Verify and decode an access token.

    Raises:
        Unauthenticated: token expired, tampered with, or malformed
    """
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm],
            options={"require": ["sub", "exp"]},
        )
    except jwt.ExpiredSignatureError:
        raise Unauthenticated("Authentication token has expired")
    except jwt.InvalidTokenError as e:
        logger.warning(f"Invalid token: {e}")
        raise Unauthenticated("Invalid authentication token")

    try:
        user_id = int(payload["sub"])
    except (TypeError, ValueError):
        raise Unauthenticated("Invalid authentication token")

    return TokenPayload(
        user_id=user_id,
        email=payload.get("email", ""),
        active_institution_id=payload.get("active_institution_id"),
        expires_at=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
    )
