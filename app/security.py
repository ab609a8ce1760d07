"""
Password hashing and access-token helpers.

Passwords are hashed with bcrypt; access tokens are HS256 JWTs signed with
``settings.jwt_secret_key``.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Tuple

import bcrypt
import jwt

from app.config import settings
from app.exceptions import UnauthorizedError

logger = logging.getLogger("tealogistics.security")

# bcrypt only looks at the first 72 bytes of a password
_BCRYPT_MAX_BYTES = 72


def _password_bytes(password: str) -> bytes:
    return password.encode("utf-8")[:_BCRYPT_MAX_BYTES]


def hash_password(password: str) -> str:
    """Hash a plain-text password with bcrypt."""
    salt = bcrypt.gensalt(rounds=settings.bcrypt_rounds)
    return bcrypt.hashpw(_password_bytes(password), salt).decode("utf-8")


def verify_password(password: str, hashed: str) -> bool:
    """Check a plain-text password against a stored bcrypt hash."""
    if not password or not hashed:
        return False
    try:
        return bcrypt.checkpw(_password_bytes(password), hashed.encode("utf-8"))
    except ValueError:
        logger.warning("Stored password hash is malformed")
        return False


def create_access_token(user) -> Tuple[str, int]:
    """
    Create a signed access token for a user.

    Returns:
        (token, expires_in) where expires_in is the lifetime in seconds
    """
    now = datetime.now(timezone.utc)
    expires_delta = timedelta(minutes=settings.access_token_expire_minutes)
    role = getattr(user.role, "value", user.role)
    payload = {
        "sub": str(user.id),
        "email": user.email,
        "role": role,
        "iat": now,
        "exp": now + expires_delta,
    }
    token = jwt.encode(
        payload, settings.jwt_secret_key, algorithm=settings.jwt_algorithm
    )
    return token, int(expires_delta.total_seconds())


def decode_access_token(token: str) -> Dict[str, Any]:
    """Decode and verify an access token, raising UnauthorizedError on failure."""
    try:
        payload = jwt.decode(
            token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm]
        )
    except jwt.ExpiredSignatureError:
        raise UnauthorizedError("Token has expired", code="TOKEN_EXPIRED")
    except jwt.InvalidTokenError:
        raise UnauthorizedError("Invalid token", code="INVALID_TOKEN")

    if not str(payload.get("sub", "")).isdigit():
        raise UnauthorizedError("Invalid token", code="INVALID_TOKEN")
    return payload
