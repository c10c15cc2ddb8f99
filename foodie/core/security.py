"""
Password Hashing and Access Tokens

bcrypt for password storage, PyJWT (HS256) for bearer tokens.
Tokens carry the user's id, email and role; whether a token is still
accepted is decided by the tokens table (see foodie.api.deps).
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

import bcrypt
import jwt

from foodie.core.config import get_settings

logger = logging.getLogger(__name__)


def hash_password(password: str) -> str:
    """Hash a password using bcrypt."""
    settings = get_settings()
    salt = bcrypt.gensalt(rounds=settings.bcrypt_rounds)
    return bcrypt.hashpw(password.encode(), salt).decode()


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its hash."""
    try:
        return bcrypt.checkpw(plain_password.encode(), hashed_password.encode())
    except ValueError:
        # Malformed stored hash
        return False


def create_access_token(claims: dict[str, Any], expires_in: timedelta) -> tuple[str, datetime]:
    """
    Sign a JWT for the given claims.

    Args:
        claims: Public claims (id, email, role, ...)
        expires_in: Token lifetime

    Returns:
        Tuple of (encoded token, expiry timestamp in UTC)
    """
    settings = get_settings()
    now = datetime.now(timezone.utc)
    expires_at = now + expires_in

    payload = {
        **claims,
        "iat": now,
        "exp": expires_at,
    }
    token = jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)
    return token, expires_at


def decode_access_token(token: str) -> Optional[dict[str, Any]]:
    """Decode and verify a JWT. Returns None when invalid or expired."""
    settings = get_settings()
    try:
        return jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except jwt.ExpiredSignatureError:
        logger.debug("Rejected expired token")
        return None
    except jwt.PyJWTError as e:
        logger.debug(f"Rejected invalid token: {e}")
        return None
