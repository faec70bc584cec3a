"""
app/core/security.py

Purpose: Credential and token helpers

- bcrypt password hashing and verification
- JWT access token creation and verification
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict

import bcrypt
import jwt
from jwt import ExpiredSignatureError, InvalidTokenError

from app.core.config import settings
from app.core.exceptions import AuthenticationError
from app.core.logging import get_logger

logger = get_logger(__name__)

JWT_ALGORITHM = "HS256"


def hash_password(raw_password: str) -> str:
    """Hashes a password with a fresh bcrypt salt."""
    salt = bcrypt.gensalt(rounds=settings.BCRYPT_ROUNDS)
    return bcrypt.hashpw(raw_password.encode("utf-8"), salt).decode("utf-8")


def verify_password(raw_password: str, hashed: str) -> bool:
    """Checks a candidate password against a stored bcrypt hash."""
    if not raw_password or not hashed:
        return False
    try:
        return bcrypt.checkpw(raw_password.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        # Stored value is not a bcrypt hash
        return False


def create_access_token(user_id: Any) -> str:
    """
    Signs a token carrying the user id.

    Args:
        user_id: User ObjectId (or its string form)

    Returns:
        Encoded JWT valid for JWT_EXPIRES_DAYS
    """
    if not settings.JWT_SECRET:
        logger.warning("JWT_SECRET not set, using fallback key. This is not secure for production!")

    now = datetime.now(timezone.utc)
    payload = {
        "userId": str(user_id),
        "iat": now,
        "exp": now + timedelta(days=settings.JWT_EXPIRES_DAYS),
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=JWT_ALGORITHM)


def decode_access_token(token: str) -> Dict[str, Any]:
    """
    Verifies a token and returns its payload.

    Raises:
        AuthenticationError: If the token is expired or malformed
    """
    try:
        return jwt.decode(token, settings.jwt_secret, algorithms=[JWT_ALGORITHM])
    except ExpiredSignatureError:
        raise AuthenticationError("Token expired")
    except InvalidTokenError:
        raise AuthenticationError("Invalid token")
