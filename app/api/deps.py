"""
app/api/deps.py

Purpose: Route dependencies

- Bearer token authentication (get_current_user)
- Admin authorization (require_admin)
"""

from typing import Any, Dict

from fastapi import Depends, Request

from app.core.config import settings
from app.core.exceptions import AuthenticationError, ForbiddenError
from app.core.logging import get_logger
from app.core.security import decode_access_token
from app.db.mongo import get_users_collection
from app.models.serialization import to_object_id
from app.models.user import PUBLIC_PROJECTION
from utils.constants import MSG_ADMIN_ONLY, MSG_NO_TOKEN, MSG_TOKEN_NOT_VALID

logger = get_logger(__name__)


def _extract_token(request: Request) -> str:
    raw = request.headers.get("Authorization") or ""
    return raw.replace("Bearer ", "", 1).strip()


async def get_current_user(request: Request) -> Dict[str, Any]:
    """
    Resolves the authenticated user from the Authorization header.

    Raises:
        AuthenticationError: Missing, malformed, expired token or unknown user
    """
    token = _extract_token(request)
    if not token:
        logger.warning("No Authorization header present on request")
        raise AuthenticationError(MSG_NO_TOKEN)

    try:
        payload = decode_access_token(token)
    except AuthenticationError:
        # Never log the full token
        logger.warning(f"Rejected token with prefix {token[:12]}...")
        raise

    user_id = to_object_id(payload.get("userId"))
    if user_id is None:
        raise AuthenticationError(MSG_TOKEN_NOT_VALID)

    user = await get_users_collection().find_one({"_id": user_id}, PUBLIC_PROJECTION)
    if not user:
        raise AuthenticationError(MSG_TOKEN_NOT_VALID)

    # Picked up by the metrics middleware
    request.state.user = user
    return user


def is_admin_user(user: Dict[str, Any]) -> bool:
    """Role-based check first, ADMIN_EMAILS as a fallback."""
    if user.get("role") == "admin":
        return True
    email = (user.get("email") or "").lower()
    return bool(email) and email in settings.admin_emails


async def require_admin(user: Dict[str, Any] = Depends(get_current_user)) -> Dict[str, Any]:
    if not is_admin_user(user):
        raise ForbiddenError(MSG_ADMIN_ONLY)
    return user
