"""
app/services/auth_service.py

Purpose: Registration and login

- Email/password registration (optionally carrying CCCD identity data)
- Email/password and CCCD logins returning JWT access tokens
- Banned accounts are refused and reported to the admin webhook
"""

import asyncio
import time
from datetime import datetime
from typing import Any, Dict, Optional, Tuple

from pymongo.errors import DuplicateKeyError

from app.core.exceptions import ConflictError, ForbiddenError, ResourceNotFoundError, ValidationError
from app.core.logging import get_logger
from app.core.security import create_access_token, hash_password, verify_password
from app.models.user import build_user_document
from app.services import user_service
from app.services.discord_webhook import send_banned_user_login_notification
from utils.constants import (
    MSG_ACCOUNT_BANNED,
    MSG_CCCD_NOT_REGISTERED,
    MSG_INVALID_CREDENTIALS,
    MSG_USER_EXISTS,
)

logger = get_logger(__name__)

# Keep a reference so fire-and-forget tasks are not garbage collected
_background_tasks: set = set()


def _fire_and_forget(coro):
    task = asyncio.create_task(coro)
    _background_tasks.add(task)
    task.add_done_callback(_background_tasks.discard)


def parse_birth_date(value: Any) -> Optional[datetime]:
    """Accepts ISO dates and DD/MM/YYYY as produced by the CCCD OCR step."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    text = str(value).strip()
    for fmt in ("%Y-%m-%d", "%d/%m/%Y", "%Y-%m-%dT%H:%M:%S.%fZ", "%Y-%m-%dT%H:%M:%S"):
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue
    raise ValidationError("Invalid date of birth", details=[{
        "type": "field",
        "msg": "Invalid date of birth",
        "path": "dateOfBirth",
        "location": "body",
    }])


async def register_user(
    email: str,
    password: str,
    username: Optional[str] = None,
    cccd: Optional[str] = None,
    full_name: Optional[str] = None,
    date_of_birth: Any = None,
    gender: Optional[str] = None,
    address: Optional[str] = None,
) -> Tuple[Dict[str, Any], str]:
    """
    Creates an account and issues a token.

    Returns:
        (user document, access token)

    Raises:
        ConflictError: Email or username already taken
    """
    if not username and cccd:
        username = f"cccd_{int(time.time() * 1000)}"

    existing = await user_service.find_existing_user(email, username)
    if existing:
        raise ConflictError(MSG_USER_EXISTS)

    document = build_user_document(
        username=username,
        email=email,
        password_hash=hash_password(password),
        cccd=cccd,
        fullName=full_name,
        dateOfBirth=parse_birth_date(date_of_birth),
        gender=gender,
        address=address,
    )

    try:
        user = await user_service.create_user(document)
    except DuplicateKeyError:
        # Lost a race with a concurrent registration (or duplicate cccd)
        raise ConflictError(MSG_USER_EXISTS)

    return user, create_access_token(user["_id"])


async def login(email: str, password: str) -> Tuple[Dict[str, Any], str]:
    """
    Verifies credentials.

    Raises:
        ValidationError: Unknown email or wrong password (400)
        ForbiddenError: Account is banned
    """
    user = await user_service.get_user_by_email(email)
    if not user or not verify_password(password, user.get("password", "")):
        raise ValidationError(MSG_INVALID_CREDENTIALS)

    if user.get("banned"):
        logger.warning("Banned user attempted to log in", extra={"user_id": str(user["_id"])})
        _fire_and_forget(send_banned_user_login_notification(user))
        raise ForbiddenError(MSG_ACCOUNT_BANNED)

    return user, create_access_token(user["_id"])


async def login_with_cccd(so_cccd: str) -> Tuple[Dict[str, Any], str]:
    user = await user_service.get_user_by_cccd(so_cccd.strip())
    if not user:
        raise ResourceNotFoundError(MSG_CCCD_NOT_REGISTERED)

    if user.get("banned"):
        _fire_and_forget(send_banned_user_login_notification(user))
        raise ForbiddenError(MSG_ACCOUNT_BANNED)

    return user, create_access_token(user["_id"])
