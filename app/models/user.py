"""
app/models/user.py

Purpose: User document model

- Credentials, role and ban flag
- Optional CCCD identity fields
- Embedded favorites, search history, preferences, last location
- Discord link and notification settings
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional

from bson import ObjectId

from app.models.serialization import serialize_doc

MAX_SEARCH_HISTORY = 20

GENDERS = ("Nam", "Nữ", "Khác")
TEMPERATURE_UNITS = ("celsius", "fahrenheit")

SENSITIVE_FIELDS = (
    "password",
    "verificationToken",
    "verificationExpires",
    "passwordResetToken",
    "passwordResetExpires",
)

# Projection used whenever a user is loaded for request handling
PUBLIC_PROJECTION = {field: 0 for field in SENSITIVE_FIELDS}


def default_preferences() -> Dict[str, Any]:
    return {"temperatureUnit": "celsius", "language": "en"}


def default_discord() -> Dict[str, Any]:
    return {
        "userId": None,
        "channelId": None,
        "subscribed": False,
        "notificationCity": None,
        "notificationTime": None,
        "lastNotification": None,
    }


def build_user_document(
    username: str,
    email: str,
    password_hash: str,
    **profile: Any
) -> Dict[str, Any]:
    """
    Builds a new user document with schema defaults applied.

    Args:
        username: Unique display handle (trimmed)
        email: Login email (lower-cased)
        password_hash: bcrypt hash of the password
        profile: Optional cccd, fullName, dateOfBirth, gender, address, phoneNumber

    Returns:
        Document ready for insert_one
    """
    now = datetime.now(timezone.utc)
    doc = {
        "username": username.strip(),
        "email": email.strip().lower(),
        "password": password_hash,
        "gender": None,
        "isVerified": False,
        "banned": False,
        "role": "user",
        "favoriteCities": [],
        "searchHistory": [],
        "preferences": default_preferences(),
        "createdAt": now,
        "updatedAt": now,
    }
    for key in ("cccd", "fullName", "dateOfBirth", "gender", "address", "phoneNumber"):
        value = profile.get(key)
        if value is None or value == "":
            continue
        doc[key] = value.strip() if isinstance(value, str) else value
    return doc


def new_favorite(name: str, country: str, lat: float, lon: float) -> Dict[str, Any]:
    return {
        "_id": ObjectId(),
        "name": name,
        "country": country,
        "lat": float(lat),
        "lon": float(lon),
        "addedAt": datetime.now(timezone.utc),
    }


def new_search_entry(city: str, country: str) -> Dict[str, Any]:
    return {
        "_id": ObjectId(),
        "city": city,
        "country": country,
        "searchedAt": datetime.now(timezone.utc),
    }


def public_profile(user: Dict[str, Any]) -> Dict[str, Any]:
    """Basic user info returned by the auth endpoints."""
    return serialize_doc({
        "id": user.get("_id"),
        "username": user.get("username"),
        "email": user.get("email"),
        "fullName": user.get("fullName"),
        "dateOfBirth": user.get("dateOfBirth"),
        "gender": user.get("gender"),
        "preferences": user.get("preferences") or default_preferences(),
        "role": user.get("role", "user"),
        "createdAt": user.get("createdAt"),
    })


def safe_user(user: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """Full user document minus credentials and one-time tokens."""
    if user is None:
        return None
    return serialize_doc(user, exclude=SENSITIVE_FIELDS)
