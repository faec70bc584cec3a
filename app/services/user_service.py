"""
app/services/user_service.py

Purpose: User data management

- Create and look up user records
- Favorite cities (unique per name + country)
- Search history (newest first, capped at 20)
- Preferences and last known location
"""

from typing import Any, Dict, List, Optional

from pymongo import ReturnDocument

from app.core.exceptions import ConflictError, ResourceNotFoundError
from app.core.logging import get_logger, LogContext
from app.db.mongo import get_users_collection
from app.models.serialization import serialize_doc, to_object_id
from app.models.user import (
    MAX_SEARCH_HISTORY,
    PUBLIC_PROJECTION,
    default_preferences,
    new_favorite,
    new_search_entry,
)
from utils.constants import MSG_FAVORITE_EXISTS, MSG_USER_NOT_FOUND
from utils.time_utils import utcnow

logger = get_logger(__name__)


async def create_user(document: Dict[str, Any]) -> Dict[str, Any]:
    """
    Inserts a prepared user document.

    Args:
        document: Output of build_user_document

    Returns:
        The stored document including _id
    """
    users = get_users_collection()
    result = await users.insert_one(document)
    document["_id"] = result.inserted_id
    logger.info("New user created", extra={"user_id": str(result.inserted_id)})
    return document


async def get_user_by_id(user_id: Any, include_password: bool = False) -> Optional[Dict[str, Any]]:
    oid = to_object_id(user_id)
    if oid is None:
        return None
    projection = None if include_password else PUBLIC_PROJECTION
    return await get_users_collection().find_one({"_id": oid}, projection)


async def get_user_by_email(email: str) -> Optional[Dict[str, Any]]:
    return await get_users_collection().find_one({"email": email.strip().lower()})


async def get_user_by_cccd(cccd: str) -> Optional[Dict[str, Any]]:
    return await get_users_collection().find_one({"cccd": cccd})


async def find_existing_user(email: str, username: Optional[str]) -> Optional[Dict[str, Any]]:
    """Finds a user that already holds this email or username."""
    clauses: List[Dict[str, Any]] = [{"email": email.strip().lower()}]
    if username:
        clauses.append({"username": username.strip()})
    return await get_users_collection().find_one({"$or": clauses})


async def update_and_return(user_id: Any, update: Dict[str, Any]) -> Dict[str, Any]:
    update.setdefault("$set", {})["updatedAt"] = utcnow()
    user = await get_users_collection().find_one_and_update(
        {"_id": user_id},
        update,
        projection=PUBLIC_PROJECTION,
        return_document=ReturnDocument.AFTER,
    )
    if user is None:
        raise ResourceNotFoundError(MSG_USER_NOT_FOUND)
    return user


# ============================================================
# FAVORITES
# ============================================================

async def add_favorite(user: Dict[str, Any], name: str, country: str, lat: float, lon: float) -> List[Dict[str, Any]]:
    """
    Adds a city to the user's favorites.

    Raises:
        ConflictError: If a favorite with the same name and country exists
    """
    with LogContext(user_id=str(user["_id"]), action="add_favorite", city=name):
        for city in user.get("favoriteCities") or []:
            if city.get("name") == name and city.get("country") == country:
                raise ConflictError(MSG_FAVORITE_EXISTS)

        # The filter guards against a concurrent insert of the same pair
        users = get_users_collection()
        updated = await users.find_one_and_update(
            {
                "_id": user["_id"],
                "favoriteCities": {"$not": {"$elemMatch": {"name": name, "country": country}}},
            },
            {
                "$push": {"favoriteCities": new_favorite(name, country, lat, lon)},
                "$set": {"updatedAt": utcnow()},
            },
            projection=PUBLIC_PROJECTION,
            return_document=ReturnDocument.AFTER,
        )
        if updated is None:
            raise ConflictError(MSG_FAVORITE_EXISTS)

        logger.info("Favorite city added")
        return serialize_doc(updated.get("favoriteCities", []))


async def remove_favorite(user: Dict[str, Any], city_id: str) -> List[Dict[str, Any]]:
    """Removes a favorite by its id. Unknown ids leave the list untouched."""
    oid = to_object_id(city_id)
    if oid is None:
        return serialize_doc(user.get("favoriteCities") or [])

    updated = await update_and_return(
        user["_id"],
        {"$pull": {"favoriteCities": {"_id": oid}}}
    )
    logger.info("Favorite city removed", extra={"user_id": str(user["_id"])})
    return serialize_doc(updated.get("favoriteCities", []))


def get_favorites(user: Dict[str, Any]) -> List[Dict[str, Any]]:
    return serialize_doc(user.get("favoriteCities") or [])


# ============================================================
# SEARCH HISTORY
# ============================================================

def push_search_entry(history: List[Dict[str, Any]], city: str, country: str) -> List[Dict[str, Any]]:
    """
    Moves (city, country) to the front of the history and caps its length.
    """
    kept = [
        entry for entry in history
        if not (entry.get("city") == city and entry.get("country") == country)
    ]
    kept.insert(0, new_search_entry(city, country))
    return kept[:MAX_SEARCH_HISTORY]


async def add_search_to_history(user: Dict[str, Any], city: str, country: str) -> List[Dict[str, Any]]:
    history = push_search_entry(list(user.get("searchHistory") or []), city, country)
    updated = await update_and_return(user["_id"], {"$set": {"searchHistory": history}})
    return serialize_doc(updated.get("searchHistory", []))


def get_search_history(user: Dict[str, Any]) -> List[Dict[str, Any]]:
    return serialize_doc(user.get("searchHistory") or [])


async def clear_search_history(user: Dict[str, Any]):
    await update_and_return(user["_id"], {"$set": {"searchHistory": []}})
    logger.info("Search history cleared", extra={"user_id": str(user["_id"])})


# ============================================================
# PREFERENCES & LOCATION
# ============================================================

async def update_preferences(
    user: Dict[str, Any],
    temperature_unit: Optional[str] = None,
    language: Optional[str] = None
) -> Dict[str, Any]:
    preferences = {**default_preferences(), **(user.get("preferences") or {})}
    if temperature_unit:
        preferences["temperatureUnit"] = temperature_unit
    if language:
        preferences["language"] = language

    updated = await update_and_return(user["_id"], {"$set": {"preferences": preferences}})
    return updated.get("preferences", preferences)


async def update_last_location(user: Dict[str, Any], lat: float, lon: float, city: str, country: str) -> Dict[str, Any]:
    location = {
        "lat": float(lat),
        "lon": float(lon),
        "city": city,
        "country": country,
        "updatedAt": utcnow(),
    }
    updated = await update_and_return(user["_id"], {"$set": {"lastLocation": location}})
    return updated.get("lastLocation", location)
