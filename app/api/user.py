"""
app/api/user.py

Purpose: Per-user data endpoints (all require authentication)

- Favorite cities
- Search history
- Preferences and last location
"""

from fastapi import APIRouter, Depends
from typing import Any, Dict

from app.api.deps import get_current_user
from app.models.serialization import serialize_doc
from app.schemas.user import FavoriteCityRequest, LastLocationRequest, PreferencesRequest, SearchHistoryRequest
from app.services import user_service
from utils.constants import (
    MSG_FAVORITE_ADDED,
    MSG_FAVORITE_REMOVED,
    MSG_HISTORY_ADDED,
    MSG_HISTORY_CLEARED,
    MSG_LAST_LOCATION_UPDATED,
    MSG_PREFERENCES_UPDATED,
)

router = APIRouter()


@router.post("/favorites")
async def add_favorite(body: FavoriteCityRequest, user: Dict[str, Any] = Depends(get_current_user)):
    favorites = await user_service.add_favorite(user, body.name, body.country, body.lat, body.lon)
    return {"message": MSG_FAVORITE_ADDED, "favorites": favorites}


@router.delete("/favorites/{city_id}")
async def remove_favorite(city_id: str, user: Dict[str, Any] = Depends(get_current_user)):
    favorites = await user_service.remove_favorite(user, city_id)
    return {"message": MSG_FAVORITE_REMOVED, "favorites": favorites}


@router.get("/favorites")
async def get_favorites(user: Dict[str, Any] = Depends(get_current_user)):
    return {"favorites": user_service.get_favorites(user)}


@router.post("/search-history")
async def add_search_history(body: SearchHistoryRequest, user: Dict[str, Any] = Depends(get_current_user)):
    history = await user_service.add_search_to_history(user, body.city, body.country)
    return {"message": MSG_HISTORY_ADDED, "searchHistory": history}


@router.get("/search-history")
async def get_search_history(user: Dict[str, Any] = Depends(get_current_user)):
    return {"searchHistory": user_service.get_search_history(user)}


@router.delete("/search-history")
async def clear_search_history(user: Dict[str, Any] = Depends(get_current_user)):
    await user_service.clear_search_history(user)
    return {"message": MSG_HISTORY_CLEARED}


@router.put("/preferences")
async def update_preferences(body: PreferencesRequest, user: Dict[str, Any] = Depends(get_current_user)):
    preferences = await user_service.update_preferences(user, body.temperatureUnit, body.language)
    return {"message": MSG_PREFERENCES_UPDATED, "preferences": preferences}


@router.put("/last-location")
async def update_last_location(body: LastLocationRequest, user: Dict[str, Any] = Depends(get_current_user)):
    location = await user_service.update_last_location(user, body.lat, body.lon, body.city, body.country)
    return {"message": MSG_LAST_LOCATION_UPDATED, "lastLocation": serialize_doc(location)}
