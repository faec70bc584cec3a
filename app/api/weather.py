"""
app/api/weather.py

Purpose: Weather proxy endpoints

- GET /weather/current      (auth) current conditions by coordinates
- GET /weather/forecast     (auth) daily + hourly forecast
- GET /weather/historical   (auth) disabled, always 501 after validation
- GET /weather/search       (public) city search
- GET /weather/geolocation  (public) current + forecast in one call
"""

import asyncio
from fastapi import APIRouter, Depends
from typing import Any, Dict, Optional, Tuple

from app.api.deps import get_current_user
from app.core.exceptions import ValidationError, WeatherApiError, WeatherApiKeyError, WeatherAppError
from app.core.logging import get_logger
from app.services import weather_service
from app.services.request_dedup import weather_dedup
from utils.constants import (
    MSG_API_KEY_MISSING,
    MSG_COORDS_INVALID,
    MSG_COORDS_REQUIRED,
    MSG_HISTORICAL_INVALID,
    MSG_HISTORICAL_REQUIRED,
    MSG_SEARCH_SKIPPED,
    MSG_SEARCH_TOO_SHORT,
)
from utils.validation_utils import sanitize_query, to_float, valid_coordinates

logger = get_logger(__name__)
router = APIRouter()


def _require_coordinates(lat: Optional[str], lon: Optional[str]) -> Tuple[float, float]:
    if not lat or not lon:
        raise ValidationError(MSG_COORDS_REQUIRED)
    coords = valid_coordinates(lat, lon)
    if coords is None:
        raise ValidationError(MSG_COORDS_INVALID)
    return coords


async def _deduplicated(key: str, request_fn):
    result = await weather_dedup.run(key, request_fn)
    if result is None:
        # Skipped as a recent duplicate; the upstream cache answers cheaply
        result = await request_fn()
    return result


@router.get("/current")
async def current(
    lat: Optional[str] = None,
    lon: Optional[str] = None,
    units: str = "metric",
    user: Dict[str, Any] = Depends(get_current_user)
):
    latitude, longitude = _require_coordinates(lat, lon)
    data = await _deduplicated(
        f"current_{latitude}_{longitude}_{units}",
        lambda: weather_service.get_weather_data(latitude, longitude, units)
    )
    return weather_service.format_current_response(data)


@router.get("/forecast")
async def forecast(
    lat: Optional[str] = None,
    lon: Optional[str] = None,
    units: str = "metric",
    user: Dict[str, Any] = Depends(get_current_user)
):
    latitude, longitude = _require_coordinates(lat, lon)
    data = await _deduplicated(
        f"forecast_{latitude}_{longitude}_{units}",
        lambda: weather_service.get_forecast_data(latitude, longitude, units)
    )
    return weather_service.format_forecast_response(data)


@router.get("/historical")
async def historical(
    lat: Optional[str] = None,
    lon: Optional[str] = None,
    dt: Optional[str] = None,
    user: Dict[str, Any] = Depends(get_current_user)
):
    if not lat or not lon or not dt:
        raise ValidationError(MSG_HISTORICAL_REQUIRED)

    coords = valid_coordinates(lat, lon)
    timestamp = to_float(dt)
    if coords is None or timestamp is None:
        raise ValidationError(MSG_HISTORICAL_INVALID)

    await weather_service.get_historical_data(coords[0], coords[1], int(timestamp))


@router.get("/search")
async def search(q: Optional[str] = None):
    if not q or len(q) < 2:
        raise ValidationError(MSG_SEARCH_TOO_SHORT)

    query = sanitize_query(q)
    try:
        results = await weather_dedup.run(
            f"search_{query}",
            lambda: weather_service.search_cities(query)
        )
    except WeatherApiKeyError as e:
        logger.error(f"Search error: {e.message}")
        raise WeatherApiKeyError(MSG_API_KEY_MISSING)
    except ValidationError:
        raise
    except WeatherAppError as e:
        logger.error(f"Search error: {e.message}")
        raise WeatherApiError(e.message or "Failed to search cities", code="SEARCH_FAILED")

    if results is None:
        return {"results": [], "count": 0, "message": MSG_SEARCH_SKIPPED}

    formatted = weather_service.format_search_results(results)
    return {"results": formatted, "count": len(formatted)}


@router.get("/geolocation")
async def geolocation(
    lat: Optional[str] = None,
    lon: Optional[str] = None,
    units: str = "metric"
):
    latitude, longitude = _require_coordinates(lat, lon)
    current_data, forecast_data = await asyncio.gather(
        weather_service.get_weather_data(latitude, longitude, units),
        weather_service.get_forecast_data(latitude, longitude, units),
    )
    return weather_service.format_geolocation_response(current_data, forecast_data)
