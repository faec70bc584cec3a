"""
app/services/weather_service.py

Purpose: Weather data access and response shaping

- Current weather / forecast by coordinates or city name
- City search through the geocoding API
- Formatting of upstream payloads into the API response shape
- Daily grouping of the 3-hourly forecast
"""

from collections import OrderedDict
from typing import Any, Dict, List

from app.core.config import settings
from app.core.exceptions import FeatureDisabledError, ValidationError
from app.core.logging import get_logger
from app.services.weather_api import get_weather_api
from utils.constants import MSG_HISTORICAL_DISABLED
from utils.time_utils import from_unix, utcnow

logger = get_logger(__name__)

HOURLY_ENTRIES = 8
SEARCH_LIMIT = 10


# ============================================================
# UPSTREAM CALLS
# ============================================================

async def get_weather_data(lat: float, lon: float, units: str = "metric") -> Dict[str, Any]:
    return await get_weather_api().get("/weather", {"lat": lat, "lon": lon, "units": units})


async def get_forecast_data(lat: float, lon: float, units: str = "metric") -> Dict[str, Any]:
    return await get_weather_api().get("/forecast", {"lat": lat, "lon": lon, "units": units})


async def get_weather_by_city(city: str, units: str = "metric") -> Dict[str, Any]:
    return await get_weather_api().get("/weather", {"q": city, "units": units})


async def get_forecast_by_city(city: str, units: str = "metric") -> Dict[str, Any]:
    return await get_weather_api().get("/forecast", {"q": city, "units": units})


async def get_historical_data(lat: float, lon: float, dt: int):
    """
    Historical lookups need the One Call timemachine product, which the
    configured key does not have.
    """
    logger.warning("get_historical_data was called but historical support is disabled.")
    raise FeatureDisabledError(MSG_HISTORICAL_DISABLED)


async def search_cities(query: str) -> List[Dict[str, Any]]:
    """
    Searches cities by name using the direct geocoding API.

    Args:
        query: City name (at least 2 characters after trimming)

    Returns:
        Raw geocoding results (may be empty)
    """
    if not query or not isinstance(query, str) or not query.strip():
        raise ValidationError("Invalid search query")

    trimmed = query.strip()
    if len(trimmed) < 2:
        return []

    results = await get_weather_api().get(
        settings.WEATHER_GEO_URL,
        {"q": trimmed, "limit": SEARCH_LIMIT}
    )
    count = len(results) if isinstance(results, list) else 0
    logger.info(f'Search for "{trimmed}" returned {count} results')
    return results or []


# ============================================================
# FORMATTING
# ============================================================

def format_location(data: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "name": data.get("name"),
        "country": data.get("sys", {}).get("country"),
        "lat": data.get("coord", {}).get("lat"),
        "lon": data.get("coord", {}).get("lon"),
    }


def format_forecast_location(data: Dict[str, Any]) -> Dict[str, Any]:
    city = data.get("city", {})
    return {
        "name": city.get("name"),
        "country": city.get("country"),
        "lat": city.get("coord", {}).get("lat"),
        "lon": city.get("coord", {}).get("lon"),
    }


def format_current(data: Dict[str, Any]) -> Dict[str, Any]:
    """Shapes an upstream /weather payload into the `current` block."""
    main = data["main"]
    weather = data["weather"][0]
    wind = data.get("wind", {})
    sys = data.get("sys", {})
    return {
        "temperature": round(main["temp"]),
        "feelsLike": round(main["feels_like"]),
        "humidity": main.get("humidity"),
        "pressure": main.get("pressure"),
        "visibility": data.get("visibility", 0) / 1000,
        "uvIndex": data.get("uvi") or 0,
        "wind": {
            "speed": wind.get("speed"),
            "direction": wind.get("deg"),
        },
        "weather": {
            "main": weather.get("main"),
            "description": weather.get("description"),
            "icon": weather.get("icon"),
        },
        "sunrise": from_unix(sys["sunrise"]) if sys.get("sunrise") else None,
        "sunset": from_unix(sys["sunset"]) if sys.get("sunset") else None,
    }


def format_hourly(forecast: Dict[str, Any], limit: int = HOURLY_ENTRIES) -> List[Dict[str, Any]]:
    """Next 24 hours (8 x 3h entries)."""
    return [
        {
            "time": from_unix(item["dt"]),
            "temperature": round(item["main"]["temp"]),
            "weather": item["weather"][0],
            "humidity": item["main"].get("humidity"),
            "windSpeed": item.get("wind", {}).get("speed"),
        }
        for item in forecast.get("list", [])[:limit]
    ]


def group_daily(forecast: Dict[str, Any]) -> List[Dict[str, Any]]:
    """
    Groups 3-hourly entries by calendar date.

    Each day keeps the first entry's weather, min/max temperature and the
    mean humidity and wind speed, all rounded.
    """
    days: "OrderedDict[Any, Dict[str, Any]]" = OrderedDict()

    for item in forecast.get("list", []):
        moment = from_unix(item["dt"])
        key = moment.date()
        if key not in days:
            days[key] = {
                "date": moment,
                "temps": [],
                "weather": item["weather"][0],
                "humidity": [],
                "wind": [],
            }
        day = days[key]
        day["temps"].append(item["main"]["temp"])
        day["humidity"].append(item["main"].get("humidity", 0))
        day["wind"].append(item.get("wind", {}).get("speed", 0))

    return [
        {
            "date": day["date"],
            "temperature": {
                "min": round(min(day["temps"])),
                "max": round(max(day["temps"])),
            },
            "weather": day["weather"],
            "humidity": round(sum(day["humidity"]) / len(day["humidity"])),
            "windSpeed": round(sum(day["wind"]) / len(day["wind"])),
        }
        for day in days.values()
    ]


def format_current_response(data: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "location": format_location(data),
        "current": format_current(data),
        "timestamp": utcnow(),
    }


def format_forecast_response(forecast: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "location": format_forecast_location(forecast),
        "daily": group_daily(forecast),
        "hourly": format_hourly(forecast),
        "timestamp": utcnow(),
    }


def format_geolocation_response(current: Dict[str, Any], forecast: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "location": format_location(current),
        "current": format_current(current),
        "hourly": format_hourly(forecast),
        "daily": group_daily(forecast),
        "timestamp": utcnow(),
    }


def format_search_results(results: Any) -> List[Dict[str, Any]]:
    if not isinstance(results, list):
        return []
    formatted = []
    for item in results:
        coord = item.get("coord") or {}
        formatted.append({
            "name": item.get("name"),
            "country": item.get("country") or (item.get("sys") or {}).get("country"),
            "lat": item.get("lat", coord.get("lat")),
            "lon": item.get("lon", coord.get("lon")),
            "state": item.get("state"),
        })
    return formatted


def summarize_weather(data: Dict[str, Any]) -> Dict[str, Any]:
    """Compact view used by the Discord bot."""
    weather = data["weather"][0]
    return {
        "city": data.get("name"),
        "country": data.get("sys", {}).get("country"),
        "temperature": round(data["main"]["temp"]),
        "feelsLike": round(data["main"]["feels_like"]),
        "humidity": data["main"].get("humidity"),
        "windSpeed": data.get("wind", {}).get("speed"),
        "description": weather.get("description"),
        "icon": weather.get("icon"),
        "main": weather.get("main"),
    }
