"""
app/services/weather_api.py

Purpose: OpenWeatherMap HTTP client

- Single shared httpx client with timeout and User-Agent
- In-memory response cache (5 min data, 10 min geocoding)
- Latches after an "invalid API key" answer and fails fast afterwards
"""

import json
import time
from typing import Any, Dict, Optional, Tuple

import httpx

from app.core.config import settings
from app.core.exceptions import WeatherApiError, WeatherApiKeyError
from app.core.logging import get_logger

logger = get_logger(__name__)

MAX_CACHE_ENTRIES = 100


def _is_search_path(path: str) -> bool:
    return "geo" in path or "direct" in path


def _is_invalid_key_response(status_code: int, payload: Any) -> bool:
    if status_code == 401:
        return True
    if isinstance(payload, dict):
        if str(payload.get("cod")) == "401":
            return True
        if "invalid api key" in str(payload.get("message", "")).lower():
            return True
    return False


class WeatherApiClient:
    """
    Thin caching wrapper over the OpenWeatherMap REST API.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        cache_seconds: Optional[int] = None,
        search_cache_seconds: Optional[int] = None,
    ):
        self.api_key = api_key if api_key is not None else settings.WEATHER_API_KEY
        self.base_url = base_url or settings.WEATHER_BASE_URL
        self.cache_seconds = cache_seconds if cache_seconds is not None else settings.WEATHER_CACHE_SECONDS
        self.search_cache_seconds = (
            search_cache_seconds if search_cache_seconds is not None else settings.SEARCH_CACHE_SECONDS
        )
        self.invalid_api_key = False
        self._cache: Dict[str, Tuple[float, Any]] = {}
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=settings.WEATHER_TIMEOUT,
            headers={"User-Agent": "WeatherApp/1.0"},
            transport=transport,
        )

    @staticmethod
    def cache_key(path: str, params: Dict[str, Any]) -> str:
        return f"{path}_{json.dumps(params, sort_keys=True, default=str)}"

    def _is_fresh(self, stored_at: float, is_search: bool) -> bool:
        duration = self.search_cache_seconds if is_search else self.cache_seconds
        return time.monotonic() - stored_at < duration

    def _prune_cache(self):
        for key in list(self._cache.keys()):
            stored_at, _ = self._cache[key]
            if not self._is_fresh(stored_at, _is_search_path(key)):
                del self._cache[key]

    def clear_cache(self):
        self._cache.clear()

    async def get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """
        Performs a cached GET against OpenWeatherMap.

        Args:
            path: Path relative to the data API (e.g. "/weather") or an absolute URL
            params: Query parameters (appid is added automatically)

        Returns:
            Decoded JSON body

        Raises:
            WeatherApiKeyError: Key missing, rejected, or previously rejected
            WeatherApiError: Any other upstream or network failure
        """
        params = dict(params or {})

        if self.invalid_api_key:
            raise WeatherApiKeyError(
                "WEATHER_API_KEY appears to be invalid (cached). Set a valid key in the server environment"
            )
        if not self.api_key:
            raise WeatherApiKeyError()

        key = self.cache_key(path, params)
        is_search = _is_search_path(path)
        cached = self._cache.get(key)
        if cached and self._is_fresh(cached[0], is_search):
            logger.debug(f"Returning cached weather data for: {key}")
            return cached[1]

        try:
            response = await self._client.get(path, params={**params, "appid": self.api_key})
        except httpx.TimeoutException:
            logger.error(f"Weather API timeout for {path}")
            raise WeatherApiError("Weather service is taking too long to respond. Please try again.")
        except httpx.RequestError as e:
            logger.error(f"Weather API network error for {path}: {e}")
            raise WeatherApiError(f"Unable to reach weather service: {e}")

        if response.status_code >= 400:
            try:
                payload = response.json()
            except ValueError:
                payload = response.text
            message = payload.get("message") if isinstance(payload, dict) else payload
            message = message if isinstance(message, str) and message else f"Weather API returned {response.status_code}"

            logger.error(f"Weather API request failed: {payload}")

            if _is_invalid_key_response(response.status_code, payload):
                self.invalid_api_key = True
                logger.error(
                    "OpenWeather responded with 401 Invalid API key. "
                    "Please verify the value of WEATHER_API_KEY."
                )
                raise WeatherApiKeyError(message)
            raise WeatherApiError(message, details={"status": response.status_code})

        data = response.json()
        self._cache[key] = (time.monotonic(), data)

        if len(self._cache) > MAX_CACHE_ENTRIES:
            self._prune_cache()

        return data

    async def close(self):
        await self._client.aclose()


# Global client instance
_weather_api: Optional[WeatherApiClient] = None


def get_weather_api() -> WeatherApiClient:
    """Get or create the shared OpenWeatherMap client."""
    global _weather_api
    if _weather_api is None:
        _weather_api = WeatherApiClient()
    return _weather_api


def set_weather_api(client: Optional[WeatherApiClient]):
    """Replace the shared client (used by tests and the bot process)."""
    global _weather_api
    _weather_api = client


async def close_weather_api():
    """Closes the shared client on shutdown."""
    global _weather_api
    if _weather_api is not None:
        await _weather_api.close()
        _weather_api = None
