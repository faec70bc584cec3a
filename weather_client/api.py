"""
weather_client/api.py

Purpose: Python client for the Weather App REST API

- httpx.AsyncClient with base URL, timeout and bearer token
- Retries transport errors and 5xx answers with a fixed delay
- Identical concurrent GETs share one in-flight request
- Short-lived response cache for weather lookups and city search
"""

import asyncio
import logging
import time
from typing import Any, Awaitable, Callable, Dict, Optional, Tuple

import httpx

logger = logging.getLogger(__name__)

WEATHER_CACHE_SECONDS = 300
SEARCH_CACHE_SECONDS = 600


class ApiClientError(Exception):
    """
    Raised for non-retryable failures (4xx) and for retries exhausted.

    Attributes:
        status: HTTP status (500 when the server never answered)
        data: Decoded response body, if any
    """
    def __init__(self, status: int, data: Any = None, message: Optional[str] = None):
        self.status = status
        self.data = data
        if message is None and isinstance(data, dict):
            message = data.get("message")
        self.message = message or f"Request failed with status {status}"
        super().__init__(self.message)


class WeatherAppClient:
    """
    Usage:
        async with WeatherAppClient("http://localhost:5000/api") as client:
            await client.login("a@b.com", "secret123")
            data = await client.get_current_weather(21.03, 105.85)
    """

    def __init__(
        self,
        base_url: str = "http://localhost:5000/api",
        token: Optional[str] = None,
        timeout: float = 15.0,
        max_retries: int = 3,
        retry_delay: float = 1.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.token = token
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self._client = httpx.AsyncClient(base_url=base_url, timeout=timeout, transport=transport)
        self._in_flight: Dict[str, asyncio.Future] = {}
        self._cache: Dict[str, Tuple[float, Any]] = {}

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        await self.close()

    async def close(self):
        await self._client.aclose()

    # ============================================================
    # TRANSPORT
    # ============================================================

    def _headers(self) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self.token}"} if self.token else {}

    async def request(self, method: str, path: str, **kwargs) -> Any:
        """
        Sends a request, retrying network errors and 5xx responses.

        Raises:
            ApiClientError: 4xx answer, or still failing after max_retries
        """
        attempt = 0
        while True:
            try:
                response = await self._client.request(method, path, headers=self._headers(), **kwargs)
            except httpx.TransportError as e:
                if attempt < self.max_retries:
                    attempt += 1
                    logger.info(f"Retrying request ({attempt}/{self.max_retries}) after {self.retry_delay}s")
                    await asyncio.sleep(self.retry_delay)
                    continue
                raise ApiClientError(500, None, str(e)) from e

            if response.status_code >= 500 and attempt < self.max_retries:
                attempt += 1
                logger.info(f"Retrying request ({attempt}/{self.max_retries}) after {self.retry_delay}s")
                await asyncio.sleep(self.retry_delay)
                continue

            try:
                data = response.json()
            except ValueError:
                data = response.text or None

            if response.status_code >= 400:
                raise ApiClientError(response.status_code, data)
            return data

    async def _shared(self, key: str, fetch: Callable[[], Awaitable[Any]]) -> Any:
        """Joins an identical in-flight request instead of starting another."""
        pending = self._in_flight.get(key)
        if pending is not None:
            return await asyncio.shield(pending)

        future = asyncio.get_running_loop().create_future()
        self._in_flight[key] = future
        try:
            result = await fetch()
        except BaseException as exc:
            future.set_exception(exc)
            future.exception()
            raise
        else:
            future.set_result(result)
            return result
        finally:
            self._in_flight.pop(key, None)

    async def _cached_get(self, key: str, ttl: float, path: str, params: Dict[str, Any]) -> Any:
        cached = self._cache.get(key)
        if cached and time.monotonic() - cached[0] < ttl:
            return cached[1]

        data = await self._shared(key, lambda: self.request("GET", path, params=params))
        self._cache[key] = (time.monotonic(), data)
        return data

    def clear_cache(self):
        self._cache.clear()

    # ============================================================
    # AUTH
    # ============================================================

    async def register(self, username: str, email: str, password: str, **profile) -> Dict[str, Any]:
        data = await self.request("POST", "/auth/register", json={
            "username": username, "email": email, "password": password, **profile
        })
        self.token = data.get("token")
        return data

    async def login(self, email: str, password: str) -> Dict[str, Any]:
        data = await self.request("POST", "/auth/login", json={"email": email, "password": password})
        self.token = data.get("token")
        return data

    async def login_cccd(self, so_cccd: str) -> Dict[str, Any]:
        data = await self.request("POST", "/auth/login/cccd", json={"so_cccd": so_cccd})
        self.token = data.get("token")
        return data

    async def me(self) -> Dict[str, Any]:
        return await self.request("GET", "/auth/me")

    async def cccd_extract(self, filename: str, content: bytes, mime_type: str = "image/jpeg") -> Dict[str, Any]:
        return await self.request("POST", "/cccd/register", files={"image": (filename, content, mime_type)})

    # ============================================================
    # WEATHER
    # ============================================================

    async def get_current_weather(self, lat: float, lon: float, units: str = "metric") -> Dict[str, Any]:
        key = f"current_{lat:.2f}_{lon:.2f}_{units}"
        return await self._cached_get(key, WEATHER_CACHE_SECONDS, "/weather/current",
                                      {"lat": lat, "lon": lon, "units": units})

    async def get_forecast(self, lat: float, lon: float, units: str = "metric") -> Dict[str, Any]:
        key = f"forecast_{lat:.2f}_{lon:.2f}_{units}"
        return await self._cached_get(key, WEATHER_CACHE_SECONDS, "/weather/forecast",
                                      {"lat": lat, "lon": lon, "units": units})

    async def get_historical_weather(self, lat: float, lon: float, dt: int) -> Dict[str, Any]:
        return await self.request("GET", "/weather/historical", params={"lat": lat, "lon": lon, "dt": dt})

    async def get_weather_by_location(self, lat: float, lon: float, units: str = "metric") -> Dict[str, Any]:
        return await self.request("GET", "/weather/geolocation", params={"lat": lat, "lon": lon, "units": units})

    async def search_cities(self, query: str) -> Dict[str, Any]:
        key = f"search_{query.strip().lower()}"
        return await self._cached_get(key, SEARCH_CACHE_SECONDS, "/weather/search", {"q": query})

    # ============================================================
    # USER DATA
    # ============================================================

    async def get_favorites(self) -> Dict[str, Any]:
        return await self.request("GET", "/user/favorites")

    async def add_favorite(self, name: str, country: str, lat: float, lon: float) -> Dict[str, Any]:
        return await self.request("POST", "/user/favorites",
                                  json={"name": name, "country": country, "lat": lat, "lon": lon})

    async def remove_favorite(self, city_id: str) -> Dict[str, Any]:
        return await self.request("DELETE", f"/user/favorites/{city_id}")

    async def get_search_history(self) -> Dict[str, Any]:
        return await self.request("GET", "/user/search-history")

    async def add_search_history(self, city: str, country: str) -> Dict[str, Any]:
        return await self.request("POST", "/user/search-history", json={"city": city, "country": country})

    async def clear_search_history(self) -> Dict[str, Any]:
        return await self.request("DELETE", "/user/search-history")

    async def update_preferences(self, **preferences) -> Dict[str, Any]:
        return await self.request("PUT", "/user/preferences", json=preferences)

    async def update_last_location(self, lat: float, lon: float, city: str, country: str) -> Dict[str, Any]:
        return await self.request("PUT", "/user/last-location",
                                  json={"lat": lat, "lon": lon, "city": city, "country": country})

    # ============================================================
    # DISCORD
    # ============================================================

    async def discord_status(self) -> Dict[str, Any]:
        return await self.request("GET", "/discord/status")

    async def discord_connect(self, discord_user_id: str, channel_id: str) -> Dict[str, Any]:
        return await self.request("POST", "/discord/connect",
                                  json={"discordUserId": discord_user_id, "channelId": channel_id})

    async def discord_subscribe(self, city: str, lat: float, lon: float,
                                notification_time: Optional[str] = None) -> Dict[str, Any]:
        body: Dict[str, Any] = {"city": city, "lat": lat, "lon": lon}
        if notification_time:
            body["notificationTime"] = notification_time
        return await self.request("POST", "/discord/subscribe", json=body)

    async def discord_unsubscribe(self) -> Dict[str, Any]:
        return await self.request("POST", "/discord/unsubscribe")

    async def discord_update_city(self, city: str) -> Dict[str, Any]:
        return await self.request("PUT", "/discord/update-city", json={"city": city})

    async def discord_notification_time(self, notification_time: Optional[str]) -> Dict[str, Any]:
        return await self.request("PUT", "/discord/notification-time", json={"notificationTime": notification_time})

    # ============================================================
    # ADMIN
    # ============================================================

    async def admin_stats(self) -> Dict[str, Any]:
        return await self.request("GET", "/admin/stats")

    async def admin_metrics(self, metric: str = "api_events", days: int = 7, bucket: str = "day") -> Dict[str, Any]:
        return await self.request("GET", "/admin/metrics", params={"metric": metric, "days": days, "bucket": bucket})

    async def admin_audit(self, **params) -> Dict[str, Any]:
        return await self.request("GET", "/admin/audit", params=params)

    async def admin_users(self, **params) -> Dict[str, Any]:
        return await self.request("GET", "/admin/users", params=params)

    async def admin_user(self, user_id: str) -> Dict[str, Any]:
        return await self.request("GET", f"/admin/users/{user_id}")

    async def admin_update_user(self, user_id: str, **changes) -> Dict[str, Any]:
        return await self.request("PUT", f"/admin/users/{user_id}", json=changes)

    async def admin_ban_user(self, user_id: str, ban: bool = True) -> Dict[str, Any]:
        return await self.request("POST", f"/admin/users/{user_id}/ban", json={"action": "ban" if ban else "unban"})

    async def admin_delete_user(self, user_id: str) -> Dict[str, Any]:
        return await self.request("DELETE", f"/admin/users/{user_id}")

    async def admin_user_analytics(self, user_id: str) -> Dict[str, Any]:
        return await self.request("GET", f"/admin/user-analytics/{user_id}")
