import os

# Must be set before app.core.config is imported
os.environ.setdefault("ENVIRONMENT", "development")
os.environ["JWT_SECRET"] = "test-secret"
os.environ["WEATHER_API_KEY"] = "test-key"
os.environ["ADMIN_EMAILS"] = "boss@example.com"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["DISCORD_WEBHOOK_URL"] = ""
os.environ["GEMINI_API_KEY"] = ""

from typing import Any, Callable, Dict, Optional

import httpx
import pytest
from fastapi.testclient import TestClient
import mongomock

from app.db import mongo
from app.main import app
from app.services import admin_service
from app.services.request_dedup import weather_dedup
from app.services.weather_api import WeatherApiClient, set_weather_api


# ============================================================
# IN-MEMORY MONGO (async facade over mongomock)
# ============================================================

class AsyncCursor:
    def __init__(self, cursor):
        self._cursor = cursor

    def sort(self, *args, **kwargs):
        self._cursor = self._cursor.sort(*args, **kwargs)
        return self

    def skip(self, count: int):
        self._cursor = self._cursor.skip(count)
        return self

    def limit(self, count: int):
        self._cursor = self._cursor.limit(count)
        return self

    async def to_list(self, length: Optional[int] = None) -> list:
        docs = list(self._cursor)
        return docs if length is None else docs[:length]

    def __aiter__(self):
        return self._iterate()

    async def _iterate(self):
        for doc in self._cursor:
            yield doc


class AsyncCollection:
    """Exposes the Motor call style the app uses on top of a mongomock collection."""

    def __init__(self, collection):
        self._collection = collection

    def find(self, *args, **kwargs) -> AsyncCursor:
        return AsyncCursor(self._collection.find(*args, **kwargs))

    def aggregate(self, pipeline, **kwargs) -> AsyncCursor:
        return AsyncCursor(self._collection.aggregate(pipeline, **kwargs))

    def __getattr__(self, name):
        attr = getattr(self._collection, name)
        if not callable(attr):
            return attr

        async def call(*args, **kwargs):
            return attr(*args, **kwargs)
        return call


class AsyncDatabase:
    def __init__(self, database):
        self._database = database

    def __getitem__(self, name: str) -> AsyncCollection:
        return AsyncCollection(self._database[name])


# ============================================================
# SAMPLE UPSTREAM PAYLOADS
# ============================================================

def current_payload(name: str = "Hanoi", temp: float = 30.4, main: str = "Clouds") -> Dict[str, Any]:
    return {
        "name": name,
        "coord": {"lat": 21.03, "lon": 105.85},
        "sys": {"country": "VN", "sunrise": 1700000000, "sunset": 1700040000},
        "main": {"temp": temp, "feels_like": 33.6, "humidity": 70, "pressure": 1010},
        "visibility": 10000,
        "wind": {"speed": 3.1, "deg": 120},
        "weather": [{"main": main, "description": "broken clouds", "icon": "04d"}],
    }


def forecast_payload(days: int = 2, per_day: int = 8) -> Dict[str, Any]:
    # 2024-01-01 00:00 UTC
    start = 1704067200
    entries = []
    for i in range(days * per_day):
        entries.append({
            "dt": start + i * 3 * 3600,
            "main": {"temp": 20 + (i % per_day), "humidity": 60 + (i % 2) * 10},
            "wind": {"speed": 2 + (i % 2)},
            "weather": [{"main": "Rain", "description": "light rain", "icon": "10d"}],
        })
    return {
        "city": {"name": "Hanoi", "country": "VN", "coord": {"lat": 21.03, "lon": 105.85}},
        "list": entries,
    }


def geo_payload() -> list:
    return [
        {"name": "London", "country": "GB", "lat": 51.5, "lon": -0.12, "state": "England"},
        {"name": "London", "country": "CA", "lat": 42.98, "lon": -81.24, "state": "Ontario"},
    ]


def default_weather_handler(request: httpx.Request) -> httpx.Response:
    path = request.url.path
    if path.endswith("/geo/1.0/direct"):
        return httpx.Response(200, json=geo_payload())
    if path.endswith("/weather"):
        return httpx.Response(200, json=current_payload())
    if path.endswith("/forecast"):
        return httpx.Response(200, json=forecast_payload())
    return httpx.Response(404, json={"cod": "404", "message": "city not found"})


# ============================================================
# FIXTURES
# ============================================================

@pytest.fixture(autouse=True)
def db(monkeypatch):
    """In-memory database swapped in for every test."""
    database = AsyncDatabase(mongomock.MongoClient()["weather-app-test"])
    monkeypatch.setattr(mongo, "_database", database)
    yield database


@pytest.fixture(autouse=True)
def reset_caches():
    weather_dedup.clear()
    admin_service.aggregation_cache.clear()
    yield
    weather_dedup.clear()
    set_weather_api(None)


@pytest.fixture
def weather_upstream():
    """
    Installs a mock OpenWeatherMap. Returns a setter to swap the handler
    and the list of requests seen.
    """
    seen = []
    state = {"handler": default_weather_handler}

    def dispatch(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return state["handler"](request)

    set_weather_api(WeatherApiClient(api_key="test-key", transport=httpx.MockTransport(dispatch)))

    def use(handler: Callable[[httpx.Request], httpx.Response]):
        state["handler"] = handler

    use.requests = seen
    return use


@pytest.fixture
def client():
    return TestClient(app)


def register(client: TestClient, email: str = "user@example.com", username: str = "someuser",
             password: str = "secret123", **extra) -> Dict[str, Any]:
    response = client.post("/api/auth/register", json={
        "email": email, "username": username, "password": password, **extra
    })
    assert response.status_code == 201, response.text
    return response.json()


def auth_headers(token: str) -> Dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def user_token(client) -> str:
    return register(client)["token"]


@pytest.fixture
def admin_token(client) -> str:
    return register(client, email="boss@example.com", username="theboss")["token"]


@pytest.fixture
def make_user(client) -> Callable[..., Dict[str, Any]]:
    def _make(email: str, username: Optional[str] = None) -> Dict[str, Any]:
        return register(client, email=email, username=username or email.split("@")[0])
    return _make
