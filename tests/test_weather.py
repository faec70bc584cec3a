import httpx
import pytest

from app.services import weather_service
from conftest import auth_headers, current_payload, forecast_payload

COORDS = {"lat": "21.03", "lon": "105.85"}


def test_current_weather_is_formatted(client, user_token, weather_upstream):
    response = client.get("/api/weather/current", params=COORDS, headers=auth_headers(user_token))
    assert response.status_code == 200, response.text
    data = response.json()

    assert data["location"] == {"name": "Hanoi", "country": "VN", "lat": 21.03, "lon": 105.85}
    current = data["current"]
    assert current["temperature"] == 30
    assert current["feelsLike"] == 34
    assert current["visibility"] == 10
    assert current["uvIndex"] == 0
    assert current["wind"] == {"speed": 3.1, "direction": 120}
    assert current["weather"]["icon"] == "04d"
    assert current["sunrise"].startswith("2023-11-14")
    assert "timestamp" in data

    sent = weather_upstream.requests[0]
    assert sent.url.params["appid"] == "test-key"
    assert sent.url.params["units"] == "metric"


def test_current_weather_requires_auth(client, weather_upstream):
    assert client.get("/api/weather/current", params=COORDS).status_code == 401


@pytest.mark.parametrize("params,message", [
    ({"lat": "21.03"}, "Latitude and longitude are required"),
    ({"lat": "abc", "lon": "105"}, "Invalid coordinates provided"),
    ({"lat": "91", "lon": "105"}, "Invalid coordinates provided"),
    ({"lat": "10", "lon": "-181"}, "Invalid coordinates provided"),
])
def test_current_weather_validates_coordinates(client, user_token, weather_upstream, params, message):
    response = client.get("/api/weather/current", params=params, headers=auth_headers(user_token))
    assert response.status_code == 400
    assert response.json()["message"] == message
    assert weather_upstream.requests == []


def test_forecast_groups_days(client, user_token, weather_upstream):
    response = client.get("/api/weather/forecast", params=COORDS, headers=auth_headers(user_token))
    assert response.status_code == 200, response.text
    data = response.json()

    assert data["location"]["name"] == "Hanoi"
    assert len(data["hourly"]) == 8
    assert len(data["daily"]) == 2
    first_day = data["daily"][0]
    assert first_day["temperature"] == {"min": 20, "max": 27}
    assert first_day["humidity"] == 65
    assert first_day["weather"]["main"] == "Rain"


def test_upstream_responses_are_cached(client, user_token, weather_upstream):
    headers = auth_headers(user_token)
    client.get("/api/weather/current", params=COORDS, headers=headers)
    client.get("/api/weather/current", params=COORDS, headers=headers)
    assert len(weather_upstream.requests) == 1


def test_historical_is_disabled(client, user_token, weather_upstream):
    headers = auth_headers(user_token)

    missing = client.get("/api/weather/historical", params=COORDS, headers=headers)
    assert missing.status_code == 400
    assert missing.json()["message"] == "Latitude, longitude, and timestamp (dt) are required"

    invalid = client.get("/api/weather/historical", params={**COORDS, "dt": "yesterday"}, headers=headers)
    assert invalid.status_code == 400

    disabled = client.get("/api/weather/historical", params={**COORDS, "dt": "1700000000"}, headers=headers)
    assert disabled.status_code == 501
    assert disabled.json()["error"] == "FEATURE_DISABLED"
    assert weather_upstream.requests == []


def test_search_is_public(client, weather_upstream):
    response = client.get("/api/weather/search", params={"q": "London"})
    assert response.status_code == 200
    data = response.json()
    assert data["count"] == 2
    assert data["results"][0] == {
        "name": "London", "country": "GB", "lat": 51.5, "lon": -0.12, "state": "England"
    }
    assert weather_upstream.requests[0].url.params["limit"] == "10"


def test_search_rejects_short_query(client, weather_upstream):
    response = client.get("/api/weather/search", params={"q": "L"})
    assert response.status_code == 400
    assert response.json()["message"] == "Search query must be at least 2 characters"


def test_invalid_key_is_latched(client, weather_upstream):
    weather_upstream(lambda request: httpx.Response(401, json={"cod": 401, "message": "Invalid API key."}))

    first = client.get("/api/weather/search", params={"q": "Paris"})
    assert first.status_code == 500
    assert first.json()["error"] == "API_KEY_MISSING"
    assert first.json()["message"] == "Weather API key is not configured. Please check server configuration."

    # Different query, no further upstream call
    second = client.get("/api/weather/search", params={"q": "Berlin"})
    assert second.json()["error"] == "API_KEY_MISSING"
    assert len(weather_upstream.requests) == 1


def test_search_upstream_failure(client, weather_upstream):
    weather_upstream(lambda request: httpx.Response(503, json={"message": "busy"}))

    response = client.get("/api/weather/search", params={"q": "Paris"})
    assert response.status_code == 500
    assert response.json()["error"] == "SEARCH_FAILED"
    assert response.json()["message"] == "busy"


def test_geolocation_combines_current_and_forecast(client, weather_upstream):
    response = client.get("/api/weather/geolocation", params=COORDS)
    assert response.status_code == 200
    data = response.json()
    assert set(data) == {"location", "current", "hourly", "daily", "timestamp"}
    assert data["current"]["temperature"] == 30
    assert len(data["daily"]) == 2


def test_group_daily_uses_first_entry_weather():
    payload = forecast_payload(days=1, per_day=4)
    payload["list"][1]["weather"] = [{"main": "Clear", "description": "clear sky", "icon": "01d"}]

    days = weather_service.group_daily(payload)
    assert len(days) == 1
    assert days[0]["weather"]["main"] == "Rain"
    assert days[0]["temperature"] == {"min": 20, "max": 23}


def test_summarize_weather():
    summary = weather_service.summarize_weather(current_payload(name="Hue", temp=25.6))
    assert summary["city"] == "Hue"
    assert summary["temperature"] == 26
    assert summary["country"] == "VN"
    assert summary["main"] == "Clouds"
