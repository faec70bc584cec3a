from app.models.user import MAX_SEARCH_HISTORY
from app.services.user_service import push_search_entry
from conftest import auth_headers

HANOI = {"name": "Hanoi", "country": "VN", "lat": 21.03, "lon": 105.85}


def test_add_list_and_remove_favorite(client, user_token):
    headers = auth_headers(user_token)

    added = client.post("/api/user/favorites", json=HANOI, headers=headers)
    assert added.status_code == 200
    assert added.json()["message"] == "City added to favorites"
    favorites = added.json()["favorites"]
    assert len(favorites) == 1
    assert favorites[0]["name"] == "Hanoi"
    assert favorites[0]["lat"] == 21.03

    listed = client.get("/api/user/favorites", headers=headers).json()["favorites"]
    assert [f["name"] for f in listed] == ["Hanoi"]

    removed = client.delete(f"/api/user/favorites/{favorites[0]['_id']}", headers=headers)
    assert removed.status_code == 200
    assert removed.json()["message"] == "City removed from favorites"
    assert removed.json()["favorites"] == []


def test_duplicate_favorite_is_rejected(client, user_token):
    headers = auth_headers(user_token)
    client.post("/api/user/favorites", json=HANOI, headers=headers)

    again = client.post("/api/user/favorites", json=HANOI, headers=headers)
    assert again.status_code == 400
    assert again.json()["message"] == "City already in favorites"

    # Same name in another country is a different city
    other = client.post("/api/user/favorites", json={**HANOI, "country": "US"}, headers=headers)
    assert other.status_code == 200
    assert len(other.json()["favorites"]) == 2


def test_favorite_validation(client, user_token):
    response = client.post(
        "/api/user/favorites",
        json={"name": "", "country": "VN", "lat": "north", "lon": 105.85},
        headers=auth_headers(user_token),
    )
    assert response.status_code == 400
    messages = {e["path"]: e["msg"] for e in response.json()["errors"]}
    assert messages["name"] == "City name is required"
    assert messages["lat"] == "Latitude must be a number"


def test_removing_unknown_favorite_keeps_list(client, user_token):
    headers = auth_headers(user_token)
    client.post("/api/user/favorites", json=HANOI, headers=headers)

    response = client.delete("/api/user/favorites/not-an-id", headers=headers)
    assert response.status_code == 200
    assert len(response.json()["favorites"]) == 1


def test_search_history_is_most_recent_first(client, user_token):
    headers = auth_headers(user_token)
    for city in ("Hanoi", "Paris", "Hanoi"):
        client.post("/api/user/search-history", json={"city": city, "country": "XX"}, headers=headers)

    history = client.get("/api/user/search-history", headers=headers).json()["searchHistory"]
    assert [h["city"] for h in history] == ["Hanoi", "Paris"]

    cleared = client.delete("/api/user/search-history", headers=headers)
    assert cleared.json()["message"] == "Search history cleared"
    assert client.get("/api/user/search-history", headers=headers).json()["searchHistory"] == []


def test_push_search_entry_caps_history():
    history = []
    for i in range(MAX_SEARCH_HISTORY + 5):
        history = push_search_entry(history, f"City {i}", "VN")

    assert len(history) == MAX_SEARCH_HISTORY
    assert history[0]["city"] == f"City {MAX_SEARCH_HISTORY + 4}"
    assert history[-1]["city"] == "City 5"


def test_push_search_entry_moves_existing_to_front():
    history = push_search_entry([], "Hanoi", "VN")
    history = push_search_entry(history, "Hue", "VN")
    history = push_search_entry(history, "Hanoi", "VN")

    assert [(h["city"], h["country"]) for h in history] == [("Hanoi", "VN"), ("Hue", "VN")]


def test_update_preferences(client, user_token):
    headers = auth_headers(user_token)

    response = client.put("/api/user/preferences", json={"temperatureUnit": "fahrenheit"}, headers=headers)
    assert response.status_code == 200
    assert response.json()["preferences"] == {"temperatureUnit": "fahrenheit", "language": "en"}

    response = client.put("/api/user/preferences", json={"language": "vi"}, headers=headers)
    assert response.json()["preferences"] == {"temperatureUnit": "fahrenheit", "language": "vi"}

    me = client.get("/api/auth/me", headers=headers).json()["user"]
    assert me["preferences"]["language"] == "vi"


def test_preferences_validation(client, user_token):
    headers = auth_headers(user_token)

    bad_unit = client.put("/api/user/preferences", json={"temperatureUnit": "kelvin"}, headers=headers)
    assert bad_unit.status_code == 400

    bad_language = client.put("/api/user/preferences", json={"language": "english"}, headers=headers)
    assert bad_language.status_code == 400


def test_update_last_location(client, user_token):
    response = client.put(
        "/api/user/last-location",
        json={"lat": "10.82", "lon": 106.63, "city": "Ho Chi Minh City", "country": "VN"},
        headers=auth_headers(user_token),
    )
    assert response.status_code == 200
    location = response.json()["lastLocation"]
    assert location["lat"] == 10.82
    assert location["city"] == "Ho Chi Minh City"
    assert "updatedAt" in location
