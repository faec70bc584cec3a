from datetime import datetime, timezone

import pytest

from app.core.exceptions import ValidationError
from app.services import admin_service
from conftest import auth_headers


def test_non_admin_is_forbidden(client, user_token):
    response = client.get("/api/admin/stats", headers=auth_headers(user_token))
    assert response.status_code == 403
    assert response.json()["message"] == "Forbidden: admin only"


def test_admin_via_role(client, db, make_user):
    user = make_user("promoted@example.com")

    # Promote directly in the store
    db["users"]._collection.update_one({"email": "promoted@example.com"}, {"$set": {"role": "admin"}})

    response = client.get("/api/admin/users", headers=auth_headers(user["token"]))
    assert response.status_code == 200


def test_stats_counts_and_top_cities(client, db, admin_token, make_user):
    make_user("alice@example.com")
    now = datetime.now(timezone.utc)
    events = db["apievents"]._collection
    for city in ("Hanoi", "Hanoi", "Hanoi", "Paris"):
        events.insert_one({"type": "request", "ts": now, "meta": {"action": "search", "query": {"q": city}}})

    response = client.get("/api/admin/stats", headers=auth_headers(admin_token))
    assert response.status_code == 200
    stats = response.json()
    assert stats["usersCount"] == 2
    assert stats["bannedCount"] == 0
    assert stats["topCities"][0] == {"_id": "Hanoi", "count": 3}
    assert stats["topCities"][1] == {"_id": "Paris", "count": 1}
    assert "cached" not in stats

    again = client.get("/api/admin/stats", headers=auth_headers(admin_token)).json()
    assert again["cached"] is True
    assert again["usersCount"] == 2


def test_metrics_rejects_bad_days(client, admin_token):
    for days in ("0", "366", "week"):
        response = client.get("/api/admin/metrics", params={"days": days}, headers=auth_headers(admin_token))
        assert response.status_code == 400
        assert response.json()["message"] == "Invalid days parameter"


def test_new_user_metrics_by_day(client, admin_token, make_user):
    make_user("alice@example.com")

    response = client.get(
        "/api/admin/metrics",
        params={"metric": "new_users", "days": "3"},
        headers=auth_headers(admin_token),
    )
    assert response.status_code == 200
    body = response.json()
    assert body["cached"] is False
    today = datetime.now(timezone.utc).strftime("%Y-%m-%d")
    assert body["data"] == [{"_id": today, "count": 2}]


def test_parse_days():
    assert admin_service.parse_days(None) == 7
    assert admin_service.parse_days("30") == 30
    with pytest.raises(ValidationError):
        admin_service.parse_days("-1")


def test_build_metrics_pipeline():
    start = datetime(2024, 1, 1, tzinfo=timezone.utc)

    searches = admin_service.build_metrics_pipeline("searches", start, "hour")
    assert searches[0] == {"$match": {"ts": {"$gte": start}, "meta.action": "search"}}
    assert searches[1]["$group"]["_id"]["$dateToString"] == {"format": "%Y-%m-%dT%H:00:00", "date": "$ts"}

    new_users = admin_service.build_metrics_pipeline("new_users", start, "day")
    assert new_users[0] == {"$match": {"createdAt": {"$gte": start}}}
    assert new_users[1]["$group"]["_id"]["$dateToString"]["date"] == "$createdAt"
    assert new_users[2] == {"$sort": {"_id": 1}}


def test_list_users_filters(client, admin_token, make_user):
    make_user("alice@example.com")
    bob = make_user("bob@example.com")
    headers = auth_headers(admin_token)
    client.post(f"/api/admin/users/{bob['user']['id']}/ban", json={"action": "ban"}, headers=headers)

    everyone = client.get("/api/admin/users", headers=headers).json()
    assert everyone["total"] == 3
    assert everyone["page"] == 1
    assert everyone["perPage"] == 20
    assert all("password" not in u for u in everyone["users"])

    search = client.get("/api/admin/users", params={"q": "ALI"}, headers=headers).json()
    assert [u["username"] for u in search["users"]] == ["alice"]

    banned = client.get("/api/admin/users", params={"status": "banned"}, headers=headers).json()
    assert [u["username"] for u in banned["users"]] == ["bob"]

    active = client.get("/api/admin/users", params={"status": "active"}, headers=headers).json()
    assert active["total"] == 2


def test_search_pattern_is_escaped(client, admin_token, make_user):
    make_user("alice@example.com")
    response = client.get("/api/admin/users", params={"q": ".*"}, headers=auth_headers(admin_token))
    assert response.json()["total"] == 0


def test_ban_unban_delete_are_audited(client, admin_token, make_user):
    target = make_user("target@example.com")
    user_id = target["user"]["id"]
    headers = auth_headers(admin_token)

    banned = client.post(f"/api/admin/users/{user_id}/ban", json={"action": "ban"}, headers=headers)
    assert banned.status_code == 200
    assert banned.json()["message"] == "User banned"
    assert banned.json()["user"]["banned"] is True

    unbanned = client.post(f"/api/admin/users/{user_id}/ban", json={"action": "unban"}, headers=headers)
    assert unbanned.json()["user"]["banned"] is False

    deleted = client.delete(f"/api/admin/users/{user_id}", headers=headers)
    assert deleted.status_code == 200
    assert client.get(f"/api/admin/users/{user_id}", headers=headers).status_code == 404

    audit = client.get("/api/admin/audit", headers=headers).json()
    assert audit["total"] == 3
    actions = sorted(a["action"] for a in audit["audits"])
    assert actions == ["ban_user", "delete_user", "unban_user"]
    for entry in audit["audits"]:
        assert entry["targetEmail"] == "target@example.com"
        assert entry["adminId"]["username"] == "theboss"

    only_bans = client.get("/api/admin/audit", params={"action": "ban_user"}, headers=headers).json()
    assert only_bans["total"] == 1


def test_invalid_ban_action(client, admin_token, make_user):
    target = make_user("target@example.com")
    response = client.post(
        f"/api/admin/users/{target['user']['id']}/ban",
        json={"action": "suspend"},
        headers=auth_headers(admin_token),
    )
    assert response.status_code == 400
    assert response.json()["message"] == "Invalid action"


@pytest.mark.parametrize("user_id", ["not-an-id", "5f1d7f1d7f1d7f1d7f1d7f1d"])
def test_unknown_user_is_404(client, admin_token, user_id):
    headers = auth_headers(admin_token)
    assert client.get(f"/api/admin/users/{user_id}", headers=headers).status_code == 404
    assert client.delete(f"/api/admin/users/{user_id}", headers=headers).status_code == 404
    assert client.get(f"/api/admin/user-analytics/{user_id}", headers=headers).status_code == 404


def test_edit_user_applies_safe_fields(client, admin_token, make_user):
    target = make_user("edit@example.com")
    headers = auth_headers(admin_token)

    response = client.put(
        f"/api/admin/users/{target['user']['id']}",
        json={"fullName": "Edited Name", "isVerified": True},
        headers=headers,
    )
    assert response.status_code == 200
    assert response.json()["user"]["fullName"] == "Edited Name"
    assert response.json()["user"]["isVerified"] is True

    audit = client.get("/api/admin/audit", params={"action": "edit_user"}, headers=headers).json()
    assert audit["audits"][0]["meta"] == {"changes": ["fullName", "isVerified"]}

    bad = client.put(f"/api/admin/users/{target['user']['id']}", json={"email": "nope"}, headers=headers)
    assert bad.status_code == 400


def test_user_analytics(client, admin_token, make_user):
    target = make_user("stats@example.com")
    token = target["token"]
    client.post("/api/user/search-history", json={"city": "Hue", "country": "VN"}, headers=auth_headers(token))
    client.post(
        "/api/user/favorites",
        json={"name": "Hue", "country": "VN", "lat": 16.46, "lon": 107.59},
        headers=auth_headers(token),
    )

    response = client.get(f"/api/admin/user-analytics/{target['user']['id']}", headers=auth_headers(admin_token))
    assert response.status_code == 200
    data = response.json()
    assert data["user"]["email"] == "stats@example.com"
    assert [s["city"] for s in data["searches"]] == ["Hue"]
    assert [f["name"] for f in data["favorites"]] == ["Hue"]
    assert [s["city"] for s in data["recentSearches"]] == ["Hue"]
    assert isinstance(data["userEvents"], int)


def test_audit_rejects_unknown_action(client, admin_token):
    response = client.get("/api/admin/audit", params={"action": "drop_tables"}, headers=auth_headers(admin_token))
    assert response.status_code == 400
    assert response.json()["message"] == "Invalid action"
