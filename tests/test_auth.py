import asyncio
import json
from datetime import datetime, timedelta, timezone

import httpx
import jwt
import pytest

from app.core.config import settings
from app.core.security import create_access_token, decode_access_token, hash_password, verify_password
from app.core.exceptions import AuthenticationError, ForbiddenError
from app.services import auth_service, discord_webhook
from conftest import auth_headers, register


def test_register_returns_token_and_public_profile(client):
    data = register(client, email="Minh@Example.com", username="minh")

    assert data["message"] == "User registered successfully"
    assert data["user"]["email"] == "minh@example.com"
    assert data["user"]["username"] == "minh"
    assert data["user"]["role"] == "user"
    assert data["user"]["preferences"] == {"temperatureUnit": "celsius", "language": "en"}
    assert "password" not in data["user"]

    payload = decode_access_token(data["token"])
    assert payload["userId"] == data["user"]["id"]


@pytest.mark.asyncio
async def test_register_stores_bcrypt_hash(db):
    await auth_service.register_user(email="hash@example.com", password="secret123", username="hasher")

    doc = await db["users"].find_one({"email": "hash@example.com"})
    assert doc["password"] != "secret123"
    assert verify_password("secret123", doc["password"])


@pytest.mark.parametrize("second", [
    {"email": "dup@example.com", "username": "other"},
    {"email": "other@example.com", "username": "dupuser"},
])
def test_register_rejects_duplicate_email_or_username(client, second):
    register(client, email="dup@example.com", username="dupuser")

    response = client.post("/api/auth/register", json={**second, "password": "secret123"})
    assert response.status_code == 400
    assert response.json()["message"] == "User with this email or username already exists"


def test_register_validation_messages(client):
    response = client.post("/api/auth/register", json={
        "email": "ok@example.com", "username": "ab", "password": "123"
    })
    assert response.status_code == 400
    body = response.json()
    assert body["message"] == "Validation failed"
    assert "Password must be at least 6 characters long" in [e["msg"] for e in body["errors"]]


def test_register_with_cccd_generates_username(client):
    response = client.post("/api/auth/register", json={
        "email": "cccd@example.com",
        "password": "secret123",
        "cccd": "001099012345",
        "name": "Nguyễn Văn A",
        "dateOfBirth": "15/03/1999",
        "gender": "Nam",
    })
    assert response.status_code == 201, response.text
    user = response.json()["user"]
    assert user["username"].startswith("cccd_")
    assert user["fullName"] == "Nguyễn Văn A"
    assert user["gender"] == "Nam"


def test_login_success_and_failures(client):
    register(client, email="login@example.com", username="loginuser")

    ok = client.post("/api/auth/login", json={"email": "login@example.com", "password": "secret123"})
    assert ok.status_code == 200
    assert ok.json()["message"] == "Login successful"
    assert decode_access_token(ok.json()["token"])["userId"] == ok.json()["user"]["id"]

    wrong_password = client.post("/api/auth/login", json={"email": "login@example.com", "password": "nope123"})
    assert wrong_password.status_code == 400
    assert wrong_password.json()["message"] == "Invalid credentials"

    unknown = client.post("/api/auth/login", json={"email": "ghost@example.com", "password": "secret123"})
    assert unknown.status_code == 400
    assert unknown.json()["message"] == "Invalid credentials"


def test_banned_user_cannot_login(client, admin_token):
    victim = register(client, email="banned@example.com", username="banned")
    client.post(
        f"/api/admin/users/{victim['user']['id']}/ban",
        json={"action": "ban"},
        headers=auth_headers(admin_token),
    )

    response = client.post("/api/auth/login", json={"email": "banned@example.com", "password": "secret123"})
    assert response.status_code == 403
    assert response.json()["message"] == "Account has been banned"


def test_login_with_cccd(client):
    client.post("/api/auth/register", json={
        "email": "card@example.com", "password": "secret123", "cccd": "079200001111"
    })

    ok = client.post("/api/auth/login/cccd", json={"so_cccd": "079200001111"})
    assert ok.status_code == 200
    assert ok.json()["user"]["email"] == "card@example.com"

    missing = client.post("/api/auth/login/cccd", json={"so_cccd": "000000000000"})
    assert missing.status_code == 404
    assert missing.json()["message"] == "CCCD chưa được đăng ký"


def test_me_returns_profile(client, user_token):
    response = client.get("/api/auth/me", headers=auth_headers(user_token))
    assert response.status_code == 200
    assert response.json()["user"]["username"] == "someuser"


def test_token_for_deleted_user_is_rejected(client):
    token = create_access_token("5f1d7f1d7f1d7f1d7f1d7f1d")
    response = client.get("/api/auth/me", headers=auth_headers(token))
    assert response.status_code == 401
    assert response.json()["message"] == "Token is not valid"


def test_expired_token():
    past = datetime.now(timezone.utc) - timedelta(days=1)
    token = jwt.encode({"userId": "x", "exp": past}, settings.jwt_secret, algorithm="HS256")
    with pytest.raises(AuthenticationError) as exc:
        decode_access_token(token)
    assert exc.value.message == "Token expired"


def test_verify_password_handles_garbage_hash():
    assert verify_password("secret", hash_password("secret"))
    assert not verify_password("secret", "not-a-bcrypt-hash")
    assert not verify_password("", hash_password("secret"))


@pytest.mark.parametrize("gender", ["Male", "nam", "Other"])
def test_register_rejects_unknown_gender(client, gender):
    response = client.post("/api/auth/register", json={
        "email": "g@example.com", "password": "secret123", "cccd": "001099012345", "gender": gender
    })
    assert response.status_code == 400
    assert "Gender must be one of: Nam, Nữ, Khác" in [e["msg"] for e in response.json()["errors"]]


@pytest.mark.parametrize("gender,stored", [("Nữ", "Nữ"), ("Khác", "Khác"), ("", None)])
def test_register_accepts_known_gender(client, gender, stored):
    response = client.post("/api/auth/register", json={
        "email": "g@example.com", "password": "secret123", "cccd": "001099012345", "gender": gender
    })
    assert response.status_code == 201, response.text
    assert response.json()["user"].get("gender") == stored


@pytest.mark.asyncio
async def test_banned_webhook_posts_embed(monkeypatch):
    monkeypatch.setattr(settings, "DISCORD_WEBHOOK_URL", "https://discord.test/api/webhooks/1/abc")
    posted = []

    def handler(request: httpx.Request) -> httpx.Response:
        posted.append(request)
        return httpx.Response(204)

    user = {"_id": "5f1d7f1d7f1d7f1d7f1d7f1d", "username": "banned", "email": "b@example.com", "cccd": "079200001111"}
    sent = await discord_webhook.send_banned_user_login_notification(user, transport=httpx.MockTransport(handler))

    assert sent is True
    assert len(posted) == 1
    assert str(posted[0].url) == "https://discord.test/api/webhooks/1/abc"
    embed = json.loads(posted[0].content)["embeds"][0]
    assert embed["title"] == "🚫 Banned User Login Attempt"
    fields = {f["name"]: f["value"] for f in embed["fields"]}
    assert fields["User"] == "banned (b@example.com)"
    assert fields["User ID"] == "5f1d7f1d7f1d7f1d7f1d7f1d"
    assert fields["CCCD"] == "079200001111"


@pytest.mark.asyncio
async def test_banned_webhook_skipped_without_url():
    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError("webhook should not be called")

    sent = await discord_webhook.send_banned_user_login_notification(
        {"_id": "x", "username": "u", "email": "u@example.com"}, transport=httpx.MockTransport(handler)
    )
    assert sent is False


@pytest.mark.asyncio
async def test_banned_webhook_failure_is_swallowed(monkeypatch):
    monkeypatch.setattr(settings, "DISCORD_WEBHOOK_URL", "https://discord.test/api/webhooks/1/abc")
    transport = httpx.MockTransport(lambda request: httpx.Response(500))

    sent = await discord_webhook.send_banned_user_login_notification(
        {"_id": "x", "username": "u", "email": "u@example.com"}, transport=transport
    )
    assert sent is False


@pytest.mark.asyncio
async def test_banned_login_notifies_admins(db, monkeypatch):
    notified = []

    async def fake_notify(user):
        notified.append(user["email"])
        return True

    monkeypatch.setattr(auth_service, "send_banned_user_login_notification", fake_notify)
    await auth_service.register_user(email="bad@example.com", password="secret123", username="baduser",
                                     cccd="079200002222")
    await db["users"].update_one({"email": "bad@example.com"}, {"$set": {"banned": True}})

    with pytest.raises(ForbiddenError) as password_login:
        await auth_service.login("bad@example.com", "secret123")
    with pytest.raises(ForbiddenError) as cccd_login:
        await auth_service.login_with_cccd("079200002222")
    await asyncio.gather(*list(auth_service._background_tasks))

    assert password_login.value.status_code == 403
    assert cccd_login.value.status_code == 403
    assert notified == ["bad@example.com", "bad@example.com"]
