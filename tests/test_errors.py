from fastapi.testclient import TestClient
from pydantic import BaseModel
from app.main import app
import pytest

client = TestClient(app)


class Item(BaseModel):
    name: str
    price: int


@app.post("/test-validation")
def create_item(item: Item):
    return item


@app.get("/test-custom-error")
def trigger_custom_error():
    from app.core.exceptions import ResourceNotFoundError
    raise ResourceNotFoundError(message="Item not found")


def test_404_not_found():
    response = client.get("/non-existent-route")
    assert response.status_code == 404
    data = response.json()
    assert "message" in data
    assert data["error"] == "HTTP_ERROR"


def test_validation_error_structure():
    response = client.post("/test-validation", json={"name": "foo", "price": "invalid"})
    assert response.status_code == 400
    data = response.json()
    assert data["message"] == "Validation failed"
    assert data["error"] == "VALIDATION_ERROR"
    assert len(data["errors"]) > 0
    first = data["errors"][0]
    assert first["type"] == "field"
    assert first["location"] == "body"
    assert first["path"] == "price"


def test_custom_exception():
    response = client.get("/test-custom-error")
    assert response.status_code == 404
    data = response.json()
    assert data["error"] == "NOT_FOUND"
    assert data["message"] == "Item not found"


def test_custom_validator_message_is_unprefixed():
    response = client.post("/api/auth/register", json={
        "email": "not-an-email", "username": "someone", "password": "secret123"
    })
    assert response.status_code == 400
    messages = [e["msg"] for e in response.json()["errors"]]
    assert "Please provide a valid email" in messages


@pytest.mark.parametrize("path", ["/api/user/favorites", "/api/discord/status", "/api/auth/me"])
def test_protected_routes_require_token(path):
    response = client.get(path)
    assert response.status_code == 401
    assert response.json()["message"] == "No token, authorization denied"


def test_garbage_token_rejected():
    response = client.get("/api/auth/me", headers={"Authorization": "Bearer not.a.jwt"})
    assert response.status_code == 401
    assert response.json()["message"] == "Invalid token"


def test_liveness():
    assert client.get("/live").json() == {"status": "alive"}
