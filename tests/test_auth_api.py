"""
Tests for register / login / logout / me and token handling.
"""
from datetime import datetime, timedelta, timezone

import jwt

from core.config import settings
from services import auth_service

from .conftest import register


def test_register_returns_token_and_user(client):
    response = client.post("/api/auth/register", json={
        "name": "Alice", "email": "Alice@Example.com", "password": "secret123"})
    assert response.status_code == 201
    body = response.json()
    assert body["token"]
    assert body["user"]["email"] == "alice@example.com"
    assert body["user"]["name"] == "Alice"
    assert "password_hash" not in body["user"]
    assert "token" in response.cookies


def test_register_duplicate_email(client):
    register(client)
    response = client.post("/api/auth/register", json={
        "name": "Again", "email": "alice@example.com", "password": "secret123"})
    assert response.status_code == 400
    body = response.json()
    assert body == {"success": False, "message": "Email already in use",
                    "code": "DUPLICATE_FIELD"}


def test_register_rejects_short_password(client):
    response = client.post("/api/auth/register", json={
        "name": "Alice", "email": "alice@example.com", "password": "123"})
    assert response.status_code == 400
    assert response.json()["code"] == "VALIDATION_ERROR"


def test_register_rejects_bad_email(client):
    response = client.post("/api/auth/register", json={
        "name": "Alice", "email": "not-an-email", "password": "secret123"})
    assert response.status_code == 400


def test_register_missing_field_is_validation_error(client):
    response = client.post("/api/auth/register", json={"email": "a@b.co"})
    assert response.status_code == 400
    body = response.json()
    assert body["success"] is False
    assert body["code"] == "VALIDATION_ERROR"
    fields = {e["field"] for e in body["errors"]}
    assert {"name", "password"} <= fields


def test_login_success(client):
    register(client)
    response = client.post("/api/auth/login", json={
        "email": "alice@example.com", "password": "secret123"})
    assert response.status_code == 200
    body = response.json()
    assert body["message"] == "Login successful"
    assert body["user"]["last_login"] is not None
    assert "password_hash" not in body["user"]


def test_login_wrong_password(client):
    register(client)
    response = client.post("/api/auth/login", json={
        "email": "alice@example.com", "password": "wrong-password"})
    assert response.status_code == 401
    assert response.json()["message"] == "Invalid credentials"
    assert response.json()["code"] == "UNAUTHORIZED"


def test_login_unknown_email(client):
    response = client.post("/api/auth/login", json={
        "email": "nobody@example.com", "password": "secret123"})
    assert response.status_code == 401


def test_me_with_bearer_token(client, auth_headers):
    for path in ("/api/auth/me", "/api/me"):
        response = client.get(path, headers=auth_headers)
        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["user"]["email"] == "alice@example.com"


def test_me_with_cookie(client):
    register(client)
    client.post("/api/auth/login", json={
        "email": "alice@example.com", "password": "secret123"})
    response = client.get("/api/auth/me")
    assert response.status_code == 200


def test_logout_clears_cookie(client):
    register(client)
    client.post("/api/auth/login", json={
        "email": "alice@example.com", "password": "secret123"})
    assert client.post("/api/auth/logout").status_code == 200
    assert client.get("/api/auth/me").status_code == 401


def test_me_without_token(client):
    response = client.get("/api/auth/me")
    assert response.status_code == 401
    assert response.json()["code"] == "UNAUTHORIZED"


def test_expired_token(client, auth_headers):
    user_id = client.get("/api/me", headers=auth_headers).json()["user"]["id"]
    past = datetime.now(timezone.utc) - timedelta(hours=1)
    token = jwt.encode({"sub": user_id, "exp": past}, settings.jwt_secret,
                       algorithm=settings.jwt_algorithm)
    response = client.get("/api/me", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 401
    assert response.json()["code"] == "TOKEN_EXPIRED"


def test_invalid_token(client):
    response = client.get("/api/me", headers={"Authorization": "Bearer garbage"})
    assert response.status_code == 401
    assert response.json()["code"] == "INVALID_TOKEN"


def test_token_for_missing_user(client):
    token = auth_service.create_access_token("no-such-id", "ghost@example.com")
    response = client.get("/api/me", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 401
    assert response.json()["message"] == "User not found"


def test_password_routes_disabled_with_firebase(client, monkeypatch):
    monkeypatch.setattr(settings, "auth_provider", "firebase")
    response = client.post("/api/auth/register", json={
        "name": "Alice", "email": "alice@example.com", "password": "secret123"})
    assert response.status_code == 403
    assert response.json()["code"] == "FORBIDDEN"


def test_register_and_login_are_logged(client, auth_headers):
    client.post("/api/auth/login", json={
        "email": "alice@example.com", "password": "secret123"})
    client.cookies.clear()
    actions = [e["action"] for e in
               client.get("/api/activity", headers=auth_headers).json()]
    assert "user_registered" in actions
    assert "user_logged_in" in actions


def test_password_hashing():
    hashed = auth_service.hash_password("secret123")
    assert hashed != "secret123"
    assert auth_service.verify_password("secret123", hashed)
    assert not auth_service.verify_password("other", hashed)
    assert not auth_service.verify_password("secret123", None)


def test_register_rejects_password_over_72_bytes(client):
    response = client.post("/api/auth/register", json={
        "name": "Alice", "email": "alice@example.com", "password": "p" * 80})
    assert response.status_code == 400
    assert response.json()["code"] == "VALIDATION_ERROR"
    # Multi-byte characters count by their UTF-8 length
    response = client.post("/api/auth/register", json={
        "name": "Alice", "email": "alice@example.com", "password": "é" * 40})
    assert response.status_code == 400


def test_login_with_overlong_password_is_invalid_credentials(client):
    register(client)
    response = client.post("/api/auth/login", json={
        "email": "alice@example.com", "password": "p" * 80})
    assert response.status_code == 401
    assert response.json()["message"] == "Invalid credentials"
    assert not auth_service.verify_password("p" * 80,
                                            auth_service.hash_password("secret123"))
