"""
Tests for the Firebase auth provider, with token verification stubbed out.
"""
import pytest
from fastapi import status
from firebase_admin import auth as firebase_auth

from core import errors
from core.config import settings
from core.errors import AppError
from services import firebase_service

from .conftest import register

CLAIMS = {
    "good-token": {"uid": "fb-1", "email": "carol@example.com",
                   "email_verified": True, "picture": "http://img/carol.png"},
    "alice-token": {"uid": "fb-2", "email": "alice@example.com"},
}


def fake_verify(token: str) -> dict:
    if token == "expired-token":
        raise AppError("Token expired", status.HTTP_401_UNAUTHORIZED,
                       errors.TOKEN_EXPIRED)
    if token not in CLAIMS:
        raise AppError("Invalid token", status.HTTP_401_UNAUTHORIZED,
                       errors.INVALID_TOKEN)
    return dict(CLAIMS[token])


@pytest.fixture()
def firebase_mode(monkeypatch):
    monkeypatch.setattr(settings, "auth_provider", "firebase")
    monkeypatch.setattr(firebase_service, "verify_id_token", fake_verify)


def bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


def test_me_creates_user_on_first_sight(client, firebase_mode):
    first = client.get("/api/me", headers=bearer("good-token"))
    assert first.status_code == 200
    user = first.json()["user"]
    assert user["firebase_uid"] == "fb-1"
    assert user["name"] == "carol"
    assert user["email_verified"] is True
    assert user["photo_url"] == "http://img/carol.png"

    second = client.get("/api/me", headers=bearer("good-token"))
    assert second.json()["user"]["id"] == user["id"]


def test_existing_account_is_linked_by_email(client, monkeypatch):
    local_user = register(client)["user"]
    monkeypatch.setattr(settings, "auth_provider", "firebase")
    monkeypatch.setattr(firebase_service, "verify_id_token", fake_verify)
    response = client.get("/api/me", headers=bearer("alice-token"))
    assert response.json()["user"]["id"] == local_user["id"]
    assert response.json()["user"]["firebase_uid"] == "fb-2"


def test_tasks_with_firebase_token(client, firebase_mode):
    created = client.post("/api/tasks", json={"title": "From Firebase"},
                          headers=bearer("good-token"))
    assert created.status_code == 201
    listed = client.get("/api/tasks", headers=bearer("good-token")).json()
    assert [t["title"] for t in listed] == ["From Firebase"]


def test_expired_firebase_token(client, firebase_mode):
    response = client.get("/api/me", headers=bearer("expired-token"))
    assert response.status_code == 401
    assert response.json()["code"] == "TOKEN_EXPIRED"


def test_invalid_firebase_token(client, firebase_mode):
    response = client.get("/api/tasks", headers=bearer("nope"))
    assert response.status_code == 401
    assert response.json()["code"] == "INVALID_TOKEN"


def test_verify_id_token_maps_sdk_errors(monkeypatch):
    monkeypatch.setattr(firebase_service, "get_app", lambda: None)

    def expired(token, app=None):
        raise firebase_auth.ExpiredIdTokenError("expired", None)

    monkeypatch.setattr(firebase_auth, "verify_id_token", expired)
    with pytest.raises(AppError) as exc:
        firebase_service.verify_id_token("t")
    assert exc.value.code == errors.TOKEN_EXPIRED

    def invalid(token, app=None):
        raise ValueError("malformed")

    monkeypatch.setattr(firebase_auth, "verify_id_token", invalid)
    with pytest.raises(AppError) as exc:
        firebase_service.verify_id_token("t")
    assert exc.value.code == errors.INVALID_TOKEN

    def no_certs(token, app=None):
        raise firebase_auth.CertificateFetchError("cannot fetch certs", None)

    monkeypatch.setattr(firebase_auth, "verify_id_token", no_certs)
    with pytest.raises(AppError) as exc:
        firebase_service.verify_id_token("t")
    assert exc.value.status_code == 401
    assert exc.value.code == errors.INVALID_TOKEN

    monkeypatch.setattr(firebase_auth, "verify_id_token",
                        lambda token, app=None: {"uid": "abc"})
    assert firebase_service.verify_id_token("t")["uid"] == "abc"


def test_certificate_fetch_failure_is_unauthorized(client, monkeypatch):
    monkeypatch.setattr(settings, "auth_provider", "firebase")
    monkeypatch.setattr(firebase_service, "get_app", lambda: None)

    def no_certs(token, app=None):
        raise firebase_auth.CertificateFetchError("cannot fetch certs", None)

    monkeypatch.setattr(firebase_auth, "verify_id_token", no_certs)
    response = client.get("/api/me", headers=bearer("good-token"))
    assert response.status_code == 401
    assert response.json()["code"] == "INVALID_TOKEN"
