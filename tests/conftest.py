# tests/conftest.py

from __future__ import annotations

import os

# Must be set before the app (and its engine) is imported.
os.environ["KANBAN_DATABASE_URL"] = "sqlite://"
os.environ["KANBAN_AUTH_PROVIDER"] = "local"
os.environ["KANBAN_ENV"] = "test"

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from Data.database import Base, engine  # noqa: E402
from presentation import app  # noqa: E402


@pytest.fixture(autouse=True)
def fresh_db():
    """Every test starts from empty tables."""
    Base.metadata.drop_all(engine)
    Base.metadata.create_all(engine)
    yield


@pytest.fixture()
def client():
    with TestClient(app) as c:
        yield c


def register(client: TestClient, email: str = "alice@example.com",
             name: str = "Alice", password: str = "secret123") -> dict:
    """Register a user and return the response body, leaving no cookie behind."""
    response = client.post("/api/auth/register", json={
        "name": name, "email": email, "password": password})
    assert response.status_code == 201, response.text
    client.cookies.clear()
    return response.json()


@pytest.fixture()
def auth_headers(client) -> dict:
    body = register(client)
    return {"Authorization": f"Bearer {body['token']}"}


@pytest.fixture()
def other_headers(client) -> dict:
    body = register(client, email="bob@example.com", name="Bob")
    return {"Authorization": f"Bearer {body['token']}"}
