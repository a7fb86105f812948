# tests/test_errors.py

from __future__ import annotations

import logging

import pytest
from fastapi.testclient import TestClient

from core.config import settings
from presentation import app
from services import task_service


def explode(*args, **kwargs):
    raise RuntimeError("database on fire")


@pytest.fixture()
def lenient_client(monkeypatch):
    monkeypatch.setattr(task_service, "list_tasks", explode)
    with TestClient(app, raise_server_exceptions=False) as c:
        yield c


def test_unhandled_error_shows_message_outside_production(
        lenient_client, auth_headers, monkeypatch, caplog):
    monkeypatch.setattr(settings, "env", "development")
    with caplog.at_level(logging.ERROR, logger="presentation.errors"):
        response = lenient_client.get("/api/tasks", headers=auth_headers)
    assert response.status_code == 500
    assert response.json() == {"success": False, "message": "database on fire",
                               "code": "INTERNAL_SERVER_ERROR"}
    record = next(r for r in caplog.records if r.name == "presentation.errors")
    assert record.exc_info is not None
    assert "GET /api/tasks" in record.getMessage()


def test_unhandled_error_is_generic_in_production(
        lenient_client, auth_headers, monkeypatch):
    monkeypatch.setattr(settings, "env", "production")
    response = lenient_client.get("/api/tasks", headers=auth_headers)
    assert response.status_code == 500
    assert response.json() == {"success": False,
                               "message": "Internal Server Error",
                               "code": "INTERNAL_SERVER_ERROR"}
