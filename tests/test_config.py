# tests/test_config.py

from __future__ import annotations

import logging

import pytest

from core.config import load_settings
from core.logging_setup import setup_logging


def test_prefixed_keys_win(monkeypatch):
    monkeypatch.setenv("PORT", "8000")
    monkeypatch.setenv("KANBAN_PORT", "9000")
    monkeypatch.setenv("KANBAN_CORS_ORIGINS", "http://a.test, http://b.test")
    settings = load_settings()
    assert settings.port == 9000
    assert settings.cors_origins == ["http://a.test", "http://b.test"]


def test_production_defaults(monkeypatch):
    monkeypatch.setenv("KANBAN_ENV", "production")
    monkeypatch.delenv("KANBAN_COOKIE_SECURE", raising=False)
    monkeypatch.delenv("COOKIE_SECURE", raising=False)
    settings = load_settings()
    assert settings.is_production
    assert settings.cookie_secure is True


def test_bad_values(monkeypatch):
    monkeypatch.setenv("KANBAN_PORT", "not-a-port")
    assert load_settings().port == 3000
    monkeypatch.setenv("KANBAN_AUTH_PROVIDER", "ldap")
    with pytest.raises(ValueError):
        load_settings()


def test_setup_logging_writes_file(tmp_path):
    root = logging.getLogger()
    saved = list(root.handlers), root.level
    try:
        setup_logging(level="debug", log_dir=tmp_path / "logs")
        logging.getLogger("services.task_service").info("hello board")
        for handler in root.handlers:
            handler.flush()
        text = (tmp_path / "logs" / "yourskanban.log").read_text(encoding="utf-8")
        assert "INFO services.task_service: hello board" in text
    finally:
        for handler in list(root.handlers):
            root.removeHandler(handler)
            handler.close()
        for handler in saved[0]:
            root.addHandler(handler)
        root.setLevel(saved[1])
        logging.captureWarnings(False)
