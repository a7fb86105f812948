"""
Settings for YoursKanban, loaded from environment variables (+ optional .env).

Every key can also be given with the ``KANBAN_`` prefix, which wins over the
bare name. ``settings`` is a plain mutable object so tests can patch it.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

ENV_PREFIX = "KANBAN"

load_dotenv(override=False)

# Resolve project root: go up from src/core/ to project root
PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
DEFAULT_DATABASE_URL = f"sqlite:///{PROJECT_ROOT / 'yourskanban.db'}"


def _env(name: str, default: str | None = None) -> str | None:
    for key in (f"{ENV_PREFIX}_{name}", name):
        value = os.getenv(key)
        if value is not None and value.strip() != "":
            return value.strip()
    return default


def _env_bool(name: str, default: bool) -> bool:
    raw = _env(name)
    if raw is None:
        return default
    return raw.lower() in {"1", "true", "yes", "y", "on"}


def _env_int(name: str, default: int) -> int:
    raw = _env(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_list(name: str, default: list[str]) -> list[str]:
    raw = _env(name)
    if raw is None:
        return list(default)
    return [p.strip() for p in raw.replace(",", " ").split() if p.strip()]


@dataclass
class Settings:
    env: str = "development"
    database_url: str = DEFAULT_DATABASE_URL
    jwt_secret: str = "yourskanban-secret-key-change-in-production"
    jwt_algorithm: str = "HS256"
    jwt_expires_hours: int = 24 * 7
    auth_provider: str = "local"
    firebase_credentials: str | None = None
    cors_origins: list[str] = field(default_factory=lambda: ["*"])
    cookie_name: str = "token"
    cookie_secure: bool = False
    host: str = "0.0.0.0"
    port: int = 3000
    log_level: str = "INFO"
    log_dir: str | None = None

    @property
    def is_production(self) -> bool:
        return self.env == "production"

    @property
    def use_firebase(self) -> bool:
        return self.auth_provider == "firebase"


def load_settings() -> Settings:
    """Build a Settings object from the current environment."""
    env = (_env("ENV") or _env("NODE_ENV") or "development").lower()
    provider = (_env("AUTH_PROVIDER") or "local").lower()
    if provider not in ("local", "firebase"):
        raise ValueError(f"Unknown AUTH_PROVIDER: {provider}")
    return Settings(
        env=env,
        database_url=_env("DATABASE_URL", DEFAULT_DATABASE_URL),
        jwt_secret=_env("JWT_SECRET", Settings.jwt_secret),
        jwt_expires_hours=_env_int("JWT_EXPIRES_HOURS", Settings.jwt_expires_hours),
        auth_provider=provider,
        firebase_credentials=_env("FIREBASE_CREDENTIALS"),
        cors_origins=_env_list("CORS_ORIGINS", ["*"]),
        cookie_secure=_env_bool("COOKIE_SECURE", env == "production"),
        host=_env("HOST", Settings.host),
        port=_env_int("PORT", Settings.port),
        log_level=(_env("LOG_LEVEL") or "INFO").upper(),
        log_dir=_env("LOG_DIR"),
    )


settings = load_settings()
