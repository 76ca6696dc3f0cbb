from __future__ import annotations

import os
from dataclasses import dataclass, field
from functools import lru_cache

from dotenv import load_dotenv

load_dotenv()

DEFAULT_DATABASE_URL = "sqlite+aiosqlite:///./pingpong_hub.db"


@dataclass
class Settings:
    """Runtime configuration loaded from environment variables."""

    database_url: str
    sql_echo: bool = False
    app_env: str = "development"
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    log_level: str = "INFO"
    identity_header: str = "X-User-Id"
    public_base_url: str = "http://localhost:8000"
    calendar_feed_max_age: int = 300
    cors_allow_origins: list[str] = field(default_factory=lambda: ["*"])


def _as_bool(value: str | None, default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes"}


def async_database_url(url: str | None) -> str:
    """Return a SQLAlchemy async URL for the configured database.

    Hosted Postgres URLs come as ``postgres://`` or ``postgresql://`` and are
    rewritten to the asyncpg driver.
    """
    if not url:
        return DEFAULT_DATABASE_URL
    url = url.strip()
    if url.startswith("postgres://"):
        url = "postgresql://" + url[len("postgres://"):]
    if url.startswith("postgresql://"):
        url = url.replace("postgresql", "postgresql+asyncpg", 1)
    return url


@lru_cache
def get_settings() -> Settings:
    """Load settings from the environment (cached per process)."""
    origins = os.getenv("CORS_ALLOW_ORIGINS", "*")
    return Settings(
        database_url=async_database_url(os.getenv("DATABASE_URL")),
        sql_echo=_as_bool(os.getenv("SQL_ECHO")),
        app_env=os.getenv("APP_ENV", "development"),
        api_host=os.getenv("API_HOST", "0.0.0.0"),
        api_port=int(os.getenv("API_PORT", 8000)),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        identity_header=os.getenv("IDENTITY_HEADER", "X-User-Id"),
        public_base_url=os.getenv("PUBLIC_BASE_URL", "http://localhost:8000").rstrip("/"),
        calendar_feed_max_age=int(os.getenv("CALENDAR_FEED_MAX_AGE", 300)),
        cors_allow_origins=[o.strip() for o in origins.split(",") if o.strip()],
    )
