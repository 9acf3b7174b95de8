"""Application configuration loaded from environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv
from sqlalchemy.exc import ArgumentError
from sqlalchemy.engine.url import make_url

PROJECT_ROOT = Path(__file__).resolve().parents[1]
ENV_PATH = PROJECT_ROOT / ".env"
load_dotenv(ENV_PATH)


def _default_database_url() -> str:
    db_path = PROJECT_ROOT / "pawcoach.db"
    return f"sqlite:///{db_path.as_posix()}"


def _parse_csv_env(value: str) -> tuple[str, ...]:
    return tuple(part.strip() for part in value.split(",") if part.strip())


@dataclass(frozen=True)
class Settings:
    """Typed runtime settings.

    Args:
        database_url: SQLAlchemy database URL.
        cors_origins: Allowed cross-origin origins.
        recommendation_cache_ttl_seconds: Lifetime of cached recommendation payloads.
        recommendation_cache_max_items: Upper bound on cached payloads.
        log_level: Root logging level for the CLI and server.
    """

    database_url: str = os.getenv("DATABASE_URL", _default_database_url())
    cors_origins: tuple[str, ...] = _parse_csv_env(
        os.getenv("CORS_ORIGINS", "http://localhost:8081,http://localhost:19006")
    )
    recommendation_cache_ttl_seconds: int = int(os.getenv("RECOMMENDATION_CACHE_TTL_SECONDS", "3600"))
    recommendation_cache_max_items: int = int(os.getenv("RECOMMENDATION_CACHE_MAX_ITEMS", "1024"))
    log_level: str = os.getenv("LOG_LEVEL", "INFO")

    def __post_init__(self) -> None:
        """Normalize relative SQLite paths so DB is stable across launch directories."""

        value = self.database_url
        try:
            make_url(value)
        except ArgumentError:
            object.__setattr__(self, "database_url", _default_database_url())
            value = self.database_url
        if not value.startswith("sqlite:///"):
            return
        path_part = value.replace("sqlite:///", "", 1)
        # Keep absolute sqlite paths as-is (Unix `/...` or Windows `C:/...`).
        is_windows_abs = len(path_part) >= 3 and path_part[1] == ":" and path_part[2] in ("/", "\\")
        if not path_part or path_part.startswith("/") or is_windows_abs or path_part == ":memory:":
            return
        absolute = (PROJECT_ROOT / path_part).resolve().as_posix()
        object.__setattr__(self, "database_url", f"sqlite:///{absolute}")


settings = Settings()
