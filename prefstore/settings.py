"""Centralized configuration management for the preferences service."""

from __future__ import annotations

import logging
import os
from functools import lru_cache
from typing import Literal

from dotenv import load_dotenv
from pydantic import Field, PrivateAttr
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load a local .env before the settings singleton is built so every importer of
# :mod:`prefstore.settings` sees the same environment.
load_dotenv()

# -- Application-wide constants -------------------------------------------------

DEFAULT_STORAGE_PATH = "./data/preferences"
DEFAULT_SQLITE_DATABASE_URL = "sqlite+aiosqlite:///./data/preferences.db"
POSTGRES_ASYNC_PREFIX = "postgresql+psycopg://"
POSTGRES_SYNC_PREFIXES = ("postgres://", "postgresql://")
DEFAULT_REDIS_URL = "redis://localhost:6379/0"
DEFAULT_FAVORITES_STORAGE_KEY = "@favorites_cache"
DEFAULT_FAVORITES_METADATA_KEY = "@favorites_metadata"
DEFAULT_RECENT_SEARCH_LIMIT = 10
DEFAULT_LOG_LEVEL = "INFO"

StorageBackend = Literal["file", "redis", "memory"]
RemoteBackend = Literal["memory", "sql"]


class AppSettings(BaseSettings):
    """Typed configuration surface built on top of ``pydantic-settings``.

    Besides the raw environment values the class exposes derived helpers such
    as :attr:`resolved_database_url` so that wiring code never repeats parsing
    logic.
    """

    _explicit_storage_backend: bool = PrivateAttr(default=False)
    _explicit_database_url: bool = PrivateAttr(default=False)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    def __init__(self, **values: object) -> None:  # noqa: D401 - short override explanation
        """Capture explicit overrides prior to delegating to ``BaseSettings``."""

        normalized_keys = {str(key).lower() for key in values}
        super().__init__(**values)
        self._explicit_storage_backend = bool(
            normalized_keys & {"storage_backend"}
        ) or bool((os.getenv("STORAGE_BACKEND") or "").strip())
        self._explicit_database_url = bool(
            normalized_keys & {"database_url", "use_sqlite"}
        ) or bool((os.getenv("DATABASE_URL") or "").strip())

    storage_backend: StorageBackend = Field(
        default="file",
        alias="STORAGE_BACKEND",
        description="Engine holding the local favorites cache: file, redis or memory.",
    )
    storage_path: str = Field(
        default=DEFAULT_STORAGE_PATH,
        alias="STORAGE_PATH",
        description="Directory used by the file storage engine.",
    )
    redis_url: str = Field(
        default=DEFAULT_REDIS_URL,
        alias="REDIS_URL",
        description="Redis connection string used when STORAGE_BACKEND=redis.",
    )
    favorites_storage_key: str = Field(
        default=DEFAULT_FAVORITES_STORAGE_KEY,
        alias="FAVORITES_STORAGE_KEY",
        description="Key holding the JSON array of favorite documents.",
    )
    favorites_metadata_key: str = Field(
        default=DEFAULT_FAVORITES_METADATA_KEY,
        alias="FAVORITES_METADATA_KEY",
        description="Key holding the {lastUpdated, count} diagnostic record.",
    )
    recent_search_limit: int = Field(
        default=DEFAULT_RECENT_SEARCH_LIMIT,
        ge=1,
        alias="RECENT_SEARCH_LIMIT",
        description="Maximum number of recent searches retained per session.",
    )
    remote_backend: RemoteBackend = Field(
        default="memory",
        alias="REMOTE_BACKEND",
        description="Authoritative per-user store: in-process memory or SQL.",
    )
    database_url: str | None = Field(
        default=None,
        alias="DATABASE_URL",
        description=(
            "SQLAlchemy URL for the SQL remote store. Postgres URLs supplied in"
            " sync format are coerced into the async psycopg driver string."
        ),
    )
    use_sqlite: bool = Field(
        default=False,
        alias="USE_SQLITE",
        description="Force the SQLite fallback regardless of DATABASE_URL.",
    )
    clear_local_on_sign_out: bool = Field(
        default=False,
        alias="CLEAR_LOCAL_ON_SIGN_OUT",
        description=(
            "Wipe the local favorites cache when the user signs out instead of"
            " keeping it as shared guest scratch space."
        ),
    )
    require_sign_in_for_mutations: bool = Field(
        default=False,
        alias="REQUIRE_SIGN_IN_FOR_MUTATIONS",
        description="Reject mutating HTTP calls with 401 while no user is signed in.",
    )
    log_level: str = Field(
        default=DEFAULT_LOG_LEVEL,
        alias="LOG_LEVEL",
        description="Root logging level (e.g. INFO, DEBUG, WARNING).",
    )

    @property
    def resolved_database_url(self) -> str:
        """Return the async-compatible database URL after applying fallbacks."""

        if self.use_sqlite or not self.database_url:
            return DEFAULT_SQLITE_DATABASE_URL

        url = self.database_url.strip()
        for prefix in POSTGRES_SYNC_PREFIXES:
            if url.startswith(prefix):
                return url.replace(prefix, POSTGRES_ASYNC_PREFIX, 1)

        if url.startswith(POSTGRES_ASYNC_PREFIX) or url.startswith("sqlite+aiosqlite://"):
            return url

        raise RuntimeError(
            f"Expected a PostgreSQL or async SQLite connection string, received: {url}"
        )

    @property
    def database_type(self) -> str:
        """Return ``sqlite`` when using SQLite otherwise ``postgresql``."""

        if self.resolved_database_url.startswith("sqlite"):
            return "sqlite"
        return "postgresql"

    @property
    def log_level_numeric(self) -> int:
        """Translate ``log_level`` into the numeric constant expected by logging."""

        candidate = logging.getLevelName(self.log_level.upper())
        if isinstance(candidate, int):
            return candidate
        return logging.INFO

    def optional_config_warnings(self) -> list[str]:
        """Return human-readable warnings for unset optional configuration."""

        warnings: list[str] = []

        if self.storage_backend == "memory":
            warnings.append(
                "STORAGE_BACKEND=memory - local favorites will not survive restarts"
            )
        elif not self._explicit_storage_backend:
            warnings.append(
                f"STORAGE_BACKEND is not set - using file storage under {self.storage_path}"
            )

        if self.remote_backend == "memory":
            warnings.append(
                "REMOTE_BACKEND=memory - signed-in preferences are kept in-process only"
            )
        elif not self._explicit_database_url:
            warnings.append(
                "DATABASE_URL is not set - SQL remote store falls back to SQLite"
            )

        return warnings


@lru_cache(maxsize=1)
def get_settings() -> AppSettings:
    """Return a cached instance of :class:`AppSettings`."""

    return AppSettings()


__all__ = [
    "AppSettings",
    "DEFAULT_FAVORITES_METADATA_KEY",
    "DEFAULT_FAVORITES_STORAGE_KEY",
    "DEFAULT_LOG_LEVEL",
    "DEFAULT_RECENT_SEARCH_LIMIT",
    "DEFAULT_REDIS_URL",
    "DEFAULT_SQLITE_DATABASE_URL",
    "DEFAULT_STORAGE_PATH",
    "POSTGRES_ASYNC_PREFIX",
    "get_settings",
]
