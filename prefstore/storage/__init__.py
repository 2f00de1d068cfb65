"""Storage engines for the local favorites cache."""

from __future__ import annotations

from prefstore.settings import AppSettings
from prefstore.storage.engine import FileStorageEngine, InMemoryStorageEngine, StorageEngine
from prefstore.storage.redis_engine import RedisStorageEngine


def create_storage_engine(settings: AppSettings) -> StorageEngine:
    """Return the engine selected by ``STORAGE_BACKEND``."""

    if settings.storage_backend == "redis":
        return RedisStorageEngine(url=settings.redis_url)
    if settings.storage_backend == "memory":
        return InMemoryStorageEngine()
    return FileStorageEngine(settings.storage_path)


__all__ = [
    "FileStorageEngine",
    "InMemoryStorageEngine",
    "RedisStorageEngine",
    "StorageEngine",
    "create_storage_engine",
]
