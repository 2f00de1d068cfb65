"""Shared fixtures for the preference service tests."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import pytest

from prefstore.errors import StorageError
from prefstore.services.favorites.collection import FavoritesCollection
from prefstore.services.favorites.persistence import FavoritesPersistence
from prefstore.storage.engine import InMemoryStorageEngine


class FlakyStorageEngine(InMemoryStorageEngine):
    """In-memory engine whose reads and writes can be switched to fail."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        super().__init__(initial)
        self.fail_reads = False
        self.fail_writes = False
        self.get_calls = 0

    async def get(self, key: str) -> str | None:
        self.get_calls += 1
        if self.fail_reads:
            raise StorageError(f"read of {key} failed")
        return await super().get(key)

    async def set(self, key: str, value: str) -> None:
        if self.fail_writes:
            raise StorageError(f"write of {key} failed")
        await super().set(key, value)

    async def remove(self, key: str) -> None:
        if self.fail_writes:
            raise StorageError(f"remove of {key} failed")
        await super().remove(key)


@pytest.fixture
def engine() -> FlakyStorageEngine:
    return FlakyStorageEngine()


@pytest.fixture
def persistence(engine: FlakyStorageEngine) -> FavoritesPersistence:
    return FavoritesPersistence(engine)


@pytest.fixture
def collection(persistence: FavoritesPersistence) -> FavoritesCollection:
    return FavoritesCollection(persistence)


@pytest.fixture
def make_hotel() -> Callable[..., dict[str, Any]]:
    """Return a factory producing hotel documents as search results deliver them."""

    def _make(hotel_id: Any = "h1", name: str = "Hotel One", **fields: Any) -> dict[str, Any]:
        return {"id": hotel_id, "name": name, **fields}

    return _make
