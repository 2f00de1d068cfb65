"""Tests for building the preference services from settings."""

from __future__ import annotations

from pathlib import Path

import pytest

from prefstore.remote.memory import InMemoryRemoteStore
from prefstore.schemas.preferences import PreferenceMode
from prefstore.services.dependencies import build_preference_services
from prefstore.settings import AppSettings
from prefstore.storage.engine import FileStorageEngine


@pytest.mark.asyncio
async def test_builds_file_storage_and_memory_remote(tmp_path: Path) -> None:
    settings = AppSettings(STORAGE_BACKEND="file", STORAGE_PATH=str(tmp_path / "local"))

    services = await build_preference_services(settings)
    try:
        assert isinstance(services.storage, FileStorageEngine)
        assert services.database_engine is None
        assert services.facade.mode is PreferenceMode.LOCAL

        await services.facade.add_favorite({"id": 1, "name": "Persisted"})
        assert any((tmp_path / "local").iterdir())
    finally:
        await services.close()


@pytest.mark.asyncio
async def test_builds_sql_remote_store(tmp_path: Path) -> None:
    settings = AppSettings(
        STORAGE_BACKEND="memory",
        REMOTE_BACKEND="sql",
        DATABASE_URL=f"sqlite+aiosqlite:///{tmp_path / 'remote.db'}",
    )

    services = await build_preference_services(settings)
    try:
        assert services.database_engine is not None
        await services.identity.sign_in("alice")
        await services.facade.add_favorite({"id": "h1", "name": "Stored in SQL"})
    finally:
        await services.close()

    # A second process sees the same remote favorites.
    reopened = await build_preference_services(settings)
    try:
        await reopened.identity.sign_in("alice")
        favorites = await reopened.facade.list_favorites()
        assert [entry.name for entry in favorites] == ["Stored in SQL"]
    finally:
        await reopened.close()


@pytest.mark.asyncio
async def test_explicit_collaborators_take_precedence() -> None:
    remote = InMemoryRemoteStore()
    settings = AppSettings(STORAGE_BACKEND="memory", REMOTE_BACKEND="sql")

    services = await build_preference_services(settings, remote=remote)
    try:
        assert services.database_engine is None
        await services.identity.sign_in("alice")
        await services.facade.add_favorite({"id": "h1", "name": "In memory"})
        assert [document.data["id"] for document in await remote.read_all("alice")] == ["h1"]
    finally:
        await services.close()
