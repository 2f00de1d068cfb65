"""Construction of the preference services and their FastAPI dependencies.

Services are built once at application startup and parked on ``app.state``;
the dependency functions below only look them up, which keeps routers free of
wiring code and lets tests substitute fully in-memory services.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncEngine

from prefstore.db.connection import create_engine, create_session_factory, init_models
from prefstore.remote.base import RemoteStore, SessionIdentityProvider
from prefstore.remote.memory import InMemoryRemoteStore
from prefstore.remote.sql import SQLRemoteStore
from prefstore.services.facade import PreferenceFacade
from prefstore.services.favorites.collection import FavoritesCollection
from prefstore.services.favorites.persistence import FavoritesPersistence
from prefstore.services.preference_store import LocalOnlyStore
from prefstore.services.recent_searches import RecentSearchList
from prefstore.settings import AppSettings
from prefstore.storage import create_storage_engine
from prefstore.storage.engine import StorageEngine

logger = logging.getLogger(__name__)


@dataclass
class PreferenceServices:
    """Everything the HTTP layer needs, plus the resources to release on shutdown."""

    settings: AppSettings
    facade: PreferenceFacade
    identity: SessionIdentityProvider
    storage: StorageEngine
    database_engine: AsyncEngine | None = None

    async def close(self) -> None:
        await self.facade.close()
        close_storage = getattr(self.storage, "close", None)
        if close_storage is not None:
            await close_storage()
        if self.database_engine is not None:
            await self.database_engine.dispose()
        logger.info("Preference services shut down")


async def _build_remote_store(settings: AppSettings) -> tuple[RemoteStore, AsyncEngine | None]:
    if settings.remote_backend == "sql":
        engine = create_engine(settings.resolved_database_url)
        await init_models(engine)
        logger.info("Using %s remote preference store", settings.database_type)
        return SQLRemoteStore(create_session_factory(engine)), engine
    logger.info("Using in-memory remote preference store")
    return InMemoryRemoteStore(), None


async def build_preference_services(
    settings: AppSettings,
    *,
    storage: StorageEngine | None = None,
    remote: RemoteStore | None = None,
    identity: SessionIdentityProvider | None = None,
) -> PreferenceServices:
    """Wire storage, remote store, identity and facade together and start it.

    Explicit ``storage``/``remote``/``identity`` arguments take precedence over
    the configured backends.
    """

    storage = storage or create_storage_engine(settings)
    database_engine = None
    if remote is None:
        remote, database_engine = await _build_remote_store(settings)
    identity = identity or SessionIdentityProvider()

    persistence = FavoritesPersistence(
        storage,
        storage_key=settings.favorites_storage_key,
        metadata_key=settings.favorites_metadata_key,
    )
    local_store = LocalOnlyStore(
        FavoritesCollection(persistence),
        recent_searches=RecentSearchList(settings.recent_search_limit),
    )
    facade = PreferenceFacade(
        local_store=local_store,
        remote=remote,
        identity=identity,
        recent_search_limit=settings.recent_search_limit,
        clear_local_on_sign_out=settings.clear_local_on_sign_out,
    )
    await facade.start()
    return PreferenceServices(
        settings=settings,
        facade=facade,
        identity=identity,
        storage=storage,
        database_engine=database_engine,
    )


def get_preference_services(request: Request) -> PreferenceServices:
    return request.app.state.preferences


def get_preference_facade(request: Request) -> PreferenceFacade:
    """Return the facade created during application startup."""

    return get_preference_services(request).facade


def get_identity_provider(request: Request) -> SessionIdentityProvider:
    return get_preference_services(request).identity


__all__ = [
    "PreferenceServices",
    "build_preference_services",
    "get_identity_provider",
    "get_preference_facade",
    "get_preference_services",
]
