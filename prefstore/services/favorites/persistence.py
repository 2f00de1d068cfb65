"""Durable storage of the local favorites map."""

from __future__ import annotations

import asyncio
import json
import logging
from datetime import datetime
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from prefstore.errors import StorageError
from prefstore.schemas.favorites import FavoriteEntry, FavoritesMetadata
from prefstore.settings import DEFAULT_FAVORITES_METADATA_KEY, DEFAULT_FAVORITES_STORAGE_KEY
from prefstore.storage.engine import StorageEngine
from prefstore.utils.timestamps import epoch_millis, utcnow

logger = logging.getLogger(__name__)


class FavoritesPersistence:
    """Own the in-memory favorites map and mirror it to a storage engine.

    The map is hydrated lazily on first access. Mutations are write-through:
    :class:`FavoritesCollection` updates :attr:`entries` and immediately awaits
    :meth:`persist`, so memory and storage only diverge if the process dies
    between the two steps.
    """

    def __init__(
        self,
        engine: StorageEngine,
        *,
        storage_key: str = DEFAULT_FAVORITES_STORAGE_KEY,
        metadata_key: str = DEFAULT_FAVORITES_METADATA_KEY,
    ) -> None:
        self._engine = engine
        self._storage_key = storage_key
        self._metadata_key = metadata_key
        self._entries: dict[str, FavoriteEntry] = {}
        self._is_initialized = False
        self._initializing: asyncio.Task[None] | None = None
        self._last_updated = 0

    @property
    def entries(self) -> dict[str, FavoriteEntry]:
        """The live map keyed by normalized hotel id, in insertion order."""

        return self._entries

    @property
    def is_initialized(self) -> bool:
        return self._is_initialized

    @property
    def last_updated(self) -> int:
        return self._last_updated

    async def ensure_initialized(self) -> None:
        """Hydrate the map unless a previous call already did (or failed)."""

        if not self._is_initialized:
            await self.initialize()

    async def initialize(self) -> None:
        """Load both stored documents into memory.

        Concurrent callers await the same in-flight task instead of re-reading
        storage. A failed load leaves the map empty, still marks the store as
        initialized so later calls do not retry, and raises ``StorageError``.
        """

        if self._is_initialized:
            return
        if self._initializing is None:
            self._initializing = asyncio.get_running_loop().create_task(self._hydrate())
        await self._initializing

    async def _hydrate(self) -> None:
        logger.info("Initializing favorites cache")
        try:
            favorites_raw, metadata_raw = await asyncio.gather(
                self._engine.get(self._storage_key),
                self._engine.get(self._metadata_key),
            )
            documents = json.loads(favorites_raw) if favorites_raw else []
            metadata = (
                FavoritesMetadata.model_validate_json(metadata_raw)
                if metadata_raw
                else FavoritesMetadata()
            )
            if not isinstance(documents, list):
                raise ValueError("Stored favorites document is not a JSON array")
        except (StorageError, ValueError) as exc:
            self._entries.clear()
            raise StorageError("Failed to initialize favorites cache") from exc
        finally:
            self._is_initialized = True

        self._entries.clear()
        migrated_at = utcnow()
        for document in documents:
            entry = self._load_document(document, migrated_at=migrated_at)
            if entry is not None:
                self._entries[entry.id] = entry
        self._last_updated = metadata.last_updated
        logger.info("Loaded %d favorites from storage", len(self._entries))

    @staticmethod
    def _load_document(document: Any, *, migrated_at: datetime) -> FavoriteEntry | None:
        if not isinstance(document, dict):
            logger.warning("Skipping stored favorite that is not an object: %r", document)
            return None
        try:
            return FavoriteEntry.from_document(document, default_added_at=migrated_at)
        except (PydanticValidationError, ValueError) as exc:
            logger.warning("Skipping unreadable stored favorite %r: %s", document.get("id"), exc)
            return None

    async def persist(self) -> None:
        """Write the full map and a fresh metadata record to storage."""

        documents = [entry.to_document() for entry in self._entries.values()]
        metadata = FavoritesMetadata(last_updated=epoch_millis(), count=len(documents))
        await asyncio.gather(
            self._engine.set(self._storage_key, json.dumps(documents)),
            self._engine.set(
                self._metadata_key, metadata.model_dump_json(by_alias=True)
            ),
        )
        self._last_updated = metadata.last_updated
        logger.debug("Persisted %d favorites to storage", len(documents))

    async def clear(self) -> None:
        """Drop every favorite from storage, then from memory.

        Memory is only cleared once both keys are gone, so a failed remove
        leaves the in-memory map matching what storage still holds.
        """

        await asyncio.gather(
            self._engine.remove(self._storage_key),
            self._engine.remove(self._metadata_key),
        )
        self._entries.clear()
        self._last_updated = epoch_millis()
        logger.info("Cleared all favorites")

    def cache_info(self) -> dict[str, Any]:
        """Return debugging information about the in-memory cache."""

        return {
            "isInitialized": self._is_initialized,
            "cacheSize": len(self._entries),
            "lastUpdated": self._last_updated,
        }
