"""CRUD and query operations over the persistent local favorites."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from prefstore.errors import NotFoundError, StorageError
from prefstore.identifiers import HotelId, normalize_id
from prefstore.schemas.favorites import FavoriteEntry, FavoritesStats, SortCriteria
from prefstore.services.favorites.analytics import FavoritesAnalytics
from prefstore.services.favorites.persistence import FavoritesPersistence
from prefstore.utils.timestamps import utcnow

logger = logging.getLogger(__name__)

FavoriteInput = FavoriteEntry | Mapping[str, Any]


class FavoritesCollection:
    """Favorites saved on this device, backed by :class:`FavoritesPersistence`.

    Every public coroutine awaits initialization first. Mutations update the
    in-memory map and persist before returning; if persisting fails the map is
    restored to its previous contents and the ``StorageError`` propagates.
    """

    def __init__(
        self,
        persistence: FavoritesPersistence,
        *,
        analytics: FavoritesAnalytics | None = None,
    ) -> None:
        self._persistence = persistence
        self._analytics = analytics or FavoritesAnalytics()

    @property
    def persistence(self) -> FavoritesPersistence:
        return self._persistence

    @property
    def _entries(self) -> dict[str, FavoriteEntry]:
        return self._persistence.entries

    async def add(self, entry: FavoriteInput) -> FavoriteEntry:
        """Insert or overwrite a favorite; the last write wins."""

        await self._persistence.ensure_initialized()
        favorite = self.coerce(entry)
        snapshot = dict(self._entries)
        self._entries[favorite.id] = favorite
        await self._commit(snapshot)
        logger.info("Added %s to favorites at %s", favorite.name, favorite.added_at)
        return favorite

    async def remove(self, hotel_id: HotelId) -> bool:
        """Remove a favorite; absent ids are a logged no-op."""

        await self._persistence.ensure_initialized()
        key = normalize_id(hotel_id)
        snapshot = dict(self._entries)
        try:
            removed = self._pop(key)
        except NotFoundError as exc:
            logger.warning("%s", exc)
            return False

        await self._commit(snapshot)
        logger.info("Removed %s from favorites", removed.name)
        return True

    async def toggle(self, entry: FavoriteInput) -> bool:
        """Flip the favorite state of ``entry`` and return the new state.

        The presence check and the map mutation run before the first ``await``,
        so interleaved toggles of the same id cannot both observe it as absent.
        """

        await self._persistence.ensure_initialized()
        favorite = self.coerce(entry)
        if favorite.id in self._entries:
            await self.remove(favorite.id)
            logger.info("Toggled OFF: %s", favorite.name)
            return False
        await self.add(favorite)
        logger.info("Toggled ON: %s", favorite.name)
        return True

    async def is_favorited(self, hotel_id: HotelId) -> bool:
        await self._persistence.ensure_initialized()
        return normalize_id(hotel_id) in self._entries

    async def get(self, hotel_id: HotelId) -> FavoriteEntry | None:
        await self._persistence.ensure_initialized()
        return self._entries.get(normalize_id(hotel_id))

    async def count(self) -> int:
        await self._persistence.ensure_initialized()
        return len(self._entries)

    async def get_all(self) -> list[FavoriteEntry]:
        """Return every favorite, most recently added first."""

        return await self.get_sorted(SortCriteria.RECENT)

    async def get_sorted(
        self, criteria: SortCriteria | str = SortCriteria.RECENT
    ) -> list[FavoriteEntry]:
        await self._persistence.ensure_initialized()
        return self._analytics.sort_entries(self._entries.values(), criteria)

    async def recent(self, limit: int = 5) -> list[FavoriteEntry]:
        return (await self.get_sorted(SortCriteria.RECENT))[:limit]

    async def search(self, query: str) -> list[FavoriteEntry]:
        await self._persistence.ensure_initialized()
        return self._analytics.search(self._entries.values(), query)

    async def stats(self) -> FavoritesStats:
        await self._persistence.ensure_initialized()
        return self._analytics.compute_stats(self._entries.values())

    async def export(self) -> str:
        """Serialize every favorite into the versioned backup format."""

        await self._persistence.ensure_initialized()
        return self._analytics.export_payload(self._entries.values())

    async def import_favorites(self, payload: str, *, merge: bool = False) -> int:
        """Load a backup produced by :meth:`export`.

        ``merge=False`` replaces the collection; ``merge=True`` overwrites
        matching ids and keeps the rest. The payload is validated before any
        state changes. Returns the number of imported entries.
        """

        await self._persistence.ensure_initialized()
        imported = self._analytics.parse_import(payload)

        snapshot = dict(self._entries)
        if not merge:
            self._entries.clear()
        for favorite in imported:
            self._entries[favorite.id] = favorite
        await self._commit(snapshot)
        logger.info("Imported %d favorites (merge=%s)", len(imported), merge)
        return len(imported)

    async def clear_all(self) -> None:
        """Remove every favorite from memory and storage."""

        await self._persistence.ensure_initialized()
        await self._persistence.clear()

    def cache_info(self) -> dict[str, Any]:
        return self._persistence.cache_info()

    def _pop(self, key: str) -> FavoriteEntry:
        try:
            return self._entries.pop(key)
        except KeyError:
            raise NotFoundError(key) from None

    async def _commit(self, snapshot: dict[str, FavoriteEntry]) -> None:
        try:
            await self._persistence.persist()
        except StorageError:
            self._entries.clear()
            self._entries.update(snapshot)
            logger.error("Failed to save favorites; in-memory state restored")
            raise

    @staticmethod
    def coerce(entry: FavoriteInput) -> FavoriteEntry:
        """Build an entry from raw hotel data, stamping ``added_at`` when absent."""

        if isinstance(entry, FavoriteEntry):
            return entry
        return FavoriteEntry.from_document(entry, default_added_at=utcnow())


__all__ = ["FavoriteInput", "FavoritesCollection"]
