"""Mode-specific preference stores selected by :class:`PreferenceFacade`.

``LocalOnlyStore`` serves a guest session from the persistent on-device
collection. ``RemoteBackedStore`` serves a signed-in user from in-memory state
loaded out of the :class:`RemoteStore`, applying each change optimistically and
then writing it through. The facade picks one per identity, so neither store
has to ask which mode it is in.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Protocol, runtime_checkable

from prefstore.errors import NotFoundError, RemoteWriteError
from prefstore.identifiers import HotelId, normalize_id
from prefstore.remote.base import (
    PROFILE_FAVORITES_FIELD,
    PROFILE_RECENT_SEARCHES_FIELD,
    RemoteStore,
)
from prefstore.schemas.favorites import FavoriteEntry, FavoritesStats, SortCriteria
from prefstore.schemas.preferences import PreferenceMode
from prefstore.services.favorites.analytics import FavoritesAnalytics
from prefstore.services.favorites.collection import FavoriteInput, FavoritesCollection
from prefstore.services.recent_searches import RecentSearchList
from prefstore.settings import DEFAULT_RECENT_SEARCH_LIMIT
from prefstore.utils.timestamps import utcnow

logger = logging.getLogger(__name__)


@runtime_checkable
class PreferenceStore(Protocol):
    """Operations every mode-specific store provides."""

    @property
    def mode(self) -> PreferenceMode: ...

    @property
    def user_id(self) -> str | None: ...

    async def load(self) -> None: ...

    def discard(self) -> None: ...

    async def add_favorite(self, entry: FavoriteInput) -> FavoriteEntry: ...

    async def remove_favorite(self, hotel_id: HotelId) -> bool: ...

    async def toggle_favorite(self, entry: FavoriteInput) -> bool: ...

    async def is_favorited(self, hotel_id: HotelId) -> bool: ...

    async def list_favorites(
        self, criteria: SortCriteria | str = SortCriteria.RECENT
    ) -> list[FavoriteEntry]: ...

    async def search_favorites(self, query: str) -> list[FavoriteEntry]: ...

    async def favorite_stats(self) -> FavoritesStats: ...

    async def export_favorites(self) -> str: ...

    async def import_favorites(self, payload: str, *, merge: bool = False) -> int: ...

    async def clear_favorites(self) -> None: ...

    def recent_searches(self) -> list[str]: ...

    async def add_recent_search(self, query: str, replace_hint: str | None = None) -> None: ...

    async def remove_recent_search(self, query: str) -> None: ...

    async def clear_recent_searches(self) -> None: ...


class LocalOnlyStore:
    """Guest-mode store: persistent favorites and in-process recent searches.

    Performs no network I/O. The recent-search list lives only as long as the
    process; favorites survive restarts through :class:`FavoritesCollection`.
    """

    def __init__(
        self,
        collection: FavoritesCollection,
        *,
        recent_searches: RecentSearchList | None = None,
    ) -> None:
        self._collection = collection
        self._recent = recent_searches or RecentSearchList()

    @property
    def mode(self) -> PreferenceMode:
        return PreferenceMode.LOCAL

    @property
    def user_id(self) -> str | None:
        return None

    @property
    def collection(self) -> FavoritesCollection:
        return self._collection

    async def load(self) -> None:
        await self._collection.persistence.ensure_initialized()

    def discard(self) -> None:
        # Persisted favorites stay; only in-process state is dropped.
        self._recent.clear()

    async def add_favorite(self, entry: FavoriteInput) -> FavoriteEntry:
        return await self._collection.add(entry)

    async def remove_favorite(self, hotel_id: HotelId) -> bool:
        return await self._collection.remove(hotel_id)

    async def toggle_favorite(self, entry: FavoriteInput) -> bool:
        return await self._collection.toggle(entry)

    async def is_favorited(self, hotel_id: HotelId) -> bool:
        return await self._collection.is_favorited(hotel_id)

    async def list_favorites(
        self, criteria: SortCriteria | str = SortCriteria.RECENT
    ) -> list[FavoriteEntry]:
        return await self._collection.get_sorted(criteria)

    async def search_favorites(self, query: str) -> list[FavoriteEntry]:
        return await self._collection.search(query)

    async def favorite_stats(self) -> FavoritesStats:
        return await self._collection.stats()

    async def export_favorites(self) -> str:
        return await self._collection.export()

    async def import_favorites(self, payload: str, *, merge: bool = False) -> int:
        return await self._collection.import_favorites(payload, merge=merge)

    async def clear_favorites(self) -> None:
        await self._collection.clear_all()

    def recent_searches(self) -> list[str]:
        return self._recent.get()

    async def add_recent_search(self, query: str, replace_hint: str | None = None) -> None:
        self._recent.add(query, replace_hint)

    async def remove_recent_search(self, query: str) -> None:
        self._recent.remove(query)

    async def clear_recent_searches(self) -> None:
        self._recent.clear()


class RemoteBackedStore:
    """Signed-in store holding one user's preferences in memory.

    :meth:`load` replaces the in-memory state with the remote profile and
    favorite documents. Every mutation first updates memory, then awaits the
    remote write; a failed write raises :class:`RemoteWriteError` and the
    in-memory change is kept, so memory may run ahead of the remote store until
    the next full load.
    """

    def __init__(
        self,
        remote: RemoteStore,
        user_id: str,
        *,
        recent_search_limit: int = DEFAULT_RECENT_SEARCH_LIMIT,
        analytics: FavoritesAnalytics | None = None,
    ) -> None:
        self._remote = remote
        self._user_id = user_id
        self._analytics = analytics or FavoritesAnalytics()
        self._entries: dict[str, FavoriteEntry] = {}
        self._doc_ids: dict[str, list[str]] = {}
        self._recent = RecentSearchList(recent_search_limit)

    @property
    def mode(self) -> PreferenceMode:
        return PreferenceMode.REMOTE

    @property
    def user_id(self) -> str:
        return self._user_id

    async def load(self) -> None:
        """Replace in-memory state with the user's remote profile and documents."""

        profile = await self._remote.read_profile(self._user_id)
        documents = await self._remote.read_all(self._user_id)

        entries: dict[str, FavoriteEntry] = {}
        doc_ids: dict[str, list[str]] = {}
        loaded_at = utcnow()
        for document in documents:
            try:
                entry = FavoriteEntry.from_document(document.data, default_added_at=loaded_at)
            except ValueError as exc:
                logger.warning(
                    "Skipping unreadable remote favorite %s for user %s: %s",
                    document.doc_id,
                    self._user_id,
                    exc,
                )
                continue
            entries[entry.id] = entry
            doc_ids.setdefault(entry.id, []).append(document.doc_id)

        for hotel_id in profile.get(PROFILE_FAVORITES_FIELD) or []:
            if normalize_id(hotel_id) not in entries:
                logger.warning(
                    "Favorite %s of user %s has no stored document; ignoring",
                    hotel_id,
                    self._user_id,
                )

        self._entries = entries
        self._doc_ids = doc_ids
        self._recent.load(profile.get(PROFILE_RECENT_SEARCHES_FIELD) or [])
        logger.info(
            "Loaded %d favorites and %d recent searches for user %s",
            len(self._entries),
            len(self._recent),
            self._user_id,
        )

    def discard(self) -> None:
        self._entries = {}
        self._doc_ids = {}
        self._recent.clear()

    async def add_favorite(self, entry: FavoriteInput) -> FavoriteEntry:
        favorite = FavoritesCollection.coerce(entry)
        self._entries[favorite.id] = favorite
        document = favorite.to_document()

        with self._write_through("add"):
            known = self._doc_ids.get(favorite.id)
            if known:
                await self._remote.update(self._user_id, known[0], document)
            else:
                doc_id = await self._remote.add(self._user_id, document)
                self._doc_ids.setdefault(favorite.id, []).append(doc_id)
            await self._remote.array_union(
                self._user_id, PROFILE_FAVORITES_FIELD, favorite.id
            )

        logger.info("Added %s to favorites of user %s", favorite.name, self._user_id)
        return favorite

    async def remove_favorite(self, hotel_id: HotelId) -> bool:
        key = normalize_id(hotel_id)
        try:
            removed = self._pop(key)
        except NotFoundError as exc:
            logger.warning("%s", exc)
            return False

        with self._write_through("remove"):
            await self._remote.array_remove(self._user_id, PROFILE_FAVORITES_FIELD, key)
            await self._delete_documents(key)

        logger.info("Removed %s from favorites of user %s", removed.name, self._user_id)
        return True

    async def toggle_favorite(self, entry: FavoriteInput) -> bool:
        favorite = FavoritesCollection.coerce(entry)
        if favorite.id in self._entries:
            await self.remove_favorite(favorite.id)
            logger.info("Toggled OFF: %s", favorite.name)
            return False
        await self.add_favorite(favorite)
        logger.info("Toggled ON: %s", favorite.name)
        return True

    async def is_favorited(self, hotel_id: HotelId) -> bool:
        return normalize_id(hotel_id) in self._entries

    async def list_favorites(
        self, criteria: SortCriteria | str = SortCriteria.RECENT
    ) -> list[FavoriteEntry]:
        return self._analytics.sort_entries(self._entries.values(), criteria)

    async def search_favorites(self, query: str) -> list[FavoriteEntry]:
        return self._analytics.search(self._entries.values(), query)

    async def favorite_stats(self) -> FavoritesStats:
        return self._analytics.compute_stats(self._entries.values())

    async def export_favorites(self) -> str:
        return self._analytics.export_payload(self._entries.values())

    async def import_favorites(self, payload: str, *, merge: bool = False) -> int:
        imported = self._analytics.parse_import(payload)
        if not merge:
            await self.clear_favorites()
        for favorite in imported:
            await self.add_favorite(favorite)
        logger.info(
            "Imported %d favorites for user %s (merge=%s)", len(imported), self._user_id, merge
        )
        return len(imported)

    async def clear_favorites(self) -> None:
        self._entries = {}

        with self._write_through("clear"):
            await self._remote.update_profile(self._user_id, {PROFILE_FAVORITES_FIELD: []})
            for key in list(self._doc_ids):
                await self._delete_documents(key)

        logger.info("Cleared all favorites of user %s", self._user_id)

    def recent_searches(self) -> list[str]:
        return self._recent.get()

    async def add_recent_search(self, query: str, replace_hint: str | None = None) -> None:
        before = self._recent.get()
        self._recent.add(query, replace_hint)
        if self._recent.get() != before:
            await self._save_recent_searches()

    async def remove_recent_search(self, query: str) -> None:
        self._recent.remove(query)
        await self._save_recent_searches()

    async def clear_recent_searches(self) -> None:
        self._recent.clear()
        await self._save_recent_searches()

    async def _save_recent_searches(self) -> None:
        with self._write_through("recent_searches"):
            await self._remote.update_profile(
                self._user_id, {PROFILE_RECENT_SEARCHES_FIELD: self._recent.get()}
            )

    async def _delete_documents(self, key: str) -> None:
        # Ids are forgotten one delete at a time so a failed delete keeps them
        # for the next add to reuse.
        doc_ids = self._doc_ids.get(key, [])
        while doc_ids:
            await self._remote.delete(self._user_id, doc_ids[0])
            doc_ids.pop(0)
        self._doc_ids.pop(key, None)

    def _pop(self, key: str) -> FavoriteEntry:
        try:
            return self._entries.pop(key)
        except KeyError:
            raise NotFoundError(key) from None

    @contextmanager
    def _write_through(self, operation: str) -> Iterator[None]:
        try:
            yield
        except Exception as exc:
            logger.error(
                "Remote %s failed for user %s; keeping local change: %s",
                operation,
                self._user_id,
                exc,
            )
            raise RemoteWriteError(operation, self._user_id) from exc


__all__ = ["LocalOnlyStore", "PreferenceStore", "RemoteBackedStore"]
