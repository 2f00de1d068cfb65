"""Single entry point for preference reads and writes in either mode."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import TypeVar

from prefstore.errors import StorageError
from prefstore.identifiers import HotelId
from prefstore.remote.base import IdentityProvider, RemoteStore
from prefstore.schemas.favorites import FavoriteEntry, FavoritesStats, SortCriteria
from prefstore.schemas.preferences import PreferenceMode
from prefstore.services.favorites.analytics import FavoritesAnalytics
from prefstore.services.favorites.collection import FavoriteInput
from prefstore.services.notifier import ChangeNotifier, Listener, Unsubscribe
from prefstore.services.preference_store import (
    LocalOnlyStore,
    PreferenceStore,
    RemoteBackedStore,
)
from prefstore.settings import DEFAULT_RECENT_SEARCH_LIMIT

logger = logging.getLogger(__name__)

T = TypeVar("T")


class PreferenceFacade:
    """Route preference operations to the store matching the current identity.

    While nobody is signed in every call goes to the :class:`LocalOnlyStore`.
    When the :class:`IdentityProvider` reports a user, a fresh
    :class:`RemoteBackedStore` is loaded from the remote store and swapped in;
    signing out swaps the local store back. Subscribers are notified after each
    swap and after each successful favorites mutation. Recent-search changes
    are not broadcast.
    """

    def __init__(
        self,
        *,
        local_store: LocalOnlyStore,
        remote: RemoteStore,
        identity: IdentityProvider,
        notifier: ChangeNotifier | None = None,
        recent_search_limit: int = DEFAULT_RECENT_SEARCH_LIMIT,
        clear_local_on_sign_out: bool = False,
        analytics: FavoritesAnalytics | None = None,
    ) -> None:
        self._local = local_store
        self._remote = remote
        self._identity = identity
        self._notifier = notifier or ChangeNotifier()
        self._recent_search_limit = recent_search_limit
        self._clear_local_on_sign_out = clear_local_on_sign_out
        self._analytics = analytics or FavoritesAnalytics()
        self._store: PreferenceStore = local_store
        self._generation = 0
        self._unsubscribe_identity: Unsubscribe | None = None

    # -- lifecycle -------------------------------------------------------------

    async def start(self) -> None:
        """Warm the local cache and follow identity changes from now on."""

        try:
            await self._local.load()
        except StorageError:
            logger.exception("Local favorites unavailable; continuing with an empty cache")

        if self._unsubscribe_identity is None:
            self._unsubscribe_identity = self._identity.subscribe(self._on_identity_changed)
        if self._identity.current_user_id is not None:
            await self._on_identity_changed(self._identity.current_user_id)

    async def close(self) -> None:
        if self._unsubscribe_identity is not None:
            self._unsubscribe_identity()
            self._unsubscribe_identity = None
        self._generation += 1
        if self._store is not self._local:
            self._store.discard()
            self._store = self._local

    async def _on_identity_changed(self, user_id: str | None) -> None:
        self._generation += 1
        generation = self._generation
        previous = self._store

        if user_id is None:
            store: PreferenceStore = self._local
            if previous.mode is PreferenceMode.REMOTE and self._clear_local_on_sign_out:
                try:
                    await self._local.clear_favorites()
                except StorageError:
                    logger.exception("Failed to clear local favorites on sign-out")
        else:
            store = RemoteBackedStore(
                self._remote,
                user_id,
                recent_search_limit=self._recent_search_limit,
                analytics=self._analytics,
            )
            try:
                await store.load()
            except Exception:
                logger.exception(
                    "Failed to load preferences for user %s; starting empty", user_id
                )

        if generation != self._generation:
            logger.info("Discarding superseded preference load for %s", user_id or "guest")
            return

        if previous is not store:
            previous.discard()
        self._store = store
        logger.info(
            "Preferences now served in %s mode%s",
            store.mode.value,
            f" for user {user_id}" if user_id else "",
        )
        self._notifier.notify()

    # -- session ---------------------------------------------------------------

    @property
    def mode(self) -> PreferenceMode:
        return self._store.mode

    @property
    def user_id(self) -> str | None:
        return self._store.user_id

    @property
    def is_authenticated(self) -> bool:
        return self._store.mode is PreferenceMode.REMOTE

    @property
    def notifier(self) -> ChangeNotifier:
        return self._notifier

    def subscribe(self, listener: Listener) -> Unsubscribe:
        return self._notifier.subscribe(listener)

    def require_action(self, action: Callable[[], T], fallback: Callable[[], T]) -> T:
        """Run ``action`` for a signed-in user, otherwise ``fallback``.

        Returns whatever the chosen callable returns; coroutine functions yield
        a coroutine for the caller to await.
        """

        if self.is_authenticated:
            return action()
        return fallback()

    # -- favorites -------------------------------------------------------------

    async def add_favorite(self, entry: FavoriteInput) -> FavoriteEntry:
        favorite = await self._store.add_favorite(entry)
        self._notifier.notify()
        return favorite

    async def remove_favorite(self, hotel_id: HotelId) -> bool:
        removed = await self._store.remove_favorite(hotel_id)
        if removed:
            self._notifier.notify()
        return removed

    async def toggle_favorite(self, entry: FavoriteInput) -> bool:
        """Flip the favorite state of ``entry`` and return the new state.

        There is no in-flight guard: callers must not issue a second toggle for
        the same hotel until the first one returns.
        """

        favorited = await self._store.toggle_favorite(entry)
        self._notifier.notify()
        return favorited

    async def is_favorited(self, hotel_id: HotelId) -> bool:
        return await self._store.is_favorited(hotel_id)

    async def list_favorites(
        self, sort: SortCriteria | str = SortCriteria.RECENT
    ) -> list[FavoriteEntry]:
        return await self._store.list_favorites(sort)

    async def search_favorites(self, query: str) -> list[FavoriteEntry]:
        return await self._store.search_favorites(query)

    async def favorite_stats(self) -> FavoritesStats:
        return await self._store.favorite_stats()

    async def export_favorites(self) -> str:
        return await self._store.export_favorites()

    async def import_favorites(self, payload: str, *, merge: bool = False) -> int:
        imported = await self._store.import_favorites(payload, merge=merge)
        self._notifier.notify()
        return imported

    async def clear_favorites(self) -> None:
        await self._store.clear_favorites()
        self._notifier.notify()

    # -- recent searches -------------------------------------------------------

    def recent_searches(self) -> list[str]:
        return self._store.recent_searches()

    async def add_recent_search(self, query: str, replace_hint: str | None = None) -> None:
        await self._store.add_recent_search(query, replace_hint)

    async def remove_recent_search(self, query: str) -> None:
        await self._store.remove_recent_search(query)

    async def clear_recent_searches(self) -> None:
        await self._store.clear_recent_searches()


__all__ = ["PreferenceFacade"]
