"""Contracts for the authoritative per-user store and the identity source."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable

logger = logging.getLogger(__name__)

PROFILE_FAVORITES_FIELD = "favoriteHotels"
PROFILE_RECENT_SEARCHES_FIELD = "recentSearches"

IdentityListener = Callable[[str | None], Awaitable[None]]


def empty_profile() -> dict[str, Any]:
    """Return the profile document created for a user seen for the first time."""

    return {PROFILE_FAVORITES_FIELD: [], PROFILE_RECENT_SEARCHES_FIELD: []}


@dataclass(frozen=True)
class RemoteDocument:
    """A stored favorite document together with its store-assigned id."""

    doc_id: str
    data: dict[str, Any] = field(default_factory=dict)


@runtime_checkable
class RemoteStore(Protocol):
    """Per-user document store holding a profile and favorite documents.

    Every call is scoped by ``user_id``. The profile is a single document whose
    ``favoriteHotels`` field lists favorited ids and whose ``recentSearches``
    field holds the recent-search list; each favorite also has its own document
    carrying the full hotel data.
    """

    async def read_profile(self, user_id: str) -> dict[str, Any]:
        """Return the profile, creating an empty one when it does not exist."""

    async def update_profile(self, user_id: str, fields: dict[str, Any]) -> None:
        ...

    async def array_union(self, user_id: str, field_name: str, value: Any) -> None:
        """Append ``value`` to a profile list field unless already present."""

    async def array_remove(self, user_id: str, field_name: str, value: Any) -> None:
        """Remove every occurrence of ``value`` from a profile list field."""

    async def add(self, user_id: str, document: dict[str, Any]) -> str:
        """Store a new favorite document and return its id."""

    async def update(self, user_id: str, doc_id: str, fields: dict[str, Any]) -> None:
        """Merge ``fields`` into an existing document; raises ``LookupError`` if absent."""

    async def delete(self, user_id: str, doc_id: str) -> None:
        """Delete a favorite document; deleting a missing document is a no-op."""

    async def read_all(self, user_id: str) -> list[RemoteDocument]:
        """Return every favorite document of the user in creation order."""


@runtime_checkable
class IdentityProvider(Protocol):
    """Source of the signed-in identity and its transitions."""

    @property
    def current_user_id(self) -> str | None:
        ...

    def subscribe(self, listener: IdentityListener) -> Callable[[], None]:
        """Register an async listener awaited on every transition."""


class SessionIdentityProvider:
    """In-process identity holder driven by explicit sign-in/sign-out calls.

    Authentication itself happens elsewhere; callers report the outcome here and
    every subscriber is awaited, in subscription order, before the call returns.
    """

    def __init__(self, user_id: str | None = None) -> None:
        self._user_id = user_id
        self._listeners: tuple[IdentityListener, ...] = ()

    @property
    def current_user_id(self) -> str | None:
        return self._user_id

    def subscribe(self, listener: IdentityListener) -> Callable[[], None]:
        if listener not in self._listeners:
            self._listeners = (*self._listeners, listener)

        def unsubscribe() -> None:
            self._listeners = tuple(
                existing for existing in self._listeners if existing != listener
            )

        return unsubscribe

    async def sign_in(self, user_id: str) -> None:
        user_id = user_id.strip()
        if not user_id:
            raise ValueError("user_id must not be empty")
        logger.info("User %s signed in", user_id)
        await self._transition(user_id)

    async def sign_out(self) -> None:
        if self._user_id is None:
            return
        logger.info("User %s signed out", self._user_id)
        await self._transition(None)

    async def _transition(self, user_id: str | None) -> None:
        self._user_id = user_id
        for listener in self._listeners:
            await listener(user_id)


__all__ = [
    "IdentityListener",
    "IdentityProvider",
    "PROFILE_FAVORITES_FIELD",
    "PROFILE_RECENT_SEARCHES_FIELD",
    "RemoteDocument",
    "RemoteStore",
    "SessionIdentityProvider",
    "empty_profile",
]
