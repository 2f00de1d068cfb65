"""Most-recently-used list of search queries."""

from __future__ import annotations

import logging
from collections.abc import Iterable

from prefstore.errors import ValidationError
from prefstore.settings import DEFAULT_RECENT_SEARCH_LIMIT

logger = logging.getLogger(__name__)

__all__ = ["RecentSearchList"]


class RecentSearchList:
    """Bounded, duplicate-free list of queries ordered newest first.

    Changes are not broadcast through the change notifier; consumers re-read
    :meth:`get` when they next render.
    """

    def __init__(self, limit: int = DEFAULT_RECENT_SEARCH_LIMIT) -> None:
        if limit < 1:
            raise ValueError("Recent search limit must be at least 1")
        self._limit = limit
        self._queries: list[str] = []

    @property
    def limit(self) -> int:
        return self._limit

    def __len__(self) -> int:
        return len(self._queries)

    def add(self, query: str, replace_hint: str | None = None) -> None:
        """Record ``query`` as the most recent search.

        When ``replace_hint`` names an earlier query that ``query`` refines, the
        hint is dropped so the refinement takes its place instead of growing
        the list. Blank queries are ignored.
        """

        try:
            cleaned = self._validate(query)
        except ValidationError as exc:
            logger.debug("Ignoring recent search: %s", exc)
            return

        hint = replace_hint.strip() if replace_hint else None
        if hint and hint != cleaned:
            self._discard(hint)
        self._discard(cleaned)
        self._queries.insert(0, cleaned)
        del self._queries[self._limit :]

    def remove(self, query: str) -> None:
        self._discard(query.strip())

    def clear(self) -> None:
        self._queries.clear()

    def get(self) -> list[str]:
        """Return a copy; mutating it does not affect the list."""

        return list(self._queries)

    def load(self, queries: Iterable[str]) -> None:
        """Replace the contents with ``queries`` (newest first).

        Blank values and later duplicates are dropped and the result is
        truncated to the limit.
        """

        loaded: list[str] = []
        for query in queries:
            if not isinstance(query, str):
                continue
            cleaned = query.strip()
            if cleaned and cleaned not in loaded:
                loaded.append(cleaned)
        self._queries = loaded[: self._limit]

    def _discard(self, query: str) -> None:
        try:
            self._queries.remove(query)
        except ValueError:
            pass

    @staticmethod
    def _validate(query: str) -> str:
        cleaned = (query or "").strip()
        if not cleaned:
            raise ValidationError("Search query is empty")
        return cleaned
