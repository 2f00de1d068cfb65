"""Pure read-side helpers shared by the local and remote preference stores."""

from __future__ import annotations

import json
from collections import Counter
from collections.abc import Iterable

from pydantic import ValidationError as PydanticValidationError

from prefstore.errors import ImportFormatError
from prefstore.schemas.favorites import (
    EXPORT_FORMAT_VERSION,
    FavoriteEntry,
    FavoritesExport,
    FavoritesStats,
    SortCriteria,
)
from prefstore.utils.timestamps import format_timestamp, utcnow

UNKNOWN_LOCATION = "Unknown"


class FavoritesAnalytics:
    """Sorting, searching, statistics and export routines over favorite entries.

    Every method takes entries in insertion order and never mutates them, so
    the same helper serves the persistent local collection and the in-memory
    state of a signed-in session.
    """

    def sort_entries(
        self,
        entries: Iterable[FavoriteEntry],
        criteria: SortCriteria | str = SortCriteria.RECENT,
    ) -> list[FavoriteEntry]:
        """Return entries ordered by ``criteria``.

        ``sorted`` is stable, so entries with equal keys keep the order they
        were supplied in (insertion order for callers passing the live map).
        """

        criteria = SortCriteria(criteria)
        if criteria is SortCriteria.NAME:
            return sorted(entries, key=lambda entry: entry.name.casefold())
        if criteria is SortCriteria.LOCATION:
            return sorted(entries, key=lambda entry: (entry.location or "").casefold())
        return sorted(entries, key=lambda entry: entry.added_at, reverse=True)

    def search(self, entries: Iterable[FavoriteEntry], query: str) -> list[FavoriteEntry]:
        """Case-insensitive substring match on name and location, newest first."""

        ordered = self.sort_entries(entries, SortCriteria.RECENT)
        term = query.strip().casefold()
        if not term:
            return ordered
        return [
            entry
            for entry in ordered
            if term in entry.name.casefold() or term in (entry.location or "").casefold()
        ]

    def compute_stats(self, entries: Iterable[FavoriteEntry]) -> FavoritesStats:
        """Derive totals, date bounds and per-location counts."""

        entry_list = list(entries)
        if not entry_list:
            return FavoritesStats(total_favorites=0, favorites_by_location={})

        oldest = min(entry_list, key=lambda entry: entry.added_at)
        newest = max(entry_list, key=lambda entry: entry.added_at)
        by_location = Counter(entry.location or UNKNOWN_LOCATION for entry in entry_list)
        return FavoritesStats(
            total_favorites=len(entry_list),
            oldest_favorite=format_timestamp(oldest.added_at),
            newest_favorite=format_timestamp(newest.added_at),
            favorites_by_location=dict(by_location),
        )

    def export_payload(self, entries: Iterable[FavoriteEntry]) -> str:
        """Serialize entries (newest first) into the versioned backup format."""

        payload = FavoritesExport(
            favorites=[
                entry.to_document()
                for entry in self.sort_entries(entries, SortCriteria.RECENT)
            ],
            exported_at=format_timestamp(utcnow()),
            version=EXPORT_FORMAT_VERSION,
        )
        return json.dumps(payload.model_dump(by_alias=True), indent=2)

    def parse_import(self, payload: str) -> list[FavoriteEntry]:
        """Validate a backup payload and return its entries in insertion order.

        Exports list newest first. Entries are returned oldest first, with
        entries sharing a timestamp kept in export order, which rebuilds the
        insertion order the export was taken from. Raises ``ImportFormatError``
        before anything is mutated when the payload is unusable.
        """

        try:
            parsed = FavoritesExport.model_validate_json(payload)
        except PydanticValidationError as exc:
            raise ImportFormatError("Import payload is not a valid favorites export") from exc

        if parsed.version != EXPORT_FORMAT_VERSION:
            raise ImportFormatError(
                f"Unsupported favorites export version {parsed.version!r};"
                f" expected {EXPORT_FORMAT_VERSION!r}"
            )

        imported_at = utcnow()
        entries: list[FavoriteEntry] = []
        for document in parsed.favorites:
            try:
                entries.append(
                    FavoriteEntry.from_document(document, default_added_at=imported_at)
                )
            except (PydanticValidationError, ValueError) as exc:
                raise ImportFormatError(
                    f"Favorite {document.get('id')!r} in import payload is invalid"
                ) from exc
        return sorted(entries, key=lambda entry: entry.added_at)


__all__ = ["FavoritesAnalytics", "UNKNOWN_LOCATION"]
