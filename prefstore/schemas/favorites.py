"""Pydantic models describing favorites and their persisted documents."""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from prefstore.identifiers import normalize_id
from prefstore.utils.timestamps import format_timestamp, parse_timestamp, utcnow

EXPORT_FORMAT_VERSION = "1.0"

# Provider fields consulted, in order, when a document carries no location.
_LOCATION_FALLBACK_FIELDS = ("city", "address", "country")
_RESERVED_FIELDS = frozenset({"id", "name", "location", "addedAt", "added_at", "extras"})


class SortCriteria(str, Enum):
    """Orderings supported by :meth:`FavoritesCollection.get_sorted`."""

    RECENT = "recent"
    NAME = "name"
    LOCATION = "location"


def extract_location(document: Mapping[str, Any]) -> str | None:
    """Return the first non-blank provider field usable as a location."""

    for key in _LOCATION_FALLBACK_FIELDS:
        value = document.get(key)
        if isinstance(value, str) and value.strip():
            return value
    return None


class FavoriteEntry(BaseModel):
    """A hotel saved by the user, keyed by its normalized identifier.

    The required fields are explicit; anything else a search provider attached
    to the hotel (images, prices, amenities, ...) lives in ``extras`` and is
    flattened back into the document by :meth:`to_document`.
    """

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(..., description="Normalized hotel identifier")
    name: str = Field(..., description="Display name of the hotel")
    location: str | None = Field(
        None, description="Free-text location used for grouping and sorting."
    )
    added_at: datetime = Field(
        ...,
        alias="addedAt",
        description="Timestamp recorded once when the hotel was first saved.",
    )
    extras: dict[str, Any] = Field(
        default_factory=dict,
        description="Opaque provider-specific fields carried alongside the entry.",
    )

    @field_validator("id", mode="before")
    @classmethod
    def _normalize_identifier(cls, value: Any) -> str:
        return normalize_id(value)

    @field_validator("added_at", mode="before")
    @classmethod
    def _parse_added_at(cls, value: Any) -> Any:
        if isinstance(value, (str, datetime)):
            return parse_timestamp(value)
        return value

    @classmethod
    def from_document(
        cls,
        document: Mapping[str, Any],
        *,
        default_added_at: datetime | None = None,
    ) -> "FavoriteEntry":
        """Build an entry from a flat document, backfilling legacy gaps.

        Documents written before ``addedAt`` or ``location`` existed receive
        ``default_added_at`` (or the current time) and a location derived from
        ``city``/``address``/``country``. Raises ``ValueError`` when the id or
        name is missing.
        """

        if document.get("id") is None:
            raise ValueError("Favorite documents require an id")
        if document.get("name") is None:
            raise ValueError(f"Favorite {document['id']!r} has no name")

        extras: dict[str, Any] = {}
        nested = document.get("extras")
        if isinstance(nested, Mapping):
            extras.update(nested)
        extras.update(
            (key, value) for key, value in document.items() if key not in _RESERVED_FIELDS
        )

        location = document.get("location") or extract_location(extras)
        added_at = document.get("addedAt") or document.get("added_at")
        return cls(
            id=document["id"],
            name=str(document["name"]),
            location=location,
            added_at=added_at or default_added_at or utcnow(),
            extras=extras,
        )

    def to_document(self) -> dict[str, Any]:
        """Return the flat JSON-ready document stored locally and remotely."""

        document = dict(self.extras)
        document["id"] = self.id
        document["name"] = self.name
        if self.location is not None:
            document["location"] = self.location
        document["addedAt"] = format_timestamp(self.added_at)
        return document


class FavoritesMetadata(BaseModel):
    """Diagnostic record persisted next to the favorites document."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    last_updated: int = Field(0, ge=0, description="Epoch milliseconds of the last write")
    count: int = Field(0, ge=0)


class FavoritesStats(BaseModel):
    """Aggregates derived from the current favorites; never stored."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    total_favorites: int = Field(..., ge=0)
    oldest_favorite: str | None = None
    newest_favorite: str | None = None
    favorites_by_location: dict[str, int] = Field(default_factory=dict)


class FavoritesExport(BaseModel):
    """Backup payload produced by ``export`` and consumed by ``import``."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    favorites: list[dict[str, Any]] = Field(default_factory=list)
    exported_at: str | None = None
    version: str = EXPORT_FORMAT_VERSION


__all__ = [
    "EXPORT_FORMAT_VERSION",
    "FavoriteEntry",
    "FavoritesExport",
    "FavoritesMetadata",
    "FavoritesStats",
    "SortCriteria",
    "extract_location",
]
