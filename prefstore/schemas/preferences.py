"""Request and response models for the preferences HTTP surface."""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class PreferenceMode(str, Enum):
    """Which backing store currently serves preference reads and writes."""

    LOCAL = "local"
    REMOTE = "remote"


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class FavoriteHotelPayload(BaseModel):
    """Hotel data submitted when saving a favorite.

    Search providers attach arbitrary extra fields; they are accepted as-is and
    carried into the stored document.
    """

    model_config = ConfigDict(extra="allow")

    id: str | int = Field(..., description="Hotel identifier as a string or number")
    name: str = Field(..., min_length=1, max_length=512)
    location: str | None = Field(None, max_length=512)

    def to_document(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)


class FavoritesListResponse(_CamelModel):
    total: int
    favorites: list[dict[str, Any]] = Field(default_factory=list)


class FavoriteStatusResponse(_CamelModel):
    hotel_id: str
    favorited: bool


class ImportResultResponse(_CamelModel):
    imported: int
    total: int


class SessionState(_CamelModel):
    mode: PreferenceMode
    user_id: str | None = None
    is_authenticated: bool


class SignInRequest(_CamelModel):
    user_id: str = Field(..., min_length=1, max_length=128)


class RecentSearchCreate(_CamelModel):
    query: str = Field(..., max_length=512)
    replace_hint: str | None = Field(
        None,
        max_length=512,
        description="Existing query the new one refines; replaced in place.",
    )


class RecentSearchesResponse(_CamelModel):
    searches: list[str] = Field(default_factory=list)


__all__ = [
    "FavoriteHotelPayload",
    "FavoriteStatusResponse",
    "FavoritesListResponse",
    "ImportResultResponse",
    "PreferenceMode",
    "RecentSearchCreate",
    "RecentSearchesResponse",
    "SessionState",
    "SignInRequest",
]
