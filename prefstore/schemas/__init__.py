"""Pydantic schemas for favorites documents and API payloads."""

from prefstore.schemas.favorites import (  # noqa: F401
    FavoriteEntry,
    FavoritesExport,
    FavoritesMetadata,
    FavoritesStats,
    SortCriteria,
)
from prefstore.schemas.preferences import (  # noqa: F401
    FavoriteHotelPayload,
    PreferenceMode,
    RecentSearchCreate,
    SessionState,
)
