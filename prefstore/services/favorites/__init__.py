"""Favorites domain components split by responsibility.

``FavoritesPersistence`` owns the in-memory map and its storage documents,
``FavoritesAnalytics`` holds the pure sort/search/stats/export routines, and
``FavoritesCollection`` combines them into the write-through API used by the
local preference store.
"""

from .analytics import FavoritesAnalytics
from .collection import FavoritesCollection
from .persistence import FavoritesPersistence

__all__ = [
    "FavoritesAnalytics",
    "FavoritesCollection",
    "FavoritesPersistence",
]
