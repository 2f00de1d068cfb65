"""Hotel preference storage shared by local-only and signed-in sessions.

The package keeps two user preference collections consistent: the favorited
hotels set and the recent-search list. :class:`PreferenceFacade` is the entry
point; everything else is a collaborator wired together at startup by
:func:`prefstore.services.dependencies.build_preference_services`.
"""

from prefstore.errors import (
    AuthenticationRequiredError,
    ImportFormatError,
    NotFoundError,
    PreferenceError,
    RemoteWriteError,
    StorageError,
    ValidationError,
)
from prefstore.identifiers import normalize_id

__all__ = [
    "AuthenticationRequiredError",
    "ImportFormatError",
    "NotFoundError",
    "PreferenceError",
    "RemoteWriteError",
    "StorageError",
    "ValidationError",
    "normalize_id",
]

__version__ = "0.1.0"
