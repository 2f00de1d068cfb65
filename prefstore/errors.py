"""Exception taxonomy shared by the preference services.

Only some of these errors ever reach callers. ``NotFoundError`` and
``ValidationError`` are raised and handled internally so that removals stay
idempotent and blank searches are ignored; they exist as classes so the
handling sites read the same way as every other failure path.
"""

from __future__ import annotations

__all__ = [
    "AuthenticationRequiredError",
    "ImportFormatError",
    "NotFoundError",
    "PreferenceError",
    "RemoteWriteError",
    "StorageError",
    "ValidationError",
]


class PreferenceError(Exception):
    """Base class for every error raised by :mod:`prefstore`."""


class StorageError(PreferenceError):
    """Reading from or writing to the local storage engine failed."""


class NotFoundError(PreferenceError, LookupError):
    """The requested favorite is not present.

    Removal treats this as success; the error is logged and swallowed.
    """

    def __init__(self, hotel_id: str) -> None:
        super().__init__(f"Hotel {hotel_id} not found in favorites")
        self.hotel_id = hotel_id


class RemoteWriteError(PreferenceError):
    """A write-through call to the remote store failed.

    The optimistic in-memory update that preceded the call is left in place.
    """

    def __init__(self, operation: str, user_id: str) -> None:
        super().__init__(f"Remote {operation} failed for user {user_id}")
        self.operation = operation
        self.user_id = user_id


class ValidationError(PreferenceError, ValueError):
    """A recent-search query was empty once whitespace was removed."""


class ImportFormatError(PreferenceError, ValueError):
    """An import payload could not be parsed into favorites."""


class AuthenticationRequiredError(PreferenceError):
    """A mutation was attempted without a signed-in identity."""
