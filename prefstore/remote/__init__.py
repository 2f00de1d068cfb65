"""Authoritative per-user preference stores and the identity source."""

from .base import (
    IdentityProvider,
    PROFILE_FAVORITES_FIELD,
    PROFILE_RECENT_SEARCHES_FIELD,
    RemoteDocument,
    RemoteStore,
    SessionIdentityProvider,
)
from .memory import InMemoryRemoteStore
from .sql import SQLRemoteStore

__all__ = [
    "IdentityProvider",
    "InMemoryRemoteStore",
    "PROFILE_FAVORITES_FIELD",
    "PROFILE_RECENT_SEARCHES_FIELD",
    "RemoteDocument",
    "RemoteStore",
    "SQLRemoteStore",
    "SessionIdentityProvider",
]
