"""Process-local :class:`RemoteStore` used for demos and tests."""

from __future__ import annotations

import copy
import logging
import uuid
from typing import Any

from prefstore.remote.base import RemoteDocument, empty_profile

logger = logging.getLogger(__name__)


class InMemoryRemoteStore:
    """Keep profiles and favorite documents in dictionaries keyed by user.

    Values are deep-copied on the way in and out so callers can never alias the
    stored state, matching what a networked store would give them.
    """

    def __init__(self) -> None:
        self._profiles: dict[str, dict[str, Any]] = {}
        self._documents: dict[str, dict[str, dict[str, Any]]] = {}

    async def read_profile(self, user_id: str) -> dict[str, Any]:
        return copy.deepcopy(self._profile(user_id))

    async def update_profile(self, user_id: str, fields: dict[str, Any]) -> None:
        self._profile(user_id).update(copy.deepcopy(fields))

    async def array_union(self, user_id: str, field_name: str, value: Any) -> None:
        values = self._profile(user_id).setdefault(field_name, [])
        if value not in values:
            values.append(value)

    async def array_remove(self, user_id: str, field_name: str, value: Any) -> None:
        profile = self._profile(user_id)
        profile[field_name] = [item for item in profile.get(field_name, []) if item != value]

    async def add(self, user_id: str, document: dict[str, Any]) -> str:
        doc_id = uuid.uuid4().hex
        self._documents.setdefault(user_id, {})[doc_id] = copy.deepcopy(document)
        return doc_id

    async def update(self, user_id: str, doc_id: str, fields: dict[str, Any]) -> None:
        try:
            document = self._documents.get(user_id, {})[doc_id]
        except KeyError:
            raise LookupError(f"Document {doc_id} does not exist for user {user_id}") from None
        document.update(copy.deepcopy(fields))

    async def delete(self, user_id: str, doc_id: str) -> None:
        self._documents.get(user_id, {}).pop(doc_id, None)

    async def read_all(self, user_id: str) -> list[RemoteDocument]:
        return [
            RemoteDocument(doc_id=doc_id, data=copy.deepcopy(data))
            for doc_id, data in self._documents.get(user_id, {}).items()
        ]

    def _profile(self, user_id: str) -> dict[str, Any]:
        if user_id not in self._profiles:
            logger.info("Creating preference profile for user %s", user_id)
            self._profiles[user_id] = empty_profile()
        return self._profiles[user_id]


__all__ = ["InMemoryRemoteStore"]
