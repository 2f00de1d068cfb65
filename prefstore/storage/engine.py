"""Key/value engines backing the local favorites cache.

Every engine stores JSON-encoded strings under a handful of well-known keys.
Failures surface as :class:`~prefstore.errors.StorageError` so callers never
need to know which backend is configured.
"""

from __future__ import annotations

import asyncio
import logging
import os
import tempfile
from pathlib import Path
from typing import Protocol, runtime_checkable
from urllib.parse import quote

from prefstore.errors import StorageError

logger = logging.getLogger(__name__)

__all__ = [
    "FileStorageEngine",
    "InMemoryStorageEngine",
    "StorageEngine",
]


@runtime_checkable
class StorageEngine(Protocol):
    """Minimal async contract consumed by :class:`FavoritesPersistence`."""

    async def get(self, key: str) -> str | None: ...

    async def set(self, key: str, value: str) -> None: ...

    async def remove(self, key: str) -> None: ...


class InMemoryStorageEngine:
    """Process-local engine used for demos and tests."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._values: dict[str, str] = dict(initial or {})

    async def get(self, key: str) -> str | None:
        return self._values.get(key)

    async def set(self, key: str, value: str) -> None:
        self._values[key] = value

    async def remove(self, key: str) -> None:
        self._values.pop(key, None)

    def snapshot(self) -> dict[str, str]:
        """Return a copy of the stored values for assertions and debugging."""

        return dict(self._values)


class FileStorageEngine:
    """Store each key as a file inside ``directory``.

    Keys are percent-encoded into file names. Writes go to a temporary file in
    the same directory and are moved into place with :func:`os.replace`, so a
    crash mid-write never leaves a truncated document behind. Blocking file IO
    runs in the default executor to keep the event loop responsive.
    """

    def __init__(self, directory: str | Path) -> None:
        self._directory = Path(directory)

    @property
    def directory(self) -> Path:
        return self._directory

    def _path_for(self, key: str) -> Path:
        return self._directory / f"{quote(key, safe='')}.json"

    async def get(self, key: str) -> str | None:
        path = self._path_for(key)
        try:
            return await asyncio.to_thread(self._read, path)
        except OSError as exc:
            raise StorageError(f"Failed to read {key!r} from {path}") from exc

    async def set(self, key: str, value: str) -> None:
        path = self._path_for(key)
        try:
            await asyncio.to_thread(self._write, path, value)
        except OSError as exc:
            raise StorageError(f"Failed to write {key!r} to {path}") from exc

    async def remove(self, key: str) -> None:
        path = self._path_for(key)
        try:
            await asyncio.to_thread(path.unlink, missing_ok=True)
        except OSError as exc:
            raise StorageError(f"Failed to remove {key!r} at {path}") from exc

    @staticmethod
    def _read(path: Path) -> str | None:
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def _write(self, path: Path, value: str) -> None:
        self._directory.mkdir(parents=True, exist_ok=True)
        fd, temp_name = tempfile.mkstemp(dir=self._directory, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(value)
            os.replace(temp_name, path)
        except OSError:
            Path(temp_name).unlink(missing_ok=True)
            raise
        logger.debug("Wrote %d bytes to %s", len(value), path)
