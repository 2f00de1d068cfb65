"""Redis-backed storage engine for deployments that share one local cache.

The client is created lazily from ``REDIS_URL`` on first use. Unlike a
best-effort cache, the favorites store must not silently drop writes, so every
Redis failure is reported as :class:`~prefstore.errors.StorageError`.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from redis.exceptions import RedisError

from prefstore.errors import StorageError

if TYPE_CHECKING:
    from redis.asyncio import Redis as RedisClient

logger = logging.getLogger(__name__)

__all__ = ["RedisStorageEngine"]


class RedisStorageEngine:
    """Store JSON documents as plain Redis strings under a key prefix."""

    def __init__(
        self,
        client: "RedisClient | None" = None,
        *,
        url: str | None = None,
        key_prefix: str = "prefstore",
    ) -> None:
        if client is None and url is None:
            raise ValueError("RedisStorageEngine requires a client or a url")
        self._client = client
        self._url = url
        self._key_prefix = key_prefix
        self._client_lock = asyncio.Lock()

    def _key(self, key: str) -> str:
        return f"{self._key_prefix}:{key}" if self._key_prefix else key

    async def _get_client(self) -> "RedisClient":
        if self._client is not None:
            return self._client

        async with self._client_lock:
            # Double-check inside the lock so concurrent callers share one client.
            if self._client is None:
                from redis.asyncio import Redis

                self._client = Redis.from_url(
                    self._url, decode_responses=True, encoding="utf-8"
                )
                logger.info("Redis storage client created for %s", self._url)
        return self._client

    async def get(self, key: str) -> str | None:
        client = await self._get_client()
        try:
            return await client.get(self._key(key))
        except RedisError as exc:
            raise StorageError(f"Redis get failed for key {key!r}") from exc

    async def set(self, key: str, value: str) -> None:
        client = await self._get_client()
        try:
            await client.set(self._key(key), value)
        except RedisError as exc:
            raise StorageError(f"Redis set failed for key {key!r}") from exc

    async def remove(self, key: str) -> None:
        client = await self._get_client()
        try:
            await client.delete(self._key(key))
        except RedisError as exc:
            raise StorageError(f"Redis delete failed for key {key!r}") from exc

    async def close(self) -> None:
        """Close the underlying connection pool if this engine created it."""

        if self._client is not None and self._url is not None:
            await self._client.aclose()
            self._client = None
