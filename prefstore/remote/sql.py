"""SQLAlchemy-backed :class:`RemoteStore` implementation."""

from __future__ import annotations

import logging
import uuid
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import sessionmaker

from prefstore.db.models import RemoteFavoriteDocument, RemoteUserProfile
from prefstore.remote.base import RemoteDocument, empty_profile

logger = logging.getLogger(__name__)


class SQLRemoteStore:
    """Persist profiles and favorite documents in two relational tables.

    Each call runs in its own session and commits before returning, so a
    completed call is durable. JSON columns are reassigned rather than mutated
    in place, which keeps SQLAlchemy's change tracking accurate.
    """

    def __init__(self, session_factory: sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    @asynccontextmanager
    async def _session(self) -> AsyncIterator[AsyncSession]:
        async with self._session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    async def _load_profile(self, session: AsyncSession, user_id: str) -> RemoteUserProfile:
        profile = await session.get(RemoteUserProfile, user_id)
        if profile is None:
            logger.info("Creating preference profile for user %s", user_id)
            profile = RemoteUserProfile(user_id=user_id, data=empty_profile())
            session.add(profile)
            await session.flush()
        return profile

    async def _load_document(
        self, session: AsyncSession, user_id: str, doc_id: str
    ) -> RemoteFavoriteDocument | None:
        result = await session.execute(
            select(RemoteFavoriteDocument).where(
                RemoteFavoriteDocument.user_id == user_id,
                RemoteFavoriteDocument.doc_id == doc_id,
            )
        )
        return result.scalar_one_or_none()

    async def read_profile(self, user_id: str) -> dict[str, Any]:
        async with self._session() as session:
            profile = await self._load_profile(session, user_id)
            return dict(profile.data)

    async def update_profile(self, user_id: str, fields: dict[str, Any]) -> None:
        async with self._session() as session:
            profile = await self._load_profile(session, user_id)
            profile.data = {**profile.data, **fields}

    async def array_union(self, user_id: str, field_name: str, value: Any) -> None:
        async with self._session() as session:
            profile = await self._load_profile(session, user_id)
            values = list(profile.data.get(field_name) or [])
            if value not in values:
                values.append(value)
                profile.data = {**profile.data, field_name: values}

    async def array_remove(self, user_id: str, field_name: str, value: Any) -> None:
        async with self._session() as session:
            profile = await self._load_profile(session, user_id)
            values = [item for item in profile.data.get(field_name) or [] if item != value]
            profile.data = {**profile.data, field_name: values}

    async def add(self, user_id: str, document: dict[str, Any]) -> str:
        doc_id = uuid.uuid4().hex
        async with self._session() as session:
            session.add(
                RemoteFavoriteDocument(doc_id=doc_id, user_id=user_id, data=dict(document))
            )
        return doc_id

    async def update(self, user_id: str, doc_id: str, fields: dict[str, Any]) -> None:
        async with self._session() as session:
            row = await self._load_document(session, user_id, doc_id)
            if row is None:
                raise LookupError(f"Document {doc_id} does not exist for user {user_id}")
            row.data = {**row.data, **fields}

    async def delete(self, user_id: str, doc_id: str) -> None:
        async with self._session() as session:
            await session.execute(
                delete(RemoteFavoriteDocument).where(
                    RemoteFavoriteDocument.user_id == user_id,
                    RemoteFavoriteDocument.doc_id == doc_id,
                )
            )

    async def read_all(self, user_id: str) -> list[RemoteDocument]:
        async with self._session() as session:
            result = await session.execute(
                select(RemoteFavoriteDocument)
                .where(RemoteFavoriteDocument.user_id == user_id)
                .order_by(RemoteFavoriteDocument.id)
            )
            return [
                RemoteDocument(doc_id=row.doc_id, data=dict(row.data))
                for row in result.scalars()
            ]


__all__ = ["SQLRemoteStore"]
