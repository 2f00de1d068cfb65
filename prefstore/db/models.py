"""SQLAlchemy ORM models backing :class:`prefstore.remote.sql.SQLRemoteStore`.

A profile row holds the per-user document (favorited ids and recent searches)
as JSON; each favorite additionally gets its own row carrying the full hotel
payload, mirroring the document-store layout the preference services expect.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from sqlalchemy import JSON, DateTime, Integer, String, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def utcnow():
    """Return current UTC datetime."""
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    pass


class RemoteUserProfile(Base):
    """The single profile document of a user."""

    __tablename__ = "remote_user_profiles"

    user_id: Mapped[str] = mapped_column(
        String(128),
        primary_key=True,
        doc=(
            "Opaque identifier supplied by the identity provider. Stored as a"
            " string so e-mail addresses, UUIDs and OAuth subjects all fit."
        ),
    )
    data: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        onupdate=utcnow,
        server_default=func.now(),
    )

    def __repr__(self) -> str:  # pragma: no cover - debugging helper
        return f"RemoteUserProfile(user_id={self.user_id!r})"


class RemoteFavoriteDocument(Base):
    """A favorite hotel document owned by one user."""

    __tablename__ = "remote_favorite_documents"

    # Integer surrogate key preserves creation order for ``read_all``.
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    doc_id: Mapped[str] = mapped_column(String(32), unique=True, nullable=False)
    user_id: Mapped[str] = mapped_column(String(128), index=True, nullable=False)
    data: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now()
    )

    def __repr__(self) -> str:  # pragma: no cover - debugging helper
        return (
            f"RemoteFavoriteDocument(doc_id={self.doc_id!r}, user_id={self.user_id!r})"
        )


__all__ = ["Base", "RemoteFavoriteDocument", "RemoteUserProfile", "utcnow"]
