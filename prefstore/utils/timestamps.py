"""Timestamp helpers shared by the favorites schemas and services."""

from __future__ import annotations

from datetime import UTC, datetime

__all__ = [
    "epoch_millis",
    "format_timestamp",
    "parse_timestamp",
    "utcnow",
]


def utcnow() -> datetime:
    """Return the current UTC time truncated to millisecond precision.

    Persisted timestamps carry milliseconds only, so truncating at creation
    keeps in-memory values equal to what a reload produces.
    """

    now = datetime.now(UTC)
    return now.replace(microsecond=(now.microsecond // 1000) * 1000)


def epoch_millis(moment: datetime | None = None) -> int:
    """Return ``moment`` (default: now) as integer milliseconds since the epoch."""

    moment = moment or datetime.now(UTC)
    return int(moment.timestamp() * 1000)


def format_timestamp(moment: datetime) -> str:
    """Render ``moment`` as ISO-8601 UTC with milliseconds and a ``Z`` suffix."""

    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=UTC)
    rendered = moment.astimezone(UTC).isoformat(timespec="milliseconds")
    return rendered.replace("+00:00", "Z")


def parse_timestamp(value: str | datetime) -> datetime:
    """Parse an ISO-8601 string into an aware UTC datetime.

    Naive values are assumed to be UTC. Raises ``ValueError`` for strings that
    are not ISO-8601.
    """

    if isinstance(value, datetime):
        parsed = value
    else:
        parsed = datetime.fromisoformat(value.strip())
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed.astimezone(UTC)
