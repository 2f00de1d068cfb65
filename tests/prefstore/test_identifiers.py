from __future__ import annotations

from datetime import UTC, datetime

import pytest

from prefstore.identifiers import normalize_id
from prefstore.utils.timestamps import (
    epoch_millis,
    format_timestamp,
    parse_timestamp,
    utcnow,
)


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("abc", "abc"),
        (" 7 ", " 7 "),
        (42, "42"),
        (7.0, "7"),
        (7.5, "7.5"),
        (0, "0"),
    ],
)
def test_normalize_id(value, expected) -> None:
    assert normalize_id(value) == expected


def test_numeric_and_string_ids_collide() -> None:
    assert normalize_id(7) == normalize_id("7")


def test_utcnow_is_truncated_to_milliseconds() -> None:
    now = utcnow()

    assert now.tzinfo is not None
    assert now.microsecond % 1000 == 0


def test_format_timestamp_uses_z_suffix_and_milliseconds() -> None:
    moment = datetime(2024, 5, 17, 8, 30, 15, 123456, tzinfo=UTC)

    assert format_timestamp(moment) == "2024-05-17T08:30:15.123Z"


def test_parse_timestamp_accepts_z_suffix_and_naive_values() -> None:
    parsed = parse_timestamp("2024-05-17T08:30:15.123Z")
    naive = parse_timestamp("2024-05-17T08:30:15.123")

    assert parsed == naive
    assert parsed.tzinfo is not None
    assert format_timestamp(parsed) == "2024-05-17T08:30:15.123Z"


def test_parse_timestamp_rejects_garbage() -> None:
    with pytest.raises(ValueError):
        parse_timestamp("yesterday")


def test_epoch_millis() -> None:
    moment = datetime(1970, 1, 1, 0, 0, 1, 500000, tzinfo=UTC)

    assert epoch_millis(moment) == 1500
