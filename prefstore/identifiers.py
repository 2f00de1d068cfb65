"""Canonicalisation of hotel identifiers.

Hotel ids reach the services as strings from the storage layer and as numbers
from search providers. Every lookup, insert and delete funnels through
:func:`normalize_id` so ``7`` and ``"7"`` address the same favorite.
"""

from __future__ import annotations

from typing import Any

__all__ = ["HotelId", "normalize_id"]

HotelId = str | int | float


def normalize_id(value: HotelId | Any) -> str:
    """Return the string key used to store ``value``.

    Integral floats drop their fractional part so ``7.0`` matches ``7``.
    Strings are returned unchanged.
    """

    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return str(value).lower()
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        if value.is_integer():
            return str(int(value))
        return str(value)
    return str(value)
