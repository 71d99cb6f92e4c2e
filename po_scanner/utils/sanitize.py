"""Recursive removal of null entries from JSON-like payloads."""

from __future__ import annotations

from datetime import date
from typing import Any


def drop_nulls(value: Any) -> Any:
    """Return ``value`` with every ``None`` removed at any depth.

    Mapping entries whose value sanitizes to ``None`` are dropped, list entries
    likewise; dates and other scalars come back unchanged. A bare ``None`` input
    returns ``None``.
    """

    if value is None:
        return None
    if isinstance(value, date):
        return value
    if isinstance(value, list):
        return [entry for entry in (drop_nulls(item) for item in value) if entry is not None]
    if isinstance(value, dict):
        cleaned = {}
        for key, entry in value.items():
            sanitized = drop_nulls(entry)
            if sanitized is not None:
                cleaned[key] = sanitized
        return cleaned
    return value
