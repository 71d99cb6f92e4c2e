"""Coercion of loosely formatted numeric values into plain numbers."""

from __future__ import annotations

import math
import re
from typing import Any

from pydantic_core import PydanticCustomError

_DISALLOWED_CHARS = re.compile(r"[^0-9+\-.,]")
# Longest leading float literal, the way a lenient float parser reads it.
_LEADING_FLOAT = re.compile(r"[+-]?(?:\d+(?:\.\d*)?|\.\d+)")


def coerce_number(value: Any) -> float | int:
    """Return ``value`` as a number.

    Finite numbers pass through unchanged; NaN and infinities are rejected.
    Strings are stripped of everything except digits, signs, dots and commas;
    the first comma becomes the decimal point and the longest numeric prefix is
    parsed, so ``"$1 299,50"`` reads as ``1299.5``.
    A string holding both a thousands comma and a decimal dot (``"1,234.50"``)
    becomes ``"1.234.50"`` and therefore parses as ``1.234``.
    """

    if isinstance(value, bool):
        raise PydanticCustomError("number_type", "Expected a number or numeric string.")
    if isinstance(value, (int, float)):
        if isinstance(value, float) and not math.isfinite(value):
            raise PydanticCustomError("number_finite", "Numeric value must be finite.")
        return value
    if not isinstance(value, str):
        raise PydanticCustomError("number_type", "Expected a number or numeric string.")

    sanitized = _DISALLOWED_CHARS.sub("", value).replace(",", ".", 1)
    match = _LEADING_FLOAT.match(sanitized)
    parsed = float(match.group(0)) if match else math.nan
    if not math.isfinite(parsed):
        raise PydanticCustomError(
            "number_parsing",
            'Unable to parse numeric value from "{value}".',
            {"value": value},
        )
    return parsed
