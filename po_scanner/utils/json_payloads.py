"""Parsing of JSON text returned by the language-model provider."""

from __future__ import annotations

import json
import logging
from typing import Any

import json_repair

logger = logging.getLogger(__name__)


def loads_lenient(text: str) -> Any:
    """Parse ``text`` as JSON, falling back to a repair pass on syntax errors.

    The repair pass tolerates the usual model slips (trailing commas, single
    quotes, unquoted keys, code fences). Returns ``None`` when nothing usable
    can be recovered from blank or hopeless input.
    """

    trimmed = text.strip()
    if not trimmed:
        return None
    try:
        return json.loads(trimmed)
    except json.JSONDecodeError as exc:
        logger.debug("Strict JSON parse failed (%s); attempting repair", exc)

    repaired = json_repair.loads(trimmed)
    # Repair only recovers object or array syntax; anything else is unusable.
    if not isinstance(repaired, (dict, list)):
        return None
    return repaired
