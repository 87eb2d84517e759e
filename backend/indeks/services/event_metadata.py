"""
Typed accessors for the free-form event metadata bag.

Metadata shape is controlled by the tracking snippet and is not versioned, so
every accessor returns None on a missing key or a type mismatch instead of raising.
"""

from __future__ import annotations

import json
import math
from typing import Any, Mapping

_EMPTY: dict[str, Any] = {}


def parse_metadata(value: Any) -> Mapping[str, Any]:
    """Decode a metadata payload (JSON text or mapping) into a mapping."""
    if isinstance(value, Mapping):
        return value
    if isinstance(value, (str, bytes, bytearray)):
        if not value:
            return _EMPTY
        try:
            decoded = json.loads(value)
        except (TypeError, ValueError):
            return _EMPTY
        if isinstance(decoded, Mapping):
            return decoded
    return _EMPTY


def get_number(metadata: Mapping[str, Any], key: str) -> float | None:
    value = metadata.get(key)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if not math.isfinite(value):
        return None
    return value


def get_string(metadata: Mapping[str, Any], key: str) -> str | None:
    value = metadata.get(key)
    if isinstance(value, str) and value:
        return value
    return None


def get_mapping(metadata: Mapping[str, Any], key: str) -> Mapping[str, Any] | None:
    value = metadata.get(key)
    if isinstance(value, Mapping):
        return value
    return None
