"""The canonical value model every conversion passes through.

A canonical value is one of::

    None | bool | int | float | str | datetime | list[canonical] | dict[str, canonical]

Dates are timezone-aware and normalized to UTC. Nothing else may appear in a
mapping produced by the walker; values the coercion engine does not recognise
are replaced by ``None`` (with a diagnostic).
"""
from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Union

CanonicalValue = Union[None, bool, int, float, str, datetime, List[Any], Dict[str, Any]]
CanonicalMapping = Dict[str, CanonicalValue]


def is_canonical(value: Any) -> bool:
    """Check recursively that ``value`` only contains canonical values."""
    if value is None or isinstance(value, (bool, int, float, str)):
        return True
    if isinstance(value, datetime):
        return value.tzinfo is not None
    if isinstance(value, list):
        return all(is_canonical(v) for v in value)
    if isinstance(value, dict):
        return all(isinstance(k, str) and is_canonical(v) for k, v in value.items())
    return False


__all__ = ["CanonicalMapping", "CanonicalValue", "is_canonical"]
