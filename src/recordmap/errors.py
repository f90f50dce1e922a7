"""Exception taxonomy for the mapper.

Every failure inside the recursive walker/builder is caught per field and
recorded as a `ConversionIssue`, so these exceptions normally surface only
through a `ConversionReport`. `parse_text` (invalid JSON) and
`ConversionReport.raise_for_issues` are the two public paths that raise.
"""
from __future__ import annotations

from typing import Any, List, Optional


class RecordMapError(Exception):
    """Base class for all mapper errors."""


class TypeResolutionError(RecordMapError):
    """A type name could not be resolved or the type could not be constructed."""

    def __init__(self, type_name: str, reason: str = "") -> None:
        self.type_name = type_name
        self.reason = reason
        message = f"Could not create an instance for type {type_name!r}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class ValueCoercionError(RecordMapError):
    """A canonical value cannot be converted to the declared field type."""

    def __init__(self, value: Any, target: str, reason: Optional[str] = None) -> None:
        self.value = value
        self.target = target
        message = f"Cannot convert {value!r} to {target}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class NumericParseError(ValueCoercionError):
    """A string could not be parsed into a numeric field.

    Raised instead of silently defaulting to zero.
    """

    def __init__(self, value: Any, reason: str = "not a numeric string") -> None:
        super().__init__(value, "number", reason)


class DateParseError(ValueCoercionError):
    """A string does not match the configured date format."""

    def __init__(self, value: Any, date_format: str) -> None:
        self.date_format = date_format
        super().__init__(value, "date", f"does not match format {date_format!r}")


class UnknownValueKindError(RecordMapError):
    """The coercion engine has no case for a native value."""

    def __init__(self, value: Any) -> None:
        self.value = value
        super().__init__(f"Unknown value kind {type(value).__name__} for value {value!r}")


class MissingArrayConverterError(RecordMapError):
    """A collection of optional records has no `convert_array` hook on its owner."""

    def __init__(self, owner: str, key: str) -> None:
        self.owner = owner
        self.key = key
        super().__init__(
            f"{owner}.{key} holds optional records; implement convert_array(key, items) "
            "to control their conversion"
        )


class JsonParseError(RecordMapError):
    """JSON text could not be parsed into a mapping."""


class ConversionIssuesError(RecordMapError):
    """Raised by `ConversionReport.raise_for_issues` when issues were collected."""

    def __init__(self, issues: List[Any]) -> None:
        self.issues = list(issues)
        lines = [f"{len(self.issues)} conversion issue(s):"]
        lines.extend(f"  {issue.path or '<root>'}: {issue.message}" for issue in self.issues)
        super().__init__("\n".join(lines))


__all__ = [
    "ConversionIssuesError",
    "DateParseError",
    "JsonParseError",
    "MissingArrayConverterError",
    "NumericParseError",
    "RecordMapError",
    "TypeResolutionError",
    "UnknownValueKindError",
    "ValueCoercionError",
]
