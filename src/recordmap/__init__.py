"""recordmap: reflection-driven object <-> key-value mapping.

Typed object graphs (dataclasses, pydantic models, plain classes, or
`Record` subclasses) are converted to a canonical mapping of
null/bool/number/string/date/list/mapping values and back, and from there
to and from JSON text.

Usage::

    from recordmap import mapper

    data = mapper.to_dict(person)
    person = mapper.from_dict({"name": "Ann"}, Person)
"""
from __future__ import annotations

from .engine import RecordMapper, get_default_mapper
from .errors import (
    ConversionIssuesError,
    DateParseError,
    JsonParseError,
    MissingArrayConverterError,
    NumericParseError,
    RecordMapError,
    TypeResolutionError,
    UnknownValueKindError,
    ValueCoercionError,
)
from .mapping.registry import TypeRegistry, discriminated_by
from .models.fields import PropertyConverter
from .models.report import ConversionIssue, ConversionReport, IssueKind
from .record import Record

__all__ = [
    "ConversionIssue",
    "ConversionIssuesError",
    "ConversionReport",
    "DateParseError",
    "IssueKind",
    "JsonParseError",
    "MissingArrayConverterError",
    "NumericParseError",
    "PropertyConverter",
    "Record",
    "RecordMapError",
    "RecordMapper",
    "TypeRegistry",
    "TypeResolutionError",
    "UnknownValueKindError",
    "ValueCoercionError",
    "discriminated_by",
    "get_default_mapper",
]
