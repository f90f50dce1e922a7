"""Value coercion between native field values and canonical values.

Outbound (`to_canonical`) never raises: values without a canonical form are
reported as UNKNOWN_VALUE_KIND and become ``None``. Inbound (`from_canonical`)
raises a `ValueCoercionError` subclass so the builder can record the issue
and leave the field untouched; a numeric parse failure is never turned into
a silent ``0``.

Outbound Rules:
    None            -> None, resolved kind taken from the declaration
    Enum            -> raw value (str/int/float), record payload recursed,
                       other payloads coerced, else the member name
    bool            -> BOOLEAN
    int/float       -> NUMBER (ints unbounded, floats IEEE double)
    Decimal         -> int when integral, float otherwise
    str/UUID/Path   -> STRING
    date/datetime   -> UTC-aware datetime
    list/tuple/set  -> list (elements converted by the walker)
    dict            -> dict (values converted by the walker)
    records         -> flagged ``is_record`` for recursion

Inbound Cross-Kind Rules:
    "42" -> number field         -> 42 (NumericParseError when unparsable)
    42 -> string field           -> "42" (integral floats drop ".0")
    "2024-01-02T03:04:05+0000"   -> date via configured format (DateParseError)
    1_700_000_000 -> date field  -> epoch seconds (milliseconds above 1e12)
    value -> enum field          -> by value, then by member name
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal, InvalidOperation
from enum import Enum
from pathlib import PurePath
from typing import Any, Optional
from uuid import UUID

from ..errors import (
    MissingArrayConverterError,
    NumericParseError,
    UnknownValueKindError,
    ValueCoercionError,
)
from ..models.fields import ANY_TYPE, DeclaredType, FieldKind
from ..models.report import IssueKind
from .context import ConversionContext
from .dates import ensure_utc, epoch_to_dt, format_date, parse_date
from .reflection import is_record_instance

logger = logging.getLogger(__name__)

__all__ = ["CoercedValue", "format_number", "from_canonical", "parse_number", "to_canonical"]

_TRUE_STRINGS = frozenset({"true", "yes", "1"})
_FALSE_STRINGS = frozenset({"false", "no", "0", ""})


@dataclass(frozen=True)
class CoercedValue:
    """Result of an outbound coercion.

    ``kind`` is the resolved kind: for ``None`` it still names the declared
    (wrapped) kind so the value's shape survives a null.
    """

    value: Any
    kind: FieldKind
    is_record: bool = False


def to_canonical(
    value: Any,
    ctx: ConversionContext,
    declared: Optional[DeclaredType] = None,
    parent: Any = None,
    key: Optional[str] = None,
) -> CoercedValue:
    declared = declared or ANY_TYPE
    if value is None:
        return CoercedValue(None, declared.kind)

    if isinstance(value, Enum):
        return _enum_to_canonical(value, ctx)
    if isinstance(value, bool):
        return CoercedValue(value, FieldKind.BOOLEAN)
    if isinstance(value, (int, float)):
        return CoercedValue(value, FieldKind.NUMBER)
    if isinstance(value, Decimal):
        if value == value.to_integral_value():
            return CoercedValue(int(value), FieldKind.NUMBER)
        return CoercedValue(float(value), FieldKind.NUMBER)
    if isinstance(value, str):
        return CoercedValue(value, FieldKind.STRING)
    if isinstance(value, (UUID, PurePath)):
        return CoercedValue(str(value), FieldKind.STRING)
    if isinstance(value, date):
        return CoercedValue(ensure_utc(value, ctx.config.timezone), FieldKind.DATE)
    if isinstance(value, (list, tuple, set, frozenset)):
        return CoercedValue(_collection_items(value, ctx, declared, parent, key), FieldKind.COLLECTION)
    if isinstance(value, dict):
        return CoercedValue(value, FieldKind.MAPPING)
    if is_record_instance(value):
        return CoercedValue(value, FieldKind.RECORD, is_record=True)

    ctx.issue(
        IssueKind.UNKNOWN_VALUE_KIND,
        f"{UnknownValueKindError(value)}; using null",
        value=repr(value),
        logger=logger,
        level=logging.ERROR,
    )
    return CoercedValue(None, FieldKind.ANY)


def _enum_to_canonical(value: Enum, ctx: ConversionContext) -> CoercedValue:
    raw = value.value
    if isinstance(raw, (str, int, float)):
        return CoercedValue(raw, FieldKind.ENUM)
    if is_record_instance(raw):
        return CoercedValue(raw, FieldKind.RECORD, is_record=True)
    if isinstance(raw, (list, tuple, dict, date, Decimal)):
        return to_canonical(raw, ctx)
    return CoercedValue(value.name, FieldKind.ENUM)


def _collection_items(
    value: Any, ctx: ConversionContext, declared: DeclaredType, parent: Any, key: Optional[str]
) -> list:
    items = list(value)
    item = declared.item
    if (
        declared.kind is FieldKind.COLLECTION
        and item is not None
        and item.optional
        and item.kind is FieldKind.RECORD
    ):
        hook = getattr(parent, "convert_array", None)
        if callable(hook):
            try:
                return list(hook(key, items))
            except Exception as e:
                ctx.issue(
                    IssueKind.VALUE_COERCION,
                    f"convert_array raised {type(e).__name__}: {e}; converting elements generically",
                    logger=logger,
                )
                return items
        ctx.issue(
            IssueKind.MISSING_ARRAY_CONVERTER,
            f"{MissingArrayConverterError(type(parent).__name__, str(key))}; "
            "converting elements generically",
            logger=logger,
        )
    return items


# ---------------- inbound -----------------


def from_canonical(value: Any, declared: DeclaredType, ctx: ConversionContext) -> Any:
    """Convert a canonical leaf value to the declared native type.

    Structured kinds (RECORD, COLLECTION, MAPPING) and ANY pass through; the
    builder handles their recursion.

    Raises:
        NumericParseError, DateParseError, ValueCoercionError
    """
    if value is None:
        return None
    kind = declared.kind
    if kind is FieldKind.NUMBER:
        return _to_number(value, declared.python_type)
    if kind is FieldKind.BOOLEAN:
        return _to_bool(value)
    if kind is FieldKind.STRING:
        return _to_string(value, declared.python_type, ctx)
    if kind is FieldKind.DATE:
        return _to_date(value, declared.python_type, ctx)
    if kind is FieldKind.ENUM:
        return _to_enum(value, declared.python_type)
    return value


def format_number(value: Any) -> str:
    """Standard number -> string formatting (``42.0`` renders as ``"42"``)."""
    if isinstance(value, float) and value.is_integer() and abs(value) < 1e16:
        return str(int(value))
    return str(value)


def parse_number(text: str, python_type: Any = None) -> Any:
    """Parse a numeric string.

    Raises:
        NumericParseError: when ``text`` is not a number.
    """
    stripped = text.strip()
    if python_type is not None and isinstance(python_type, type) and issubclass(python_type, Decimal):
        try:
            return Decimal(stripped)
        except InvalidOperation as e:
            raise NumericParseError(text) from e
    try:
        number: Any = int(stripped)
    except ValueError:
        try:
            number = float(stripped)
        except ValueError as e:
            raise NumericParseError(text) from e
    return _fit_number(number, python_type)


def _fit_number(number: Any, python_type: Any) -> Any:
    if not isinstance(python_type, type) or isinstance(number, python_type):
        return number
    if issubclass(python_type, bool):
        return number
    if issubclass(python_type, int):
        if isinstance(number, (float, Decimal)):
            if not _is_integral(number):
                raise NumericParseError(number, f"not an integral value for {python_type.__name__}")
            return python_type(int(number))
        return number
    if issubclass(python_type, float):
        return python_type(number)
    if issubclass(python_type, Decimal):
        return Decimal(str(number))
    return number


def _is_integral(number: Any) -> bool:
    if isinstance(number, Decimal):
        return number.is_finite() and number == number.to_integral_value()
    return number.is_integer()


def _to_number(value: Any, python_type: Any) -> Any:
    if isinstance(value, bool):
        return _fit_number(int(value), python_type)
    if isinstance(value, (int, float, Decimal)):
        return _fit_number(value, python_type)
    if isinstance(value, str):
        return parse_number(value, python_type)
    raise ValueCoercionError(value, "number")


def _to_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return bool(value)
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in _TRUE_STRINGS:
            return True
        if lowered in _FALSE_STRINGS:
            return False
    raise ValueCoercionError(value, "boolean")


def _to_string(value: Any, python_type: Any, ctx: ConversionContext) -> Any:
    if isinstance(value, bool):
        text = "true" if value else "false"
    elif isinstance(value, (int, float, Decimal)):
        text = format_number(value)
    elif isinstance(value, str):
        text = value
    elif isinstance(value, date):
        text = format_date(value, ctx.config.date_format, ctx.config.timezone)
    else:
        raise ValueCoercionError(value, "string")
    if isinstance(python_type, type) and issubclass(python_type, (UUID, PurePath)):
        try:
            return python_type(text)
        except (ValueError, TypeError) as e:
            raise ValueCoercionError(value, python_type.__name__, str(e)) from e
    return text


def _to_date(value: Any, python_type: Any, ctx: ConversionContext) -> Any:
    tz = ctx.config.timezone
    if isinstance(value, date):
        result = ensure_utc(value, tz)
    elif isinstance(value, str):
        result = parse_date(value, ctx.config.date_format, tz)
    elif isinstance(value, (int, float)) and not isinstance(value, bool):
        result = epoch_to_dt(value)
    else:
        raise ValueCoercionError(value, "date")
    if python_type is date:
        return result.astimezone(tz).date()
    return result


def _to_enum(value: Any, enum_cls: Any) -> Any:
    if not (isinstance(enum_cls, type) and issubclass(enum_cls, Enum)):
        return value
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        pass
    if isinstance(value, str):
        if value in enum_cls.__members__:
            return enum_cls[value]
        try:
            return enum_cls(parse_number(value))
        except (ValueError, NumericParseError):
            pass
    raise ValueCoercionError(value, enum_cls.__name__, "no matching member")
