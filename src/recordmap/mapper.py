"""Public function facade over the default `RecordMapper`.

Every function here delegates to the process-wide engine returned by
`recordmap.engine.get_default_mapper`. Applications needing isolated
configuration or a private type registry create their own `RecordMapper`
instead.

Public Functions:
    to_dict / from_dict / from_dict_with_report / populate
    to_json / from_json / array_from_json
    are_equal / hash_value / describe / log_object
    type_name / register / set_default_namespace / set_namespace_for
    configure: Replace the default engine's configuration (date format, ...)
    normalize_key: Cleanup-mode key normalization with the active reserved words
"""

from __future__ import annotations

import logging
from typing import Any, List, Mapping, Optional, Tuple, Union

from .config import MapperConfig
from .engine import get_default_mapper
from .mapping.keys import normalize_key as _normalize_key
from .models.canonical import CanonicalMapping
from .models.report import ConversionReport

__all__ = [
    "are_equal",
    "array_from_json",
    "configure",
    "describe",
    "from_dict",
    "from_dict_with_report",
    "from_json",
    "hash_value",
    "log_object",
    "normalize_key",
    "populate",
    "register",
    "set_default_namespace",
    "set_namespace_for",
    "to_dict",
    "to_json",
    "type_name",
]

TypeTarget = Union[str, type]


def to_dict(instance: Any, cleanup: bool = False) -> CanonicalMapping:
    """Serialize an object graph into its canonical mapping.

    Args:
        instance: Dataclass, pydantic model, `Record` or plain object
        cleanup: When True, field names (not custom keys) become snake_case

    Returns:
        Mapping whose values are null, bool, number, string, UTC datetime,
        list or mapping only
    """
    return get_default_mapper().to_dict(instance, cleanup=cleanup)


def from_dict(
    mapping: Mapping[str, Any], target: TypeTarget, report: Optional[ConversionReport] = None
) -> Optional[Any]:
    """Build an instance of ``target`` from a canonical mapping.

    ``target`` is a class or a type name; short names are qualified with the
    default namespace. Problems with individual fields never abort the
    conversion: they are logged and, when ``report`` is given, collected
    there. Returns None only when the type itself cannot be resolved.
    """
    return get_default_mapper().from_dict(mapping, target, report=report)


def from_dict_with_report(
    mapping: Mapping[str, Any], target: TypeTarget
) -> Tuple[Optional[Any], ConversionReport]:
    return get_default_mapper().from_dict_with_report(mapping, target)


def populate(instance: Any, mapping: Mapping[str, Any], report: Optional[ConversionReport] = None) -> Any:
    return get_default_mapper().populate(instance, mapping, report=report)


def to_json(instance: Any, cleanup: bool = True, pretty: bool = False) -> str:
    return get_default_mapper().to_json(instance, cleanup=cleanup, pretty=pretty)


def from_json(text: str, target: TypeTarget, report: Optional[ConversionReport] = None) -> Optional[Any]:
    return get_default_mapper().from_json(text, target, report=report)


def array_from_json(target: TypeTarget, text: str, report: Optional[ConversionReport] = None) -> List[Any]:
    return get_default_mapper().array_from_json(target, text, report=report)


def are_equal(lhs: Any, rhs: Any) -> bool:
    return get_default_mapper().are_equal(lhs, rhs)


def hash_value(instance: Any) -> int:
    return get_default_mapper().hash_value(instance)


def describe(instance: Any) -> str:
    return get_default_mapper().describe(instance)


def log_object(instance: Any, level: int = logging.INFO) -> None:
    get_default_mapper().log_object(instance, level=level)


def type_name(instance: Any) -> str:
    return get_default_mapper().type_name(instance)


def register(cls: Optional[type] = None, *, name: Optional[str] = None) -> Any:
    return get_default_mapper().register(cls, name=name)


def set_default_namespace(namespace: Optional[str]) -> None:
    get_default_mapper().set_default_namespace(namespace)


def set_namespace_for(cls: type) -> None:
    get_default_mapper().set_namespace_for(cls)


def configure(**changes: Any) -> MapperConfig:
    return get_default_mapper().configure(**changes)


def normalize_key(candidate: str) -> str:
    """Output key for ``candidate`` in cleanup mode (``userName`` -> ``user_name``)."""
    return _normalize_key(candidate, get_default_mapper().config.reserved_words) or candidate
