"""Graph builder: canonical mapping -> object graph.

Steps for one mapping:

1. Resolve the target type through the registry (``refine_type`` applies).
2. Compute the document key -> field name mapping using the empty
   instance's own fields as context.
3. For every document entry:
   - unknown keys are ignored (debug log), excluded fields skipped
   - record field + dict: populate the existing sub-object when the field is
     already set (identity preserved for patch updates), else build a new one
   - collection field + dict with exactly one list-valued entry: that list is
     the collection (one wrapping level too deep)
   - collection field + any other dict: wrapped as a one-element list
   - collection field + list: elements converted one by one
   - mapping field: values converted when a value type is declared
   - fields with a custom setter receive the canonical value unconverted
   - anything else: leaf coercion, then assignment

Failures are local: every problem becomes a ConversionIssue on the context's
report and the remaining fields are still populated. ``None`` is assigned
only to fields declared optional (or undeclared); other fields keep their
default.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional, Union

from ..errors import DateParseError, NumericParseError, TypeResolutionError, ValueCoercionError
from ..models.fields import ANY_TYPE, DeclaredType, FieldDescriptor, FieldKind
from ..models.report import IssueKind
from . import reflection
from .coercion import from_canonical
from .context import ConversionContext
from .keys import build_key_mapping

logger = logging.getLogger(__name__)

__all__ = ["build_from_mapping", "populate_from_mapping"]

# Marks a value that could not be converted (issue already recorded).
_SKIP = object()


def build_from_mapping(
    mapping: Mapping[str, Any], target: Union[str, type], ctx: ConversionContext
) -> Optional[Any]:
    """Create an instance of ``target`` populated from ``mapping``.

    Returns None (with a TYPE_RESOLUTION issue) when the type cannot be
    resolved or constructed.
    """
    try:
        instance = ctx.registry.resolve(target, mapping, ctx.config.default_namespace)
    except TypeResolutionError as e:
        ctx.issue(IssueKind.TYPE_RESOLUTION, str(e), logger=logger, level=logging.ERROR)
        return None
    return populate_from_mapping(mapping, instance, ctx)


def populate_from_mapping(mapping: Mapping[str, Any], instance: Any, ctx: ConversionContext) -> Any:
    """Set the fields of ``instance`` from ``mapping`` and return it."""
    descriptors = reflection.fields(instance)
    by_name: Dict[str, FieldDescriptor] = {d.name: d for d in descriptors}
    key_mapping = build_key_mapping(descriptors, mapping, ctx.config.reserved_words)

    for doc_key, doc_value in mapping.items():
        descriptor = by_name.get(key_mapping.get(doc_key, doc_key))
        if descriptor is None:
            logger.debug("Ignoring unmapped key %r for %s", doc_key, type(instance).__name__)
            continue
        if descriptor.excluded:
            continue
        field_ctx = ctx.at(descriptor.name)
        original = reflection.get_field(instance, descriptor.name)
        if descriptor.converter is not None:
            # custom setters receive the canonical value as-is
            value = doc_value
        else:
            value = _convert(doc_value, descriptor.declared, original, field_ctx)
        if value is _SKIP or (value is original and reflection.is_record_instance(value)):
            continue
        if value is None and not _accepts_none(descriptor):
            continue
        try:
            reflection.set_field(instance, descriptor, value)
        except Exception as e:
            field_ctx.issue(
                IssueKind.ASSIGNMENT,
                f"could not set {type(instance).__name__}.{descriptor.name}: {e}",
                value=value,
                logger=logger,
            )
    return instance


def _accepts_none(descriptor: FieldDescriptor) -> bool:
    declared = descriptor.declared
    return declared.optional or declared.kind is FieldKind.ANY


def _convert(value: Any, declared: DeclaredType, original: Any, ctx: ConversionContext) -> Any:
    """Convert one document value for a field (or collection element)."""
    kind = declared.kind
    if value is None:
        return None

    if isinstance(value, Mapping):
        if kind is FieldKind.COLLECTION:
            value = _unwrap_collection(value)
        elif kind is FieldKind.RECORD or (
            kind is FieldKind.ANY and reflection.is_record_instance(original)
        ):
            return _build_nested(value, declared, original, ctx)
        elif kind is FieldKind.MAPPING:
            return _convert_mapping(value, declared.item, ctx)
        elif kind is FieldKind.ANY:
            return dict(value)

    if kind is FieldKind.COLLECTION:
        if not isinstance(value, (list, tuple)):
            value = [value]
        return _convert_collection(value, declared, ctx)

    if kind is FieldKind.RECORD:
        if isinstance(declared.python_type, type) and isinstance(value, declared.python_type):
            return value
        return _coercion_failed(
            ValueCoercionError(value, getattr(declared.python_type, "__name__", "record")), ctx
        )
    if kind is FieldKind.MAPPING:
        return _coercion_failed(ValueCoercionError(value, "mapping"), ctx)

    try:
        return from_canonical(value, declared, ctx)
    except ValueCoercionError as e:
        return _coercion_failed(e, ctx)


def _unwrap_collection(value: Mapping[str, Any]) -> List[Any]:
    if len(value) == 1:
        only = next(iter(value.values()))
        if isinstance(only, list):
            return only
    return [dict(value)]


def _convert_collection(items: Any, declared: DeclaredType, ctx: ConversionContext) -> Any:
    item_declared = declared.item or ANY_TYPE
    converted = []
    for index, item in enumerate(items):
        value = _convert(item, item_declared, None, ctx.at(f"[{index}]"))
        if value is not _SKIP:
            converted.append(value)
    container = declared.python_type
    if container in (tuple, set, frozenset):
        try:
            return container(converted)
        except TypeError:
            # unhashable elements cannot live in a set
            return converted
    return converted


def _convert_mapping(
    value: Mapping[str, Any], item_declared: Optional[DeclaredType], ctx: ConversionContext
) -> Dict[str, Any]:
    if item_declared is None or item_declared.kind is FieldKind.ANY:
        return dict(value)
    converted: Dict[str, Any] = {}
    for k, v in value.items():
        item = _convert(v, item_declared, None, ctx.at(str(k)))
        if item is not _SKIP:
            converted[k] = item
    return converted


def _build_nested(
    value: Mapping[str, Any], declared: DeclaredType, original: Any, ctx: ConversionContext
) -> Any:
    if original is not None and reflection.is_record_instance(original):
        return populate_from_mapping(value, original, ctx)
    target = declared.python_type
    if target is None:
        return dict(value)
    try:
        instance = ctx.registry.resolve(target, value, ctx.config.default_namespace)
    except TypeResolutionError as e:
        ctx.issue(IssueKind.TYPE_RESOLUTION, str(e), logger=logger, level=logging.ERROR)
        return _SKIP
    return populate_from_mapping(value, instance, ctx)


def _coercion_failed(error: ValueCoercionError, ctx: ConversionContext) -> Any:
    if isinstance(error, NumericParseError):
        kind = IssueKind.NUMERIC_PARSE
    elif isinstance(error, DateParseError):
        kind = IssueKind.DATE_PARSE
    else:
        kind = IssueKind.VALUE_COERCION
    ctx.issue(kind, str(error), value=error.value, logger=logger)
    return _SKIP
