"""Graph walker: object graph -> canonical mapping.

For each field (ancestors first) the walker skips excluded fields, reads the
value through the custom getter when one is declared, coerces it, and then:

    - nested records are walked recursively into mappings
    - collections are converted element-wise (records, nested collections
      and mappings recursively, leaves through the coercion engine)
    - mapping values are converted the same way (keys are kept as data)
    - everything else is stored as the coerced canonical value

Keys are the custom external key when declared, else the field name. With
``cleanup=True`` the field names (not custom keys) are normalized to
snake_case, for nested records as well.

A record that contains itself (directly or further down) is reported as a
REFERENCE_CYCLE and serialized as ``None`` at the point the cycle closes.
A custom getter that raises is reported as VALUE_COERCION; its field becomes
``None`` and the remaining fields are still walked.
"""
from __future__ import annotations

import logging
from typing import Any, FrozenSet, Optional

from ..models.canonical import CanonicalMapping, CanonicalValue
from ..models.fields import ANY_TYPE, DeclaredType, FieldDescriptor, FieldKind
from ..models.report import IssueKind
from . import reflection
from .coercion import CoercedValue, to_canonical
from .context import ConversionContext
from .keys import normalize_key

logger = logging.getLogger(__name__)

__all__ = ["to_canonical_mapping"]


def to_canonical_mapping(
    instance: Any,
    ctx: ConversionContext,
    cleanup: bool = False,
    _active: FrozenSet[int] = frozenset(),
) -> CanonicalMapping:
    """Convert ``instance`` (and everything reachable from it) to a dict."""
    active = _active | {id(instance)}
    result: CanonicalMapping = {}
    for descriptor in reflection.fields(instance):
        if descriptor.excluded:
            continue
        field_ctx = ctx.at(descriptor.name)
        if descriptor.converter is not None:
            try:
                value = descriptor.converter.getter()
            except Exception as e:
                field_ctx.issue(
                    IssueKind.VALUE_COERCION,
                    f"custom getter raised {type(e).__name__}: {e}; using null",
                    logger=logger,
                )
                result[_output_key(descriptor, ctx, cleanup)] = None
                continue
        else:
            value = reflection.get_field(instance, descriptor.name)
        coerced = to_canonical(
            value, field_ctx, descriptor.declared, parent=instance, key=descriptor.name
        )
        result[_output_key(descriptor, ctx, cleanup)] = _canonical_value(
            coerced, descriptor.declared, field_ctx, cleanup, active
        )
    return result


def _output_key(descriptor: FieldDescriptor, ctx: ConversionContext, cleanup: bool) -> str:
    if descriptor.external_key is not None:
        return descriptor.external_key
    if cleanup:
        return normalize_key(descriptor.name, ctx.config.reserved_words) or descriptor.name
    return descriptor.name


def _canonical_value(
    coerced: CoercedValue,
    declared: Optional[DeclaredType],
    ctx: ConversionContext,
    cleanup: bool,
    active: FrozenSet[int],
) -> CanonicalValue:
    if coerced.value is None:
        return None
    if coerced.is_record:
        if id(coerced.value) in active:
            ctx.issue(
                IssueKind.REFERENCE_CYCLE,
                f"{type(coerced.value).__name__} refers back to itself; serialized as null",
                logger=logger,
            )
            return None
        return to_canonical_mapping(coerced.value, ctx, cleanup, active)
    item_declared = declared.item if declared is not None else None
    if coerced.kind is FieldKind.COLLECTION:
        return [
            _element(item, item_declared, ctx.at(f"[{index}]"), cleanup, active)
            for index, item in enumerate(coerced.value)
        ]
    if coerced.kind is FieldKind.MAPPING:
        return {
            str(k): _element(v, item_declared, ctx.at(str(k)), cleanup, active)
            for k, v in coerced.value.items()
        }
    return coerced.value


def _element(
    value: Any,
    declared: Optional[DeclaredType],
    ctx: ConversionContext,
    cleanup: bool,
    active: FrozenSet[int],
) -> CanonicalValue:
    declared = declared or ANY_TYPE
    coerced = to_canonical(value, ctx, declared)
    return _canonical_value(coerced, declared, ctx, cleanup, active)
