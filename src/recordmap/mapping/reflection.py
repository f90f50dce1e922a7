"""Reflection provider: field discovery, field access and declared kinds.

Fields are discovered by walking the class MRO from the root ancestor down to
the instance's own class, so ancestor fields come first and a redeclared name
keeps its ancestor position while taking the derived declaration.

Field sources per class:
    - dataclasses: `dataclasses.fields` (ClassVar / InitVar excluded)
    - pydantic models: `model_fields`
    - plain classes: non-ClassVar annotations
    - any instance: attributes present in ``vars(instance)`` that no class
      declared (kind inferred from the current value)

Declared kinds come from `typing.get_type_hints`; when a hint cannot be
resolved or a field is unannotated (or annotated ``Any``), the kind is inferred
from the field's current value, which is how an empty instance describes its
own shape.

Instance hooks (duck-typed, see `recordmap.record.Record`):
    property_mapping(): {field name: external key, or None to exclude}
    property_converters(): {field name: PropertyConverter | (getter, setter)}

Public Functions:
    fields: Ordered FieldDescriptor list for an instance
    get_field: Read a field value (None when absent)
    set_field: Assign a field value, preferring a custom converter setter
    describe_annotation: Type hint -> DeclaredType
    infer_declared_type: Runtime value -> DeclaredType
    is_record_instance / is_record_class: Nested-record detection
"""
from __future__ import annotations

import dataclasses
import inspect
import logging
import types
import typing
from collections import abc
from datetime import date
from decimal import Decimal
from enum import Enum
from pathlib import PurePath
from typing import Any, Dict, List, Optional, Tuple
from uuid import UUID

from pydantic import BaseModel

from ..models.fields import ANY_TYPE, DeclaredType, FieldDescriptor, FieldKind, PropertyConverter

logger = logging.getLogger(__name__)

__all__ = [
    "describe_annotation",
    "fields",
    "get_field",
    "infer_declared_type",
    "is_record_class",
    "is_record_instance",
    "property_converters_of",
    "property_mapping_of",
    "set_field",
]

_SEQUENCE_ORIGINS = (
    list,
    tuple,
    set,
    frozenset,
    abc.Sequence,
    abc.MutableSequence,
    abc.Set,
    abc.MutableSet,
    abc.Collection,
    abc.Iterable,
)
_MAPPING_ORIGINS = (dict, abc.Mapping, abc.MutableMapping)
_UNION_TYPES: Tuple[Any, ...] = (typing.Union,)
if hasattr(types, "UnionType"):
    _UNION_TYPES = _UNION_TYPES + (types.UnionType,)

# Classes whose own attributes are never record fields.
_SKIPPED_BASES: Tuple[type, ...] = (object, BaseModel)


def is_record_class(cls: Any) -> bool:
    """True for classes the walker/builder treats as nested records."""
    if not isinstance(cls, type):
        return False
    if issubclass(cls, (bool, int, float, str, bytes, Decimal, date, Enum, UUID, PurePath)):
        return False
    if issubclass(cls, (list, tuple, set, frozenset, dict)):
        return False
    return True


def is_record_instance(value: Any) -> bool:
    """True for dataclass instances, pydantic models and attribute-bearing objects."""
    if value is None or isinstance(value, type):
        return False
    if dataclasses.is_dataclass(value) or isinstance(value, BaseModel):
        return True
    if isinstance(value, (types.ModuleType, types.FunctionType, types.MethodType, types.BuiltinFunctionType)):
        return False
    return hasattr(value, "__dict__") and is_record_class(type(value))


def describe_annotation(annotation: Any) -> DeclaredType:
    """Translate a type hint into a DeclaredType."""
    if annotation is None or annotation is Any or annotation is type(None):
        return ANY_TYPE
    if isinstance(annotation, (str, typing.ForwardRef)):
        # unresolved forward reference
        return ANY_TYPE

    origin = typing.get_origin(annotation)
    args = typing.get_args(annotation)

    if origin is typing.Annotated:
        return describe_annotation(args[0])
    if origin in _UNION_TYPES:
        non_none = [a for a in args if a is not type(None)]
        optional = len(non_none) < len(args)
        inner = describe_annotation(non_none[0]) if len(non_none) == 1 else ANY_TYPE
        return inner.as_optional() if optional else inner
    if origin is typing.Literal:
        return infer_declared_type(args[0]) if args else ANY_TYPE
    if origin is typing.ClassVar:
        return ANY_TYPE
    if origin in _SEQUENCE_ORIGINS:
        item = ANY_TYPE
        if args and args[0] is not Ellipsis:
            item = describe_annotation(args[0])
        container = origin if isinstance(origin, type) and origin in (list, tuple, set, frozenset) else list
        return DeclaredType(FieldKind.COLLECTION, python_type=container, item=item)
    if origin in _MAPPING_ORIGINS:
        item = describe_annotation(args[1]) if len(args) == 2 else ANY_TYPE
        return DeclaredType(FieldKind.MAPPING, python_type=dict, item=item)
    if origin is not None:
        # some other generic alias (e.g. a user Generic[T]); use its origin class
        annotation = origin

    if not isinstance(annotation, type):
        return ANY_TYPE
    if issubclass(annotation, bool):
        return DeclaredType(FieldKind.BOOLEAN, python_type=bool)
    if issubclass(annotation, Enum):
        return DeclaredType(FieldKind.ENUM, python_type=annotation)
    if issubclass(annotation, (int, float, Decimal)):
        return DeclaredType(FieldKind.NUMBER, python_type=annotation)
    if issubclass(annotation, str):
        return DeclaredType(FieldKind.STRING, python_type=str)
    if issubclass(annotation, (UUID, PurePath)):
        # string-backed value types
        return DeclaredType(FieldKind.STRING, python_type=annotation)
    if issubclass(annotation, date):
        return DeclaredType(FieldKind.DATE, python_type=annotation)
    if issubclass(annotation, (list, tuple, set, frozenset)):
        return DeclaredType(FieldKind.COLLECTION, python_type=annotation, item=ANY_TYPE)
    if issubclass(annotation, dict):
        return DeclaredType(FieldKind.MAPPING, python_type=dict, item=ANY_TYPE)
    if annotation is object:
        return ANY_TYPE
    if is_record_class(annotation):
        return DeclaredType(FieldKind.RECORD, python_type=annotation)
    return ANY_TYPE


def infer_declared_type(value: Any) -> DeclaredType:
    """Describe a runtime value; collections are typed by their first element."""
    if value is None:
        return ANY_TYPE
    if isinstance(value, bool):
        return DeclaredType(FieldKind.BOOLEAN, python_type=bool)
    if isinstance(value, Enum):
        return DeclaredType(FieldKind.ENUM, python_type=type(value))
    if isinstance(value, (int, float, Decimal)):
        return DeclaredType(FieldKind.NUMBER, python_type=type(value))
    if isinstance(value, str):
        return DeclaredType(FieldKind.STRING, python_type=str)
    if isinstance(value, (UUID, PurePath)):
        return DeclaredType(FieldKind.STRING, python_type=type(value))
    if isinstance(value, date):
        return DeclaredType(FieldKind.DATE, python_type=type(value))
    if isinstance(value, (list, tuple, set, frozenset)):
        item = ANY_TYPE
        for first in value:
            item = infer_declared_type(first)
            break
        return DeclaredType(FieldKind.COLLECTION, python_type=type(value), item=item)
    if isinstance(value, dict):
        return DeclaredType(FieldKind.MAPPING, python_type=dict, item=ANY_TYPE)
    if is_record_instance(value):
        return DeclaredType(FieldKind.RECORD, python_type=type(value))
    return ANY_TYPE


def _resolved_hints(cls: type) -> Dict[str, Any]:
    """Type hints for ``cls`` and its ancestors, falling back per class.

    `typing.get_type_hints` fails as a whole when any one annotation cannot
    be resolved; the fallback resolves each class separately and leaves
    unresolvable names out (they are then treated as ``Any``).
    """
    try:
        return typing.get_type_hints(cls)
    except Exception as e:  # NameError, TypeError on odd annotations
        logger.debug("get_type_hints failed for %s: %s", cls.__qualname__, e)
    hints: Dict[str, Any] = {}
    for klass in reversed(cls.__mro__):
        if klass in _SKIPPED_BASES:
            continue
        try:
            own = inspect.get_annotations(klass, locals={klass.__name__: klass}, eval_str=True)
        except Exception as e:
            logger.debug("Dropping unresolvable annotations of %s: %s", klass.__qualname__, e)
            own = {}
            for name, annotation in inspect.get_annotations(klass).items():
                if isinstance(annotation, str):
                    hints.pop(name, None)
                else:
                    own[name] = annotation
        hints.update(own)
    return hints


def _is_classvar(annotation: Any) -> bool:
    if typing.get_origin(annotation) is typing.ClassVar or annotation is typing.ClassVar:
        return True
    return isinstance(annotation, str) and annotation.replace("typing.", "").startswith("ClassVar")


def _own_field_names(klass: type, cls: type) -> List[str]:
    """Field names declared directly on ``klass`` (one MRO entry of ``cls``)."""
    own = inspect.get_annotations(klass)
    if isinstance(cls, type) and issubclass(cls, BaseModel):
        model_fields = cls.model_fields
        return [name for name in own if name in model_fields]
    if dataclasses.is_dataclass(cls):
        dc_names = {f.name for f in dataclasses.fields(cls)}
        return [name for name in own if name in dc_names]
    return [name for name, ann in own.items() if not name.startswith("__") and not _is_classvar(ann)]


def property_mapping_of(instance: Any) -> Dict[str, Optional[str]]:
    hook = getattr(instance, "property_mapping", None)
    if not callable(hook):
        return {}
    return dict(hook() or {})


def property_converters_of(instance: Any) -> Dict[str, PropertyConverter]:
    hook = getattr(instance, "property_converters", None)
    if not callable(hook):
        return {}
    converters: Dict[str, PropertyConverter] = {}
    for name, conv in dict(hook() or {}).items():
        if isinstance(conv, PropertyConverter):
            converters[name] = conv
        else:
            getter, setter = conv
            converters[name] = PropertyConverter(getter=getter, setter=setter)
    return converters


def fields(instance: Any) -> List[FieldDescriptor]:
    """Enumerate the fields of ``instance``, ancestors first.

    Property mapping declarations and custom converters are attached to the
    descriptors; excluded fields are returned (flagged) so callers can tell
    "excluded" from "unknown".
    """
    cls = type(instance)
    hints = _resolved_hints(cls)
    collected: Dict[str, FieldDescriptor] = {}

    for klass in reversed(cls.__mro__):
        if klass in _SKIPPED_BASES:
            continue
        for name in _own_field_names(klass, cls):
            declared = describe_annotation(hints.get(name))
            existing = collected.get(name)
            if existing is not None:
                existing.declared = declared
                existing.owner = klass
            else:
                collected[name] = FieldDescriptor(name=name, declared=declared, owner=klass)

    if not isinstance(instance, BaseModel):
        for name, value in _instance_attributes(instance):
            if name not in collected:
                collected[name] = FieldDescriptor(
                    name=name, declared=infer_declared_type(value), owner=cls
                )

    # Unannotated / Any fields take their shape from the current value.
    for descriptor in collected.values():
        if descriptor.kind is FieldKind.ANY:
            observed = infer_declared_type(get_field(instance, descriptor.name))
            if observed.kind is not FieldKind.ANY:
                descriptor.declared = (
                    observed.as_optional() if descriptor.declared.optional else observed
                )

    for name, external_key in property_mapping_of(instance).items():
        descriptor = collected.get(name)
        if descriptor is None:
            continue
        if external_key is None:
            descriptor.excluded = True
        else:
            descriptor.external_key = external_key

    for name, converter in property_converters_of(instance).items():
        descriptor = collected.get(name)
        if descriptor is not None:
            descriptor.converter = converter

    return list(collected.values())


def _instance_attributes(instance: Any) -> List[Tuple[str, Any]]:
    try:
        attrs = vars(instance)
    except TypeError:
        # __slots__ without __dict__
        return [
            (name, getattr(instance, name))
            for klass in type(instance).__mro__
            for name in getattr(klass, "__slots__", ())
            if not name.startswith("__") and hasattr(instance, name)
        ]
    return [(k, v) for k, v in attrs.items() if not k.startswith("__")]


def get_field(instance: Any, name: str) -> Any:
    return getattr(instance, name, None)


def set_field(instance: Any, descriptor: FieldDescriptor, value: Any) -> None:
    """Assign ``value`` to the field, preferring the custom converter setter.

    Raises whatever the target raises (frozen dataclasses, read-only
    properties); the builder records those as assignment issues.
    """
    if descriptor.converter is not None:
        descriptor.converter.setter(value)
        return
    setattr(instance, descriptor.name, value)
