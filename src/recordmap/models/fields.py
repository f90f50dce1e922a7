"""Field and type descriptors produced by the reflection provider.

These are transient: they are computed for every conversion call and never
cached, because property mappings and converters are instance hooks that may
answer differently from one call to the next.
"""
from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Callable, Optional


class FieldKind(str, Enum):
    ANY = "any"
    BOOLEAN = "boolean"
    NUMBER = "number"
    STRING = "string"
    DATE = "date"
    RECORD = "record"
    COLLECTION = "collection"
    MAPPING = "mapping"
    ENUM = "enum"


@dataclass(frozen=True)
class DeclaredType:
    """What a field is declared (or observed) to hold.

    ``python_type`` is the concrete class for RECORD, ENUM, NUMBER, DATE and
    COLLECTION kinds when known. ``item`` describes collection elements and
    mapping values.
    """

    kind: FieldKind = FieldKind.ANY
    python_type: Any = None
    optional: bool = False
    item: Optional["DeclaredType"] = None

    def as_optional(self) -> "DeclaredType":
        return replace(self, optional=True)

    @property
    def label(self) -> str:
        """Readable tag such as ``collection<record:Address?>``."""
        base = self.kind.value
        if self.python_type is not None and self.kind in (FieldKind.RECORD, FieldKind.ENUM):
            base = f"{base}:{getattr(self.python_type, '__name__', self.python_type)}"
        if self.item is not None:
            base = f"{base}<{self.item.label}>"
        return f"{base}?" if self.optional else base


ANY_TYPE = DeclaredType()


@dataclass(frozen=True)
class PropertyConverter:
    """Custom accessors that take precedence over plain attribute access."""

    getter: Callable[[], Any]
    setter: Callable[[Any], None]


@dataclass
class FieldDescriptor:
    name: str
    declared: DeclaredType
    owner: type
    external_key: Optional[str] = None
    excluded: bool = False
    converter: Optional[PropertyConverter] = None

    @property
    def kind(self) -> FieldKind:
        return self.declared.kind

    @property
    def key(self) -> str:
        """Key used in canonical mappings (custom external key, else the name)."""
        return self.external_key or self.name


__all__ = [
    "ANY_TYPE",
    "DeclaredType",
    "FieldDescriptor",
    "FieldKind",
    "PropertyConverter",
]
