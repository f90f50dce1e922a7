"""`Record`: a pydantic base model wired to the default engine.

Any dataclass, pydantic model or plain object can be converted; subclassing
`Record` adds the conveniences and the overridable hooks:

    property_mapping()     {field: external key, or None to exclude}
    property_converters()  {field: PropertyConverter or (getter, setter)}
    refine_type(mapping)   choose a concrete subtype from inbound data

Equality, hashing and ``str()`` are structural (canonical mapping based).

A record holding ``list[Optional[SomeRecord]]`` should implement
``convert_array(key, items)``; `Record` deliberately provides no default so
that a missing implementation is reported.

Example::

    class Address(Record):
        city: str = ""

    class Person(Record):
        name: str = ""
        address: Optional[Address] = None

        def property_mapping(self):
            return {"name": "full_name"}

    person = Person.from_json('{"full_name": "Ann", "address": {"city": "X"}}')
"""
from __future__ import annotations

from typing import Any, Dict, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict

from .engine import get_default_mapper
from .models.canonical import CanonicalMapping
from .models.fields import PropertyConverter

__all__ = ["Record"]


class Record(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True)

    # ---------------- hooks -----------------

    def property_mapping(self) -> Dict[str, Optional[str]]:
        return {}

    def property_converters(self) -> Dict[str, Union[PropertyConverter, tuple]]:
        return {}

    def refine_type(self, mapping: Mapping[str, Any]) -> Any:
        return self

    # ---------------- conversions -----------------

    def to_dict(self, cleanup: bool = False) -> CanonicalMapping:
        return get_default_mapper().to_dict(self, cleanup=cleanup)

    def to_json(self, cleanup: bool = True, pretty: bool = False) -> str:
        return get_default_mapper().to_json(self, cleanup=cleanup, pretty=pretty)

    def update_from(self, mapping: Mapping[str, Any]) -> "Record":
        """Patch this instance in place; nested records keep their identity."""
        return get_default_mapper().populate(self, mapping)

    @classmethod
    def from_dict(cls, mapping: Mapping[str, Any]) -> Any:
        return get_default_mapper().from_dict(mapping, cls)

    @classmethod
    def from_json(cls, text: str) -> Any:
        return get_default_mapper().from_json(text, cls)

    # ---------------- structural identity -----------------

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Record):
            return NotImplemented
        return get_default_mapper().are_equal(self, other)

    def __hash__(self) -> int:
        return get_default_mapper().hash_value(self)

    def __str__(self) -> str:
        return get_default_mapper().describe(self)
