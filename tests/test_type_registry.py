from __future__ import annotations

import pytest

from recordmap.errors import TypeResolutionError
from recordmap.mapping.registry import TypeRegistry, discriminated_by, qualified_name

from sample_models import Animal, Cat, Dog, FrozenPoint, Item, Person, Point


def test_register_and_resolve_by_alias():
    registry = TypeRegistry()
    registry.register(Person, name="Person")
    assert registry.resolve_class("Person") is Person
    assert isinstance(registry.resolve("Person"), Person)


def test_register_as_decorator():
    registry = TypeRegistry()

    @registry.register(name="Widget")
    class Widget:
        pass

    assert registry.resolve_class("Widget") is Widget
    assert qualified_name(Widget) in registry.registered()


def test_unregister():
    registry = TypeRegistry()
    registry.register(Person, name="P")
    registry.unregister(Person)
    assert registry.registered() == {}


def test_dotted_path_import_fallback():
    registry = TypeRegistry()
    assert registry.resolve_class("sample_models.Person") is Person
    assert registry.resolve_class("sample_models.DoesNotExist") is None
    assert registry.resolve_class("no_such_module.Thing") is None


def test_short_name_uses_default_namespace():
    registry = TypeRegistry()
    registry.set_default_namespace("sample_models")
    assert registry.resolve_class("Person") is Person
    registry.set_namespace_for(Dog)
    assert registry.default_namespace() == "sample_models"


def test_configured_namespace_used_when_no_override():
    registry = TypeRegistry()
    assert registry.resolve_class("Person", "sample_models") is Person
    registry.set_default_namespace("elsewhere")
    assert registry.resolve_class("Person", "sample_models") is None


def test_type_name_strips_namespace():
    registry = TypeRegistry()
    registry.set_default_namespace("sample_models")
    assert registry.type_name(Person()) == "Person"
    registry.set_default_namespace("other")
    assert registry.type_name(Person()) == "sample_models.Person"


def test_unknown_name_raises():
    registry = TypeRegistry()
    with pytest.raises(TypeResolutionError):
        registry.resolve("sample_models.Missing")


def test_instantiate_dataclass_with_required_fields():
    point = TypeRegistry().instantiate(Point)
    assert isinstance(point, Point)
    assert point.x is None and point.y is None
    assert TypeRegistry().instantiate(FrozenPoint) == FrozenPoint(0, 0)


def test_instantiate_pydantic_model_with_required_fields():
    item = TypeRegistry().instantiate(Item)
    assert isinstance(item, Item)
    assert item.name is None and item.qty is None


def test_refine_type_hook_selects_subtype():
    registry = TypeRegistry()
    assert type(registry.resolve(Animal, {"kind": "dog"})) is Dog
    assert type(registry.resolve(Animal, {"kind": "cat"})) is Cat
    assert type(registry.resolve(Animal, {"kind": "fish"})) is Animal
    assert type(registry.resolve(Animal)) is Animal


def test_discriminated_by_with_type_names_and_default():
    registry = TypeRegistry()
    registry.register(Dog, name="Dog")
    hook = discriminated_by("kind", {"dog": "Dog"}, default=Cat)
    base = Animal()
    assert hook(base, {"kind": "dog"}) == "Dog"
    assert hook(base, {"kind": "other"}) is Cat
    assert hook(base, {"kind": ["unhashable"]}) is Cat
    cat = Cat()
    assert hook(cat, {"kind": "other"}) is cat

    class Pet(Animal):
        def refine_type(self, mapping):
            return hook(self, mapping)

    assert type(registry.resolve(Pet, {"kind": "dog"})) is Dog


def test_refine_to_unknown_name_raises():
    registry = TypeRegistry()

    class Shape(Animal):
        def refine_type(self, mapping):
            return "NoSuchShape"

    with pytest.raises(TypeResolutionError):
        registry.resolve(Shape, {})
