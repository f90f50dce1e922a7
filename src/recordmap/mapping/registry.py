"""Type registry: resolve a type name to a fresh, empty instance.

Names are either fully qualified (``myapp.models.Address``) or short
(``Address``). Short names are qualified with the default namespace before
lookup, because two modules may well define classes with the same name:

1. Explicit override (`set_default_namespace` / `set_namespace_for`)
2. The ``default_namespace`` of the active MapperConfig (settings)
3. Derived once from the running application (the ``__main__`` package or
   script name, spaces and dashes replaced by underscores)

Lookup Order:
    1. Registered names (qualified name, plus any alias given to `register`)
    2. Importable dotted paths (``module.Class`` via importlib)

After construction the instance's ``refine_type(mapping)`` hook, when
present, is invoked with the inbound mapping and its answer (an instance, a
class, or a type name) replaces the default instance. `discriminated_by`
builds such a hook from a tag -> subtype table.

Public API:
    TypeRegistry: Name -> class table with construction helpers
    discriminated_by: Tagged-variant polymorphism hook factory
    derive_app_namespace: Namespace of the running application
"""
from __future__ import annotations

import dataclasses
import importlib
import logging
import os
import sys
import threading
from typing import Any, Callable, Dict, Mapping, Optional, Type, Union

from pydantic import BaseModel

from ..errors import TypeResolutionError

logger = logging.getLogger(__name__)

__all__ = ["TypeRegistry", "derive_app_namespace", "discriminated_by", "qualified_name"]


def qualified_name(cls: type) -> str:
    return f"{cls.__module__}.{cls.__qualname__}"


def _clean_app_name(name: str) -> str:
    return name.replace(" ", "_").replace("-", "_")


def derive_app_namespace() -> str:
    """Namespace of the running application.

    Uses the package of the ``__main__`` module when started with ``-m``,
    otherwise the script's file name without extension.
    """
    main = sys.modules.get("__main__")
    spec = getattr(main, "__spec__", None)
    if spec is not None and getattr(spec, "name", None):
        return _clean_app_name(spec.parent or spec.name)
    main_file = getattr(main, "__file__", None)
    if main_file:
        return _clean_app_name(os.path.splitext(os.path.basename(main_file))[0])
    return "__main__"


def discriminated_by(
    key: str,
    variants: Mapping[Any, Union[type, str]],
    *,
    default: Union[type, str, None] = None,
) -> Callable[[Any, Mapping[str, Any]], Any]:
    """Build a ``refine_type`` hook dispatching on a discriminator field.

    Usage::

        class Animal(Record):
            kind: str = ""

        class Dog(Animal): ...
        class Cat(Animal): ...

        Animal.refine_type = discriminated_by("kind", {"dog": Dog, "cat": "Cat"})

    Variants may be classes or type names (resolved through the registry, so
    they can reference subclasses declared later). Unknown tags fall back to
    ``default`` or keep the base instance.
    """

    def refine_type(self: Any, mapping: Mapping[str, Any]) -> Any:
        tag = mapping.get(key) if isinstance(mapping, Mapping) else None
        try:
            target = variants.get(tag, default)
        except TypeError:
            # unhashable tag value
            target = default
        if target is None or (isinstance(target, type) and type(self) is target):
            return self
        return target

    return refine_type


class TypeRegistry:
    """Process-wide (or engine-scoped) name -> class table.

    Registration is expected at import/startup time. Lookups are lock-free;
    writers (register, namespace changes) serialize on an internal lock.
    """

    def __init__(self) -> None:
        self._types: Dict[str, type] = {}
        self._namespace_override: Optional[str] = None
        self._derived_namespace: Optional[str] = None
        self._lock = threading.Lock()

    # ---------------- registration -----------------

    def register(self, cls: Optional[type] = None, *, name: Optional[str] = None) -> Any:
        """Register ``cls`` under its qualified name (and ``name`` if given).

        Works as a plain call or as a decorator (``@registry.register`` or
        ``@registry.register(name="Alias")``).
        """

        def _do_register(target: type) -> type:
            with self._lock:
                self._types[qualified_name(target)] = target
                if name:
                    self._types[name] = target
            return target

        if cls is None:
            return _do_register
        return _do_register(cls)

    def unregister(self, cls: type) -> None:
        with self._lock:
            for key in [k for k, v in self._types.items() if v is cls]:
                del self._types[key]

    def registered(self) -> Dict[str, type]:
        return dict(self._types)

    # ---------------- namespace -----------------

    def set_default_namespace(self, namespace: Optional[str]) -> None:
        with self._lock:
            self._namespace_override = namespace.rstrip(".") if namespace else None

    def set_namespace_for(self, cls: type) -> None:
        """Use the module of ``cls`` as the default namespace."""
        self.set_default_namespace(cls.__module__)

    def default_namespace(self, configured: Optional[str] = None) -> str:
        if self._namespace_override:
            return self._namespace_override
        if configured:
            return configured
        if self._derived_namespace is None:
            self._derived_namespace = derive_app_namespace()
        return self._derived_namespace

    def qualify(self, type_name: str, configured_namespace: Optional[str] = None) -> str:
        if "." in type_name:
            return type_name
        return f"{self.default_namespace(configured_namespace)}.{type_name}"

    def type_name(self, instance: Any, configured_namespace: Optional[str] = None) -> str:
        """Qualified name of ``instance``'s class with the default namespace stripped."""
        full = qualified_name(type(instance))
        prefix = f"{self.default_namespace(configured_namespace)}."
        if full.lower().startswith(prefix.lower()):
            return full[len(prefix):]
        return full

    # ---------------- lookup & construction -----------------

    def resolve_class(self, type_name: str, configured_namespace: Optional[str] = None) -> Optional[type]:
        """Find the class for ``type_name`` or return None."""
        if not type_name:
            return None
        found = self._types.get(type_name)
        if found is not None:
            return found
        qualified = self.qualify(type_name, configured_namespace)
        found = self._types.get(qualified)
        if found is not None:
            return found
        return _import_class(qualified)

    def instantiate(self, cls: Type[Any]) -> Any:
        """Create an empty instance of ``cls``.

        Raises:
            TypeResolutionError: when no construction strategy succeeds.
        """
        name = qualified_name(cls)
        try:
            return cls()
        except (TypeError, ValueError) as e:
            # required arguments: fall back to a blank instance
            missing_args = e
        except Exception as e:
            raise TypeResolutionError(name, f"constructor raised {type(e).__name__}: {e}") from e
        try:
            if isinstance(cls, type) and issubclass(cls, BaseModel):
                return _blank_model(cls)
            if dataclasses.is_dataclass(cls):
                return _blank_dataclass(cls)
        except Exception as e:
            raise TypeResolutionError(name, f"blank construction failed: {e}") from e
        raise TypeResolutionError(name, str(missing_args)) from missing_args

    def resolve(
        self,
        target: Union[str, type],
        mapping: Optional[Mapping[str, Any]] = None,
        configured_namespace: Optional[str] = None,
    ) -> Any:
        """Resolve ``target`` to a fresh instance, applying ``refine_type``.

        Raises:
            TypeResolutionError: unknown name or unconstructable class.
        """
        if isinstance(target, str):
            cls = self.resolve_class(target, configured_namespace)
            if cls is None:
                raise TypeResolutionError(target, "unknown type name")
        else:
            cls = target
        instance = self.instantiate(cls)
        if mapping is not None:
            instance = self.refine(instance, mapping, configured_namespace)
        return instance

    def refine(
        self, instance: Any, mapping: Mapping[str, Any], configured_namespace: Optional[str] = None
    ) -> Any:
        hook = getattr(instance, "refine_type", None)
        if not callable(hook):
            return instance
        try:
            refined = hook(mapping)
        except Exception as e:
            raise TypeResolutionError(
                qualified_name(type(instance)), f"refine_type raised {type(e).__name__}: {e}"
            ) from e
        if refined is None or refined is instance:
            return instance
        if isinstance(refined, str):
            cls = self.resolve_class(refined, configured_namespace)
            if cls is None:
                raise TypeResolutionError(refined, "refine_type returned an unknown type name")
            refined = cls
        if isinstance(refined, type):
            return self.instantiate(refined)
        return refined


def _import_class(dotted: str) -> Optional[type]:
    """Import ``package.module.Outer.Inner`` style paths."""
    parts = dotted.split(".")
    for split in range(len(parts) - 1, 0, -1):
        module_name = ".".join(parts[:split])
        try:
            obj: Any = importlib.import_module(module_name)
        except ImportError:
            continue
        try:
            for attr in parts[split:]:
                obj = getattr(obj, attr)
        except AttributeError:
            return None
        return obj if isinstance(obj, type) else None
    return None


def _blank_model(cls: Type[BaseModel]) -> BaseModel:
    instance = cls.model_construct()
    for name in cls.model_fields:
        if name not in instance.__dict__:
            instance.__dict__[name] = None
    return instance


def _blank_dataclass(cls: type) -> Any:
    instance = cls.__new__(cls)
    for f in dataclasses.fields(cls):
        if f.default is not dataclasses.MISSING:
            value = f.default
        elif f.default_factory is not dataclasses.MISSING:
            value = f.default_factory()
        else:
            value = None
        object.__setattr__(instance, f.name, value)
    return instance
