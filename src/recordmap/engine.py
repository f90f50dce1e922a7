"""Conversion engine: one configuration, one type registry, every operation.

`RecordMapper` is the object callers hold on to. It owns an immutable
`MapperConfig` (created lazily from settings on first use) and a
`TypeRegistry`, and exposes the public operations:

    to_dict / from_dict / populate       object graph <-> canonical mapping
    to_json / from_json / array_from_json   the same via JSON text
    are_equal / hash_value / describe    structural utilities
    type_name / register / namespaces    type resolution helpers

Every call builds a fresh `ConversionContext`; issues encountered along the
way are collected in a `ConversionReport` the caller may pass in (or obtain
from the ``*_with_report`` variants).

Design Note:
    Reconfiguration swaps the whole config under a lock; conversions read
    the current reference once per call, so a concurrent `configure` never
    produces a half-applied configuration.
"""
from __future__ import annotations

import logging
import threading
from functools import lru_cache
from typing import Any, List, Mapping, Optional, Tuple, Union

from .codec import dictionary_from_json, load_json, render_text
from .config import MapperConfig, get_settings
from .errors import JsonParseError
from .mapping.builder import build_from_mapping, populate_from_mapping
from .mapping.context import ConversionContext
from .mapping.equality import describe_mapping, hash_mapping, mappings_equal
from .mapping.registry import TypeRegistry
from .mapping.walker import to_canonical_mapping
from .models.canonical import CanonicalMapping, CanonicalValue
from .models.report import ConversionReport, IssueKind

logger = logging.getLogger(__name__)

__all__ = ["RecordMapper", "get_default_mapper"]

TypeTarget = Union[str, type]


class RecordMapper:
    def __init__(
        self, config: Optional[MapperConfig] = None, registry: Optional[TypeRegistry] = None
    ) -> None:
        self._config = config
        self.registry = registry if registry is not None else TypeRegistry()
        self._lock = threading.Lock()

    # ---------------- configuration -----------------

    @property
    def config(self) -> MapperConfig:
        config = self._config
        if config is None:
            with self._lock:
                if self._config is None:
                    self._config = MapperConfig.from_settings(get_settings())
                config = self._config
        return config

    def configure(self, **changes: Any) -> MapperConfig:
        """Replace the configuration with a copy carrying ``changes``.

        Accepts the `MapperConfig` field names (``date_format``,
        ``timezone`` as tzinfo or zone name, ``default_namespace``,
        ``reserved_words``, ``json_indent``).
        """
        with self._lock:
            base = self._config or MapperConfig.from_settings(get_settings())
            self._config = base.with_changes(**changes)
            logger.debug("Mapper reconfigured: %s", sorted(changes))
            return self._config

    def _context(self, report: Optional[ConversionReport] = None) -> ConversionContext:
        return ConversionContext(
            config=self.config,
            registry=self.registry,
            report=report if report is not None else ConversionReport(),
        )

    # ---------------- type registry -----------------

    def register(self, cls: Optional[type] = None, *, name: Optional[str] = None) -> Any:
        return self.registry.register(cls, name=name)

    def set_default_namespace(self, namespace: Optional[str]) -> None:
        self.registry.set_default_namespace(namespace)

    def set_namespace_for(self, cls: type) -> None:
        self.registry.set_namespace_for(cls)

    def type_name(self, instance: Any) -> str:
        return self.registry.type_name(instance, self.config.default_namespace)

    # ---------------- object <-> mapping -----------------

    def to_dict(
        self, instance: Any, cleanup: bool = False, report: Optional[ConversionReport] = None
    ) -> CanonicalMapping:
        """Serialize ``instance`` into its canonical mapping."""
        return to_canonical_mapping(instance, self._context(report), cleanup=cleanup)

    def to_dict_with_report(
        self, instance: Any, cleanup: bool = False
    ) -> Tuple[CanonicalMapping, ConversionReport]:
        report = ConversionReport()
        return self.to_dict(instance, cleanup=cleanup, report=report), report

    def from_dict(
        self,
        mapping: Mapping[str, CanonicalValue],
        target: TypeTarget,
        report: Optional[ConversionReport] = None,
    ) -> Optional[Any]:
        """Build an instance of ``target`` (class or type name) from ``mapping``.

        Returns None when the type cannot be resolved; the reason is in the
        report and the log.
        """
        return build_from_mapping(mapping, target, self._context(report))

    def from_dict_with_report(
        self, mapping: Mapping[str, CanonicalValue], target: TypeTarget
    ) -> Tuple[Optional[Any], ConversionReport]:
        report = ConversionReport()
        return self.from_dict(mapping, target, report=report), report

    def populate(
        self,
        instance: Any,
        mapping: Mapping[str, CanonicalValue],
        report: Optional[ConversionReport] = None,
    ) -> Any:
        """Set the fields of an existing instance from ``mapping`` (patch update)."""
        return populate_from_mapping(mapping, instance, self._context(report))

    # ---------------- JSON text -----------------

    def to_json(self, instance: Any, cleanup: bool = True, pretty: bool = False) -> str:
        return render_text(self.to_dict(instance, cleanup=cleanup), pretty=pretty, config=self.config)

    def from_json(
        self, text: str, target: TypeTarget, report: Optional[ConversionReport] = None
    ) -> Optional[Any]:
        """Lenient: invalid JSON yields an empty instance of ``target``."""
        return self.from_dict(dictionary_from_json(text), target, report=report)

    def array_from_json(
        self, target: TypeTarget, text: str, report: Optional[ConversionReport] = None
    ) -> List[Any]:
        """Parse a JSON array of objects into instances of ``target``.

        Invalid JSON or a non-array document yields an empty list; elements
        that are not objects are skipped and reported.
        """
        ctx = self._context(report)
        try:
            parsed = load_json(text)
        except JsonParseError as e:
            logger.warning("Could not parse JSON array: %s", e)
            return []
        if isinstance(parsed, dict):
            parsed = [parsed]
        if not isinstance(parsed, list):
            logger.warning("Expected a JSON array, got %s", type(parsed).__name__)
            return []
        result: List[Any] = []
        for index, item in enumerate(parsed):
            item_ctx = ctx.at(f"[{index}]")
            if not isinstance(item, dict):
                item_ctx.issue(
                    IssueKind.VALUE_COERCION,
                    f"array element is {type(item).__name__}, not an object; skipped",
                    value=item,
                    logger=logger,
                )
                continue
            instance = build_from_mapping(item, target, item_ctx)
            if instance is not None:
                result.append(instance)
        return result

    # ---------------- structural utilities -----------------

    def are_equal(self, lhs: Any, rhs: Any) -> bool:
        """Same type name and equal canonical mappings (dates by whole second)."""
        if self.type_name(lhs) != self.type_name(rhs):
            return False
        return mappings_equal(self.to_dict(lhs), self.to_dict(rhs))

    def hash_value(self, instance: Any) -> int:
        return hash_mapping(self.to_dict(instance))

    def describe(self, instance: Any) -> str:
        return describe_mapping(self.type_name(instance), self.to_dict(instance))

    def log_object(self, instance: Any, level: int = logging.INFO) -> None:
        logger.log(level, "%s", self.describe(instance))


@lru_cache(maxsize=1)
def get_default_mapper() -> RecordMapper:
    """Return the process-wide engine backing the `recordmap.mapper` facade."""
    return RecordMapper()
