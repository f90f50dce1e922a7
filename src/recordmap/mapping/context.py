"""Per-call conversion state shared by walker, builder and coercion engine.

This module defines the ConversionContext dataclass that carries the
configuration, the type registry and the issue report through one conversion
call. Using a dedicated context object keeps the recursive helpers free of
module-level state.

State Fields:
    config: Immutable MapperConfig snapshot taken when the call started
    registry: TypeRegistry used to resolve nested record types
    report: ConversionReport receiving non-fatal issues
    path: Dotted field path of the value currently being converted

Design Note:
    A context is created by the engine for each public call and discarded
    afterwards; nested calls derive children via `at()` so issue paths read
    like ``order.lines[2].price``.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import Any, Optional

from ..config import MapperConfig
from ..models.report import ConversionReport, IssueKind
from .registry import TypeRegistry

__all__ = ["ConversionContext"]


@dataclass
class ConversionContext:
    config: MapperConfig
    registry: TypeRegistry
    report: ConversionReport = field(default_factory=ConversionReport)
    path: str = ""

    def at(self, segment: str) -> "ConversionContext":
        if segment.startswith("["):
            child = f"{self.path}{segment}"
        else:
            child = f"{self.path}.{segment}" if self.path else segment
        return replace(self, path=child)

    def issue(
        self,
        kind: IssueKind,
        message: str,
        *,
        value: Any = None,
        logger: Optional[logging.Logger] = None,
        level: int = logging.WARNING,
    ) -> None:
        """Record a non-fatal issue and log it."""
        self.report.add(kind, message, path=self.path, value=value)
        (logger or logging.getLogger(__name__)).log(
            level, "%s at %s: %s", kind.value, self.path or "<root>", message
        )
