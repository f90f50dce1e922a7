"""Application configuration management using Pydantic Settings.

This module defines the `Settings` class, which loads configuration parameters
from environment variables (prefixed with ``RECORDMAP_``) and a `.env` file.
It centralizes the few tunables of the mapper: logging level, the date format
used when strings are converted to dates (and dates rendered to JSON), the
default namespace used to qualify short type names, and extra reserved words
for key normalization.

`get_settings` returns a cached singleton. `MapperConfig` is the immutable
structure an engine actually reads; it is derived from settings once and
replaced only through an explicit reconfiguration.
"""
from __future__ import annotations

import keyword
from dataclasses import dataclass, field, replace
from datetime import timezone, tzinfo
from functools import lru_cache
from typing import Any, FrozenSet, Optional
from zoneinfo import ZoneInfo

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings
from pydantic_settings import SettingsConfigDict as _SettingsConfigDict

DEFAULT_DATE_FORMAT = "%Y-%m-%dT%H:%M:%S%z"

# Names that cannot (or should not) be used as attribute names. A field
# declared as ``_class`` maps to the document key ``class``.
BASE_RESERVED_WORDS: FrozenSet[str] = frozenset(
    list(keyword.kwlist)
    + list(getattr(keyword, "softkwlist", []))
    + [
        "self",
        "cls",
        "type",
        "id",
        "object",
        "property",
        "super",
        "dict",
        "list",
        "str",
        "int",
        "float",
        "bool",
        "format",
        "hash",
        "input",
        "filter",
        "map",
        "zip",
        "next",
        "iter",
        "vars",
        "description",
    ]
)


class Settings(BaseSettings):
    """Defines all configuration parameters of the mapper.

    Values come from ``RECORDMAP_*`` environment variables or a `.env` file.
    Only `DATE_FORMAT`, `DATE_TIMEZONE`, `DEFAULT_NAMESPACE` and
    `EXTRA_RESERVED_WORDS` influence conversions; the remaining values drive
    the CLI and JSON rendering.
    """

    model_config = _SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", env_prefix="RECORDMAP_", extra="ignore"
    )

    LOG_LEVEL: str = Field(default="INFO", description="Logging level")
    DATE_FORMAT: str = Field(
        default=DEFAULT_DATE_FORMAT,
        description="strftime/strptime pattern used for string <-> date conversion",
    )
    DATE_TIMEZONE: str = Field(
        default="UTC",
        description="Timezone applied to parsed dates lacking an offset and to rendered dates",
    )
    DEFAULT_NAMESPACE: Optional[str] = Field(
        default=None,
        description=(
            "Module path used to qualify short type names (e.g. 'myapp.models'). "
            "When unset it is derived from the running application."
        ),
    )
    # Use Any type to prevent Pydantic Settings JSON decoding; validator converts to list[str]
    EXTRA_RESERVED_WORDS: Any = Field(
        default_factory=list,
        description="Comma-separated words added to the reserved word table",
    )
    CLEANUP_OUTPUT_KEYS: bool = Field(
        default=True,
        description="Normalize output keys to snake_case when rendering JSON text",
    )
    JSON_INDENT: int = Field(default=2, description="Indent used for pretty JSON output")

    @field_validator("EXTRA_RESERVED_WORDS", mode="before")
    @classmethod
    def parse_comma_separated(cls, v: str | list[str]) -> list[str]:
        """Parse comma-separated string into list of stripped strings.

        Supports both direct list input (from code/tests) and comma-separated
        string input (from environment variables).
        """
        if isinstance(v, list):
            return [s.strip() for s in v if s.strip()]
        if isinstance(v, str):
            if not v.strip():
                return []
            return [s.strip() for s in v.split(",") if s.strip()]
        return []

    @field_validator("DEFAULT_NAMESPACE", mode="before")
    @classmethod
    def normalize_namespace(cls, v: Any) -> Optional[str]:
        """Trim whitespace and normalize blank -> None."""
        if isinstance(v, str):
            trimmed = v.strip().rstrip(".")
            return trimmed or None
        return None


def _resolve_timezone(name: str) -> tzinfo:
    if not name or name.upper() in ("UTC", "Z", "GMT"):
        return timezone.utc
    return ZoneInfo(name)


@dataclass(frozen=True)
class MapperConfig:
    """Immutable configuration read by a `RecordMapper` during conversions."""

    date_format: str = DEFAULT_DATE_FORMAT
    timezone: tzinfo = timezone.utc
    default_namespace: Optional[str] = None
    reserved_words: FrozenSet[str] = field(default=BASE_RESERVED_WORDS)
    json_indent: int = 2

    @classmethod
    def from_settings(cls, settings: Settings) -> "MapperConfig":
        return cls(
            date_format=settings.DATE_FORMAT,
            timezone=_resolve_timezone(settings.DATE_TIMEZONE),
            default_namespace=settings.DEFAULT_NAMESPACE,
            reserved_words=BASE_RESERVED_WORDS | frozenset(settings.EXTRA_RESERVED_WORDS),
            json_indent=settings.JSON_INDENT,
        )

    def with_changes(self, **changes: Any) -> "MapperConfig":
        if isinstance(changes.get("timezone"), str):
            changes["timezone"] = _resolve_timezone(changes["timezone"])
        return replace(self, **changes)


@lru_cache(maxsize=1)
def get_settings() -> Settings:  # pragma: no cover - trivial
    """Return a cached, singleton instance of the settings."""
    return Settings()


__all__ = [
    "BASE_RESERVED_WORDS",
    "DEFAULT_DATE_FORMAT",
    "MapperConfig",
    "Settings",
    "get_settings",
]
