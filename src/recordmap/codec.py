"""JSON text <-> canonical mapping.

The JSON grammar itself is delegated to the standard `json` module; this
module only decides what to do with the edges:

    - `parse_text` is strict and raises `JsonParseError`
    - `dictionary_from_json` is lenient and returns ``{}`` with a warning
    - `render_text` writes dates with the configured date format; any value
      that is still not JSON-native is rendered via ``str()`` and logged as
      an error, because it means an unknown value slipped past coercion

`to_json_string`, `from_json` and `array_from_json` are shortcuts running
through a `RecordMapper` (the default engine unless one is given).
"""
from __future__ import annotations

import json
import logging
from datetime import date
from typing import TYPE_CHECKING, Any, Dict, List, Mapping, Optional, Union

from .config import MapperConfig
from .errors import JsonParseError
from .mapping.dates import format_date

if TYPE_CHECKING:  # pragma: no cover
    from .engine import RecordMapper

logger = logging.getLogger(__name__)

__all__ = [
    "array_from_json",
    "dictionary_from_json",
    "from_json",
    "load_json",
    "parse_text",
    "render_text",
    "to_json_string",
]


def load_json(text: Union[str, bytes]) -> Any:
    """Parse any JSON document.

    Raises:
        JsonParseError: when ``text`` is not valid JSON.
    """
    try:
        return json.loads(text)
    except (json.JSONDecodeError, TypeError, UnicodeDecodeError) as e:
        raise JsonParseError(f"Invalid JSON: {e}") from e


def parse_text(text: Union[str, bytes]) -> Dict[str, Any]:
    """Parse a JSON object.

    Raises:
        JsonParseError: invalid JSON or a top-level value that is not an object.
    """
    parsed = load_json(text)
    if not isinstance(parsed, dict):
        raise JsonParseError(f"Expected a JSON object, got {type(parsed).__name__}")
    return parsed


def dictionary_from_json(text: Optional[Union[str, bytes]]) -> Dict[str, Any]:
    if not text:
        return {}
    try:
        return parse_text(text)
    except JsonParseError as e:
        logger.warning("Could not parse JSON object, using an empty one: %s", e)
        return {}


def render_text(
    mapping: Union[Mapping[str, Any], List[Any]], pretty: bool = False, config: Optional[MapperConfig] = None
) -> str:
    config = config or MapperConfig()

    def _default(value: Any) -> Any:
        if isinstance(value, date):
            return format_date(value, config.date_format, config.timezone)
        logger.error("Value of type %s is not JSON serializable; rendering str()", type(value).__name__)
        return str(value)

    return json.dumps(
        mapping,
        indent=config.json_indent if pretty else None,
        ensure_ascii=False,
        default=_default,
    )


def _engine(mapper: Optional["RecordMapper"]) -> "RecordMapper":
    if mapper is not None:
        return mapper
    from .engine import get_default_mapper

    return get_default_mapper()


def to_json_string(
    instance: Any, cleanup: bool = True, pretty: bool = False, mapper: Optional["RecordMapper"] = None
) -> str:
    return _engine(mapper).to_json(instance, cleanup=cleanup, pretty=pretty)


def from_json(text: str, target: Union[str, type], mapper: Optional["RecordMapper"] = None) -> Any:
    return _engine(mapper).from_json(text, target)


def array_from_json(
    target: Union[str, type], text: str, mapper: Optional["RecordMapper"] = None
) -> List[Any]:
    return _engine(mapper).array_from_json(target, text)
