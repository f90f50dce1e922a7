"""Internal mapping subpackage: the reflection-driven conversion core.

All functions in this package are synchronous pure transformations over the
object graph they are given. The public API lives in `recordmap.engine`
(the `RecordMapper` object) and the `recordmap.mapper` function facade;
callers should not import from here unless they need a helper directly.

Modules:
    keys: Field name <-> document key normalization
    reflection: Field discovery, hooks, get/set
    registry: Type name -> class resolution and construction
    dates: Date parsing, rendering and UTC normalization
    coercion: Native <-> canonical leaf value conversion
    walker: Object graph -> canonical mapping
    builder: Canonical mapping -> object graph
    equality: Structural comparison, hashing and describe rendering
    context: Per-call state (config, registry, issue report)

Design Invariants:
    - Every serialized value is canonical (null/bool/number/string/date/list/mapping)
    - Timezone-aware UTC datetimes only
    - A bad field never aborts the rest of the graph
    - No descriptor or key mapping is cached across calls
"""
from __future__ import annotations

from . import keys as keys  # noqa: F401
from . import dates as dates  # noqa: F401

__all__ = ["keys", "dates"]
