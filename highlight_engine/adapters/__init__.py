"""Adapter modules for converting between the core IR and persisted data.

WHY: The host persists highlights in the timestamp domain and the display
order in a loosely-typed list. Adapters bridge those shapes and the core
IR so each side can evolve independently.

HOW: Each adapter module provides parse/export functions that map plain
JSON-compatible values to IR dataclasses and back.

RULES:
- Adapters are pure data transformations — no I/O, no side effects.
- Adapters must not modify the source IR objects.
"""

from highlight_engine.adapters.persisted import (
    ParsedSequence,
    export_intervals,
    export_sequence,
    parse_sequence,
)

__all__ = ["ParsedSequence", "export_intervals", "export_sequence", "parse_sequence"]
