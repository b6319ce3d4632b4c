"""Highlight Engine — annotation state for transcript-driven video editing.

WHY: A transcript editor lets users mark highlights over time-stamped
words and arrange them, with section breaks, into the order of the final
cut. Overlap rules, timestamp/index translation and multi-item drag
reordering are easy to get subtly wrong in UI code, so they live here as
plain, testable Python.

HOW: Three layers — core (IR, token lookup, highlight store, sequence
editing, drag gestures), adapters (persisted JSON in and out), and a
session facade that wires them into the load → edit → persist flow.

RULES:
- No rendering, no I/O; plain data in, plain data out
- Every failed mutation leaves state exactly as it was
- Highlights never overlap
"""

from highlight_engine.core.errors import (
    DegenerateRangeError,
    HighlightError,
    InvalidDragError,
    NotFoundError,
    OverlapError,
    PersistedFormatError,
    ReentrantDropError,
)
from highlight_engine.session import HighlightSession

__version__ = "0.1.0"

__all__ = [
    "DegenerateRangeError",
    "HighlightError",
    "HighlightSession",
    "InvalidDragError",
    "NotFoundError",
    "OverlapError",
    "PersistedFormatError",
    "ReentrantDropError",
]
