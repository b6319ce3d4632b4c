"""Intermediate representation dataclasses for highlight editing.

WHY: The host hands us loosely-shaped JSON (timestamp highlights, "N"
strings, {"type": "N"} objects). Every component downstream needs the
same well-typed view of tokens, intervals and sequence entries, decided
once at ingestion instead of re-inspected at every call site.

HOW: Frozen dataclasses form the model:
  Token        — one time-stamped unit of transcript text
  Interval     — a highlight: closed range over token indices plus color
  IntervalRef  — sequence entry pointing at an Interval by id
  BreakMarker  — sequence entry for a section break, optionally titled
  ResizeResult — proposed bounds from a single-edge drag

RULES:
- All dataclasses are frozen; changes produce new instances via replace()
- Interval.start <= Interval.end (closed, inclusive)
- SequenceEntry is IntervalRef | BreakMarker; ``kind`` tells them apart
- Token times are float seconds
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Optional, Union


@dataclass(frozen=True)
class Token:
    """One transcript token with its time span in seconds."""

    text: str
    start: float
    end: float


@dataclass(frozen=True)
class Interval:
    """A user highlight over token positions.

    RULES:
    - id: opaque, unique within a store
    - start / end: token indices, closed range, start <= end
    - color: palette hex or synthetic ``hsl(...)`` string
    - label: optional free text shown by the host
    """

    id: str
    start: int
    end: int
    color: str
    label: Optional[str] = None

    @property
    def word_count(self) -> int:
        return self.end - self.start + 1

    def contains(self, index: int) -> bool:
        return self.start <= index <= self.end

    def intersects(self, start: int, end: int) -> bool:
        return start <= self.end and end >= self.start


@dataclass(frozen=True)
class IntervalRef:
    """Sequence entry referring to an Interval owned by an IntervalStore."""

    interval_id: str

    kind = "interval"

    @property
    def id(self) -> str:
        return self.interval_id


@dataclass(frozen=True)
class BreakMarker:
    """Sequence entry denoting a section break."""

    id: str
    title: Optional[str] = None

    kind = "break"


SequenceEntry = Union[IntervalRef, BreakMarker]


class DragEdge(str, enum.Enum):
    """Which end of an interval a resize gesture holds."""

    START = "start"
    END = "end"


class ResizeMode(str, enum.Enum):
    """Direction of a resize relative to the original bounds."""

    EXPAND = "expand"
    CONTRACT = "contract"


@dataclass(frozen=True)
class ResizeResult:
    """Bounds proposed by a single-edge drag.

    ``mode`` is None when the cursor sits on the dragged anchor itself;
    callers treat that as a no-op.
    """

    start: int
    end: int
    mode: Optional[ResizeMode]
