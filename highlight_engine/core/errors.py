"""Exception hierarchy for highlight and sequence editing.

WHY: Every failed mutation must be reported synchronously to the host,
which decides whether to show a message or retry persistence. A small
hierarchy lets the host catch one base class or react to a specific kind.

HOW: HighlightError is the common base. Each concrete error also derives
from the closest built-in (ValueError, KeyError) so generic handlers
written against the built-ins keep working.

RULES:
- Raised before any state is touched — a failed call leaves no trace
- NotFoundError is never raised by delete (unknown ids are a no-op)
- ReentrantDropError is an InvalidDragError: the drop is rejected, not queued
"""

from __future__ import annotations


class HighlightError(Exception):
    """Base class for all highlight engine errors."""


class DegenerateRangeError(HighlightError, ValueError):
    """A highlight was requested with start == end without opting in."""

    def __init__(self, index: int) -> None:
        self.index = index
        super().__init__(
            "Cannot create highlight with same start and end index ({})".format(index)
        )


class OverlapError(HighlightError, ValueError):
    """The requested range intersects an existing highlight."""

    def __init__(self, start: int, end: int, conflict_id: str) -> None:
        self.start = start
        self.end = end
        self.conflict_id = conflict_id
        super().__init__(
            "Range [{}, {}] overlaps highlight {}".format(start, end, conflict_id)
        )


class NotFoundError(HighlightError, KeyError):
    """An operation referenced an unknown highlight or break id."""

    def __init__(self, interval_id: str, what: str = "Highlight") -> None:
        self.interval_id = interval_id
        self.what = what
        super().__init__(interval_id)

    def __str__(self) -> str:
        return "{} with id {} not found".format(self.what, self.interval_id)



class InvalidDragError(HighlightError, ValueError):
    """A drag gesture was malformed or used outside its lifecycle."""


class ReentrantDropError(InvalidDragError):
    """A drop arrived while a previous drop was still being applied."""


class PersistedFormatError(HighlightError, ValueError):
    """Persisted sequence data does not match the exchange shape."""
