"""Insertion-ordered store of non-overlapping highlight intervals.

WHY: The no-overlap invariant is the one rule the whole editor relies on:
rendering, containment lookups and export all assume a token belongs to
at most one highlight. Funnelling every mutation through one store that
checks the invariant before writing keeps it true at all times.

HOW: Intervals live in a plain dict keyed by id. Python dicts preserve
insertion order, and updates replace the value in place, so "first
interval by store order" is well defined and stable across edits. The
same _find_overlap() check guards create, update and load. Colors come
from a ColorAllocator; the store owns the used-color set.

RULES:
- Ranges A and B intersect iff A.start <= B.end and A.end >= B.start
- create/update normalize reversed bounds by swapping
- start == end is rejected unless single-token highlights are allowed
- Every failing call raises before touching state (atomic)
- delete() of an unknown id is a no-op, not an error
- A color is released only when no remaining interval still uses it
"""

from __future__ import annotations

import logging
import time
import uuid
from dataclasses import replace
from typing import Any, Dict, Iterable, Iterator, List, Optional

from highlight_engine import config
from highlight_engine.core.colors import ColorAllocator
from highlight_engine.core.errors import DegenerateRangeError, NotFoundError, OverlapError
from highlight_engine.core.ir import Interval

logger = logging.getLogger(__name__)


def new_interval_id() -> str:
    """Generate an id in the persisted ``highlight_<ms>_<suffix>`` shape."""
    return "highlight_{}_{}".format(int(time.time() * 1000), uuid.uuid4().hex[:9])


def _normalize(start: int, end: int) -> tuple[int, int]:
    return (start, end) if start <= end else (end, start)


class IntervalStore:
    """Owns the highlight set and enforces the no-overlap invariant.

    WHY: Hosts create, resize and delete highlights from many UI paths
    (text selection, edge drags, context menus). A single owner keeps the
    invariant and the color bookkeeping consistent.

    HOW: Mutations compute the new value first, validate it against the
    other intervals, and only then write to the dict. Nothing is written
    on a failed check.

    RULES:
    - Iteration order is insertion order; update() keeps position
    - used_colors reflects the colors of the current intervals
    - No internal locking; the host serializes calls
    """

    def __init__(
        self,
        allocator: Optional[ColorAllocator] = None,
        allow_single_token: Optional[bool] = None,
    ) -> None:
        self._intervals: Dict[str, Interval] = {}
        self._used_colors: set[str] = set()
        self._allocator = allocator or ColorAllocator()
        self.allow_single_token = (
            config.ALLOW_SINGLE_TOKEN if allow_single_token is None else allow_single_token
        )

    # -- read access --------------------------------------------------------

    def __len__(self) -> int:
        return len(self._intervals)

    def __iter__(self) -> Iterator[Interval]:
        return iter(list(self._intervals.values()))

    def __contains__(self, interval_id: object) -> bool:
        return interval_id in self._intervals

    def get(self, interval_id: str) -> Optional[Interval]:
        return self._intervals.get(interval_id)

    def intervals(self) -> List[Interval]:
        """Snapshot of all intervals in insertion order."""
        return list(self._intervals.values())

    @property
    def used_colors(self) -> frozenset[str]:
        return frozenset(self._used_colors)

    # -- overlap ------------------------------------------------------------

    def _find_overlap(
        self, start: int, end: int, exclude_id: Optional[str] = None
    ) -> Optional[Interval]:
        for interval in self._intervals.values():
            if interval.id != exclude_id and interval.intersects(start, end):
                return interval
        return None

    def overlaps(self, start: int, end: int, exclude_id: Optional[str] = None) -> bool:
        """True if [start, end] intersects any interval other than exclude_id."""
        start, end = _normalize(start, end)
        return self._find_overlap(start, end, exclude_id) is not None

    def find_containing(self, index: int) -> Optional[Interval]:
        """First interval, by insertion order, whose range contains index."""
        for interval in self._intervals.values():
            if interval.contains(index):
                return interval
        return None

    # -- mutations ----------------------------------------------------------

    def create(
        self,
        start: int,
        end: int,
        color: Optional[str] = None,
        *,
        allow_single_token: Optional[bool] = None,
        label: Optional[str] = None,
        interval_id: Optional[str] = None,
    ) -> Interval:
        """Create a highlight over [start, end].

        WHY: The primary user action — select some words, get a highlight.

        HOW: Normalize the bounds, reject degenerate and overlapping
        ranges, pick a color, then insert.

        RULES:
        - Raises DegenerateRangeError for start == end unless allowed
          (per call, falling back to the store default)
        - Raises OverlapError if the range touches any existing interval
        - Raises ValueError if interval_id is already taken
        - Explicit color is used verbatim; otherwise the allocator picks
        """
        single_ok = self.allow_single_token if allow_single_token is None else allow_single_token
        if start == end and not single_ok:
            logger.debug("Rejected single-token highlight at %d", start)
            raise DegenerateRangeError(start)

        start, end = _normalize(start, end)
        conflict = self._find_overlap(start, end)
        if conflict is not None:
            logger.debug("Rejected highlight [%d, %d]: overlaps %s", start, end, conflict.id)
            raise OverlapError(start, end, conflict.id)

        new_id = interval_id or new_interval_id()
        if new_id in self._intervals:
            raise ValueError("Highlight id {} already exists".format(new_id))

        interval = Interval(
            id=new_id,
            start=start,
            end=end,
            color=color or self._allocator.allocate(self._used_colors),
            label=label,
        )
        self._intervals[interval.id] = interval
        self._used_colors.add(interval.color)

        logger.info("Created highlight %s [%d, %d] %s", interval.id, start, end, interval.color)
        return interval

    def update(self, interval_id: str, new_start: int, new_end: int) -> Interval:
        """Move the bounds of an existing highlight.

        RULES:
        - Raises NotFoundError for unknown ids
        - Overlap is checked against every other interval (self excluded)
        - Color, label and store position are kept
        """
        existing = self._intervals.get(interval_id)
        if existing is None:
            raise NotFoundError(interval_id)

        start, end = _normalize(new_start, new_end)
        conflict = self._find_overlap(start, end, exclude_id=interval_id)
        if conflict is not None:
            logger.debug(
                "Rejected update of %s to [%d, %d]: overlaps %s",
                interval_id, start, end, conflict.id,
            )
            raise OverlapError(start, end, conflict.id)

        updated = replace(existing, start=start, end=end)
        self._intervals[interval_id] = updated
        logger.info("Updated highlight %s to [%d, %d]", interval_id, start, end)
        return updated

    def relabel(self, interval_id: str, label: Optional[str]) -> Interval:
        existing = self._intervals.get(interval_id)
        if existing is None:
            raise NotFoundError(interval_id)
        updated = replace(existing, label=label)
        self._intervals[interval_id] = updated
        return updated

    def delete(self, interval_id: str) -> bool:
        """Remove a highlight and release its color.

        Returns True if something was removed. Unknown ids are a no-op.
        """
        interval = self._intervals.pop(interval_id, None)
        if interval is None:
            return False

        if all(other.color != interval.color for other in self._intervals.values()):
            self._allocator.release(interval.color, self._used_colors)

        logger.info("Deleted highlight %s", interval_id)
        return True

    def load(self, intervals: Iterable[Interval]) -> None:
        """Replace the store contents with already-built intervals.

        WHY: Restoring a session or undoing an edit swaps in a whole set.

        HOW: Builds the new dict on the side, validating bounds, id
        uniqueness and pairwise overlap as it goes, and swaps it in only
        when everything passed.

        RULES:
        - Reversed bounds are normalized
        - Raises OverlapError / ValueError and leaves the store unchanged
        """
        staged: Dict[str, Interval] = {}
        for interval in intervals:
            start, end = _normalize(interval.start, interval.end)
            if interval.id in staged:
                raise ValueError("Duplicate highlight id {}".format(interval.id))
            for other in staged.values():
                if other.intersects(start, end):
                    raise OverlapError(start, end, other.id)
            staged[interval.id] = replace(interval, start=start, end=end)

        self._intervals = staged
        self._used_colors = {i.color for i in staged.values()}
        logger.info("Loaded %d highlights", len(staged))

    def debug_info(self) -> Dict[str, Any]:
        """Plain-dict summary for troubleshooting."""
        return {
            "highlight_count": len(self._intervals),
            "highlights": [
                {
                    "id": i.id,
                    "start": i.start,
                    "end": i.end,
                    "color": i.color,
                    "word_count": i.word_count,
                }
                for i in self._intervals.values()
            ],
            "used_colors": sorted(self._used_colors),
        }
