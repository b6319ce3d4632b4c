"""Display ordering of highlights and section breaks.

WHY: The edited video is assembled in the order the user arranges
highlights, with section breaks between groups. That order is independent
of where highlights sit in the transcript, and users reorder it by
dragging one or several entries at once.

HOW: SequenceEditor owns a list of SequenceEntry values (IntervalRef or
BreakMarker). reorder_entries() moves a block of dragged entries as one
contiguous run; flatten() merges adjacent breaks. Every committed change
goes through flatten() before it is stored, so the editor only ever
holds a normalized sequence.

RULES:
- reorder keeps length, id multiset, and relative order of undragged entries
- insert position is an index into the *remaining* entries, clamped
- flatten keeps the first break of each run; if it has no title it takes
  the first non-empty title later in the run
- Runs separated by an interval entry are never merged
- flatten is idempotent and never drops interval entries
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import replace
from typing import TYPE_CHECKING, Collection, Iterable, Iterator, List, Optional, Sequence

from highlight_engine.core.errors import InvalidDragError, NotFoundError
from highlight_engine.core.ir import BreakMarker, IntervalRef, SequenceEntry

if TYPE_CHECKING:
    from highlight_engine.core.store import IntervalStore

logger = logging.getLogger(__name__)


def new_break_id() -> str:
    return "break_{}".format(uuid.uuid4().hex[:12])


def reorder_entries(
    entries: Sequence[SequenceEntry],
    dragged_ids: Collection[str],
    insert_before: int,
) -> List[SequenceEntry]:
    """Move the dragged entries as one block before ``insert_before``.

    WHY: Multi-selection drags move several entries at once; they land
    together, in their original relative order.

    HOW: Partition into dragged / remaining (both order-preserving),
    clamp the insert index into [0, len(remaining)], splice.

    RULES:
    - Raises InvalidDragError if no entry id is in dragged_ids
    - Does not flatten; SequenceEditor.reorder() does that on commit
    """
    wanted = set(dragged_ids)
    dragged = [e for e in entries if e.id in wanted]
    if not dragged:
        raise InvalidDragError("Dragged ids match no sequence entries")
    remaining = [e for e in entries if e.id not in wanted]

    adjusted = max(0, min(insert_before, len(remaining)))
    return remaining[:adjusted] + dragged + remaining[adjusted:]


def flatten(entries: Iterable[SequenceEntry]) -> List[SequenceEntry]:
    """Collapse each run of adjacent breaks into a single break.

    The kept break sits where the run started. Untitled kept breaks
    adopt the first non-empty title found later in the same run.
    """
    result: List[SequenceEntry] = []
    for entry in entries:
        prev = result[-1] if result else None
        if isinstance(entry, BreakMarker) and isinstance(prev, BreakMarker):
            if not prev.title and entry.title:
                result[-1] = replace(prev, title=entry.title)
            continue
        result.append(entry)
    return result


def resolve_drag_block(
    grabbed_id: str,
    selection: Collection[str],
    entries: Sequence[SequenceEntry],
) -> List[str]:
    """Ids that move when ``grabbed_id`` is dragged.

    Grabbing a selected entry drags the whole selection (in sequence
    order); grabbing anything else collapses the selection to it.
    """
    if grabbed_id not in selection:
        return [grabbed_id]
    chosen = set(selection)
    return [e.id for e in entries if e.id in chosen]


class SequenceEditor:
    """Owns the normalized display sequence.

    RULES:
    - Entries are held already flattened
    - Interval entries reference store intervals by id only
    - Mutations replace the whole list; callers may keep old snapshots
    """

    def __init__(self, entries: Iterable[SequenceEntry] = ()) -> None:
        self._entries: List[SequenceEntry] = flatten(entries)

    # -- read access --------------------------------------------------------

    @property
    def entries(self) -> List[SequenceEntry]:
        return list(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[SequenceEntry]:
        return iter(list(self._entries))

    def ids(self) -> List[str]:
        return [e.id for e in self._entries]

    def index_of(self, entry_id: str) -> int:
        for i, entry in enumerate(self._entries):
            if entry.id == entry_id:
                return i
        return -1

    def replace_entries(self, entries: Iterable[SequenceEntry]) -> None:
        self._entries = flatten(entries)

    # -- reordering ---------------------------------------------------------

    def preview(self, dragged_ids: Collection[str], insert_before: int) -> List[SequenceEntry]:
        """Un-normalized reorder result for drag-over feedback."""
        return reorder_entries(self._entries, dragged_ids, insert_before)

    def reorder(self, dragged_ids: Collection[str], insert_before: int) -> List[SequenceEntry]:
        """Commit a block move and return the normalized sequence."""
        moved = reorder_entries(self._entries, dragged_ids, insert_before)
        self._entries = flatten(moved)
        logger.info(
            "Reordered %d entries to position %d (%d entries total)",
            len(set(dragged_ids)), insert_before, len(self._entries),
        )
        return self.entries

    # -- breaks -------------------------------------------------------------

    def insert_break(self, position: int, title: Optional[str] = None) -> BreakMarker:
        """Insert a section break before ``position``.

        WHY: Users split the edit into sections ("insert break here").

        HOW: Clamp position into [0, len]. If a break already borders the
        position, that break is reused (flatten would merge them anyway),
        taking ``title`` if it had none. Otherwise a new break is spliced in.

        RULES:
        - Returns the break that now occupies the slot
        - Never creates two adjacent breaks
        """
        position = max(0, min(position, len(self._entries)))
        for neighbour in (position - 1, position):
            if 0 <= neighbour < len(self._entries):
                existing = self._entries[neighbour]
                if isinstance(existing, BreakMarker):
                    if title and not existing.title:
                        existing = replace(existing, title=title)
                        self._entries[neighbour] = existing
                    return existing

        marker = BreakMarker(id=new_break_id(), title=title or None)
        self._entries.insert(position, marker)
        logger.info("Inserted break %s at %d", marker.id, position)
        return marker

    def remove_break(self, position: int) -> bool:
        """Remove the break at ``position``; False if there is none."""
        if not 0 <= position < len(self._entries):
            return False
        entry = self._entries[position]
        if not isinstance(entry, BreakMarker):
            return False
        self._entries = flatten(self._entries[:position] + self._entries[position + 1:])
        logger.info("Removed break %s at %d", entry.id, position)
        return True

    def set_break_title(self, marker_id: str, title: Optional[str]) -> BreakMarker:
        index = self.index_of(marker_id)
        if index < 0 or not isinstance(self._entries[index], BreakMarker):
            raise NotFoundError(marker_id, "Break")
        marker = replace(self._entries[index], title=title or None)
        self._entries[index] = marker
        return marker

    # -- interval references ------------------------------------------------

    def append_interval(self, interval_id: str) -> None:
        if self.index_of(interval_id) < 0:
            self._entries.append(IntervalRef(interval_id))

    def remove_interval(self, interval_id: str) -> bool:
        kept = [e for e in self._entries if e.id != interval_id]
        if len(kept) == len(self._entries):
            return False
        self._entries = flatten(kept)
        return True

    def reconcile(self, store: "IntervalStore") -> None:
        """Bring interval references in line with the store.

        WHY: Persisted orders can go stale: highlights deleted elsewhere
        leave dangling ids, and highlights created before any order was
        saved are missing from it.

        HOW: Drop references to unknown or repeated ids, then append the
        unreferenced intervals sorted by start index, then flatten.
        """
        seen: set[str] = set()
        kept: List[SequenceEntry] = []
        for entry in self._entries:
            if isinstance(entry, IntervalRef):
                if entry.interval_id not in store:
                    logger.warning("Dropping reference to unknown highlight %s", entry.interval_id)
                    continue
                if entry.interval_id in seen:
                    continue
                seen.add(entry.interval_id)
            kept.append(entry)

        missing = sorted(
            (i for i in store if i.id not in seen),
            key=lambda i: i.start,
        )
        kept.extend(IntervalRef(i.id) for i in missing)
        self._entries = flatten(kept)
