"""Drag gesture contexts for reordering and resizing.

WHY: A drag is a short stateful interaction (start → over* → drop or
cancel). Keeping its state in module globals makes it leak between
gestures and impossible to test. Each gesture is instead an explicit
object created at drag start and spent at drop or cancel.

HOW: ReorderGesture resolves the dragged block once at start, previews
moves on over(), and commits through SequenceEditor.reorder() on drop.
ResizeGesture snapshots the interval at start, previews with
compute_resize(), and commits through IntervalStore.update() on drop.
Both commit inside a shared DropGuard, which rejects a second drop that
arrives while the first one (including its on_commit callback) is still
being applied.

RULES:
- A gesture accepts over()/drop()/cancel() only while ACTIVE
- A re-entrant drop raises ReentrantDropError; the in-flight drop finishes
- A resize drop whose mode is None commits nothing and returns None
- Failed commits leave store and sequence untouched (they raise first)
"""

from __future__ import annotations

import enum
import logging
from typing import Any, Callable, Collection, List, Optional

from highlight_engine.core.errors import InvalidDragError, NotFoundError, ReentrantDropError
from highlight_engine.core.ir import DragEdge, Interval, ResizeResult, SequenceEntry
from highlight_engine.core.resize import compute_edge_resize
from highlight_engine.core.sequence import SequenceEditor, resolve_drag_block
from highlight_engine.core.store import IntervalStore

logger = logging.getLogger(__name__)


class GestureState(str, enum.Enum):
    ACTIVE = "active"
    DROPPED = "dropped"
    CANCELLED = "cancelled"


class DropGuard:
    """Context manager that admits one drop at a time."""

    def __init__(self) -> None:
        self._applying = False

    @property
    def busy(self) -> bool:
        return self._applying

    def __enter__(self) -> "DropGuard":
        if self._applying:
            logger.debug("Rejected re-entrant drop")
            raise ReentrantDropError("A previous drop is still being applied")
        self._applying = True
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self._applying = False


class _Gesture:
    def __init__(
        self,
        guard: Optional[DropGuard],
        on_commit: Optional[Callable[[Any], None]],
        before_commit: Optional[Callable[[], None]],
    ) -> None:
        self.state = GestureState.ACTIVE
        self._guard = guard or DropGuard()
        self._on_commit = on_commit
        self._before_commit = before_commit

    def _prepare(self) -> None:
        if self._before_commit is not None:
            self._before_commit()

    def _finish(self, result: Any) -> None:
        self.state = GestureState.DROPPED
        if self._on_commit is not None:
            self._on_commit(result)

    def _require_active(self) -> None:
        if self.state is not GestureState.ACTIVE:
            raise InvalidDragError("Gesture already {}".format(self.state.value))

    def cancel(self) -> None:
        self._require_active()
        self.state = GestureState.CANCELLED


class ReorderGesture(_Gesture):
    """Moves one entry, or the current selection, within a sequence.

    The dragged block is fixed at construction using the selection rule
    in resolve_drag_block().
    """

    def __init__(
        self,
        editor: SequenceEditor,
        grabbed_id: str,
        selection: Collection[str] = (),
        guard: Optional[DropGuard] = None,
        on_commit: Optional[Callable[[List[SequenceEntry]], None]] = None,
        before_commit: Optional[Callable[[], None]] = None,
    ) -> None:
        super().__init__(guard, on_commit, before_commit)
        if editor.index_of(grabbed_id) < 0:
            raise InvalidDragError("Entry {} is not in the sequence".format(grabbed_id))
        self._editor = editor
        self.dragged_ids: List[str] = resolve_drag_block(grabbed_id, selection, editor.entries)
        self.target: Optional[int] = None

    def over(self, insert_before: int) -> List[SequenceEntry]:
        self._require_active()
        self.target = insert_before
        return self._editor.preview(self.dragged_ids, insert_before)

    def drop(self, insert_before: Optional[int] = None) -> List[SequenceEntry]:
        self._require_active()
        if insert_before is None:
            insert_before = self.target
        if insert_before is None:
            raise InvalidDragError("Drop without a target position")

        with self._guard:
            self._prepare()
            result = self._editor.reorder(self.dragged_ids, insert_before)
            self._finish(result)
        return result


class ResizeGesture(_Gesture):
    """Drags one edge of an interval.

    The interval is snapshotted at start; previews and the final commit
    are computed against that snapshot.
    """

    def __init__(
        self,
        store: IntervalStore,
        interval_id: str,
        edge: DragEdge,
        guard: Optional[DropGuard] = None,
        on_commit: Optional[Callable[[Interval], None]] = None,
        before_commit: Optional[Callable[[], None]] = None,
    ) -> None:
        super().__init__(guard, on_commit, before_commit)
        original = store.get(interval_id)
        if original is None:
            raise NotFoundError(interval_id)
        self._store = store
        self.original = original
        self.edge = DragEdge(edge)
        self.cursor: Optional[int] = None

    def over(self, cursor: int) -> ResizeResult:
        self._require_active()
        self.cursor = cursor
        return compute_edge_resize(self.original, cursor, self.edge)

    def drop(self, cursor: Optional[int] = None) -> Optional[Interval]:
        self._require_active()
        if cursor is None:
            cursor = self.cursor
        if cursor is None:
            raise InvalidDragError("Drop without a cursor position")

        with self._guard:
            proposal = compute_edge_resize(self.original, cursor, self.edge)
            if proposal.mode is None:
                self.state = GestureState.DROPPED
                return None
            self._prepare()
            updated = self._store.update(self.original.id, proposal.start, proposal.end)
            self._finish(updated)
        return updated
