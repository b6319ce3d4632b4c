"""One open transcript's editing session: store, sequence, and history.

WHY: The host drives a fixed control flow — load tokens once, restore the
persisted highlights and order, apply user edits, persist after each
committed change. Wiring TokenIndex, IntervalStore and SequenceEditor
together in one place keeps the sequence in step with the store (new
highlights appear in the order, deleted ones leave it) and gives the
host a single snapshot to persist.

HOW: HighlightSession builds the components from plain data, reconciles
the restored order against the restored highlights, and wraps every
mutation in _mutation(): capture the prior state, apply, and only on
success push the prior state onto a bounded undo stack and notify
subscribers with a fresh snapshot. Drag gestures share one DropGuard and
report their commits back through the same path.

RULES:
- A failed mutation changes nothing: no state, no history, no callbacks
- A call that leaves state as it was records no history and notifies nobody
- Restored highlights that overlap an earlier one are dropped with a warning
- Subscribers run after the commit, still inside the drop guard for drops
- undo()/redo() restore whole (intervals, sequence) states
- Single-threaded; the host serializes calls per session
"""

from __future__ import annotations

import logging
from collections import deque
from contextlib import contextmanager
from typing import Any, Callable, Collection, Deque, Dict, Iterator, List, Optional, Sequence, Tuple, Union

from highlight_engine import config
from highlight_engine.adapters.persisted import export_intervals, export_sequence, parse_sequence
from highlight_engine.core.colors import ColorAllocator
from highlight_engine.core.gestures import DropGuard, ReorderGesture, ResizeGesture
from highlight_engine.core.ir import BreakMarker, DragEdge, Interval, SequenceEntry, Token
from highlight_engine.core.sequence import SequenceEditor
from highlight_engine.core.store import IntervalStore
from highlight_engine.core.token_index import TokenIndex

logger = logging.getLogger(__name__)

_State = Tuple[Tuple[Interval, ...], Tuple[SequenceEntry, ...]]
Snapshot = Dict[str, Any]


class HighlightSession:
    """Engine facade for one transcript.

    Args:
        tokens: TokenIndex, Token objects, or ``{text, start, end}`` dicts.
        sequence: Persisted display order (optional).
        highlights: Persisted timestamp-domain highlight list (optional).
        allocator: Color allocator shared by restore and create.
        allow_single_token: Store default for start == end highlights.
        history_limit: Undo depth; defaults to config.HISTORY_LIMIT.
    """

    def __init__(
        self,
        tokens: Union[TokenIndex, Sequence[Token], Sequence[Dict[str, Any]]],
        sequence: Optional[Sequence[Any]] = None,
        highlights: Optional[Sequence[Dict[str, Any]]] = None,
        *,
        allocator: Optional[ColorAllocator] = None,
        allow_single_token: Optional[bool] = None,
        history_limit: Optional[int] = None,
    ) -> None:
        self.token_index = _build_index(tokens)
        allocator = allocator or ColorAllocator()
        self.store = IntervalStore(allocator=allocator, allow_single_token=allow_single_token)

        parsed = parse_sequence(sequence, self.token_index, highlights, allocator=allocator)
        self.store.load(_drop_conflicts(parsed.intervals))

        self.editor = SequenceEditor(parsed.entries)
        self.editor.reconcile(self.store)

        limit = config.HISTORY_LIMIT if history_limit is None else history_limit
        self._undo: Deque[_State] = deque(maxlen=limit)
        self._redo: Deque[_State] = deque(maxlen=limit)
        self._staged: Optional[_State] = None
        self._guard = DropGuard()
        self._subscribers: List[Callable[[Snapshot], None]] = []

        logger.info(
            "Session ready: %d tokens, %d highlights, %d sequence entries",
            len(self.token_index), len(self.store), len(self.editor),
        )

    # -- plumbing -----------------------------------------------------------

    def subscribe(self, listener: Callable[[Snapshot], None]) -> Callable[[], None]:
        """Call ``listener(snapshot)`` after every committed mutation.

        Returns a function that removes the listener.
        """
        self._subscribers.append(listener)
        return lambda: self._subscribers.remove(listener)

    def _capture(self) -> _State:
        return tuple(self.store.intervals()), tuple(self.editor.entries)

    def _restore(self, state: _State) -> None:
        intervals, entries = state
        self.store.load(intervals)
        self.editor.replace_entries(entries)

    def _committed(self, prior: _State) -> None:
        self._undo.append(prior)
        self._redo.clear()
        self._notify()

    def _notify(self) -> None:
        if not self._subscribers:
            return
        snapshot = self.snapshot()
        for listener in list(self._subscribers):
            listener(snapshot)

    @contextmanager
    def _mutation(self) -> Iterator[None]:
        prior = self._capture()
        yield
        if self._capture() != prior:
            self._committed(prior)


    # -- queries ------------------------------------------------------------

    def highlight_at(self, index: int) -> Optional[Interval]:
        return self.store.find_containing(index)

    def highlight_at_time(self, timestamp: float) -> Optional[Interval]:
        if not len(self.token_index):
            return None
        return self.store.find_containing(self.token_index.locate(timestamp))

    @property
    def can_undo(self) -> bool:
        return bool(self._undo)

    @property
    def can_redo(self) -> bool:
        return bool(self._redo)

    def snapshot(self) -> Snapshot:
        """Everything the host persists or renders after a commit.

        RULES:
        - highlights.index / highlights.timestamp: both projections
        - sequence: normalized order with timestamp descriptors
        - order: normalized order with bare ids (compact form)
        """
        entries = self.editor.entries
        return {
            "highlights": export_intervals(self.store, self.token_index),
            "sequence": export_sequence(entries, self.store, self.token_index),
            "order": export_sequence(entries, self.store, self.token_index, descriptors=False),
        }

    # -- highlight mutations ------------------------------------------------

    def create_highlight(
        self,
        start: int,
        end: int,
        color: Optional[str] = None,
        *,
        allow_single_token: Optional[bool] = None,
        label: Optional[str] = None,
        position: Optional[int] = None,
    ) -> Interval:
        """Create a highlight and add it to the display order.

        The new entry goes at ``position`` in the sequence, or last.
        """
        with self._mutation():
            interval = self.store.create(
                start, end, color, allow_single_token=allow_single_token, label=label
            )
            self.editor.append_interval(interval.id)
            if position is not None:
                self.editor.reorder([interval.id], position)
        return interval

    def create_highlight_from_times(
        self,
        start_time: float,
        end_time: float,
        color: Optional[str] = None,
        **kwargs: Any,
    ) -> Interval:
        return self.create_highlight(
            self.token_index.locate(start_time),
            self.token_index.locate(end_time),
            color,
            **kwargs,
        )

    def update_highlight(self, interval_id: str, start: int, end: int) -> Interval:
        with self._mutation():
            return self.store.update(interval_id, start, end)

    def relabel_highlight(self, interval_id: str, label: Optional[str]) -> Interval:
        with self._mutation():
            return self.store.relabel(interval_id, label)

    def delete_highlight(self, interval_id: str) -> bool:
        """Remove a highlight from the store and the order.

        Unknown ids return False and record nothing.
        """
        if interval_id not in self.store:
            return False
        with self._mutation():
            self.store.delete(interval_id)
            self.editor.remove_interval(interval_id)
        return True

    # -- sequence mutations -------------------------------------------------

    def insert_break(self, position: int, title: Optional[str] = None) -> BreakMarker:
        with self._mutation():
            return self.editor.insert_break(position, title)

    def remove_break(self, position: int) -> bool:
        prior = self._capture()
        removed = self.editor.remove_break(position)
        if removed:
            self._committed(prior)
        return removed

    def set_break_title(self, marker_id: str, title: Optional[str]) -> BreakMarker:
        with self._mutation():
            return self.editor.set_break_title(marker_id, title)

    def reorder(self, dragged_ids: Collection[str], insert_before: int) -> List[SequenceEntry]:
        """Commit a block move without going through a gesture object."""
        with self._guard:
            with self._mutation():
                return self.editor.reorder(dragged_ids, insert_before)

    def load_order(self, raw_sequence: Sequence[Any]) -> List[SequenceEntry]:
        """Replace the display order, e.g. with a cached AI suggestion.

        Descriptors in ``raw_sequence`` are treated as references only;
        highlights themselves are not changed.
        """
        parsed = parse_sequence(raw_sequence, self.token_index)
        with self._mutation():
            self.editor.replace_entries(parsed.entries)
            self.editor.reconcile(self.store)
        return self.editor.entries

    # -- gestures -----------------------------------------------------------

    def _stage(self) -> None:
        self._staged = self._capture()

    def _gesture_committed(self, _result: Any) -> None:
        prior, self._staged = self._staged, None
        if prior is not None and self._capture() != prior:
            self._committed(prior)


    def start_reorder(self, grabbed_id: str, selection: Collection[str] = ()) -> ReorderGesture:
        return ReorderGesture(
            self.editor,
            grabbed_id,
            selection,
            guard=self._guard,
            on_commit=self._gesture_committed,
            before_commit=self._stage,
        )

    def start_resize(self, interval_id: str, edge: Union[DragEdge, str]) -> ResizeGesture:
        return ResizeGesture(
            self.store,
            interval_id,
            DragEdge(edge),
            guard=self._guard,
            on_commit=self._gesture_committed,
            before_commit=self._stage,
        )

    # -- history ------------------------------------------------------------

    def undo(self) -> bool:
        if not self._undo:
            return False
        self._redo.append(self._capture())
        self._restore(self._undo.pop())
        logger.info("Undo (%d left)", len(self._undo))
        self._notify()
        return True

    def redo(self) -> bool:
        if not self._redo:
            return False
        self._undo.append(self._capture())
        self._restore(self._redo.pop())
        logger.info("Redo (%d left)", len(self._redo))
        self._notify()
        return True


def _build_index(tokens: Union[TokenIndex, Sequence[Token], Sequence[Dict[str, Any]]]) -> TokenIndex:
    if isinstance(tokens, TokenIndex):
        return tokens
    tokens = list(tokens)
    if tokens and isinstance(tokens[0], Token):
        return TokenIndex(tokens)
    return TokenIndex.from_dicts(tokens)


def _drop_conflicts(intervals: Sequence[Interval]) -> List[Interval]:
    """Keep restored intervals in order, skipping any that overlap a kept one.

    Persisted timestamps can snap two descriptors onto the same token.
    The earlier descriptor wins; the later one is dropped with a warning
    and its sequence references are reconciled away.
    """
    kept: List[Interval] = []
    for interval in intervals:
        start, end = sorted((interval.start, interval.end))
        conflict = next((k for k in kept if k.intersects(start, end)), None)
        if conflict is not None:
            logger.warning(
                "Dropping restored highlight %s [%d, %d]: overlaps %s",
                interval.id, start, end, conflict.id,
            )
            continue
        kept.append(interval)
    return kept
