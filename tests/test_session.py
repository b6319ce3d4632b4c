"""End-to-end tests for HighlightSession.

WHY: The session is what the host actually talks to. These tests walk
the full flow — restore from persisted data, edit, reorder, persist —
and check that store and sequence stay in step and that failures leave
no trace in state, history, or subscriber callbacks.

HOW: Each test builds a session over the ten-token conftest transcript
with the fixed three-color palette.
"""

import pytest

from highlight_engine import HighlightSession
from highlight_engine.core.errors import (
    DegenerateRangeError,
    InvalidDragError,
    NotFoundError,
    OverlapError,
    ReentrantDropError,
)


@pytest.fixture
def session(second_tokens, allocator):
    return HighlightSession(second_tokens, allocator=allocator, allow_single_token=False)


def order(session):
    return session.snapshot()["order"]


class TestRestore:

    def test_restore_reconciles_order(self, second_tokens, allocator):
        highlights = [
            {"id": "late", "start": 7.0, "end": 8.8, "color": "#222222"},
            {"id": "early", "start": 0.0, "end": 1.8, "color": "#111111"},
            {"id": "mid", "start": 4.0, "end": 4.8},
        ]
        sequence = ["late", "ghost", {"type": "N", "title": "Rest"}]
        session = HighlightSession(second_tokens, sequence, highlights, allocator=allocator)

        assert order(session) == ["late", {"type": "N", "title": "Rest"}, "early", "mid"]
        assert session.store.get("mid").color == "#333333"
        assert session.store.get("mid").start == session.store.get("mid").end == 4

    def test_no_order_sorts_by_start(self, second_tokens, allocator):
        highlights = [
            {"id": "b", "start": 5.0, "end": 6.8, "color": "#1"},
            {"id": "a", "start": 1.0, "end": 2.8, "color": "#2"},
        ]
        session = HighlightSession(second_tokens, highlights=highlights, allocator=allocator)
        assert order(session) == ["a", "b"]

    def test_restore_with_descriptors_only(self, second_tokens, allocator):
        sequence = [
            {"type": "N", "title": "Intro"},
            {"id": "x", "start": 2.0, "end": 3.8, "color": "#abcdef"},
        ]
        session = HighlightSession(second_tokens, sequence, allocator=allocator)
        assert order(session) == [{"type": "N", "title": "Intro"}, "x"]
        assert (session.store.get("x").start, session.store.get("x").end) == (2, 3)

    def test_restore_drops_later_descriptor_snapping_onto_earlier(self, gap_index, allocator, caplog):
        highlights = [
            {"id": "A", "start": 0.0, "end": 0.55, "color": "#111111"},
            {"id": "B", "start": 0.58, "end": 1.4, "color": "#222222"},
        ]
        with caplog.at_level("WARNING"):
            session = HighlightSession(gap_index, ["A", "B"], highlights, allocator=allocator)

        assert (session.store.get("A").start, session.store.get("A").end) == (0, 1)
        assert "B" not in session.store
        assert order(session) == ["A"]
        assert "Dropping restored highlight B" in caplog.text
        assert not session.can_undo

    def test_tokens_accept_token_index(self, second_index, allocator):
        session = HighlightSession(second_index, allocator=allocator)
        assert session.token_index is second_index

    def test_empty_transcript(self, allocator):
        session = HighlightSession([], allocator=allocator)
        assert session.highlight_at_time(3.0) is None
        assert session.snapshot() == {
            "highlights": {"index": [], "timestamp": []},
            "sequence": [],
            "order": [],
        }


class TestEditingFlow:

    def test_overlap_delete_recreate_reuses_color(self, session):
        a = session.create_highlight(1, 3)
        b = session.create_highlight(5, 6)
        with pytest.raises(OverlapError):
            session.create_highlight(2, 4)

        assert session.delete_highlight(a.id) is True
        c = session.create_highlight(2, 4)

        assert c.color == a.color
        assert order(session) == [b.id, c.id]

    def test_create_adds_to_sequence_at_position(self, session):
        a = session.create_highlight(1, 2)
        session.insert_break(1, "Second half")
        b = session.create_highlight(5, 6, position=0)
        assert order(session) == [b.id, a.id, {"type": "N", "title": "Second half"}]

    def test_create_from_times(self, session):
        interval = session.create_highlight_from_times(2.1, 4.5)
        assert (interval.start, interval.end) == (2, 4)
        assert session.highlight_at_time(3.3) == interval

    def test_degenerate_create_rejected(self, session):
        with pytest.raises(DegenerateRangeError):
            session.create_highlight(3, 3)
        assert session.create_highlight(3, 3, allow_single_token=True).word_count == 1

    def test_update_unknown_raises(self, session):
        with pytest.raises(NotFoundError):
            session.update_highlight("missing", 1, 2)

    def test_delete_unknown_is_noop(self, session):
        assert session.delete_highlight("missing") is False
        assert not session.can_undo

    def test_delete_merges_surrounding_breaks(self, session):
        a = session.create_highlight(1, 2)
        b = session.create_highlight(4, 5)
        session.insert_break(0)
        session.insert_break(2, "Middle")
        assert order(session) == ["N", a.id, {"type": "N", "title": "Middle"}, b.id]

        session.delete_highlight(a.id)
        assert order(session) == [{"type": "N", "title": "Middle"}, b.id]

    def test_remove_break(self, session):
        a = session.create_highlight(1, 2)
        session.insert_break(0)
        assert session.remove_break(1) is False
        assert session.remove_break(0) is True
        assert order(session) == [a.id]

    def test_snapshot_projections(self, session):
        a = session.create_highlight(1, 3, label="Launch")
        snap = session.snapshot()
        assert snap["highlights"]["index"] == [
            {"id": a.id, "start": 1, "end": 3, "color": "#111111", "label": "Launch"}
        ]
        descriptor = snap["highlights"]["timestamp"][0]
        assert descriptor["start"] == pytest.approx(1.0)
        assert descriptor["end"] == pytest.approx(3.8)
        assert snap["sequence"] == [descriptor]


class TestSubscribers:

    def test_notified_after_commit_only(self, session):
        seen = []
        session.subscribe(seen.append)
        a = session.create_highlight(1, 3)
        with pytest.raises(OverlapError):
            session.create_highlight(2, 4)
        assert len(seen) == 1
        assert seen[0]["order"] == [a.id]

    def test_unsubscribe(self, session):
        seen = []
        unsubscribe = session.subscribe(seen.append)
        unsubscribe()
        session.create_highlight(1, 3)
        assert seen == []

    def test_insert_beside_titled_break_commits_nothing(self, session):
        a = session.create_highlight(1, 2)
        marker = session.insert_break(1, "Outro")
        seen = []
        session.subscribe(seen.append)

        assert session.insert_break(1, "Other title") == marker
        assert session.insert_break(2) == marker
        assert seen == []

        session.undo()
        assert order(session) == [a.id]

    def test_noop_reorder_commits_nothing(self, session):
        a = session.create_highlight(1, 2)
        session.create_highlight(4, 5)
        seen = []
        session.subscribe(seen.append)

        session.start_reorder(a.id).drop(0)
        assert seen == []

        session.undo()
        assert list(session.store) == [session.store.get(a.id)]




class TestGestures:

    def test_reorder_gesture_commits_and_flattens(self, session):
        a = session.create_highlight(1, 2)
        session.insert_break(1)
        b = session.create_highlight(4, 5)
        session.insert_break(3)
        assert order(session) == [a.id, "N", b.id, "N"]

        gesture = session.start_reorder(b.id)
        gesture.over(0)
        gesture.drop()
        assert order(session) == [b.id, a.id, "N"]

    def test_multi_selection_drag(self, session):
        ids = [session.create_highlight(i * 2, i * 2 + 1).id for i in range(4)]
        gesture = session.start_reorder(ids[2], selection={ids[0], ids[2]})
        gesture.drop(2)
        assert order(session) == [ids[1], ids[3], ids[0], ids[2]]

    def test_reentrant_drop_from_subscriber_is_rejected(self, session):
        a = session.create_highlight(1, 2)
        b = session.create_highlight(4, 5)
        other = session.start_reorder(a.id)
        rejected = []

        def listener(snapshot):
            try:
                other.drop(2)
            except ReentrantDropError:
                rejected.append(snapshot["order"])

        session.subscribe(listener)
        session.start_reorder(a.id).drop(2)

        assert rejected == [[b.id, a.id]]
        assert order(session) == [b.id, a.id]

    def test_resize_gesture_commits(self, session):
        a = session.create_highlight(1, 4)
        gesture = session.start_resize(a.id, "end")
        assert gesture.over(6).mode.value == "expand"
        gesture.drop()
        assert session.store.get(a.id).end == 6
        assert session.can_undo

    def test_resize_unknown_raises(self, session):
        with pytest.raises(NotFoundError):
            session.start_resize("missing", "start")

    def test_reorder_unknown_raises(self, session):
        session.create_highlight(1, 2)
        with pytest.raises(InvalidDragError):
            session.reorder(["missing"], 0)
        with pytest.raises(InvalidDragError):
            session.start_reorder("missing")


class TestHistory:

    def test_undo_redo_create(self, session):
        a = session.create_highlight(1, 3)
        assert session.undo() is True
        assert a.id not in session.store
        assert order(session) == []
        assert session.redo() is True
        assert session.store.get(a.id) == a
        assert order(session) == [a.id]

    def test_undo_reorder_gesture(self, session):
        a = session.create_highlight(1, 2)
        b = session.create_highlight(4, 5)
        session.start_reorder(b.id).drop(0)
        assert order(session) == [b.id, a.id]
        session.undo()
        assert order(session) == [a.id, b.id]

    def test_new_commit_clears_redo(self, session):
        session.create_highlight(1, 2)
        session.undo()
        session.create_highlight(4, 5)
        assert not session.can_redo
        assert session.redo() is False

    def test_failed_mutation_records_nothing(self, session):
        session.create_highlight(1, 3)
        with pytest.raises(OverlapError):
            session.create_highlight(2, 5)
        session.undo()
        assert not session.can_undo

    def test_history_limit(self, second_tokens, allocator):
        session = HighlightSession(second_tokens, allocator=allocator, history_limit=2)
        for i in range(4):
            session.create_highlight(i * 2, i * 2 + 1)
        assert session.undo() and session.undo()
        assert session.undo() is False
        assert len(session.store) == 2


class TestLoadOrder:

    def test_applies_suggested_order(self, session):
        a = session.create_highlight(1, 2)
        b = session.create_highlight(4, 5)
        c = session.create_highlight(7, 8)
        suggestion = [
            {"type": "N", "title": "Hook"},
            c.id,
            {"type": "N", "title": "Story"},
            a.id,
            "unknown_id",
        ]
        session.load_order(suggestion)
        assert order(session) == [
            {"type": "N", "title": "Hook"},
            c.id,
            {"type": "N", "title": "Story"},
            a.id,
            b.id,
        ]
        assert len(session.store) == 3
