"""Single-edge drag resize computation.

WHY: Users resize a highlight by grabbing its first or last word and
dragging. The preview and the final commit must agree on the new bounds,
so the math is a pure function both can call.

HOW: The held edge follows the cursor, clamped so it never crosses the
opposite anchor; the other edge stays where it was. The mode says
whether the highlight grew or shrank.

RULES:
- Exactly one of drag_start / drag_end must be set, else InvalidDragError
- Start edge: start = min(cursor, end); expand if cursor < start,
  contract if start < cursor <= end, otherwise mode None
- End edge: end = max(cursor, start); expand if cursor > end,
  contract if start <= cursor < end, otherwise mode None
- Mode None means the cursor sits on the dragged anchor: a no-op
- Never touches an IntervalStore; commit through IntervalStore.update()
"""

from __future__ import annotations

from highlight_engine.core.errors import InvalidDragError
from highlight_engine.core.ir import DragEdge, Interval, ResizeMode, ResizeResult


def compute_resize(
    original: Interval,
    cursor: int,
    *,
    drag_start: bool = False,
    drag_end: bool = False,
) -> ResizeResult:
    """Bounds for ``original`` with one edge dragged to ``cursor``."""
    if drag_start == drag_end:
        raise InvalidDragError("Invalid drag operation: must drag exactly one edge")

    if drag_start:
        if cursor < original.start:
            mode = ResizeMode.EXPAND
        elif original.start < cursor <= original.end:
            mode = ResizeMode.CONTRACT
        else:
            mode = None
        return ResizeResult(start=min(cursor, original.end), end=original.end, mode=mode)

    if cursor > original.end:
        mode = ResizeMode.EXPAND
    elif original.start <= cursor < original.end:
        mode = ResizeMode.CONTRACT
    else:
        mode = None
    return ResizeResult(start=original.start, end=max(cursor, original.start), mode=mode)


def compute_edge_resize(original: Interval, cursor: int, edge: DragEdge) -> ResizeResult:
    """compute_resize() keyed by a DragEdge instead of two flags."""
    return compute_resize(
        original,
        cursor,
        drag_start=edge == DragEdge.START,
        drag_end=edge == DragEdge.END,
    )
