"""Adapter: persisted highlight/sequence JSON to and from the core IR.

WHY: The host stores highlights in the timestamp domain and the display
order as a loosely-typed list where a break is either the literal "N" or
an object {"type": "N", "title": ...}, and a highlight is either an id
string or a full descriptor {id, start, end, color, text}. The core wants
index-domain Intervals and tagged SequenceEntry values, decided once.

HOW: Inputs are validated with jsonschema, then each entry is classified
exactly once into BreakMarker or IntervalRef. Descriptors (from the
separate highlight list and inline in the sequence) become Intervals via
TokenIndex.locate(). Export runs the same mapping backwards and validates
the result against the same schema before returning it.

RULES:
- Untitled break → "N"; titled break → {"type": "N", "title": title}
- A bare string other than "N" is a highlight id reference
- Descriptor timestamps map to the token containing (or nearest to) them
- Missing descriptor colors are allocated in descriptor order
- Invalid input raises PersistedFormatError; nothing is partially loaded
- Adapters are pure data transformations — no I/O
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Sequence

import jsonschema

from highlight_engine import config
from highlight_engine.core.colors import ColorAllocator
from highlight_engine.core.errors import PersistedFormatError
from highlight_engine.core.ir import BreakMarker, Interval, IntervalRef, SequenceEntry
from highlight_engine.core.sequence import new_break_id
from highlight_engine.core.store import IntervalStore
from highlight_engine.core.token_index import TokenIndex

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Exchange schemas
# ---------------------------------------------------------------------------

DESCRIPTOR_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "required": ["id", "start", "end"],
    "properties": {
        "id": {"type": "string", "minLength": 1},
        "start": {"type": "number"},
        "end": {"type": "number"},
        "color": {"type": ["string", "null"]},
        "text": {"type": ["string", "null"]},
        "label": {"type": ["string", "null"]},
    },
}

BREAK_OBJECT_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "required": ["type"],
    "properties": {
        "type": {"const": config.BREAK_LITERAL},
        "title": {"type": ["string", "null"]},
    },
}

HIGHLIGHTS_SCHEMA: Dict[str, Any] = {
    "type": "array",
    "items": DESCRIPTOR_SCHEMA,
}

SEQUENCE_SCHEMA: Dict[str, Any] = {
    "type": "array",
    "items": {
        "anyOf": [
            {"type": "string", "minLength": 1},
            BREAK_OBJECT_SCHEMA,
            DESCRIPTOR_SCHEMA,
        ]
    },
}


def _validate(instance: Any, schema: Dict[str, Any], what: str) -> None:
    try:
        jsonschema.validate(instance=instance, schema=schema)
    except jsonschema.ValidationError as exc:
        raise PersistedFormatError("Invalid persisted {}: {}".format(what, exc.message)) from exc


def _as_list(raw: Any) -> Any:
    # Tuples pass as arrays; anything else is left for the schema to reject.
    if raw is None:
        return []
    if isinstance(raw, tuple):
        return list(raw)
    return raw


def _is_break(raw: Any) -> bool:
    if isinstance(raw, str):
        return raw == config.BREAK_LITERAL
    return isinstance(raw, dict) and raw.get("type") == config.BREAK_LITERAL


@dataclass
class ParsedSequence:
    """Index-domain result of ingesting persisted data.

    RULES:
    - intervals: descriptor order, highlight list first, then inline
    - entries: one tagged SequenceEntry per persisted sequence entry
    """

    intervals: List[Interval] = field(default_factory=list)
    entries: List[SequenceEntry] = field(default_factory=list)


def descriptor_to_interval(
    descriptor: Dict[str, Any],
    token_index: TokenIndex,
    color: str,
) -> Interval:
    """Convert one timestamp-domain descriptor into an index-domain Interval."""
    start = token_index.locate(float(descriptor["start"]))
    end = token_index.locate(float(descriptor["end"]))
    if start > end:
        start, end = end, start
    return Interval(
        id=descriptor["id"],
        start=start,
        end=end,
        color=color,
        label=descriptor.get("label") or None,
    )


def parse_sequence(
    raw_sequence: Optional[Sequence[Any]],
    token_index: TokenIndex,
    highlights: Optional[Sequence[Dict[str, Any]]] = None,
    allocator: Optional[ColorAllocator] = None,
) -> ParsedSequence:
    """Ingest a persisted sequence (and optional highlight list).

    WHY: This is the single place where the loose "string vs. object"
    shapes are inspected; everything downstream sees tagged entries.

    HOW: Validate both inputs, collect descriptors by id (first one
    wins), classify each sequence entry, then convert descriptors to
    Intervals, allocating colors for those without one.

    RULES:
    - Raises PersistedFormatError on schema violations
    - Id references without a descriptor are kept as IntervalRefs; the
      session's reconcile pass drops them
    """
    raw_sequence = _as_list(raw_sequence)
    highlights = _as_list(highlights)
    _validate(highlights, HIGHLIGHTS_SCHEMA, "highlights")
    _validate(raw_sequence, SEQUENCE_SCHEMA, "sequence")

    descriptors: Dict[str, Dict[str, Any]] = {}
    for desc in highlights:
        descriptors.setdefault(desc["id"], desc)

    entries: List[SequenceEntry] = []
    for raw in raw_sequence:
        if _is_break(raw):
            title = raw.get("title") if isinstance(raw, dict) else None
            entries.append(BreakMarker(id=new_break_id(), title=title or None))
        elif isinstance(raw, str):
            entries.append(IntervalRef(raw))
        else:
            descriptors.setdefault(raw["id"], raw)
            entries.append(IntervalRef(raw["id"]))

    allocator = allocator or ColorAllocator()
    used: set[str] = {d["color"] for d in descriptors.values() if d.get("color")}
    intervals: List[Interval] = []
    for desc in descriptors.values():
        color = desc.get("color")
        if not color:
            color = allocator.allocate(used)
            used.add(color)
        intervals.append(descriptor_to_interval(desc, token_index, color))

    logger.debug(
        "Parsed %d highlights and %d sequence entries", len(intervals), len(entries)
    )
    return ParsedSequence(intervals=intervals, entries=entries)


# ---------------------------------------------------------------------------
# Export
# ---------------------------------------------------------------------------


def interval_to_index_dict(interval: Interval) -> Dict[str, Any]:
    out: Dict[str, Any] = {
        "id": interval.id,
        "start": interval.start,
        "end": interval.end,
        "color": interval.color,
    }
    if interval.label:
        out["label"] = interval.label
    return out


def interval_to_descriptor(interval: Interval, token_index: TokenIndex) -> Dict[str, Any]:
    """Timestamp-domain descriptor: first token start, last token end."""
    start, end = token_index.timestamps_for(interval.start, interval.end)
    out: Dict[str, Any] = {
        "id": interval.id,
        "start": start,
        "end": end,
        "color": interval.color,
        "text": token_index.text_for(interval.start, interval.end),
    }
    if interval.label:
        out["label"] = interval.label
    return out


def export_intervals(store: IntervalStore, token_index: TokenIndex) -> Dict[str, List[Dict[str, Any]]]:
    """Both projections of the current highlight set, in store order."""
    intervals = store.intervals()
    timestamp = [interval_to_descriptor(i, token_index) for i in intervals]
    _validate(timestamp, HIGHLIGHTS_SCHEMA, "highlights")
    return {
        "index": [interval_to_index_dict(i) for i in intervals],
        "timestamp": timestamp,
    }


def export_break(marker: BreakMarker) -> Any:
    if marker.title:
        return {"type": config.BREAK_LITERAL, "title": marker.title}
    return config.BREAK_LITERAL


def export_sequence(
    entries: Iterable[SequenceEntry],
    store: IntervalStore,
    token_index: TokenIndex,
    *,
    descriptors: bool = True,
) -> List[Any]:
    """Serialize a normalized sequence in the persisted shape.

    RULES:
    - descriptors=True: highlights as timestamp-domain descriptor objects
    - descriptors=False: highlights as bare id strings
    - References to ids missing from the store are skipped with a warning
    """
    out: List[Any] = []
    for entry in entries:
        if isinstance(entry, BreakMarker):
            out.append(export_break(entry))
            continue
        interval = store.get(entry.interval_id)
        if interval is None:
            logger.warning("Skipping export of unknown highlight %s", entry.interval_id)
            continue
        out.append(interval_to_descriptor(interval, token_index) if descriptors else interval.id)

    _validate(out, SEQUENCE_SCHEMA, "sequence")
    return out
