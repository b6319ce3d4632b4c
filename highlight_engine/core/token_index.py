"""Token position lookup between timestamp and index domains.

WHY: Highlights are persisted as timestamps but edited as token indices.
Every load converts timestamps to indices and every save converts back,
so both directions live in one place.

HOW: TokenIndex wraps the immutable token tuple. locate() scans left to
right for a containing token, then falls back to the token whose start
is nearest. timestamps_for() maps a closed index range back to the first
token's start and the last token's end.

RULES:
- locate() on an empty sequence returns 0; callers guard before indexing
- Containment is inclusive on both ends; first match wins
- Nearest fallback compares start times only; ties go to the lower index
- timestamps_for() clamps indices into range; empty sequence → (0.0, 0.0)
"""

from __future__ import annotations

from typing import Any, Iterable, Sequence

from highlight_engine.core.ir import Token


class TokenIndex:
    """Ordered, immutable token sequence with nearest-timestamp lookups."""

    def __init__(self, tokens: Iterable[Token]) -> None:
        self._tokens: tuple[Token, ...] = tuple(tokens)

    @classmethod
    def from_dicts(cls, records: Sequence[dict[str, Any]]) -> "TokenIndex":
        """Build from ``{text, start, end}`` dicts.

        ``startTime`` / ``endTime`` are accepted as aliases.
        """
        tokens = []
        for rec in records:
            start = rec["start"] if "start" in rec else rec["startTime"]
            end = rec["end"] if "end" in rec else rec["endTime"]
            tokens.append(Token(text=rec.get("text", ""), start=float(start), end=float(end)))
        return cls(tokens)

    @property
    def tokens(self) -> tuple[Token, ...]:
        return self._tokens

    def __len__(self) -> int:
        return len(self._tokens)

    def __getitem__(self, index: int) -> Token:
        return self._tokens[index]

    def locate(self, timestamp: float) -> int:
        """Return the token index for a timestamp.

        WHY: Persisted highlights carry timestamps that may fall inside a
        token, in a silence gap, or outside the transcript entirely.

        HOW: First pass returns the first token whose [start, end]
        contains the timestamp. Otherwise a second pass picks the minimal
        |start - timestamp|, keeping the earliest index on ties.

        RULES:
        - Empty token sequence → 0
        - Always returns a valid index for non-empty input
        """
        if not self._tokens:
            return 0

        for i, token in enumerate(self._tokens):
            if token.start <= timestamp <= token.end:
                return i

        closest = 0
        min_distance = abs(self._tokens[0].start - timestamp)
        for i in range(1, len(self._tokens)):
            distance = abs(self._tokens[i].start - timestamp)
            if distance < min_distance:
                min_distance = distance
                closest = i
        return closest

    def _clamp(self, index: int) -> int:
        return max(0, min(index, len(self._tokens) - 1))

    def timestamps_for(self, start_index: int, end_index: int) -> tuple[float, float]:
        """Map a closed index range to (first token start, last token end)."""
        if not self._tokens:
            return 0.0, 0.0
        return (
            self._tokens[self._clamp(start_index)].start,
            self._tokens[self._clamp(end_index)].end,
        )

    def text_for(self, start_index: int, end_index: int) -> str:
        """Joined token text of a closed index range."""
        if not self._tokens:
            return ""
        lo, hi = self._clamp(start_index), self._clamp(end_index)
        return " ".join(t.text.strip() for t in self._tokens[lo:hi + 1] if t.text.strip())
