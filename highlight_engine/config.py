"""Configuration constants, highlight palette, and .env loading.

WHY: Centralizes all configurable values so they are easy to find,
update, and override. The highlight palette, the persisted break-marker
literal, and the editing defaults are plain data structures — not buried
in logic — so both humans and coding agents can modify them confidently.

HOW: python-dotenv loads the .env file on import. Constants are defined
as module-level tuples, ints, and strings. Each override is read once
from the environment at import time.

RULES:
- HIGHLIGHT_PALETTE is ordered; the allocator hands colors out in order
- Synthetic fallback colors use the HSL ranges below (percent for S/L)
- BREAK_LITERAL is the persisted shape of an untitled section break
- All defaults can be overridden via environment variables
"""

from __future__ import annotations

import os

from dotenv import load_dotenv

# Load .env from the project root (where the host is run from)
load_dotenv()

# ---------------------------------------------------------------------------
# Highlight palette
# ---------------------------------------------------------------------------

DEFAULT_PALETTE: tuple[str, ...] = (
    "#ffeb3b",  # yellow
    "#81c784",  # green
    "#64b5f6",  # blue
    "#ff8a65",  # orange
    "#f06292",  # pink
)


def _parse_palette(raw: str | None) -> tuple[str, ...]:
    """Parse a comma-separated palette override.

    Blank entries are dropped. An empty or missing override falls back
    to DEFAULT_PALETTE.
    """
    if not raw:
        return DEFAULT_PALETTE
    colors = tuple(c.strip() for c in raw.split(",") if c.strip())
    return colors or DEFAULT_PALETTE


HIGHLIGHT_PALETTE: tuple[str, ...] = _parse_palette(os.getenv("HIGHLIGHT_PALETTE"))

# Synthetic pastel color ranges: [low, high)
SYNTHETIC_HUE_RANGE = (0, 360)
SYNTHETIC_SATURATION_RANGE = (45.0, 75.0)
SYNTHETIC_LIGHTNESS_RANGE = (65.0, 85.0)

# ---------------------------------------------------------------------------
# Sequence exchange shape
# ---------------------------------------------------------------------------

BREAK_LITERAL = "N"
"""Persisted value (and object ``type``) that marks a section break."""

# ---------------------------------------------------------------------------
# Editing defaults
# ---------------------------------------------------------------------------

ALLOW_SINGLE_TOKEN = os.getenv("HIGHLIGHT_ALLOW_SINGLE_TOKEN", "false").lower() == "true"
HISTORY_LIMIT = int(os.getenv("HIGHLIGHT_HISTORY_LIMIT", "50"))
