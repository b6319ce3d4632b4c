"""Highlight color allocation from a fixed palette with pastel fallback.

WHY: Adjacent highlights must be easy to tell apart. A short palette of
hand-picked colors covers the common case; beyond that we still need a
color, even if distinctness becomes best-effort.

HOW: allocate() walks the ordered palette and returns the first color
not in the used set. Once the palette is exhausted it synthesizes an HSL
pastel from the configured ranges. release() discards a color from the
used set so the palette slot can be handed out again.

RULES:
- Palette order is allocation order
- Synthetic colors are ``hsl(H, S%, L%)`` and never deduplicated
- allocate() does not record the color; the caller owns the used set
"""

from __future__ import annotations

import random
from typing import Iterable, MutableSet, Optional

from highlight_engine import config


class ColorAllocator:
    """Hands out highlight colors; stateless apart from palette and RNG."""

    def __init__(
        self,
        palette: Optional[Iterable[str]] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.palette: tuple[str, ...] = tuple(
            palette if palette is not None else config.HIGHLIGHT_PALETTE
        )
        self._rng = rng or random.Random()

    def allocate(self, used_colors: Iterable[str]) -> str:
        used = set(used_colors)
        for color in self.palette:
            if color not in used:
                return color
        return self._synthesize()

    def release(self, color: str, used_colors: MutableSet[str]) -> None:
        used_colors.discard(color)

    def _synthesize(self) -> str:
        hue = self._rng.randrange(*config.SYNTHETIC_HUE_RANGE)
        saturation = self._tenths(config.SYNTHETIC_SATURATION_RANGE)
        lightness = self._tenths(config.SYNTHETIC_LIGHTNESS_RANGE)
        return "hsl({}, {:.1f}%, {:.1f}%)".format(hue, saturation, lightness)

    def _tenths(self, bounds: tuple[float, float]) -> float:
        # Drawn on a 0.1 grid so the formatted value stays below the upper bound.
        low, high = bounds
        return self._rng.randrange(int(low * 10), int(high * 10)) / 10.0
