"""Unit tests for ColorAllocator."""

import random
import re

from highlight_engine import config
from highlight_engine.core.colors import ColorAllocator

_HSL_RE = re.compile(r"^hsl\((\d+), ([\d.]+)%, ([\d.]+)%\)$")


class TestPaletteAllocation:

    def test_first_color_when_nothing_used(self, allocator):
        assert allocator.allocate(set()) == "#111111"

    def test_skips_used_colors(self, allocator):
        assert allocator.allocate({"#111111"}) == "#222222"
        assert allocator.allocate({"#111111", "#222222"}) == "#333333"

    def test_gap_in_used_set_is_filled_first(self, allocator):
        assert allocator.allocate({"#111111", "#333333"}) == "#222222"

    def test_allocate_does_not_record(self, allocator):
        used = set()
        allocator.allocate(used)
        assert used == set()

    def test_default_palette_from_config(self):
        assert ColorAllocator().palette == config.HIGHLIGHT_PALETTE


class TestSyntheticFallback:

    def test_exhausted_palette_yields_hsl_in_range(self, allocator):
        used = {"#111111", "#222222", "#333333"}
        for _ in range(200):
            match = _HSL_RE.match(allocator.allocate(used))
            assert match is not None
            hue, sat, light = int(match.group(1)), float(match.group(2)), float(match.group(3))
            assert 0 <= hue < 360
            assert 45.0 <= sat < 75.0
            assert 65.0 <= light < 85.0

    def test_seeded_rng_is_deterministic(self):
        a = ColorAllocator(palette=(), rng=random.Random(7))
        b = ColorAllocator(palette=(), rng=random.Random(7))
        assert [a.allocate(set()) for _ in range(5)] == [b.allocate(set()) for _ in range(5)]


class TestRelease:

    def test_release_makes_color_available(self, allocator):
        used = {"#111111", "#222222"}
        allocator.release("#111111", used)
        assert used == {"#222222"}
        assert allocator.allocate(used) == "#111111"

    def test_release_unknown_color_is_harmless(self, allocator):
        used = {"#111111"}
        allocator.release("#abcdef", used)
        assert used == {"#111111"}
