"""Shared test fixtures for the highlight_engine test suite.

WHY: Most test modules need the same small transcripts and a store with
a predictable palette. Centralizing fixtures here avoids duplication and
keeps colors deterministic across tests.

HOW: Pytest fixtures provide a four-token transcript with gaps (the
locate() reference case), a ten-token transcript with one token per
second, and stores/allocators using a fixed palette and seeded RNG.

RULES:
- GAP_TOKENS must match the locate() reference table exactly.
- Palette colors are fixed so tests can assert allocation order.
"""

import random
from typing import Any, Dict, List

import pytest

from highlight_engine.core.colors import ColorAllocator
from highlight_engine.core.ir import Token
from highlight_engine.core.store import IntervalStore
from highlight_engine.core.token_index import TokenIndex


# ---------------------------------------------------------------------------
# Sample transcripts
# ---------------------------------------------------------------------------

GAP_TOKENS: List[Token] = [
    Token(text="Hello", start=0.0, end=0.5),
    Token(text="there", start=0.6, end=1.0),
    Token(text="my", start=1.1, end=1.4),
    Token(text="friend", start=1.5, end=1.7),
]

WORDS = ["We", "shipped", "the", "new", "editor", "and", "users", "love", "the", "highlights"]

# Token i spans [i, i + 0.8] seconds
SECOND_TOKENS: List[Dict[str, Any]] = [
    {"text": w, "start": float(i), "end": i + 0.8} for i, w in enumerate(WORDS)
]

PALETTE = ("#111111", "#222222", "#333333")


@pytest.fixture
def gap_index():
    """Four tokens with silence gaps between them."""
    return TokenIndex(GAP_TOKENS)


@pytest.fixture
def second_tokens():
    """Ten token dicts, one per second."""
    return [dict(t) for t in SECOND_TOKENS]


@pytest.fixture
def second_index():
    return TokenIndex.from_dicts(SECOND_TOKENS)


@pytest.fixture
def allocator():
    """Allocator with a three-color palette and seeded RNG."""
    return ColorAllocator(palette=PALETTE, rng=random.Random(1234))


@pytest.fixture
def store(allocator):
    return IntervalStore(allocator=allocator, allow_single_token=False)
