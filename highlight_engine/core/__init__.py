"""Core editing model: IR, token lookup, highlight store, and sequencing.

WHY: The core package holds the parts of the editor with real invariants
— non-overlapping highlights, timestamp/index translation, block
reordering — separate from the host-facing exchange shapes.

HOW: ir.py defines the data structures, token_index.py translates
between time and token positions, store.py and colors.py own the
highlight set, resize.py and sequence.py hold the pure drag math, and
gestures.py wraps them in drag lifecycles.

RULES:
- No I/O anywhere in core
- IR dataclasses are the contract — change with care
- Every mutation validates first and writes last
"""
