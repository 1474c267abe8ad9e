"""
Wire-level constants for runtime metadata and value decoding.

Defines the metadata magic prefix, generation numbering and decoding limits consumed by
desub.metadata and desub.core.shape. This module is zero-IO and uses only the Python
standard library.

Notes:
    - META_RESERVED is encoded as a little-endian u32, i.e. the ASCII bytes ``b"meta"``.
      The value must match byte-for-byte with metadata produced by existing runtimes.
    - Changes to these constants are wire-breaking.
"""

from __future__ import annotations

__all__ = [
    "META_RESERVED",
    "META_RESERVED_BYTES",
    "CURRENT_GENERATION",
    "DEPRECATED_GENERATIONS",
    "GENERATION_COUNT",
    "DEFAULT_MAX_DEPTH",
    "U256_BYTES",
]

# Metadata magic prefix ('meta' when written little-endian).
META_RESERVED: int = 0x6174656D
META_RESERVED_BYTES: bytes = META_RESERVED.to_bytes(4, "little")

# Generations 0..7 are placeholders that can never be decoded.
CURRENT_GENERATION: int = 8
DEPRECATED_GENERATIONS: range = range(0, CURRENT_GENERATION)
GENERATION_COUNT: int = CURRENT_GENERATION + 1

# Recursion bound for shape-driven value decoding.
DEFAULT_MAX_DEPTH: int = 256

# Width of the two big-integer primitive kinds.
U256_BYTES: int = 32
