"""
Canonical JSON, JSON parsing and SHA-256 fingerprints.

Metadata fingerprints hash a canonical JSON view so the same content always yields the same
digest, whichever representation (static descriptor or decoded) produced it. Zero-IO.

Canonical form: keys sorted, ``(",", ":")`` separators, non-ASCII kept as-is, UTF-8 bytes
hashed.
"""

from __future__ import annotations

import hashlib
import json
from typing import Any

__all__ = [
    "json_dumps_canonical",
    "hash_json",
    "hash_bytes",
    "json_loads",
]


def json_dumps_canonical(obj: Any) -> str:
    """
    Dump `obj` as canonical JSON.

    `obj` must already be JSON-compatible; nothing is coerced.
    """
    return json.dumps(obj, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def hash_json(obj: Any) -> str:
    """
    SHA-256 hex digest of the canonical JSON of `obj`.

    Examples:
        >>> from desub.core.hashing import hash_json
        >>> hash_json({"a": 1, "b": 2}) == hash_json({"b": 2, "a": 1})
        True
    """
    return hash_bytes(json_dumps_canonical(obj).encode("utf-8"))


def hash_bytes(data: bytes) -> str:
    """SHA-256 hex digest of raw bytes, e.g. an encoded metadata blob."""
    return hashlib.sha256(bytes(data)).hexdigest()


def json_loads(s: str) -> Any:
    """Parse JSON text, e.g. a saved JSON-RPC response."""
    return json.loads(s)
