"""
JSON view and fingerprint of decoded runtime metadata.

Converts metadata records into plain JSON-compatible data (cells serialize as their
materialized content, bytes as ``0x`` hex, enums as their lower_snake values) and hashes
that view with the canonical JSON policy from desub.core.hashing.

Notes:
    - Descriptor-built and decoded metadata of equal content produce the same JSON and the
      same fingerprint.
"""

from __future__ import annotations

from typing import Any

from desub.core.hashing import hash_json, json_dumps_canonical

from .envelope import RuntimeMetadataPrefixed
from .v8 import RuntimeMetadataV8

__all__ = [
    "metadata_to_json_obj",
    "metadata_to_json",
    "metadata_fingerprint",
]


def metadata_to_json_obj(metadata: RuntimeMetadataPrefixed | RuntimeMetadataV8) -> dict[str, Any]:
    """
    Return a plain JSON-compatible dict for an envelope or a bare V8 payload.

    Examples:
        >>> from desub.metadata.v8 import RuntimeMetadataV8
        >>> metadata_to_json_obj(RuntimeMetadataV8(modules=[]))
        {'magic': 1635018093, 'metadata': {'version': 8, 'payload': {'modules': []}}}
    """
    if isinstance(metadata, RuntimeMetadataV8):
        metadata = RuntimeMetadataPrefixed.from_v8(metadata)
    return metadata.model_dump(mode="json")


def metadata_to_json(metadata: RuntimeMetadataPrefixed | RuntimeMetadataV8) -> str:
    """Canonical JSON string of the metadata."""
    return json_dumps_canonical(metadata_to_json_obj(metadata))


def metadata_fingerprint(metadata: RuntimeMetadataPrefixed | RuntimeMetadataV8) -> str:
    """SHA-256 hex digest of the canonical JSON view."""
    return hash_json(metadata_to_json_obj(metadata))
