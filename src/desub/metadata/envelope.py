"""
Versioned metadata envelope: 4-byte magic prefix plus a generation-tagged payload.

Wire layout::

    b"meta" (u32 0x6174656d, little-endian) | generation: u8 | payload (generation 8 only)

Decoding checks the magic before looking at the generation byte. Generations 0-7 carry the
uninhabited RuntimeMetadataDeprecated payload and always fail with UnsupportedVersion;
generation 8 carries RuntimeMetadataV8.

Examples
--------
>>> from desub.metadata.envelope import decode_metadata
>>> decode_metadata(b"meta\\x08\\x00").version
8
>>> decode_metadata(b"meta\\x03")
Traceback (most recent call last):
...
desub.core.errors.UnsupportedVersion: metadata generation V3 is not supported (at version, offset 4)
"""

from __future__ import annotations

from typing import NoReturn

from pydantic import ConfigDict, Field, field_validator, model_validator

from desub.core.codec import ByteReader, ByteWriter
from desub.core.constants import (
    CURRENT_GENERATION,
    DEPRECATED_GENERATIONS,
    GENERATION_COUNT,
    META_RESERVED,
    META_RESERVED_BYTES,
)
from desub.core.errors import FramingError, MalformedField, SchemaError, UnsupportedVersion

from .v8 import RuntimeMetadataV8, _Record

__all__ = [
    "RuntimeMetadataDeprecated",
    "RuntimeMetadata",
    "RuntimeMetadataPrefixed",
    "RuntimeMetadataLastVersion",
    "decode_metadata",
    "encode_metadata",
]

RuntimeMetadataLastVersion = RuntimeMetadataV8


class RuntimeMetadataDeprecated:
    """
    Payload type of generations 0-7. It has no instances.

    Decoding always raises UnsupportedVersion; encoding writes nothing and is unreachable
    because no instance can exist.
    """

    __slots__ = ()

    def __new__(cls, *args: object, **kwargs: object) -> NoReturn:
        raise TypeError("RuntimeMetadataDeprecated has no instances")

    @classmethod
    def decode_from(cls, r: ByteReader, version: int, offset: int | None = None) -> NoReturn:
        raise UnsupportedVersion(version, offset=offset)

    def encode_to(self, w: ByteWriter) -> None:
        return None


class RuntimeMetadata(_Record):
    """
    Generation-tagged metadata payload.

    Attributes:
        version (int): Generation discriminant (0-8).
        payload (RuntimeMetadataV8 | RuntimeMetadataDeprecated): Generation payload.

    Raises:
        pydantic.ValidationError: If the payload type does not match the generation.
    """

    model_config = ConfigDict(frozen=True, extra="forbid", arbitrary_types_allowed=True)

    version: int = Field(CURRENT_GENERATION, ge=0, lt=GENERATION_COUNT)
    payload: RuntimeMetadataV8 | RuntimeMetadataDeprecated

    @model_validator(mode="after")
    def _check_payload_generation(self) -> RuntimeMetadata:
        if self.version == CURRENT_GENERATION:
            if not isinstance(self.payload, RuntimeMetadataV8):
                raise SchemaError(f"V{self.version} requires a RuntimeMetadataV8 payload")
        elif not isinstance(self.payload, RuntimeMetadataDeprecated):
            raise SchemaError(f"V{self.version} requires a deprecated payload")
        return self

    def encode_to(self, w: ByteWriter) -> None:
        w.u8(self.version)
        self.payload.encode_to(w)

    @classmethod
    def decode_from(cls, r: ByteReader) -> RuntimeMetadata:
        start = r.offset
        with r.field("version"):
            version = r.u8()
            if version in DEPRECATED_GENERATIONS:
                RuntimeMetadataDeprecated.decode_from(r, version, start)
            if version != CURRENT_GENERATION:
                raise MalformedField(f"unknown metadata generation {version}", offset=start)
        with r.field(f"V{version}"):
            payload = RuntimeMetadataV8.decode_from(r)
        return cls(version=version, payload=payload)


class RuntimeMetadataPrefixed(_Record):
    """
    Metadata with its reserved magic prefix; the top-level object exposed by a runtime.

    Attributes:
        magic (int): Always META_RESERVED.
        metadata (RuntimeMetadata): Generation-tagged payload.
    """

    magic: int = META_RESERVED
    metadata: RuntimeMetadata

    @field_validator("magic")
    @classmethod
    def _check_magic(cls, v: int) -> int:
        if v != META_RESERVED:
            raise SchemaError(f"metadata magic must be 0x{META_RESERVED:08x}, got 0x{v:08x}")
        return v

    @classmethod
    def from_v8(cls, v8: RuntimeMetadataV8) -> RuntimeMetadataPrefixed:
        return cls(metadata=RuntimeMetadata(version=CURRENT_GENERATION, payload=v8))

    @property
    def version(self) -> int:
        return self.metadata.version

    @property
    def v8(self) -> RuntimeMetadataV8:
        """The generation-8 payload."""
        return self.metadata.payload  # type: ignore[return-value]

    def encode_to(self, w: ByteWriter) -> None:
        w.u32(self.magic)
        self.metadata.encode_to(w)

    @classmethod
    def decode_from(cls, r: ByteReader) -> RuntimeMetadataPrefixed:
        start = r.offset
        if r.remaining < len(META_RESERVED_BYTES):
            raise FramingError("input is shorter than the 4-byte metadata magic", offset=start)
        raw = r.read(len(META_RESERVED_BYTES))
        if raw != META_RESERVED_BYTES:
            raise FramingError(
                f"bad metadata magic 0x{raw.hex()}, expected 0x{META_RESERVED_BYTES.hex()}",
                offset=start,
            )
        metadata = RuntimeMetadata.decode_from(r)
        return cls(magic=META_RESERVED, metadata=metadata)


def decode_metadata(data: bytes) -> RuntimeMetadataPrefixed:
    """
    Decode a complete metadata blob.

    Raises:
        FramingError: The magic prefix is missing or wrong.
        UnsupportedVersion: The generation is 0-7.
        TruncatedInput / MalformedField: The payload is incomplete or invalid, or trailing
            bytes remain.
    """
    return RuntimeMetadataPrefixed.decode(data)


def encode_metadata(metadata: RuntimeMetadataPrefixed | RuntimeMetadataV8) -> bytes:
    """Encode metadata; a bare V8 payload is wrapped in the envelope first."""
    if isinstance(metadata, RuntimeMetadataV8):
        metadata = RuntimeMetadataPrefixed.from_v8(metadata)
    return metadata.encode()
