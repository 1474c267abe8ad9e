"""Tests for the magic-prefixed, generation-tagged envelope in `desub.metadata.envelope`."""

import pytest
from pydantic import ValidationError

from desub.core.errors import FramingError, MalformedField, TruncatedInput, UnsupportedVersion
from desub.metadata import (
    ModuleMetadata,
    RuntimeMetadata,
    RuntimeMetadataDeprecated,
    RuntimeMetadataPrefixed,
    RuntimeMetadataV8,
    decode_metadata,
    encode_metadata,
)


def test_empty_v8_roundtrip() -> None:
    meta = decode_metadata(b"meta\x08\x00")

    assert meta.version == 8
    assert meta.v8.module_list() == []
    assert encode_metadata(meta) == b"meta\x08\x00"
    assert encode_metadata(RuntimeMetadataV8(modules=[])) == b"meta\x08\x00"


@pytest.mark.parametrize("version", range(8))
@pytest.mark.parametrize("trailing", [b"", b"\x00", b"\xff" * 64])
def test_deprecated_generations_always_fail(version: int, trailing: bytes) -> None:
    with pytest.raises(UnsupportedVersion) as ei:
        decode_metadata(b"meta" + bytes([version]) + trailing)
    assert ei.value.version == version
    assert ei.value.offset == 4
    assert f"V{version}" in str(ei.value)


def test_unknown_generation_is_malformed() -> None:
    with pytest.raises(MalformedField, match="unknown metadata generation 9"):
        decode_metadata(b"meta\x09\x00")


@pytest.mark.parametrize(
    "data",
    [
        b"",
        b"met",
        b"atem\x08\x00",
        b"\x00meta\x08\x00",  # shifted by one byte
    ],
)
def test_magic_gating(data: bytes) -> None:
    with pytest.raises(FramingError):
        decode_metadata(data)


def test_missing_generation_byte_is_truncated() -> None:
    with pytest.raises(TruncatedInput) as ei:
        decode_metadata(b"meta")
    assert ei.value.field_path == "version"


def test_trailing_bytes_after_v8_payload_rejected() -> None:
    with pytest.raises(MalformedField, match="trailing"):
        decode_metadata(b"meta\x08\x00\x00")


def test_deprecated_payload_has_no_instances() -> None:
    with pytest.raises(TypeError):
        RuntimeMetadataDeprecated()


def test_envelope_validation() -> None:
    v8 = RuntimeMetadataV8(modules=[])

    with pytest.raises(ValidationError):
        RuntimeMetadata(version=3, payload=v8)
    with pytest.raises(ValidationError):
        RuntimeMetadata(version=9, payload=v8)
    with pytest.raises(ValidationError):
        RuntimeMetadataPrefixed(magic=1, metadata=RuntimeMetadata(version=8, payload=v8))


def test_into_prefixed_matches_from_v8() -> None:
    v8 = RuntimeMetadataV8(modules=[])
    assert v8.into_prefixed() == RuntimeMetadataPrefixed.from_v8(v8)
    assert RuntimeMetadataV8.into_prefixed.__annotations__["return"] == "RuntimeMetadataPrefixed"


def test_decoded_envelope_cannot_be_changed_through_module_list() -> None:
    meta = decode_metadata(b"meta\x08\x00")

    meta.v8.module_list().append(ModuleMetadata(name="Evil", constants=[], errors=[]))

    assert meta.v8.module_list() == []
    assert meta.encode() == b"meta\x08\x00"


def test_model_dump_validates_back_to_equal_metadata(runtime) -> None:
    back = RuntimeMetadataPrefixed.model_validate(runtime.model_dump())

    assert back == runtime
    assert encode_metadata(back) == encode_metadata(runtime)


def test_model_validate_rejects_malformed_modules() -> None:
    with pytest.raises(ValidationError):
        RuntimeMetadataV8.model_validate({"modules": [{"name": 1}]})
