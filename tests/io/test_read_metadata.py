from __future__ import annotations

import json
from pathlib import Path

import pytest

from desub.core.errors import FramingError
from desub.io.config import DesubSettings
from desub.io.errors import IoConfigError, IoReadError
from desub.io.read import load_metadata, parse_hex, read_metadata_bytes


def test_parse_hex_accepts_prefix_and_whitespace() -> None:
    assert parse_hex("0x6d65 7461\n") == b"meta"
    assert parse_hex("6D657461") == b"meta"
    with pytest.raises(IoReadError):
        parse_hex("0xzz")


def test_auto_detects_raw_hex_and_json_rpc(tmp_path: Path, balances_blob: bytes) -> None:
    raw = tmp_path / "meta.bin"
    raw.write_bytes(balances_blob)
    hex_file = tmp_path / "meta.hex"
    hex_file.write_text("0x" + balances_blob.hex() + "\n")
    rpc = tmp_path / "meta.json"
    rpc.write_text(json.dumps({"jsonrpc": "2.0", "id": 1, "result": "0x" + balances_blob.hex()}))

    for path in (raw, hex_file, rpc):
        assert read_metadata_bytes(path) == balances_blob


def test_explicit_formats(tmp_path: Path, balances_blob: bytes) -> None:
    hex_file = tmp_path / "meta.hex"
    hex_file.write_text(balances_blob.hex())

    assert read_metadata_bytes(hex_file, "hex") == balances_blob
    assert read_metadata_bytes(hex_file, "raw") == balances_blob.hex().encode()
    with pytest.raises(IoConfigError):
        read_metadata_bytes(hex_file, "base64")


def test_read_errors(tmp_path: Path) -> None:
    with pytest.raises(IoReadError, match="cannot read"):
        read_metadata_bytes(tmp_path / "missing.bin")

    bad_json = tmp_path / "bad.json"
    bad_json.write_text('{"error": "boom"}')
    with pytest.raises(IoReadError, match="result"):
        read_metadata_bytes(bad_json)

    binary = tmp_path / "bin.hex"
    binary.write_bytes(b"\xff\xfe")
    with pytest.raises(IoReadError):
        read_metadata_bytes(binary, "hex")


def test_load_metadata_decodes_and_logs(tmp_path: Path, balances_blob: bytes, caplog) -> None:
    path = tmp_path / "meta.bin"
    path.write_bytes(balances_blob)

    with caplog.at_level("INFO", logger="desub.io.read"):
        meta = load_metadata(path, DesubSettings(input_format="raw"))

    assert meta.v8.module("Balances") is not None
    assert any("decoded metadata V8" in r.getMessage() for r in caplog.records)


def test_load_metadata_propagates_decode_errors(tmp_path: Path) -> None:
    path = tmp_path / "junk.bin"
    path.write_bytes(b"\x00\x01\x02\x03\x04")

    with pytest.raises(FramingError):
        load_metadata(path)
