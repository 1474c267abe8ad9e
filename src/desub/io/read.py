"""
Load runtime metadata blobs from files.

Supports three on-disk forms:
- raw: the SCALE bytes as produced by the runtime (starting with ``b"meta"``);
- hex: a text file holding the bytes as hex, with or without a ``0x`` prefix;
- JSON-RPC response: ``{"result": "0x..."}`` as returned by a node's metadata call
  (detected in "auto" and "hex" modes).

Notes
- Fetching bytes from a node is out of scope; save the RPC response to a file first.
- Byte-level decode failures propagate as desub.core.errors.DecodeError.
"""

from __future__ import annotations

import logging
import os
import string

from desub.core.hashing import json_loads
from desub.metadata.envelope import RuntimeMetadataPrefixed, decode_metadata

from .config import DesubSettings
from .errors import IoConfigError, IoReadError

logger = logging.getLogger(__name__)

__all__ = [
    "parse_hex",
    "read_metadata_bytes",
    "load_metadata",
]

_HEX_DIGITS = set(string.hexdigits)


def parse_hex(text: str) -> bytes:
    """
    Parse a hex string (optionally ``0x``-prefixed, surrounding whitespace ignored).

    Raises:
        IoReadError: If the text is not valid hex.

    Examples:
        >>> parse_hex("0x6d657461 ")
        b'meta'
    """
    s = "".join(text.split())
    if s.startswith(("0x", "0X")):
        s = s[2:]
    try:
        return bytes.fromhex(s)
    except ValueError as exc:
        raise IoReadError(f"invalid hex input: {exc}") from exc


def _looks_like_hex(data: bytes) -> bool:
    try:
        text = data.decode("ascii").strip()
    except UnicodeDecodeError:
        return False
    if text.startswith(("0x", "0X")):
        text = text[2:]
    return bool(text) and all(c in _HEX_DIGITS for c in text)


def _from_text(data: bytes) -> bytes:
    try:
        text = data.decode("utf-8").strip()
    except UnicodeDecodeError as exc:
        raise IoReadError(f"hex input is not text: {exc.reason}") from exc
    if text.startswith("{"):
        try:
            obj = json_loads(text)
        except ValueError as exc:
            raise IoReadError(f"invalid JSON input: {exc}") from exc
        result = obj.get("result") if isinstance(obj, dict) else None
        if not isinstance(result, str):
            raise IoReadError("JSON input has no string 'result' field")
        return parse_hex(result)
    return parse_hex(text)


def read_metadata_bytes(path: str | os.PathLike[str], input_format: str = "auto") -> bytes:
    """
    Read a metadata blob from `path`.

    Args:
        path: File to read.
        input_format: "raw", "hex" or "auto".

    Returns:
        bytes: The SCALE-encoded metadata.

    Raises:
        IoReadError: If the file cannot be read or its text form is invalid.
        IoConfigError: If `input_format` is unknown.
    """
    if input_format not in ("auto", "hex", "raw"):
        raise IoConfigError(f"unknown input format {input_format!r}")
    try:
        with open(path, "rb") as fh:
            data = fh.read()
    except OSError as exc:
        raise IoReadError(f"cannot read {os.fspath(path)!r}: {exc}") from exc

    if input_format == "raw":
        return data
    if input_format == "hex":
        return _from_text(data)
    if _looks_like_hex(data) or data.lstrip().startswith(b"{"):
        logger.debug("treating %s as hex text", os.fspath(path))
        return _from_text(data)
    return data


def load_metadata(
    path: str | os.PathLike[str],
    settings: DesubSettings | None = None,
) -> RuntimeMetadataPrefixed:
    """
    Read and decode a metadata file.

    Raises:
        IoReadError: If the file cannot be read.
        desub.core.errors.DecodeError: If the bytes are not valid metadata.
    """
    settings = settings or DesubSettings()
    data = read_metadata_bytes(path, settings.input_format)
    logger.info("decoding %d metadata bytes from %s", len(data), os.fspath(path))
    meta = decode_metadata(data)
    logger.info("decoded metadata V%d with %d module(s)", meta.version, len(meta.v8.module_list()))
    return meta
