"""
Primitive wire codec (SCALE layout) used by value and metadata decoding.

Provides a byte cursor (`ByteReader`) and an append-only buffer (`ByteWriter`) with
readers/writers for fixed-width integers, compact integers, booleans, chars, strings,
raw byte runs, options and length-prefixed vectors.

Notes:
    - All fixed-width integers are little-endian two's complement.
    - Compact integers use the four SCALE modes (single-byte, two-byte, four-byte and
      big-integer); decoding rejects non-minimal encodings.
    - Every read past the end raises TruncatedInput carrying the offset; invalid bytes
      raise MalformedField. ``ByteReader.field`` tags errors with the field being read.
    - Zero-IO (stdlib only).

Examples:
    >>> from desub.core.codec import ByteReader, ByteWriter
    >>> w = ByteWriter()
    >>> w.compact(69)
    >>> w.str("hi")
    >>> w.getvalue().hex()
    '1501086869'
    >>> r = ByteReader(w.getvalue())
    >>> r.compact(), r.str()
    (69, 'hi')
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator
from contextlib import contextmanager
from typing import TypeVar

from .errors import DecodeError, MalformedField, TruncatedInput

__all__ = [
    "ByteReader",
    "ByteWriter",
    "encode_compact",
]

T = TypeVar("T")

_COMPACT_SINGLE_MAX = (1 << 6) - 1
_COMPACT_TWO_MAX = (1 << 14) - 1
_COMPACT_FOUR_MAX = (1 << 30) - 1
_COMPACT_BIG_MAX_BYTES = 67  # 4 + 0b111111


def encode_compact(n: int) -> bytes:
    """
    Encode a non-negative integer in SCALE compact form.

    Raises:
        ValueError: If `n` is negative or needs more than 67 bytes.
    """
    if n < 0:
        raise ValueError(f"compact integer must be non-negative, got {n}")
    if n <= _COMPACT_SINGLE_MAX:
        return bytes([n << 2])
    if n <= _COMPACT_TWO_MAX:
        return ((n << 2) | 0b01).to_bytes(2, "little")
    if n <= _COMPACT_FOUR_MAX:
        return ((n << 2) | 0b10).to_bytes(4, "little")
    width = (n.bit_length() + 7) // 8
    if width > _COMPACT_BIG_MAX_BYTES:
        raise ValueError(f"compact integer too large: {width} bytes")
    return bytes([((width - 4) << 2) | 0b11]) + n.to_bytes(width, "little")


class ByteReader:
    """
    Cursor over an immutable byte buffer.

    Attributes:
        data (bytes): The input buffer.
        offset (int): Position of the next unread byte.
    """

    def __init__(self, data: bytes | bytearray | memoryview) -> None:
        self.data = bytes(data)
        self.offset = 0

    @property
    def remaining(self) -> int:
        return len(self.data) - self.offset

    def at_end(self) -> bool:
        return self.offset >= len(self.data)

    def expect_end(self) -> None:
        """Raise MalformedField if unread bytes remain."""
        if self.remaining:
            raise MalformedField(f"{self.remaining} trailing byte(s) after payload", offset=self.offset)

    @contextmanager
    def field(self, name: str) -> Iterator[None]:
        """Tag any DecodeError raised inside the block with `name` as a path segment."""
        try:
            yield
        except DecodeError as exc:
            exc.add_path(name)
            raise

    def read(self, n: int) -> bytes:
        if n < 0:
            raise MalformedField(f"negative read length {n}", offset=self.offset)
        if self.remaining < n:
            raise TruncatedInput(f"need {n} byte(s), {self.remaining} left", offset=self.offset)
        out = self.data[self.offset : self.offset + n]
        self.offset += n
        return out

    def u8(self) -> int:
        return self.read(1)[0]

    def uint(self, width: int) -> int:
        return int.from_bytes(self.read(width), "little", signed=False)

    def sint(self, width: int) -> int:
        return int.from_bytes(self.read(width), "little", signed=True)

    def u32(self) -> int:
        return self.uint(4)

    def bool(self) -> bool:
        start = self.offset
        b = self.u8()
        if b == 0:
            return False
        if b == 1:
            return True
        raise MalformedField(f"invalid bool byte 0x{b:02x}", offset=start)

    def char(self) -> str:
        start = self.offset
        cp = self.u32()
        if cp > 0x10FFFF or 0xD800 <= cp <= 0xDFFF:
            raise MalformedField(f"invalid char code point 0x{cp:x}", offset=start)
        return chr(cp)

    def compact(self) -> int:
        start = self.offset
        first = self.u8()
        mode = first & 0b11
        if mode == 0b00:
            return first >> 2
        if mode == 0b01:
            n = (first | (self.u8() << 8)) >> 2
            lo = _COMPACT_SINGLE_MAX + 1
        elif mode == 0b10:
            n = (first | (self.uint(3) << 8)) >> 2
            lo = _COMPACT_TWO_MAX + 1
        else:
            width = (first >> 2) + 4
            n = self.uint(width)
            lo = _COMPACT_FOUR_MAX + 1
            if width > 4 and n >> ((width - 1) * 8) == 0:
                raise MalformedField("non-minimal compact integer", offset=start)
        if n < lo:
            raise MalformedField("non-minimal compact integer", offset=start)
        return n

    def bytes(self) -> bytes:
        """Read a compact-length-prefixed byte run."""
        return self.read(self.compact())

    def str(self) -> str:
        start = self.offset
        raw = self.bytes()
        try:
            return raw.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise MalformedField(f"invalid UTF-8 string: {exc.reason}", offset=start) from exc

    def option(self, read_item: Callable[[ByteReader], T]) -> T | None:
        start = self.offset
        tag = self.u8()
        if tag == 0:
            return None
        if tag == 1:
            return read_item(self)
        raise MalformedField(f"invalid option tag 0x{tag:02x}", offset=start)

    def vec(self, read_item: Callable[[ByteReader], T]) -> list[T]:
        """Read a compact-length-prefixed vector; each element is tagged with its index."""
        n = self.compact()
        out: list[T] = []
        for i in range(n):
            with self.field(f"[{i}]"):
                out.append(read_item(self))
        return out


class ByteWriter:
    """Append-only output buffer mirroring ByteReader."""

    def __init__(self) -> None:
        self._buf = bytearray()

    def getvalue(self) -> bytes:
        return bytes(self._buf)

    def __len__(self) -> int:
        return len(self._buf)

    def write(self, b: bytes | bytearray) -> None:
        self._buf += b

    def u8(self, v: int) -> None:
        self._buf.append(v)

    def uint(self, v: int, width: int) -> None:
        self._buf += v.to_bytes(width, "little", signed=False)

    def sint(self, v: int, width: int) -> None:
        self._buf += v.to_bytes(width, "little", signed=True)

    def u32(self, v: int) -> None:
        self.uint(v, 4)

    def bool(self, v: bool) -> None:
        self._buf.append(1 if v else 0)

    def char(self, v: str) -> None:
        self.u32(ord(v))

    def compact(self, n: int) -> None:
        self._buf += encode_compact(n)

    def bytes(self, b: bytes) -> None:
        self.compact(len(b))
        self._buf += b

    def str(self, s: str) -> None:
        self.bytes(s.encode("utf-8"))

    def option(self, v: T | None, write_item: Callable[[ByteWriter, T], None]) -> None:
        if v is None:
            self._buf.append(0)
        else:
            self._buf.append(1)
            write_item(self, v)

    def vec(self, items: Iterable[T], write_item: Callable[[ByteWriter, T], None]) -> None:
        items = list(items)
        self.compact(len(items))
        for item in items:
            write_item(self, item)
