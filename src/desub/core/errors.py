"""
Core exception types raised by value construction, wire decoding, and conformance checks.

Provides typed exceptions for core-domain failures:
- SchemaError for invalid in-memory construction (empty variant tag, out-of-range integer).
- DecodeError and its subclasses for fail-fast decoding of values and metadata:
    - FramingError when the metadata magic prefix does not match.
    - UnsupportedVersion for deprecated metadata generations (0-7).
    - TruncatedInput when the byte cursor runs out.
    - MalformedField for bytes that cannot be interpreted (bad bool, bad discriminant, ...).
- ConformanceError when a built value does not match an expected type shape.

Notes:
    - This module uses only the Python standard library and has no side effects.
    - DecodeError carries the field path (outermost first) and the byte offset where
      decoding stopped; both are rendered into the message.

Examples:
    >>> from desub.core.errors import TruncatedInput
    >>> err = TruncatedInput("need 4 bytes, 1 left", offset=3)
    >>> err.add_path("name")
    >>> err.add_path("modules[0]")
    >>> str(err)
    'need 4 bytes, 1 left (at modules[0].name, offset 3)'
"""

from __future__ import annotations

__all__ = [
    "DesubError",
    "SchemaError",
    "DecodeError",
    "FramingError",
    "UnsupportedVersion",
    "TruncatedInput",
    "MalformedField",
    "ConformanceError",
]


class DesubError(Exception):
    """Base class for all desub errors."""


class SchemaError(DesubError, ValueError):
    """Invalid in-memory construction of a value or schema record."""


class DecodeError(DesubError, ValueError):
    """
    Decoding failure at a byte offset, tagged with the field path being decoded.

    Attributes:
        reason (str): Human readable cause.
        offset (int | None): Byte offset in the input where decoding stopped.
        path (list[str]): Field path segments, outermost first.
    """

    def __init__(self, reason: str, *, offset: int | None = None) -> None:
        super().__init__(reason)
        self.reason = reason
        self.offset = offset
        self.path: list[str] = []

    def add_path(self, segment: str) -> None:
        """Prepend a path segment; called while the error unwinds through nested fields."""
        self.path.insert(0, segment)

    @property
    def field_path(self) -> str:
        out = ""
        for seg in self.path:
            if seg.startswith("[") or not out:
                out += seg
            else:
                out += "." + seg
        return out

    def __str__(self) -> str:
        where = []
        if self.path:
            where.append(f"at {self.field_path}")
        if self.offset is not None:
            where.append(f"offset {self.offset}")
        if not where:
            return self.reason
        return f"{self.reason} ({', '.join(where)})"


class FramingError(DecodeError):
    """The 4-byte metadata magic prefix did not match."""


class UnsupportedVersion(DecodeError):
    """
    A deprecated metadata generation was encountered.

    Attributes:
        version (int): The offending generation discriminant.
    """

    def __init__(self, version: int, *, offset: int | None = None) -> None:
        super().__init__(f"metadata generation V{version} is not supported", offset=offset)
        self.version = version


class TruncatedInput(DecodeError):
    """Input ended before the value being decoded was complete."""


class MalformedField(DecodeError):
    """Bytes were present but could not be interpreted as the expected field."""


class ConformanceError(DesubError, ValueError):
    """
    A value does not conform to the expected type shape.

    Attributes:
        path (str): Location inside the value where the mismatch was found.
    """

    def __init__(self, message: str, path: str = "") -> None:
        super().__init__(f"{message} at {path}" if path else message)
        self.path = path
