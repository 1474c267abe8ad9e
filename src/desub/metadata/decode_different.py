"""
Dual representation cell: a static descriptor or a materialized, owned value.

Every metadata field is held in a `DecodeDifferent` cell so the same record classes serve
two producers: a constrained producer that only holds static data and zero-argument
functions (the descriptor side), and tooling that decodes metadata from bytes and owns the
result (the materialized side).

Responsibilities
- Hold exactly one of a descriptor or a materialized value.
- Materialize: force a descriptor into owned form (fresh copy per call, never fails).
- Encode: write only the materialized payload; no representation tag reaches the wire.
- Equality: compare materialized content, never the representation.
- Immutability: decoded content is stored frozen; every materialize returns a fresh copy.
- Pydantic integration: validate raw values against the cell's materialized type, pass
  descriptors through unchanged, and serialize cells as their materialized content.

Descriptors
- Static data: ``str`` and ``tuple`` (materialized as ``str`` and ``list``).
- FnEncode(fn): a zero-argument function returning static data.
- DefaultByteGetter(source): wraps an object exposing ``default_byte() -> bytes``.

Examples
--------
>>> from desub.metadata.decode_different import DecodeDifferent, FnEncode
>>> a = DecodeDifferent.from_descriptor(FnEncode(lambda: ("x", "y")))
>>> b = DecodeDifferent.from_decoded(["x", "y"])
>>> a == b, a.is_descriptor, b.is_descriptor
(True, True, False)
"""

from __future__ import annotations

from collections.abc import Callable
from enum import Enum
from typing import Any, Generic, Protocol, TypeVar, get_args

from pydantic import BaseModel
from pydantic_core import core_schema

from desub.core.codec import ByteWriter

__all__ = [
    "DecodeDifferent",
    "FnEncode",
    "DefaultByte",
    "DefaultByteGetter",
    "DecodeDifferentStr",
    "DecodeDifferentArray",
    "FnArray",
    "ByteGetter",
    "materialize_descriptor",
    "to_plain",
]

D = TypeVar("D")
M = TypeVar("M")
E = TypeVar("E")
T = TypeVar("T")


def _own(data: Any) -> Any:
    # Static slices become owned lists; elements are kept as they are.
    if isinstance(data, (tuple, list)):
        return list(data)
    if isinstance(data, (bytearray, memoryview)):
        return bytes(data)
    return data


def _freeze(data: Any, resolve: bool = False) -> Any:
    # Nested lists become tuples. With `resolve`, descriptors are replaced by their content.
    if resolve and isinstance(data, (FnEncode, DefaultByteGetter)):
        return _freeze(data.materialize(), resolve)
    if isinstance(data, (list, tuple)):
        return tuple(_freeze(x, resolve) for x in data)
    if isinstance(data, (bytearray, memoryview)):
        return bytes(data)
    return data


class FnEncode(Generic[E]):
    """
    Zero-argument function standing in for static data.

    The function is invoked each time the content is needed; it must return static data
    and have no side effects.
    """

    __slots__ = ("fn",)

    def __init__(self, fn: Callable[[], E]) -> None:
        self.fn = fn

    def materialize(self) -> Any:
        return _own(self.fn())

    def __eq__(self, other: object) -> bool:
        # Also compares against owned data, so (name, FnEncode) pairs equal decoded pairs.
        return _freeze(self, True) == _freeze(other, True)

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return repr(self.materialize())


class DefaultByte(Protocol):
    """Source of a lazily produced byte value (e.g. a storage default)."""

    def default_byte(self) -> bytes: ...


class DefaultByteGetter:
    """Descriptor wrapping a DefaultByte source; materializes to ``bytes``."""

    __slots__ = ("source",)

    def __init__(self, source: DefaultByte) -> None:
        self.source = source

    def materialize(self) -> bytes:
        return bytes(self.source.default_byte())

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, DefaultByteGetter):
            return NotImplemented
        return self.materialize() == other.materialize()

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return repr(self.materialize())


def materialize_descriptor(descriptor: Any) -> Any:
    """Force a descriptor (FnEncode, DefaultByteGetter or static data) into owned form."""
    if isinstance(descriptor, (FnEncode, DefaultByteGetter)):
        return descriptor.materialize()
    return _own(descriptor)


def to_plain(obj: Any, mode: str = "python") -> Any:
    """
    Convert cells, descriptors and records into plain Python data.

    In ``json`` mode bytes become ``0x``-prefixed hex strings and enums their values.
    """
    if isinstance(obj, DecodeDifferent):
        return to_plain(obj.materialize(), mode)
    if isinstance(obj, (FnEncode, DefaultByteGetter)):
        return to_plain(obj.materialize(), mode)
    if isinstance(obj, BaseModel):
        return obj.model_dump(mode=mode)
    if isinstance(obj, (list, tuple)):
        return [to_plain(x, mode) for x in obj]
    if isinstance(obj, (bytes, bytearray)):
        return "0x" + bytes(obj).hex() if mode == "json" else bytes(obj)
    if isinstance(obj, Enum) and mode == "json":
        return obj.value
    return obj


class DecodeDifferent(Generic[D, M]):
    """
    Cell holding either a descriptor (static) or a materialized (decoded, owned) value.

    Build with `from_descriptor` or `from_decoded`. Two cells are equal when their
    materialized values are equal, regardless of which representation each holds.

    Attributes:
        is_descriptor (bool): True when the cell holds a descriptor.
        is_decoded (bool): True when the cell holds a materialized value.
    """

    __slots__ = ("_value", "_is_descriptor")

    def __init__(self, value: D | M, *, descriptor: bool) -> None:
        # Decoded content is frozen so a built record cannot change through a shared list.
        self._value = value if descriptor else _freeze(value)
        self._is_descriptor = descriptor

    @classmethod
    def from_descriptor(cls, descriptor: D) -> DecodeDifferent[D, M]:
        return cls(descriptor, descriptor=True)

    @classmethod
    def from_decoded(cls, value: M) -> DecodeDifferent[D, M]:
        return cls(value, descriptor=False)

    @property
    def is_descriptor(self) -> bool:
        return self._is_descriptor

    @property
    def is_decoded(self) -> bool:
        return not self._is_descriptor

    @property
    def raw(self) -> D | M:
        """The held descriptor, or the decoded value in its frozen (tuple) form."""
        return self._value

    def materialize(self) -> M:
        """Return the effective value as a fresh owned copy; sequences come back as lists."""
        if self._is_descriptor:
            return materialize_descriptor(self._value)
        return _own(self._value)

    def encode_to(self, w: ByteWriter, encode_item: Callable[[ByteWriter, M], None]) -> None:
        """Write the materialized payload with `encode_item`; the representation is not written."""
        encode_item(w, self.materialize())

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, DecodeDifferent):
            return NotImplemented
        return _freeze(self.materialize(), True) == _freeze(other.materialize(), True)

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return repr(self.materialize())

    @classmethod
    def __get_pydantic_core_schema__(cls, source_type: Any, handler: Any) -> core_schema.CoreSchema:
        # Decoded content is validated against the materialized type argument M.
        args = get_args(source_type)
        if len(args) != 2:
            content = core_schema.any_schema()
        elif args[1] is bytes:
            content = core_schema.no_info_before_validator_function(_bytes_from_hex, core_schema.bytes_schema())
        else:
            content = handler.generate_schema(args[1])
        return core_schema.no_info_wrap_validator_function(
            _coerce_cell,
            content,
            serialization=core_schema.plain_serializer_function_ser_schema(
                _serialize_cell,
                info_arg=True,
                when_used="always",
            ),
        )


def _bytes_from_hex(value: Any) -> Any:
    # JSON dumps carry bytes as 0x-prefixed hex.
    if isinstance(value, str) and value.startswith("0x"):
        try:
            return bytes.fromhex(value[2:])
        except ValueError as exc:
            raise ValueError(f"invalid hex bytes {value!r}") from exc
    return value


def _coerce_cell(value: Any, validate_content: Callable[[Any], Any]) -> DecodeDifferent[Any, Any]:
    if isinstance(value, DecodeDifferent):
        if value.is_descriptor:
            return value
        return DecodeDifferent.from_decoded(validate_content(value.raw))
    if value is None:
        raise ValueError("a metadata cell cannot hold None")
    if isinstance(value, (FnEncode, DefaultByteGetter, tuple)):
        return DecodeDifferent.from_descriptor(value)
    return DecodeDifferent.from_decoded(validate_content(value))


def _serialize_cell(cell: DecodeDifferent[Any, Any], info: Any) -> Any:
    return to_plain(cell, info.mode)


DecodeDifferentStr = DecodeDifferent[str, str]
DecodeDifferentArray = DecodeDifferent[tuple[T, ...], list[T]]
FnArray = DecodeDifferent[FnEncode[tuple[T, ...]], list[T]]
ByteGetter = DecodeDifferent[DefaultByteGetter, bytes]
