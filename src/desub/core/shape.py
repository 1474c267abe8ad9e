"""
Minimal type shapes and shape-driven encoding, decoding and conformance of generic values.

The runtime's type registry maps each type to a shape: a primitive kind, a composite field
list, a variant list, or a sequence element type. This module holds the local form of that
contract so values can be built from bytes, written back, and checked against an expected
type.

Responsibilities
- Describe shapes as frozen dataclasses (PrimitiveShape, CompactShape, CompositeShape,
  VariantShape, SequenceShape, BitSequenceShape).
- decode_value: walk a shape and a byte cursor in lock-step to build a Value.
- encode_value: the inverse, after checking the value conforms to the shape.
- check_conformance: validate an already-built Value against a shape.

Notes
- Decoding is all-or-nothing; recursion is bounded by `max_depth`.
- Bit sequences use a u8 store with least-significant-bit-first order and decode to a
  Sequence of bool primitives.
- Variant arms are matched on their discriminant index on the wire and on their tag in
  memory.

Examples
--------
>>> from desub.core.shape import CompositeShape, PrimitiveShape, decode_value, encode_value
>>> from desub.core.value import PrimitiveKind
>>> point = CompositeShape.named([("x", PrimitiveShape(PrimitiveKind.U8)),
...                               ("y", PrimitiveShape(PrimitiveKind.BOOL))])
>>> v = decode_value(b"\\x07\\x01", point)
>>> v
{ x: 7, y: true }
>>> encode_value(v, point)
b'\\x07\\x01'
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Union

from .codec import ByteReader, ByteWriter
from .constants import DEFAULT_MAX_DEPTH, U256_BYTES
from .errors import ConformanceError, MalformedField, SchemaError
from .value import (
    NamedComposite,
    Primitive,
    PrimitiveKind,
    Sequence,
    UnnamedComposite,
    Value,
    Variant,
)

__all__ = [
    "PrimitiveShape",
    "CompactShape",
    "CompositeShape",
    "VariantArm",
    "VariantShape",
    "SequenceShape",
    "BitSequenceShape",
    "Shape",
    "decode_value",
    "encode_value",
    "check_conformance",
]


@dataclass(frozen=True)
class PrimitiveShape:
    """A fixed-width scalar (or string/char/bool)."""

    kind: PrimitiveKind


@dataclass(frozen=True)
class CompactShape:
    """An unsigned integer kind stored in compact form on the wire."""

    kind: PrimitiveKind

    def __post_init__(self) -> None:
        if not self.kind.is_integer or self.kind.signed:
            raise SchemaError(f"compact encoding requires an unsigned integer kind, got {self.kind.value}")


@dataclass(frozen=True)
class CompositeShape:
    """
    Struct or tuple shape.

    Attributes:
        fields (tuple[tuple[str | None, Shape], ...]): Ordered fields; labels are all
            strings for a struct and all None for a tuple.
    """

    fields: tuple[tuple[str | None, Shape], ...] = ()

    def __post_init__(self) -> None:
        fields = tuple((label, s) for label, s in self.fields)
        labelled = {label is not None for label, _ in fields}
        if len(labelled) > 1:
            raise SchemaError("composite shape cannot mix named and unnamed fields")
        object.__setattr__(self, "fields", fields)

    @classmethod
    def named(cls, fields: Iterable[tuple[str, Shape]]) -> CompositeShape:
        return cls(tuple((str(label), s) for label, s in fields))

    @classmethod
    def unnamed(cls, shapes: Iterable[Shape]) -> CompositeShape:
        return cls(tuple((None, s) for s in shapes))

    @property
    def is_named(self) -> bool:
        return bool(self.fields) and self.fields[0][0] is not None


@dataclass(frozen=True)
class VariantArm:
    """One arm of a variant shape; `index` defaults to the arm's position."""

    name: str
    fields: CompositeShape = field(default_factory=CompositeShape)
    index: int | None = None


@dataclass(frozen=True)
class VariantShape:
    """Sum type shape: an ordered list of arms, discriminated by one byte on the wire."""

    arms: tuple[VariantArm, ...]

    def __post_init__(self) -> None:
        arms = tuple(
            arm if arm.index is not None else VariantArm(arm.name, arm.fields, i)
            for i, arm in enumerate(self.arms)
        )
        indices = [arm.index for arm in arms]
        bad = [i for i in indices if not 0 <= i <= 255]
        if bad:
            raise SchemaError(f"variant indices must fit one byte, got {bad}")
        if len(set(indices)) != len(indices):
            raise SchemaError(f"duplicate variant indices in {indices}")
        object.__setattr__(self, "arms", arms)

    def by_index(self, index: int) -> VariantArm | None:
        for arm in self.arms:
            if arm.index == index:
                return arm
        return None

    def by_name(self, name: str) -> VariantArm | None:
        for arm in self.arms:
            if arm.name == name:
                return arm
        return None


@dataclass(frozen=True)
class SequenceShape:
    """Vector (compact length prefix) or fixed-length array when `length` is set."""

    element: Shape
    length: int | None = None


@dataclass(frozen=True)
class BitSequenceShape:
    """Bit-vector with a u8 store and Lsb0 order."""


Shape = Union[PrimitiveShape, CompactShape, CompositeShape, VariantShape, SequenceShape, BitSequenceShape]


# ============================================================================
# Decoding
# ============================================================================


def _decode_primitive(r: ByteReader, kind: PrimitiveKind) -> Primitive:
    if kind is PrimitiveKind.BOOL:
        return Primitive(kind, r.bool())
    if kind is PrimitiveKind.CHAR:
        return Primitive(kind, r.char())
    if kind is PrimitiveKind.STR:
        return Primitive(kind, r.str())
    if kind.is_big:
        return Primitive(kind, r.read(U256_BYTES))
    if kind.signed:
        return Primitive(kind, r.sint(kind.byte_width))
    return Primitive(kind, r.uint(kind.byte_width))


def _decode_compact(r: ByteReader, kind: PrimitiveKind) -> Primitive:
    start = r.offset
    n = r.compact()
    if n.bit_length() > kind.byte_width * 8:
        raise MalformedField(f"compact value {n} does not fit {kind.value}", offset=start)
    if kind.is_big:
        return Primitive(kind, n.to_bytes(U256_BYTES, "little"))
    return Primitive(kind, n)


def _decode_composite(r: ByteReader, shape: CompositeShape, depth: int, max_depth: int):
    if shape.is_named:
        pairs = []
        for label, s in shape.fields:
            with r.field(str(label)):
                pairs.append((str(label), _decode(r, s, depth + 1, max_depth)))
        return NamedComposite(tuple(pairs))
    vals = []
    for i, (_, s) in enumerate(shape.fields):
        with r.field(str(i)):
            vals.append(_decode(r, s, depth + 1, max_depth))
    return UnnamedComposite(tuple(vals))


def _decode_bits(r: ByteReader) -> Sequence:
    n = r.compact()
    raw = r.read((n + 7) // 8)
    if n % 8 and raw[-1] >> (n % 8):
        raise MalformedField("non-zero padding bits in bit sequence", offset=r.offset - 1)
    bits = [Primitive(PrimitiveKind.BOOL, bool(raw[i // 8] >> (i % 8) & 1)) for i in range(n)]
    return Sequence(tuple(bits))


def _decode(r: ByteReader, shape: Shape, depth: int, max_depth: int) -> Value:
    if depth > max_depth:
        raise MalformedField(f"recursion depth exceeds {max_depth}", offset=r.offset)
    if isinstance(shape, PrimitiveShape):
        return _decode_primitive(r, shape.kind)
    if isinstance(shape, CompactShape):
        return _decode_compact(r, shape.kind)
    if isinstance(shape, CompositeShape):
        return _decode_composite(r, shape, depth, max_depth)
    if isinstance(shape, VariantShape):
        start = r.offset
        idx = r.u8()
        arm = shape.by_index(idx)
        if arm is None:
            raise MalformedField(f"unknown variant index {idx}", offset=start)
        with r.field(arm.name):
            return Variant(arm.name, _decode_composite(r, arm.fields, depth, max_depth))
    if isinstance(shape, SequenceShape):
        n = r.compact() if shape.length is None else shape.length
        vals = []
        for i in range(n):
            with r.field(f"[{i}]"):
                vals.append(_decode(r, shape.element, depth + 1, max_depth))
        return Sequence(tuple(vals))
    if isinstance(shape, BitSequenceShape):
        return _decode_bits(r)
    raise SchemaError(f"unknown shape {type(shape).__name__}")


def decode_value(
    data: bytes | ByteReader,
    shape: Shape,
    *,
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> Value:
    """
    Decode a value of the given shape.

    Args:
        data (bytes | ByteReader): Input bytes (must be fully consumed) or a cursor
            (left positioned after the value).
        shape (Shape): Expected shape.
        max_depth (int): Maximum nesting depth.

    Returns:
        Value: The decoded value tree.

    Raises:
        TruncatedInput: If the input ends early.
        MalformedField: If bytes are invalid, trailing bytes remain, or depth is exceeded.
    """
    if isinstance(data, ByteReader):
        return _decode(data, shape, 0, max_depth)
    r = ByteReader(data)
    v = _decode(r, shape, 0, max_depth)
    r.expect_end()
    return v


# ============================================================================
# Conformance
# ============================================================================


def _conform(value: Value, shape: Shape, path: str) -> None:
    where = path or "<root>"
    if isinstance(shape, (PrimitiveShape, CompactShape)):
        if not isinstance(value, Primitive) or value.kind is not shape.kind:
            raise ConformanceError(f"expected {shape.kind.value} primitive, got {value!r}", where)
        return
    if isinstance(shape, CompositeShape):
        _conform_composite(value, shape, path)
        return
    if isinstance(shape, VariantShape):
        if not isinstance(value, Variant):
            raise ConformanceError(f"expected a variant, got {value!r}", where)
        arm = shape.by_name(value.tag)
        if arm is None:
            raise ConformanceError(f"unknown variant {value.tag!r}", where)
        _conform_composite(value.fields, arm.fields, f"{path}::{value.tag}")
        return
    if isinstance(shape, SequenceShape):
        if not isinstance(value, Sequence):
            raise ConformanceError(f"expected a sequence, got {value!r}", where)
        if shape.length is not None and len(value) != shape.length:
            raise ConformanceError(f"expected {shape.length} element(s), got {len(value)}", where)
        for i, v in enumerate(value.values):
            _conform(v, shape.element, f"{path}[{i}]")
        return
    if isinstance(shape, BitSequenceShape):
        if not isinstance(value, Sequence):
            raise ConformanceError(f"expected a bit sequence, got {value!r}", where)
        for i, v in enumerate(value.values):
            if not isinstance(v, Primitive) or v.kind is not PrimitiveKind.BOOL:
                raise ConformanceError(f"expected bool bit, got {v!r}", f"{path}[{i}]")
        return
    raise SchemaError(f"unknown shape {type(shape).__name__}")


def _conform_composite(value: Value, shape: CompositeShape, path: str) -> None:
    where = path or "<root>"
    if not shape.fields:
        if not isinstance(value, (NamedComposite, UnnamedComposite)) or len(value):
            raise ConformanceError(f"expected an empty composite, got {value!r}", where)
        return
    if shape.is_named:
        if not isinstance(value, NamedComposite):
            raise ConformanceError(f"expected a named composite, got {value!r}", where)
        expected = tuple(label for label, _ in shape.fields)
        if value.labels != expected:
            raise ConformanceError(f"expected fields {list(expected)}, got {list(value.labels)}", where)
        for (label, v), (_, s) in zip(value.fields, shape.fields):
            _conform(v, s, f"{path}.{label}" if path else label)
        return
    if not isinstance(value, UnnamedComposite):
        raise ConformanceError(f"expected an unnamed composite, got {value!r}", where)
    if len(value) != len(shape.fields):
        raise ConformanceError(f"expected {len(shape.fields)} field(s), got {len(value)}", where)
    for i, (v, (_, s)) in enumerate(zip(value.values, shape.fields)):
        _conform(v, s, f"{path}.{i}" if path else str(i))


def check_conformance(value: Value, shape: Shape) -> None:
    """
    Validate that a value matches a shape.

    Raises:
        ConformanceError: On the first mismatch, with the path where it was found.
    """
    _conform(value, shape, "")


# ============================================================================
# Encoding
# ============================================================================


def _encode_primitive(w: ByteWriter, p: Primitive) -> None:
    kind = p.kind
    if kind is PrimitiveKind.BOOL:
        w.bool(bool(p.value))
    elif kind is PrimitiveKind.CHAR:
        w.char(str(p.value))
    elif kind is PrimitiveKind.STR:
        w.str(str(p.value))
    elif kind.is_big:
        w.write(p.value)  # type: ignore[arg-type]
    elif kind.signed:
        w.sint(int(p.value), kind.byte_width)
    else:
        w.uint(int(p.value), kind.byte_width)


def _encode(w: ByteWriter, value: Value, shape: Shape) -> None:
    if isinstance(shape, PrimitiveShape):
        _encode_primitive(w, value)  # type: ignore[arg-type]
    elif isinstance(shape, CompactShape):
        w.compact(value.as_int())  # type: ignore[union-attr]
    elif isinstance(shape, CompositeShape):
        vals = value.values if isinstance(value, UnnamedComposite) else [v for _, v in value.fields]  # type: ignore[union-attr]
        for v, (_, s) in zip(vals, shape.fields):
            _encode(w, v, s)
    elif isinstance(shape, VariantShape):
        arm = shape.by_name(value.tag)  # type: ignore[union-attr]
        w.u8(arm.index)  # type: ignore[union-attr,arg-type]
        _encode(w, value.fields, arm.fields)  # type: ignore[union-attr]
    elif isinstance(shape, SequenceShape):
        if shape.length is None:
            w.compact(len(value))  # type: ignore[arg-type]
        for v in value.values:  # type: ignore[union-attr]
            _encode(w, v, shape.element)
    elif isinstance(shape, BitSequenceShape):
        bits = [bool(v.value) for v in value.values]  # type: ignore[union-attr]
        store = bytearray((len(bits) + 7) // 8)
        for i, bit in enumerate(bits):
            if bit:
                store[i // 8] |= 1 << (i % 8)
        w.compact(len(bits))
        w.write(store)


def encode_value(value: Value, shape: Shape) -> bytes:
    """
    Encode a value with the given shape.

    Raises:
        ConformanceError: If the value does not match the shape.
    """
    check_conformance(value, shape)
    w = ByteWriter()
    _encode(w, value, shape)
    return w.getvalue()
