"""
Generic value model for decoded runtime data.

A decoded instance of any runtime-described type is held as one of exactly four
alternatives: a composite (struct or tuple), a variant (one arm of an enum), a sequence
(arrays, vectors and bit-vectors), or a primitive scalar. Trees are immutable, own all
their descendants, and never contain unresolved references.

Responsibilities
- Define the closed value union (Composite | Variant | Sequence | Primitive).
- Validate primitives at construction (integer ranges, 32-byte big integers, single-code-point chars).
- Classify values and render them in a form mirroring the syntax of the type they represent.
- Provide structural equality: same alternative and recursively equal contents.

Notes
- Named composites keep their (label, value) pairs ordered; label order matters for equality.
- The 256-bit kinds are stored as 32 little-endian two's-complement bytes and render as
  ``BigNum([...])`` so they are never confused with a sequence of bytes.
- Zero-IO (stdlib only).

Examples
--------
>>> from desub.core.value import Variant, UnnamedComposite, u32, render
>>> render(Variant("Some", UnnamedComposite([u32(7)])))
'Some(7)'
>>> render(Variant("None"))
'None'
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from enum import Enum
from typing import Union

from .constants import U256_BYTES
from .errors import SchemaError

__all__ = [
    "ValueKind",
    "PrimitiveKind",
    "Primitive",
    "NamedComposite",
    "UnnamedComposite",
    "Variant",
    "Sequence",
    "Value",
    "Composite",
    "classify",
    "render",
    "is_value",
    # primitive constructors
    "boolean",
    "char",
    "string",
    "u8",
    "u16",
    "u32",
    "u64",
    "u128",
    "u256",
    "i8",
    "i16",
    "i32",
    "i64",
    "i128",
    "i256",
]


class ValueKind(str, Enum):
    """The four alternatives of the generic value union."""

    COMPOSITE = "composite"
    VARIANT = "variant"
    SEQUENCE = "sequence"
    PRIMITIVE = "primitive"


class PrimitiveKind(str, Enum):
    """The fifteen scalar kinds a primitive value can hold."""

    BOOL = "bool"
    CHAR = "char"
    STR = "str"
    U8 = "u8"
    U16 = "u16"
    U32 = "u32"
    U64 = "u64"
    U128 = "u128"
    U256 = "u256"
    I8 = "i8"
    I16 = "i16"
    I32 = "i32"
    I64 = "i64"
    I128 = "i128"
    I256 = "i256"

    @property
    def is_integer(self) -> bool:
        return self not in (PrimitiveKind.BOOL, PrimitiveKind.CHAR, PrimitiveKind.STR)

    @property
    def is_big(self) -> bool:
        return self in (PrimitiveKind.U256, PrimitiveKind.I256)

    @property
    def signed(self) -> bool:
        return self.value.startswith("i")

    @property
    def byte_width(self) -> int:
        """Fixed wire width in bytes for integer kinds (0 for non-integers)."""
        if not self.is_integer:
            return 0
        return int(self.value[1:]) // 8


def _int_bounds(kind: PrimitiveKind) -> tuple[int, int]:
    bits = kind.byte_width * 8
    if kind.signed:
        return -(1 << (bits - 1)), (1 << (bits - 1)) - 1
    return 0, (1 << bits) - 1


# ============================================================================
# Primitive
# ============================================================================


@dataclass(frozen=True, slots=True, repr=False)
class Primitive:
    """
    A scalar value tagged with its primitive kind.

    Attributes:
        kind (PrimitiveKind): Which of the fifteen scalar kinds this is.
        value (bool | str | int | bytes): Payload. ``bytes`` of length 32 for the
            256-bit kinds, ``int`` for the other integer kinds, a one-character ``str``
            for ``char``.

    Raises:
        SchemaError: If the payload does not fit the kind.

    Examples:
        >>> from desub.core.value import Primitive, PrimitiveKind
        >>> Primitive(PrimitiveKind.U8, 255)
        255
        >>> Primitive(PrimitiveKind.U8, 256)
        Traceback (most recent call last):
        ...
        desub.core.errors.SchemaError: u8 value 256 out of range [0, 255]
    """

    kind: PrimitiveKind
    value: bool | str | int | bytes

    def __post_init__(self) -> None:
        kind = PrimitiveKind(self.kind)
        object.__setattr__(self, "kind", kind)
        v = self.value
        if kind is PrimitiveKind.BOOL:
            if not isinstance(v, bool):
                raise SchemaError(f"bool primitive requires a bool, got {v!r}")
        elif kind is PrimitiveKind.CHAR:
            if not isinstance(v, str) or len(v) != 1:
                raise SchemaError(f"char primitive requires exactly one code point, got {v!r}")
        elif kind is PrimitiveKind.STR:
            if not isinstance(v, str):
                raise SchemaError(f"str primitive requires a str, got {v!r}")
        elif kind.is_big:
            if not isinstance(v, (bytes, bytearray)) or len(v) != U256_BYTES:
                raise SchemaError(f"{kind.value} primitive requires {U256_BYTES} bytes, got {v!r}")
            object.__setattr__(self, "value", bytes(v))
        else:
            if isinstance(v, bool) or not isinstance(v, int):
                raise SchemaError(f"{kind.value} primitive requires an int, got {v!r}")
            lo, hi = _int_bounds(kind)
            if not lo <= v <= hi:
                raise SchemaError(f"{kind.value} value {v} out of range [{lo}, {hi}]")

    @property
    def value_kind(self) -> ValueKind:
        return ValueKind.PRIMITIVE

    def as_int(self) -> int:
        """Return the numeric value of an integer kind (decoding 256-bit byte arrays)."""
        if not self.kind.is_integer:
            raise SchemaError(f"{self.kind.value} primitive is not an integer")
        if self.kind.is_big:
            return int.from_bytes(self.value, "little", signed=self.kind.signed)  # type: ignore[arg-type]
        return int(self.value)

    def __repr__(self) -> str:
        return render(self)


def _big(kind: PrimitiveKind, v: int | bytes) -> Primitive:
    if isinstance(v, (bytes, bytearray)):
        return Primitive(kind, bytes(v))
    lo, hi = _int_bounds(kind)
    if isinstance(v, bool) or not isinstance(v, int) or not lo <= v <= hi:
        raise SchemaError(f"{kind.value} value {v!r} out of range [{lo}, {hi}]")
    return Primitive(kind, v.to_bytes(U256_BYTES, "little", signed=kind.signed))


def boolean(v: bool) -> Primitive:
    return Primitive(PrimitiveKind.BOOL, v)


def char(v: str) -> Primitive:
    return Primitive(PrimitiveKind.CHAR, v)


def string(v: str) -> Primitive:
    return Primitive(PrimitiveKind.STR, v)


def u8(v: int) -> Primitive:
    return Primitive(PrimitiveKind.U8, v)


def u16(v: int) -> Primitive:
    return Primitive(PrimitiveKind.U16, v)


def u32(v: int) -> Primitive:
    return Primitive(PrimitiveKind.U32, v)


def u64(v: int) -> Primitive:
    return Primitive(PrimitiveKind.U64, v)


def u128(v: int) -> Primitive:
    return Primitive(PrimitiveKind.U128, v)


def u256(v: int | bytes) -> Primitive:
    """Build a U256 from an int in [0, 2**256) or from 32 little-endian bytes."""
    return _big(PrimitiveKind.U256, v)


def i8(v: int) -> Primitive:
    return Primitive(PrimitiveKind.I8, v)


def i16(v: int) -> Primitive:
    return Primitive(PrimitiveKind.I16, v)


def i32(v: int) -> Primitive:
    return Primitive(PrimitiveKind.I32, v)


def i64(v: int) -> Primitive:
    return Primitive(PrimitiveKind.I64, v)


def i128(v: int) -> Primitive:
    return Primitive(PrimitiveKind.I128, v)


def i256(v: int | bytes) -> Primitive:
    """Build an I256 from an int in [-2**255, 2**255) or from 32 little-endian bytes."""
    return _big(PrimitiveKind.I256, v)


# ============================================================================
# Composite / Variant / Sequence
# ============================================================================


def _check_value(v: object, where: str) -> None:
    if not is_value(v):
        raise SchemaError(f"{where} must hold a generic value, got {type(v).__name__}")


@dataclass(frozen=True, slots=True, repr=False)
class NamedComposite:
    """
    Struct-like composite: ordered (label, value) pairs, e.g. ``{ foo: 2, bar: false }``.

    Labels need not be unique; keeping them unique is the producer's responsibility.
    """

    fields: tuple[tuple[str, Value], ...] = ()

    def __post_init__(self) -> None:
        pairs = []
        for pair in self.fields:
            label, v = pair
            _check_value(v, f"field {label!r}")
            pairs.append((str(label), v))
        object.__setattr__(self, "fields", tuple(pairs))

    @property
    def value_kind(self) -> ValueKind:
        return ValueKind.COMPOSITE

    @property
    def labels(self) -> tuple[str, ...]:
        return tuple(label for label, _ in self.fields)

    def get(self, label: str) -> Value | None:
        """Return the first value stored under `label`, or None."""
        for name, v in self.fields:
            if name == label:
                return v
        return None

    def __len__(self) -> int:
        return len(self.fields)

    def __repr__(self) -> str:
        return render(self)


@dataclass(frozen=True, slots=True, repr=False)
class UnnamedComposite:
    """Tuple-like composite: positional values, e.g. ``(2, false)``."""

    values: tuple[Value, ...] = ()

    def __post_init__(self) -> None:
        vals = tuple(self.values)
        for i, v in enumerate(vals):
            _check_value(v, f"position {i}")
        object.__setattr__(self, "values", vals)

    @property
    def value_kind(self) -> ValueKind:
        return ValueKind.COMPOSITE

    def __len__(self) -> int:
        return len(self.values)

    def __iter__(self) -> Iterator[Value]:
        return iter(self.values)

    def __repr__(self) -> str:
        return render(self)


Composite = Union[NamedComposite, UnnamedComposite]


@dataclass(frozen=True, slots=True, repr=False)
class Variant:
    """
    One arm of a sum type: a non-empty tag plus the arm's fields.

    Attributes:
        tag (str): Variant name; never empty.
        fields (Composite): Fields of the arm; an empty composite for unit variants.

    Raises:
        SchemaError: If the tag is empty or `fields` is not a composite.
    """

    tag: str
    fields: Composite = field(default_factory=UnnamedComposite)

    def __post_init__(self) -> None:
        if not isinstance(self.tag, str) or not self.tag:
            raise SchemaError(f"variant tag must be a non-empty string, got {self.tag!r}")
        if not isinstance(self.fields, (NamedComposite, UnnamedComposite)):
            raise SchemaError(
                f"variant {self.tag!r} fields must be a composite, got {type(self.fields).__name__}"
            )

    @property
    def value_kind(self) -> ValueKind:
        return ValueKind.VARIANT

    @property
    def is_unit(self) -> bool:
        return len(self.fields) == 0

    def __repr__(self) -> str:
        return render(self)


@dataclass(frozen=True, slots=True, repr=False)
class Sequence:
    """
    Ordered list of values (arrays, vectors, bit-vectors).

    Elements are not required to share a type at this layer.
    """

    values: tuple[Value, ...] = ()

    def __post_init__(self) -> None:
        vals = tuple(self.values)
        for i, v in enumerate(vals):
            _check_value(v, f"element {i}")
        object.__setattr__(self, "values", vals)

    @property
    def value_kind(self) -> ValueKind:
        return ValueKind.SEQUENCE

    def __len__(self) -> int:
        return len(self.values)

    def __iter__(self) -> Iterator[Value]:
        return iter(self.values)

    def __getitem__(self, index: int) -> Value:
        return self.values[index]

    def __repr__(self) -> str:
        return render(self)


Value = Union[NamedComposite, UnnamedComposite, Variant, Sequence, Primitive]

_VALUE_TYPES = (NamedComposite, UnnamedComposite, Variant, Sequence, Primitive)


def is_value(obj: object) -> bool:
    """Return True if `obj` is one of the generic value alternatives."""
    return isinstance(obj, _VALUE_TYPES)


def classify(value: Value) -> tuple[ValueKind, PrimitiveKind | None]:
    """
    Determine the alternative of a value and, for primitives, its scalar kind.

    Args:
        value (Value): Any generic value.

    Returns:
        tuple[ValueKind, PrimitiveKind | None]: The alternative, plus the primitive kind
        (None for non-primitives).

    Examples:
        >>> from desub.core.value import classify, u32, Sequence
        >>> classify(u32(1))
        (<ValueKind.PRIMITIVE: 'primitive'>, <PrimitiveKind.U32: 'u32'>)
        >>> classify(Sequence([]))[0].value
        'sequence'
    """
    if isinstance(value, Primitive):
        return ValueKind.PRIMITIVE, value.kind
    if isinstance(value, (NamedComposite, UnnamedComposite)):
        return ValueKind.COMPOSITE, None
    if isinstance(value, Variant):
        return ValueKind.VARIANT, None
    if isinstance(value, Sequence):
        return ValueKind.SEQUENCE, None
    raise SchemaError(f"not a generic value: {type(value).__name__}")


# ============================================================================
# Rendering
# ============================================================================

_ESCAPES = {"\\": "\\\\", "\n": "\\n", "\r": "\\r", "\t": "\\t", "\0": "\\0"}


def _escape(s: str, quote: str) -> str:
    out = []
    for c in s:
        if c in _ESCAPES:
            out.append(_ESCAPES[c])
        elif c == quote:
            out.append("\\" + c)
        elif ord(c) < 0x20 or ord(c) == 0x7F:
            out.append(f"\\u{{{ord(c):x}}}")
        else:
            out.append(c)
    return "".join(out)


def _render_primitive(p: Primitive) -> str:
    k = p.kind
    if k is PrimitiveKind.BOOL:
        return "true" if p.value else "false"
    if k is PrimitiveKind.CHAR:
        return "'" + _escape(str(p.value), "'") + "'"
    if k is PrimitiveKind.STR:
        return '"' + _escape(str(p.value), '"') + '"'
    if k.is_big:
        return "BigNum([" + ", ".join(str(b) for b in p.value) + "])"  # type: ignore[union-attr]
    return str(p.value)


def _join(items: Iterable[str]) -> str:
    return ", ".join(items)


def _render_named(c: NamedComposite) -> str:
    if not c.fields:
        return "{}"
    return "{ " + _join(f"{label}: {render(v)}" for label, v in c.fields) + " }"


def _render_unnamed(c: UnnamedComposite) -> str:
    return "(" + _join(render(v) for v in c.values) + ")"


def render(value: Value) -> str:
    """
    Render a value in a canonical, human readable form.

    Struct-like composites render as ``{ a: 1 }``, tuple-like composites as ``(1, 2)``,
    variants as ``Tag(…)`` / ``Tag { … }`` (bare ``Tag`` for unit variants), sequences as
    ``[…]`` and 256-bit integers as ``BigNum([…])``.

    Args:
        value (Value): Any generic value.

    Returns:
        str: Deterministic rendering.
    """
    if isinstance(value, Primitive):
        return _render_primitive(value)
    if isinstance(value, NamedComposite):
        return _render_named(value)
    if isinstance(value, UnnamedComposite):
        return _render_unnamed(value)
    if isinstance(value, Variant):
        if value.is_unit:
            return value.tag
        if isinstance(value.fields, NamedComposite):
            return f"{value.tag} {_render_named(value.fields)}"
        return value.tag + _render_unnamed(value.fields)
    if isinstance(value, Sequence):
        return "[" + _join(render(v) for v in value.values) + "]"
    raise SchemaError(f"not a generic value: {type(value).__name__}")
