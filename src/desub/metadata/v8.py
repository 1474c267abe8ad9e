"""
Generation-8 runtime metadata records: modules, storage, calls, events, constants, errors.

Pydantic v2 models for the current metadata generation. Each record keeps its fields in
wire order and holds every field in a DecodeDifferent cell, so records built from static
descriptors and records decoded from bytes encode identically and compare equal.

Responsibilities
- Define the frozen record models and the storage enums (hasher, modifier, entry type).
- Encode records (`encode_to` / `encode`) and decode them (`decode_from` / `decode`) with
  the SCALE layout from desub.core.codec.
- Provide lookup helpers by name (modules, calls, storage entries, constants).

Style
- Field declaration order is the wire order; reordering fields is a new generation.
- Decoding is all-or-nothing per record; errors carry the field path.
- Hasher selection is metadata only; no hashing happens here.

Examples
--------
>>> from desub.metadata.v8 import ErrorMetadata
>>> err = ErrorMetadata(name="InsufficientBalance", documentation=["Not enough funds."])
>>> ErrorMetadata.decode(err.encode()) == err
True
"""

from __future__ import annotations

from collections.abc import Iterable
from enum import Enum
from typing import TYPE_CHECKING, Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

from desub.core.codec import ByteReader, ByteWriter
from desub.core.errors import MalformedField

from .decode_different import (
    ByteGetter,
    DecodeDifferent,
    DecodeDifferentArray,
    DecodeDifferentStr,
    FnArray,
    FnEncode,
    materialize_descriptor,
)

if TYPE_CHECKING:
    from .envelope import RuntimeMetadataPrefixed

__all__ = [
    "StorageHasher",
    "StorageEntryModifier",
    "StoragePlain",
    "StorageMap",
    "StorageDoubleMap",
    "StorageEntryType",
    "StorageEntryMetadata",
    "StorageMetadata",
    "FunctionArgumentMetadata",
    "FunctionMetadata",
    "EventMetadata",
    "OuterEventMetadata",
    "ModuleConstantMetadata",
    "ErrorMetadata",
    "ModuleMetadata",
    "RuntimeMetadataV8",
]


# ============================================================================
# Cell helpers
# ============================================================================


def _decoded(value: Any) -> DecodeDifferent[Any, Any]:
    return DecodeDifferent.from_decoded(value)


def _text(cell: DecodeDifferent[Any, Any]) -> str:
    return cell.materialize()


def _write_str_list(w: ByteWriter, items: Iterable[str]) -> None:
    w.vec(items, ByteWriter.str)


def _write_record(w: ByteWriter, record: _Record) -> None:
    record.encode_to(w)


def _write_records(w: ByteWriter, records: Iterable[_Record]) -> None:
    w.vec(records, _write_record)


def _read_str_list(r: ByteReader) -> list[str]:
    return r.vec(ByteReader.str)


def _find(items: Iterable[Any], name: str) -> Any | None:
    for item in items:
        if _text(item.name) == name:
            return item
    return None


class _Record(BaseModel):
    """Base for wire records: frozen, no extra fields, bytes in and out."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    def encode_to(self, w: ByteWriter) -> None:  # pragma: no cover - abstract
        raise NotImplementedError

    @classmethod
    def decode_from(cls, r: ByteReader) -> Any:  # pragma: no cover - abstract
        raise NotImplementedError

    def encode(self) -> bytes:
        """Return the SCALE encoding of this record."""
        w = ByteWriter()
        self.encode_to(w)
        return w.getvalue()

    @classmethod
    def decode(cls, data: bytes) -> Any:
        """Decode a record from `data`, requiring every byte to be consumed."""
        r = ByteReader(data)
        out = cls.decode_from(r)
        r.expect_end()
        return out


# ============================================================================
# Storage enums
# ============================================================================


class StorageHasher(str, Enum):
    """
    Hash algorithm used to derive the key suffix of a storage map entry.

    Members are declared in wire order; the discriminant is the declaration index.
    """

    BLAKE2_128 = "blake2_128"
    BLAKE2_256 = "blake2_256"
    TWOX128 = "twox128"
    TWOX256 = "twox256"
    TWOX64_CONCAT = "twox64_concat"

    @property
    def index(self) -> int:
        return _HASHERS.index(self)

    @property
    def digest_size(self) -> int:
        """Output size in bytes of the hash part of the key suffix."""
        return _HASHER_DIGEST[self]

    @property
    def is_concat(self) -> bool:
        """True if the encoded key is appended after the hash."""
        return self is StorageHasher.TWOX64_CONCAT

    @classmethod
    def from_index(cls, index: int, offset: int | None = None) -> StorageHasher:
        if not 0 <= index < len(_HASHERS):
            raise MalformedField(f"unknown storage hasher index {index}", offset=offset)
        return _HASHERS[index]

    def encode_to(self, w: ByteWriter) -> None:
        w.u8(self.index)

    @classmethod
    def decode_from(cls, r: ByteReader) -> StorageHasher:
        start = r.offset
        return cls.from_index(r.u8(), start)


_HASHERS: list[StorageHasher] = list(StorageHasher)
_HASHER_DIGEST: dict[StorageHasher, int] = {
    StorageHasher.BLAKE2_128: 16,
    StorageHasher.BLAKE2_256: 32,
    StorageHasher.TWOX128: 16,
    StorageHasher.TWOX256: 32,
    StorageHasher.TWOX64_CONCAT: 8,
}


class StorageEntryModifier(str, Enum):
    """Whether a missing storage value reads as None (optional) or as the entry default."""

    OPTIONAL = "optional"
    DEFAULT = "default"

    @property
    def index(self) -> int:
        return _MODIFIERS.index(self)

    def encode_to(self, w: ByteWriter) -> None:
        w.u8(self.index)

    @classmethod
    def decode_from(cls, r: ByteReader) -> StorageEntryModifier:
        start = r.offset
        idx = r.u8()
        if idx >= len(_MODIFIERS):
            raise MalformedField(f"unknown storage modifier index {idx}", offset=start)
        return _MODIFIERS[idx]


_MODIFIERS: list[StorageEntryModifier] = list(StorageEntryModifier)


# ============================================================================
# Storage entry types
# ============================================================================


class StoragePlain(_Record):
    """A single value stored under the entry key."""

    kind: Literal["plain"] = "plain"
    ty: DecodeDifferentStr

    def encode_to(self, w: ByteWriter) -> None:
        w.u8(0)
        self.ty.encode_to(w, ByteWriter.str)


class StorageMap(_Record):
    """
    A map with one hasher; `is_linked` marks the obsolete linked-map layout, kept so it
    round-trips.
    """

    kind: Literal["map"] = "map"
    hasher: StorageHasher
    key: DecodeDifferentStr
    value: DecodeDifferentStr
    is_linked: bool = False

    def encode_to(self, w: ByteWriter) -> None:
        w.u8(1)
        self.hasher.encode_to(w)
        self.key.encode_to(w, ByteWriter.str)
        self.value.encode_to(w, ByteWriter.str)
        w.bool(self.is_linked)


class StorageDoubleMap(_Record):
    """A map keyed by two components, each with its own hasher."""

    kind: Literal["double_map"] = "double_map"
    hasher: StorageHasher
    key1: DecodeDifferentStr
    key2: DecodeDifferentStr
    value: DecodeDifferentStr
    key2_hasher: StorageHasher

    def encode_to(self, w: ByteWriter) -> None:
        w.u8(2)
        self.hasher.encode_to(w)
        self.key1.encode_to(w, ByteWriter.str)
        self.key2.encode_to(w, ByteWriter.str)
        self.value.encode_to(w, ByteWriter.str)
        self.key2_hasher.encode_to(w)


StorageEntryType = Annotated[
    Union[StoragePlain, StorageMap, StorageDoubleMap],
    Field(discriminator="kind"),
]


def _decode_entry_type(r: ByteReader) -> StoragePlain | StorageMap | StorageDoubleMap:
    start = r.offset
    idx = r.u8()
    if idx == 0:
        with r.field("Plain"):
            return StoragePlain(ty=_decoded(r.str()))
    if idx == 1:
        with r.field("Map"):
            with r.field("hasher"):
                hasher = StorageHasher.decode_from(r)
            with r.field("key"):
                key = r.str()
            with r.field("value"):
                value = r.str()
            with r.field("is_linked"):
                is_linked = r.bool()
        return StorageMap(hasher=hasher, key=_decoded(key), value=_decoded(value), is_linked=is_linked)
    if idx == 2:
        with r.field("DoubleMap"):
            with r.field("hasher"):
                hasher = StorageHasher.decode_from(r)
            with r.field("key1"):
                key1 = r.str()
            with r.field("key2"):
                key2 = r.str()
            with r.field("value"):
                value = r.str()
            with r.field("key2_hasher"):
                key2_hasher = StorageHasher.decode_from(r)
        return StorageDoubleMap(
            hasher=hasher,
            key1=_decoded(key1),
            key2=_decoded(key2),
            value=_decoded(value),
            key2_hasher=key2_hasher,
        )
    raise MalformedField(f"unknown storage entry type index {idx}", offset=start)


# ============================================================================
# Storage
# ============================================================================


class StorageEntryMetadata(_Record):
    """
    One storage item.

    Attributes:
        name (DecodeDifferentStr): Entry name.
        modifier (StorageEntryModifier): Optional or Default.
        ty (StorageEntryType): Plain, Map or DoubleMap shape.
        default (ByteGetter): Encoded default value.
        documentation (DecodeDifferentArray[str]): Doc lines.
    """

    name: DecodeDifferentStr
    modifier: StorageEntryModifier
    ty: StorageEntryType
    default: ByteGetter
    documentation: DecodeDifferentArray[str]

    def encode_to(self, w: ByteWriter) -> None:
        self.name.encode_to(w, ByteWriter.str)
        self.modifier.encode_to(w)
        self.ty.encode_to(w)
        self.default.encode_to(w, ByteWriter.bytes)
        self.documentation.encode_to(w, _write_str_list)

    @classmethod
    def decode_from(cls, r: ByteReader) -> StorageEntryMetadata:
        with r.field("name"):
            name = r.str()
        with r.field("modifier"):
            modifier = StorageEntryModifier.decode_from(r)
        with r.field("ty"):
            ty = _decode_entry_type(r)
        with r.field("default"):
            default = r.bytes()
        with r.field("documentation"):
            docs = _read_str_list(r)
        return cls(
            name=_decoded(name),
            modifier=modifier,
            ty=ty,
            default=_decoded(default),
            documentation=_decoded(docs),
        )


class StorageMetadata(_Record):
    """All storage of a module: the shared key prefix and its entries."""

    prefix: DecodeDifferentStr
    entries: DecodeDifferentArray[StorageEntryMetadata]

    def encode_to(self, w: ByteWriter) -> None:
        self.prefix.encode_to(w, ByteWriter.str)
        self.entries.encode_to(w, _write_records)

    @classmethod
    def decode_from(cls, r: ByteReader) -> StorageMetadata:
        with r.field("prefix"):
            prefix = r.str()
        with r.field("entries"):
            entries = r.vec(StorageEntryMetadata.decode_from)
        return cls(prefix=_decoded(prefix), entries=_decoded(entries))

    def entry(self, name: str) -> StorageEntryMetadata | None:
        return _find(self.entries.materialize(), name)


# ============================================================================
# Calls / events / constants / errors
# ============================================================================


class FunctionArgumentMetadata(_Record):
    """A call argument: name and type name."""

    name: DecodeDifferentStr
    ty: DecodeDifferentStr

    def encode_to(self, w: ByteWriter) -> None:
        self.name.encode_to(w, ByteWriter.str)
        self.ty.encode_to(w, ByteWriter.str)

    @classmethod
    def decode_from(cls, r: ByteReader) -> FunctionArgumentMetadata:
        with r.field("name"):
            name = r.str()
        with r.field("ty"):
            ty = r.str()
        return cls(name=_decoded(name), ty=_decoded(ty))


class FunctionMetadata(_Record):
    """A dispatchable call with its arguments in declared order."""

    name: DecodeDifferentStr
    arguments: DecodeDifferentArray[FunctionArgumentMetadata]
    documentation: DecodeDifferentArray[str]

    def encode_to(self, w: ByteWriter) -> None:
        self.name.encode_to(w, ByteWriter.str)
        self.arguments.encode_to(w, _write_records)
        self.documentation.encode_to(w, _write_str_list)

    @classmethod
    def decode_from(cls, r: ByteReader) -> FunctionMetadata:
        with r.field("name"):
            name = r.str()
        with r.field("arguments"):
            args = r.vec(FunctionArgumentMetadata.decode_from)
        with r.field("documentation"):
            docs = _read_str_list(r)
        return cls(name=_decoded(name), arguments=_decoded(args), documentation=_decoded(docs))


class EventMetadata(_Record):
    """An event with the type names of its arguments."""

    name: DecodeDifferentStr
    arguments: DecodeDifferentArray[str]
    documentation: DecodeDifferentArray[str]

    def encode_to(self, w: ByteWriter) -> None:
        self.name.encode_to(w, ByteWriter.str)
        self.arguments.encode_to(w, _write_str_list)
        self.documentation.encode_to(w, _write_str_list)

    @classmethod
    def decode_from(cls, r: ByteReader) -> EventMetadata:
        with r.field("name"):
            name = r.str()
        with r.field("arguments"):
            args = _read_str_list(r)
        with r.field("documentation"):
            docs = _read_str_list(r)
        return cls(name=_decoded(name), arguments=_decoded(args), documentation=_decoded(docs))


EventGroups = DecodeDifferent[
    tuple[tuple[str, FnEncode[tuple[EventMetadata, ...]]], ...],
    list[tuple[str, list[EventMetadata]]],
]


def _write_event_group(w: ByteWriter, group: tuple[str, Any]) -> None:
    module, events = group
    w.str(module)
    _write_records(w, materialize_descriptor(events))


def _read_event_group(r: ByteReader) -> tuple[str, list[EventMetadata]]:
    with r.field("0"):
        module = r.str()
    with r.field("1"):
        events = r.vec(EventMetadata.decode_from)
    return module, events


class OuterEventMetadata(_Record):
    """
    The runtime-wide event enum: per-module event lists.

    Static definitions hold ``(module, FnEncode(lambda: events))`` pairs; decoded ones hold
    ``(module, (EventMetadata, ...))``.
    """

    name: DecodeDifferentStr
    events: EventGroups

    def encode_to(self, w: ByteWriter) -> None:
        self.name.encode_to(w, ByteWriter.str)
        self.events.encode_to(w, lambda ww, groups: ww.vec(groups, _write_event_group))

    @classmethod
    def decode_from(cls, r: ByteReader) -> OuterEventMetadata:
        with r.field("name"):
            name = r.str()
        with r.field("events"):
            groups = r.vec(_read_event_group)
        return cls(name=_decoded(name), events=_decoded(groups))


class ModuleConstantMetadata(_Record):
    """A module constant: name, type name and encoded value."""

    name: DecodeDifferentStr
    ty: DecodeDifferentStr
    value: ByteGetter
    documentation: DecodeDifferentArray[str]

    def encode_to(self, w: ByteWriter) -> None:
        self.name.encode_to(w, ByteWriter.str)
        self.ty.encode_to(w, ByteWriter.str)
        self.value.encode_to(w, ByteWriter.bytes)
        self.documentation.encode_to(w, _write_str_list)

    @classmethod
    def decode_from(cls, r: ByteReader) -> ModuleConstantMetadata:
        with r.field("name"):
            name = r.str()
        with r.field("ty"):
            ty = r.str()
        with r.field("value"):
            value = r.bytes()
        with r.field("documentation"):
            docs = _read_str_list(r)
        return cls(name=_decoded(name), ty=_decoded(ty), value=_decoded(value), documentation=_decoded(docs))


class ErrorMetadata(_Record):
    """A module error variant."""

    name: DecodeDifferentStr
    documentation: DecodeDifferentArray[str]

    def encode_to(self, w: ByteWriter) -> None:
        self.name.encode_to(w, ByteWriter.str)
        self.documentation.encode_to(w, _write_str_list)

    @classmethod
    def decode_from(cls, r: ByteReader) -> ErrorMetadata:
        with r.field("name"):
            name = r.str()
        with r.field("documentation"):
            docs = _read_str_list(r)
        return cls(name=_decoded(name), documentation=_decoded(docs))


# ============================================================================
# Modules
# ============================================================================


class ModuleMetadata(_Record):
    """
    Everything a runtime module exposes.

    Attributes:
        name (DecodeDifferentStr): Module name.
        storage (cell of StorageMetadata | None): Absent when the module has no storage.
        calls (FnArray[FunctionMetadata] | None): Absent when the module has no calls.
        event (FnArray[EventMetadata] | None): Absent when the module has no events.
        constants (FnArray[ModuleConstantMetadata]): Possibly empty.
        errors (FnArray[ErrorMetadata]): Possibly empty.
    """

    name: DecodeDifferentStr
    storage: DecodeDifferent[FnEncode[StorageMetadata], StorageMetadata] | None = None
    calls: FnArray[FunctionMetadata] | None = None
    event: FnArray[EventMetadata] | None = None
    constants: FnArray[ModuleConstantMetadata]
    errors: FnArray[ErrorMetadata]

    def encode_to(self, w: ByteWriter) -> None:
        self.name.encode_to(w, ByteWriter.str)
        w.option(self.storage, lambda ww, cell: cell.encode_to(ww, _write_record))
        w.option(self.calls, lambda ww, cell: cell.encode_to(ww, _write_records))
        w.option(self.event, lambda ww, cell: cell.encode_to(ww, _write_records))
        self.constants.encode_to(w, _write_records)
        self.errors.encode_to(w, _write_records)

    @classmethod
    def decode_from(cls, r: ByteReader) -> ModuleMetadata:
        with r.field("name"):
            name = r.str()
        with r.field("storage"):
            storage = r.option(StorageMetadata.decode_from)
        with r.field("calls"):
            calls = r.option(lambda rr: rr.vec(FunctionMetadata.decode_from))
        with r.field("event"):
            event = r.option(lambda rr: rr.vec(EventMetadata.decode_from))
        with r.field("constants"):
            constants = r.vec(ModuleConstantMetadata.decode_from)
        with r.field("errors"):
            errors = r.vec(ErrorMetadata.decode_from)
        return cls(
            name=_decoded(name),
            storage=None if storage is None else _decoded(storage),
            calls=None if calls is None else _decoded(calls),
            event=None if event is None else _decoded(event),
            constants=_decoded(constants),
            errors=_decoded(errors),
        )

    @property
    def module_name(self) -> str:
        return _text(self.name)

    def storage_metadata(self) -> StorageMetadata | None:
        return None if self.storage is None else self.storage.materialize()

    def call_list(self) -> list[FunctionMetadata]:
        return [] if self.calls is None else self.calls.materialize()

    def event_list(self) -> list[EventMetadata]:
        return [] if self.event is None else self.event.materialize()

    def call(self, name: str) -> FunctionMetadata | None:
        return _find(self.call_list(), name)

    def storage_entry(self, name: str) -> StorageEntryMetadata | None:
        storage = self.storage_metadata()
        return None if storage is None else storage.entry(name)

    def constant(self, name: str) -> ModuleConstantMetadata | None:
        return _find(self.constants.materialize(), name)


class RuntimeMetadataV8(_Record):
    """Payload of generation 8: the ordered module list."""

    modules: DecodeDifferentArray[ModuleMetadata]

    def encode_to(self, w: ByteWriter) -> None:
        self.modules.encode_to(w, _write_records)

    @classmethod
    def decode_from(cls, r: ByteReader) -> RuntimeMetadataV8:
        with r.field("modules"):
            modules = r.vec(ModuleMetadata.decode_from)
        return cls(modules=_decoded(modules))

    def module_list(self) -> list[ModuleMetadata]:
        return self.modules.materialize()

    def module(self, name: str) -> ModuleMetadata | None:
        return _find(self.module_list(), name)

    def into_prefixed(self) -> RuntimeMetadataPrefixed:
        """Wrap this payload in the magic-prefixed generation-8 envelope."""
        from .envelope import RuntimeMetadataPrefixed

        return RuntimeMetadataPrefixed.from_v8(self)
