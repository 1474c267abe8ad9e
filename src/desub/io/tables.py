"""
Flatten decoded runtime metadata into Polars tables.

One table per metadata item kind, one row per item, with the owning module on every row:

- modules   — one row per module with item counts
- calls     — dispatchable calls and their arguments
- events    — events and their argument types
- storage   — storage entries with modifier, shape and hasher selection
- constants — constants with their encoded value (hex)
- errors    — module errors

Notes
- Column names are lower_snake; byte values are ``0x`` hex strings.
- Descriptors pin each table's columns and dtypes so empty tables keep their schema.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

import polars as pl

from desub.metadata.envelope import RuntimeMetadataPrefixed
from desub.metadata.v8 import (
    ModuleMetadata,
    RuntimeMetadataV8,
    StorageDoubleMap,
    StorageEntryMetadata,
    StorageMap,
)

__all__ = [
    "TableName",
    "TableDescriptor",
    "get_table",
    "list_tables",
    "metadata_tables",
]


class TableName(str, Enum):
    MODULES = "modules"
    CALLS = "calls"
    EVENTS = "events"
    STORAGE = "storage"
    CONSTANTS = "constants"
    ERRORS = "errors"


_DTYPES: dict[str, Any] = {"i64": pl.Int64, "str": pl.String, "bool": pl.Boolean}


@dataclass(frozen=True)
class TableDescriptor:
    """
    Frozen descriptor for an exported metadata table.

    Attributes:
        name (TableName): Table identifier (lower_snake serialized).
        columns (dict[str, str]): Mapping of column name -> dtype, dtype ∈ {"i64","str","bool"}.
    """

    name: TableName
    columns: dict[str, str]

    def polars_schema(self) -> dict[str, Any]:
        return {col: _DTYPES[dtype] for col, dtype in self.columns.items()}


_DESCRIPTORS: dict[TableName, TableDescriptor] = {
    TableName.MODULES: TableDescriptor(
        name=TableName.MODULES,
        columns={
            "module_index": "i64",
            "module": "str",
            "storage_prefix": "str",
            "storage_entries": "i64",
            "calls": "i64",
            "events": "i64",
            "constants": "i64",
            "errors": "i64",
        },
    ),
    TableName.CALLS: TableDescriptor(
        name=TableName.CALLS,
        columns={
            "module": "str",
            "call_index": "i64",
            "call": "str",
            "arguments": "str",
            "argument_count": "i64",
            "documentation": "str",
        },
    ),
    TableName.EVENTS: TableDescriptor(
        name=TableName.EVENTS,
        columns={
            "module": "str",
            "event_index": "i64",
            "event": "str",
            "arguments": "str",
            "documentation": "str",
        },
    ),
    TableName.STORAGE: TableDescriptor(
        name=TableName.STORAGE,
        columns={
            "module": "str",
            "prefix": "str",
            "entry": "str",
            "modifier": "str",
            "kind": "str",
            "hasher": "str",
            "key1": "str",
            "key2": "str",
            "key2_hasher": "str",
            "value": "str",
            "is_linked": "bool",
            "default": "str",
            "documentation": "str",
        },
    ),
    TableName.CONSTANTS: TableDescriptor(
        name=TableName.CONSTANTS,
        columns={
            "module": "str",
            "constant": "str",
            "ty": "str",
            "value": "str",
            "documentation": "str",
        },
    ),
    TableName.ERRORS: TableDescriptor(
        name=TableName.ERRORS,
        columns={
            "module": "str",
            "error_index": "i64",
            "error": "str",
            "documentation": "str",
        },
    ),
}


def get_table(name: TableName | str) -> TableDescriptor:
    """Return the descriptor for a table name (enum or lower_snake string)."""
    return _DESCRIPTORS[TableName(name)]


def list_tables() -> list[TableDescriptor]:
    return [_DESCRIPTORS[name] for name in TableName]


def _docs(cell: Any) -> str:
    return "\n".join(cell.materialize())


def _hex(b: bytes) -> str:
    return "0x" + b.hex()


def _storage_row(module: str, prefix: str, entry: StorageEntryMetadata) -> dict[str, Any]:
    ty = entry.ty
    row: dict[str, Any] = {
        "module": module,
        "prefix": prefix,
        "entry": entry.name.materialize(),
        "modifier": entry.modifier.value,
        "kind": ty.kind,
        "hasher": None,
        "key1": None,
        "key2": None,
        "key2_hasher": None,
        "value": None,
        "is_linked": None,
        "default": _hex(entry.default.materialize()),
        "documentation": _docs(entry.documentation),
    }
    if isinstance(ty, StorageMap):
        row.update(
            hasher=ty.hasher.value,
            key1=ty.key.materialize(),
            value=ty.value.materialize(),
            is_linked=ty.is_linked,
        )
    elif isinstance(ty, StorageDoubleMap):
        row.update(
            hasher=ty.hasher.value,
            key1=ty.key1.materialize(),
            key2=ty.key2.materialize(),
            key2_hasher=ty.key2_hasher.value,
            value=ty.value.materialize(),
        )
    else:
        row["value"] = ty.ty.materialize()
    return row


def _module_rows(index: int, m: ModuleMetadata, rows: dict[TableName, list[dict[str, Any]]]) -> None:
    name = m.module_name
    storage = m.storage_metadata()
    entries = [] if storage is None else storage.entries.materialize()
    calls = m.call_list()
    events = m.event_list()
    constants = m.constants.materialize()
    errors = m.errors.materialize()

    rows[TableName.MODULES].append(
        {
            "module_index": index,
            "module": name,
            "storage_prefix": None if storage is None else storage.prefix.materialize(),
            "storage_entries": len(entries),
            "calls": len(calls),
            "events": len(events),
            "constants": len(constants),
            "errors": len(errors),
        }
    )
    for i, call in enumerate(calls):
        args = call.arguments.materialize()
        rows[TableName.CALLS].append(
            {
                "module": name,
                "call_index": i,
                "call": call.name.materialize(),
                "arguments": ", ".join(f"{a.name.materialize()}: {a.ty.materialize()}" for a in args),
                "argument_count": len(args),
                "documentation": _docs(call.documentation),
            }
        )
    for i, event in enumerate(events):
        rows[TableName.EVENTS].append(
            {
                "module": name,
                "event_index": i,
                "event": event.name.materialize(),
                "arguments": ", ".join(event.arguments.materialize()),
                "documentation": _docs(event.documentation),
            }
        )
    for entry in entries:
        rows[TableName.STORAGE].append(_storage_row(name, storage.prefix.materialize(), entry))  # type: ignore[union-attr]
    for const in constants:
        rows[TableName.CONSTANTS].append(
            {
                "module": name,
                "constant": const.name.materialize(),
                "ty": const.ty.materialize(),
                "value": _hex(const.value.materialize()),
                "documentation": _docs(const.documentation),
            }
        )
    for i, err in enumerate(errors):
        rows[TableName.ERRORS].append(
            {
                "module": name,
                "error_index": i,
                "error": err.name.materialize(),
                "documentation": _docs(err.documentation),
            }
        )


def metadata_tables(metadata: RuntimeMetadataPrefixed | RuntimeMetadataV8) -> dict[str, pl.DataFrame]:
    """
    Flatten metadata into one DataFrame per TableName.

    Args:
        metadata: Envelope or bare V8 payload.

    Returns:
        dict[str, pl.DataFrame]: Keyed by table name value ("modules", "calls", ...).
    """
    v8 = metadata.v8 if isinstance(metadata, RuntimeMetadataPrefixed) else metadata
    rows: dict[TableName, list[dict[str, Any]]] = {name: [] for name in TableName}
    for i, module in enumerate(v8.module_list()):
        _module_rows(i, module, rows)
    return {
        name.value: pl.DataFrame(rows[name], schema=get_table(name).polars_schema())
        for name in TableName
    }
