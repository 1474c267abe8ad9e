"""
Parquet export of decoded runtime metadata.

Overview
- Flattens metadata with desub.io.tables.metadata_tables (one frame per table).
- Writes each table as ``<out_dir>/<table>.parquet`` with atomic tmp → final rename and
  embeds generation/table/fingerprint key-value metadata.
- Writes ``<out_dir>/manifest.json`` describing the export.

Notes
- Re-exporting into the same directory replaces earlier files table by table.
- Single-writer semantics (no inter-process locking).
"""

from __future__ import annotations

import json
import logging
import os
from datetime import UTC, datetime
from typing import Any

import polars as pl
import pyarrow.parquet as pq

from desub.metadata.envelope import RuntimeMetadataPrefixed
from desub.metadata.serde import metadata_fingerprint
from desub.metadata.v8 import RuntimeMetadataV8

from .config import DesubSettings
from .errors import IoWriteError
from .fs import fsync_path, makedirs, remove_quietly, rename_atomic
from .tables import metadata_tables

logger = logging.getLogger(__name__)

__all__ = ["write_tables", "read_table"]

MANIFEST_NAME = "manifest.json"


def _now_iso() -> str:
    return datetime.now(UTC).isoformat()


def _write_parquet(
    df: pl.DataFrame,
    final_path: str,
    kv: dict[bytes, bytes],
    settings: DesubSettings,
) -> None:
    tmp_path = final_path + ".tmp"
    try:
        arrow_table = df.to_arrow()
        meta = dict(arrow_table.schema.metadata or {})
        meta.update(kv)
        arrow_table = arrow_table.replace_schema_metadata(meta)
        pq.write_table(
            arrow_table,
            tmp_path,
            compression=settings.compression,
            row_group_size=settings.row_group_size,
        )
        fsync_path(tmp_path)
        rename_atomic(tmp_path, final_path)
    except Exception as exc:
        remove_quietly(tmp_path)
        raise IoWriteError(f"failed to write {final_path!r}: {exc}") from exc


def _write_manifest(out_dir: str, manifest: dict[str, Any]) -> str:
    path = os.path.join(out_dir, MANIFEST_NAME)
    tmp_path = path + ".tmp"
    try:
        with open(tmp_path, "w", encoding="utf-8") as fh:
            json.dump(manifest, fh, indent=2, sort_keys=True)
            fh.flush()
            os.fsync(fh.fileno())
        rename_atomic(tmp_path, path)
    except OSError as exc:
        remove_quietly(tmp_path)
        raise IoWriteError(f"failed to write manifest {path!r}: {exc}") from exc
    return path


def write_tables(
    metadata: RuntimeMetadataPrefixed | RuntimeMetadataV8,
    settings: DesubSettings | None = None,
    out_dir: str | os.PathLike[str] | None = None,
) -> dict[str, Any]:
    """
    Export metadata tables as Parquet files.

    Args:
        metadata: Envelope or bare V8 payload.
        settings (DesubSettings | None): Compression, row group size and default out_dir.
        out_dir: Target directory; defaults to ``settings.out_dir``.

    Returns:
        dict[str, Any]: Summary with keys:
            - out_dir (str)
            - generation (int)
            - fingerprint (str): SHA-256 of the canonical JSON view
            - tables (list[dict]): Per-table {"table","path","rows","bytes"}
            - manifest (str): Path of manifest.json

    Raises:
        IoWriteError: Directory creation, Parquet write, fsync or rename failed.

    Notes:
        Parquet files embed metadata:
            b"desub_generation"  = generation number
            b"desub_table"       = table name
            b"desub_fingerprint" = metadata fingerprint
    """
    settings = (settings or DesubSettings()).validate()
    if isinstance(metadata, RuntimeMetadataV8):
        metadata = RuntimeMetadataPrefixed.from_v8(metadata)
    target = os.fspath(out_dir) if out_dir is not None else settings.out_dir

    try:
        makedirs(target, exist_ok=True)
    except OSError as exc:
        raise IoWriteError(f"cannot create output directory {target!r}: {exc}") from exc

    fingerprint = metadata_fingerprint(metadata)
    generation = str(metadata.version)
    tables_summary: list[dict[str, Any]] = []

    for name, df in metadata_tables(metadata).items():
        final_path = os.path.join(target, f"{name}.parquet")
        kv = {
            b"desub_generation": generation.encode("utf-8"),
            b"desub_table": name.encode("utf-8"),
            b"desub_fingerprint": fingerprint.encode("utf-8"),
        }
        _write_parquet(df, final_path, kv, settings)
        nbytes = int(os.path.getsize(final_path))
        logger.debug("wrote %s (%d rows, %d bytes)", final_path, df.height, nbytes)
        tables_summary.append({"table": name, "path": final_path, "rows": df.height, "bytes": nbytes})

    manifest = {
        "generation": metadata.version,
        "fingerprint": fingerprint,
        "created_at": _now_iso(),
        "tables": {t["table"]: {"path": os.path.basename(t["path"]), "rows": t["rows"]} for t in tables_summary},
    }
    manifest_path = _write_manifest(target, manifest)
    logger.info("exported %d table(s) to %s", len(tables_summary), target)

    return {
        "out_dir": target,
        "generation": metadata.version,
        "fingerprint": fingerprint,
        "tables": tables_summary,
        "manifest": manifest_path,
    }


def read_table(out_dir: str | os.PathLike[str], table: str) -> pl.DataFrame:
    """
    Read an exported table back as a Polars DataFrame.

    Raises:
        FileNotFoundError: If the table file does not exist.
    """
    return pl.read_parquet(os.path.join(os.fspath(out_dir), f"{table}.parquet"))
