"""
desub.io — file IO, configuration and Parquet export for runtime metadata.

## Responsibilities
- Load metadata blobs from disk (raw bytes, hex text or a saved JSON-RPC response).
- Flatten decoded metadata into Polars tables and write them as Parquet via PyArrow.
- Carry runtime configuration (DesubSettings) with env > TOML > defaults precedence.

## Public API
- DesubSettings — IO/CLI configuration.
- load_metadata / read_metadata_bytes — read and decode metadata files.
- metadata_tables — one Polars DataFrame per metadata item kind.
- write_tables — atomic Parquet export with key-value metadata and manifest.json.

## Import DAG discipline
- Depends on stdlib, polars/pyarrow, desub.core and desub.metadata.
- desub.core and desub.metadata MUST NOT import desub.io.

## Examples
```python
from desub.io import DesubSettings, load_metadata, write_tables

settings = DesubSettings.load()  # doctest: +SKIP
meta = load_metadata("metadata.hex", settings)  # doctest: +SKIP
write_tables(meta, settings, out_dir="out/metadata")  # doctest: +SKIP
```

## Notes
- IO write path: tmp parquet → fsync → os.replace(tmp, final) on the same filesystem.
"""

from __future__ import annotations

from .config import DesubSettings
from .errors import IoConfigError, IoError, IoReadError, IoWriteError
from .read import load_metadata, parse_hex, read_metadata_bytes
from .tables import TableName, metadata_tables
from .write import read_table, write_tables

__all__ = [
    "DesubSettings",
    "IoConfigError",
    "IoError",
    "IoReadError",
    "IoWriteError",
    "load_metadata",
    "parse_hex",
    "read_metadata_bytes",
    "TableName",
    "metadata_tables",
    "read_table",
    "write_tables",
]
