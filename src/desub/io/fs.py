"""
Filesystem helpers used by the Parquet export.

The export writes every file next to its final name first (``<name>.tmp``), flushes it to
disk and then swaps it into place, so readers never observe a half-written table.

Notes
- os.replace only swaps atomically within one filesystem; tmp files live beside their
  targets for that reason.
"""

from __future__ import annotations

import os


def makedirs(path: str, exist_ok: bool = True) -> None:
    """Create `path` and any missing parents."""
    os.makedirs(path, exist_ok=exist_ok)


def fsync_path(path: str) -> None:
    """
    Flush a file that another library already wrote and closed.

    Args:
        path (str): File written by e.g. pyarrow.parquet.write_table.
    """
    fd = os.open(path, os.O_RDONLY)
    try:
        os.fsync(fd)
    finally:
        os.close(fd)


def rename_atomic(src: str, dst: str) -> None:
    """Move `src` over `dst` in one step (os.replace)."""
    os.replace(src, dst)


def remove_quietly(path: str) -> None:
    """Best-effort removal of a leftover tmp file after a failed write."""
    try:
        if os.path.exists(path):
            os.remove(path)
    except OSError:
        pass
