"""
Custom exceptions for the desub.io module.

Purpose
- Provide IO-layer specific error types that map cleanly to responsibilities in desub.io.
- Keep desub.core as the source of truth for decode/conformance errors (see desub.core.errors).

Source of truth and boundaries
- desub.core.errors.DecodeError and its subclasses are raised while decoding bytes.
- desub.io raises Io* errors for filesystem/config/writer concerns:
  - IoConfigError: invalid or unsupported configuration.
  - IoReadError: an input file is missing or its text encoding (hex) is invalid.
  - IoWriteError: atomic write path failed (tmp write/fsync/rename).

Notes
- These exceptions do not perform any IO and are stdlib-only.
"""

from __future__ import annotations


class IoError(Exception):
    """
    Base class for IO-related errors in desub.io.

    Notes:
        Use this as a catch-all for IO-layer failures, distinct from desub.core errors.
    """


class IoConfigError(IoError):
    """
    Raised when IO configuration is invalid or unsupported.

    Examples:
        - Unknown input format
        - Unsupported compression codec
    """


class IoReadError(IoError):
    """
    Raised when metadata input cannot be loaded.

    Notes:
        Missing files, unreadable files and malformed hex text surface here; byte-level
        decoding problems surface as desub.core.errors.DecodeError instead.
    """


class IoWriteError(IoError):
    """
    Raised when a write operation fails to complete atomically.

    Notes:
        The write path is tmp parquet → fsync → os.replace(tmp, final). Failures at any step
        should surface as IoWriteError (with best-effort cleanup of tmp files).
    """
