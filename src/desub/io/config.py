"""
Configuration for desub IO and the command line.

Defines DesubSettings, a frozen dataclass carrying runtime configuration for reading
metadata blobs, exporting tables and logging. Defaults come from desub.core.constants and
the values below; overrides come from TOML and the environment.

Precedence
- environment (DESUB_*) > TOML (./desub.toml or [tool.desub] in ./pyproject.toml) > defaults

Import DAG discipline
- Depends only on stdlib and desub.core.constants.

Notes
- Invalid override values are ignored and the previous value is kept.
- Compression applies to Parquet writes via pyarrow in desub.io.write.
"""

from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Literal

from .errors import IoConfigError

Compression = Literal["zstd", "lz4", "snappy"]
InputFormat = Literal["auto", "hex", "raw"]

_COMPRESSIONS: set[str] = {"zstd", "lz4", "snappy"}
_INPUT_FORMATS: set[str] = {"auto", "hex", "raw"}
_LOG_LEVELS: set[str] = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


@dataclass(frozen=True)
class DesubSettings:
    """
    Runtime settings for desub IO and CLI.

    Attributes:
        out_dir (str): Root directory for exported tables.
        compression (Literal["zstd","lz4","snappy"]): Parquet compression codec.
        row_group_size (int): Parquet row group size.
        input_format (Literal["auto","hex","raw"]): How metadata files are read; "auto"
            treats files whose content is a ``0x``-prefixed hex string as hex.
        log_level (str): Logging level name used by the CLI.

    Examples:
        >>> from desub.io.config import DesubSettings
        >>> DesubSettings(out_dir="out", compression="zstd")  # doctest: +ELLIPSIS
        DesubSettings(...)
    """

    out_dir: str = "out"
    compression: Compression = "zstd"
    row_group_size: int = 64 * 1024
    input_format: InputFormat = "auto"
    log_level: str = "WARNING"

    def validate(self) -> DesubSettings:
        """
        Check value ranges and choices.

        Raises:
            IoConfigError: If any setting is out of range or not a known choice.
        """
        if self.compression not in _COMPRESSIONS:
            raise IoConfigError(f"unsupported compression {self.compression!r}")
        if self.input_format not in _INPUT_FORMATS:
            raise IoConfigError(f"unknown input format {self.input_format!r}")
        if self.row_group_size < 1:
            raise IoConfigError(f"row_group_size must be >= 1, got {self.row_group_size}")
        if self.log_level not in _LOG_LEVELS:
            raise IoConfigError(f"unknown log level {self.log_level!r}")
        return self

    # Configuration loaders (env/TOML) with precedence: env > TOML > defaults.

    @classmethod
    def _apply_mapping(cls, base: DesubSettings, cfg: dict[str, Any] | None) -> DesubSettings:
        """Apply a loose config mapping onto DesubSettings, returning a new instance."""
        if not isinstance(cfg, dict):
            return base

        s = base

        def _int(v: Any) -> int | None:
            try:
                return int(v)
            except (TypeError, ValueError):
                return None

        if "out_dir" in cfg and isinstance(cfg["out_dir"], str):
            s = replace(s, out_dir=cfg["out_dir"])

        if "compression" in cfg and isinstance(cfg["compression"], str):
            comp = cfg["compression"].strip().lower()
            if comp in _COMPRESSIONS:
                s = replace(s, compression=comp)  # type: ignore[arg-type]

        if "row_group_size" in cfg:
            n = _int(cfg["row_group_size"])
            if n is not None and n >= 1:
                s = replace(s, row_group_size=n)

        if "input_format" in cfg and isinstance(cfg["input_format"], str):
            fmt = cfg["input_format"].strip().lower()
            if fmt in _INPUT_FORMATS:
                s = replace(s, input_format=fmt)  # type: ignore[arg-type]

        if "log_level" in cfg and isinstance(cfg["log_level"], str):
            level = cfg["log_level"].strip().upper()
            if level in _LOG_LEVELS:
                s = replace(s, log_level=level)

        return s

    @classmethod
    def from_env(cls, base: DesubSettings | None = None, prefix: str = "DESUB_") -> DesubSettings:
        """
        Build DesubSettings from environment variables. Precedence is env > base (if provided) > defaults.

        Recognized variables:
            - DESUB_OUT_DIR
            - DESUB_COMPRESSION ("zstd" | "lz4" | "snappy")
            - DESUB_ROW_GROUP_SIZE
            - DESUB_INPUT_FORMAT ("auto" | "hex" | "raw")
            - DESUB_LOG_LEVEL
        """
        s = base or cls()

        mapping: dict[str, Any] = {}
        for key in ("out_dir", "compression", "row_group_size", "input_format", "log_level"):
            v = os.getenv(prefix + key.upper())
            if v:
                mapping[key] = v

        return cls._apply_mapping(s, mapping)

    @classmethod
    def from_toml(cls, path: str | os.PathLike[str] | None = None) -> DesubSettings:
        """
        Build DesubSettings from a TOML file.

        Search order when `path` is None:
            1) ./desub.toml (with either a top-level [desub] table or direct keys)
            2) ./pyproject.toml under [tool.desub]

        Returns defaults if no file is present or it cannot be parsed.
        """
        s = cls()

        def _load_toml(p: Path) -> dict[str, Any] | None:
            try:
                with p.open("rb") as fh:
                    return tomllib.load(fh)
            except (OSError, tomllib.TOMLDecodeError):
                return None

        cfg: dict[str, Any] | None = None

        cand: list[Path] = []
        if path is not None:
            cand.append(Path(path))
        else:
            cand.append(Path.cwd() / "desub.toml")
            cand.append(Path.cwd() / "pyproject.toml")

        for p in cand:
            if not p.exists():
                continue
            data = _load_toml(p)
            if not isinstance(data, dict):
                continue
            if p.name == "pyproject.toml":
                tool = data.get("tool", {})
                cfg = tool.get("desub", {}) if isinstance(tool, dict) else None
            else:
                if "desub" in data and isinstance(data["desub"], dict):
                    cfg = data["desub"]
                else:
                    cfg = data
            if cfg:
                break

        return cls._apply_mapping(s, cfg)

    @classmethod
    def load(cls, path: str | os.PathLike[str] | None = None) -> DesubSettings:
        """
        Load DesubSettings applying precedence: environment > TOML > defaults.

        Args:
            path: Optional explicit TOML path. If None, search defaults (desub.toml, pyproject.toml).

        Returns:
            DesubSettings
        """
        s = cls.from_toml(path)
        s = cls.from_env(base=s)
        return s
