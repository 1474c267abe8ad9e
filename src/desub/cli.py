from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import replace
from typing import Any

from desub.core.errors import DecodeError
from desub.io.config import DesubSettings
from desub.io.errors import IoError
from desub.io.read import load_metadata
from desub.io.write import write_tables
from desub.metadata.envelope import RuntimeMetadataPrefixed
from desub.metadata.serde import metadata_fingerprint, metadata_to_json

logger = logging.getLogger(__name__)

_COMMANDS = ("inspect", "json", "export", "fingerprint")


def _configure_logging(settings: DesubSettings) -> None:
    logging.basicConfig(level=settings.log_level, format="[%(levelname)s] %(message)s")


def _file_parser(prog: str, description: str) -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog=f"desub {prog}", description=description)
    p.add_argument("file", type=str, help="Metadata file (raw SCALE bytes, hex text or JSON-RPC response).")
    p.add_argument(
        "--format",
        dest="input_format",
        choices=["auto", "hex", "raw"],
        default=None,
        help="Input format (default: settings input_format).",
    )
    p.add_argument("--config", type=str, default=None, help="Explicit TOML config path.")
    return p


def _settings(args: argparse.Namespace) -> DesubSettings:
    settings = DesubSettings.load(args.config)
    if args.input_format is not None:
        settings = replace(settings, input_format=args.input_format)
    return settings.validate()


def _summary_lines(meta: RuntimeMetadataPrefixed) -> list[str]:
    lines = [f"magic: 0x{meta.magic:08x}", f"generation: V{meta.version}"]
    modules = meta.v8.module_list()
    lines.append(f"modules: {len(modules)}")
    for m in modules:
        storage = m.storage_metadata()
        n_storage = 0 if storage is None else len(storage.entries.materialize())
        lines.append(
            f"  {m.module_name}: storage={n_storage} calls={len(m.call_list())} "
            f"events={len(m.event_list())} constants={len(m.constants.materialize())} "
            f"errors={len(m.errors.materialize())}"
        )
    return lines


def _cmd_inspect(argv: list[str]) -> int:
    p = _file_parser("inspect", "Print the generation and a per-module summary.")
    args = p.parse_args(argv)
    settings = _settings(args)
    _configure_logging(settings)
    meta = load_metadata(args.file, settings)
    print("\n".join(_summary_lines(meta)))
    return 0


def _cmd_json(argv: list[str]) -> int:
    p = _file_parser("json", "Print the decoded metadata as canonical JSON.")
    args = p.parse_args(argv)
    settings = _settings(args)
    _configure_logging(settings)
    print(metadata_to_json(load_metadata(args.file, settings)))
    return 0


def _cmd_export(argv: list[str]) -> int:
    p = _file_parser("export", "Write metadata tables as Parquet files.")
    p.add_argument("--out", type=str, default=None, help="Output directory (default: settings out_dir).")
    args = p.parse_args(argv)
    settings = _settings(args)
    _configure_logging(settings)
    summary: dict[str, Any] = write_tables(load_metadata(args.file, settings), settings, args.out)
    for t in summary["tables"]:
        print(f"{t['table']}: {t['rows']} rows -> {t['path']}")
    logger.info("wrote manifest to %s", summary["manifest"])
    return 0


def _cmd_fingerprint(argv: list[str]) -> int:
    p = _file_parser("fingerprint", "Print the SHA-256 fingerprint of the decoded metadata.")
    args = p.parse_args(argv)
    settings = _settings(args)
    _configure_logging(settings)
    print(metadata_fingerprint(load_metadata(args.file, settings)))
    return 0


def build_argparser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="desub", description="Runtime metadata decoding utilities.")
    sub = p.add_subparsers(dest="cmd", required=True)
    for name in _COMMANDS:
        sub.add_parser(name)
    return p


def run(argv: list[str]) -> int:
    """Dispatch a command and map decode/IO failures to exit code 2."""
    if not argv:
        build_argparser().print_help()
        return 0
    cmd, rest = argv[0], argv[1:]
    handlers = {
        "inspect": _cmd_inspect,
        "json": _cmd_json,
        "export": _cmd_export,
        "fingerprint": _cmd_fingerprint,
    }
    handler = handlers.get(cmd)
    if handler is None:
        print(f"Unknown command: {cmd}", file=sys.stderr)
        return 2
    try:
        return handler(rest)
    except (DecodeError, IoError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2


def main(argv: list[str] | None = None) -> None:
    argv = list(sys.argv[1:] if argv is None else argv)
    raise SystemExit(run(argv))


if __name__ == "__main__":
    main()
