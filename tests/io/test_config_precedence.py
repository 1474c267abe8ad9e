from __future__ import annotations

from dataclasses import fields
from pathlib import Path

import pytest

from desub.io.config import DesubSettings
from desub.io.errors import IoConfigError

_ENV_KEYS = [
    "DESUB_OUT_DIR",
    "DESUB_COMPRESSION",
    "DESUB_ROW_GROUP_SIZE",
    "DESUB_INPUT_FORMAT",
    "DESUB_LOG_LEVEL",
]


def _clear_env(monkeypatch) -> None:
    for key in _ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


def _write_desub_toml(tmp: Path, content: str) -> Path:
    p = tmp / "desub.toml"
    p.write_text(content)
    return p


def test_settings_precedence_env_over_toml(tmp_path: Path, monkeypatch) -> None:
    # Arrange TOML
    _write_desub_toml(
        tmp_path,
        """
        [desub]
        out_dir = "tmp_out_toml"
        row_group_size = 256
        compression = "lz4"
        """.strip(),
    )
    monkeypatch.chdir(tmp_path)
    _clear_env(monkeypatch)
    # Arrange ENV that should override TOML
    monkeypatch.setenv("DESUB_OUT_DIR", "tmp_out_env")
    monkeypatch.setenv("DESUB_ROW_GROUP_SIZE", "512")
    monkeypatch.setenv("DESUB_COMPRESSION", "zstd")

    # Act
    s = DesubSettings.load()

    # Assert precedence: env > TOML
    assert s.out_dir == "tmp_out_env"
    assert s.row_group_size == 512
    assert s.compression == "zstd"


def test_settings_from_toml_when_no_env(tmp_path: Path, monkeypatch) -> None:
    _write_desub_toml(
        tmp_path,
        """
        out_dir = "tmp_out_toml"
        input_format = "hex"
        log_level = "info"
        """.strip(),
    )
    monkeypatch.chdir(tmp_path)
    _clear_env(monkeypatch)

    s = DesubSettings.load()

    assert s.out_dir == "tmp_out_toml"
    assert s.input_format == "hex"
    assert s.log_level == "INFO"


def test_settings_from_pyproject_tool_table(tmp_path: Path, monkeypatch) -> None:
    (tmp_path / "pyproject.toml").write_text('[tool.desub]\ncompression = "snappy"\n')
    monkeypatch.chdir(tmp_path)
    _clear_env(monkeypatch)

    assert DesubSettings.load().compression == "snappy"


def test_settings_defaults_when_no_config(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.chdir(tmp_path)
    _clear_env(monkeypatch)

    s = DesubSettings.load()

    assert s == DesubSettings()
    assert s.out_dir == "out"
    assert s.input_format == "auto"


def test_invalid_overrides_are_ignored(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.chdir(tmp_path)
    _clear_env(monkeypatch)
    monkeypatch.setenv("DESUB_COMPRESSION", "brotli")
    monkeypatch.setenv("DESUB_ROW_GROUP_SIZE", "lots")

    s = DesubSettings.load()

    assert s.compression == "zstd"
    assert s.row_group_size == DesubSettings().row_group_size


@pytest.mark.parametrize(
    "kwargs",
    [
        {"compression": "gzip"},
        {"input_format": "base64"},
        {"row_group_size": 0},
        {"log_level": "LOUD"},
    ],
)
def test_validate_rejects_bad_values(kwargs) -> None:
    with pytest.raises(IoConfigError):
        DesubSettings(**kwargs).validate()


def test_only_consumed_settings_are_exposed(tmp_path: Path, monkeypatch) -> None:
    _write_desub_toml(tmp_path, "max_depth = 32\nout_dir = \"kept\"\n")
    monkeypatch.chdir(tmp_path)
    _clear_env(monkeypatch)

    s = DesubSettings.load()

    assert [f.name for f in fields(DesubSettings)] == [
        "out_dir",
        "compression",
        "row_group_size",
        "input_format",
        "log_level",
    ]
    assert s == DesubSettings(out_dir="kept")
