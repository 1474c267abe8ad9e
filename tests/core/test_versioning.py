"""Tests for `desub.core.versioning` generation helpers and wire constants."""

import pytest

from desub.core.constants import (
    CURRENT_GENERATION,
    DEPRECATED_GENERATIONS,
    META_RESERVED,
    META_RESERVED_BYTES,
)
from desub.core.versioning import (
    CURRENT,
    GENERATIONS,
    MetadataGeneration,
    get_generation,
    is_known,
    is_supported,
)


def test_magic_is_meta_little_endian() -> None:
    assert META_RESERVED == 0x6174656D
    assert META_RESERVED_BYTES == b"meta"


def test_generation_table_covers_v0_to_v8() -> None:
    assert [g.label for g in GENERATIONS] == [f"V{n}" for n in range(9)]
    assert CURRENT.number == CURRENT_GENERATION == 8
    assert CURRENT.supported is True


@pytest.mark.parametrize("n", list(DEPRECATED_GENERATIONS))
def test_deprecated_generations_are_known_but_unsupported(n: int) -> None:
    assert is_known(n) is True
    assert is_supported(n) is False
    assert get_generation(n).supported is False


@pytest.mark.parametrize("n", [-1, 9, 255])
def test_unknown_generations(n: int) -> None:
    assert is_known(n) is False
    assert is_supported(n) is False
    with pytest.raises(KeyError):
        get_generation(n)


def test_generation_rejects_negative_number() -> None:
    with pytest.raises(ValueError, match="non-negative"):
        MetadataGeneration(-1, False, "V-1")
