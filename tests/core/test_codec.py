"""Tests for `desub.core.codec` cursor, writer and compact integers."""

import pytest

from desub.core.codec import ByteReader, ByteWriter, encode_compact
from desub.core.errors import MalformedField, TruncatedInput


@pytest.mark.parametrize(
    "n,hex_",
    [
        (0, "00"),
        (1, "04"),
        (63, "fc"),
        (64, "0101"),
        (16383, "fdff"),
        (16384, "02000100"),
        ((1 << 30) - 1, "feffffff"),
        (1 << 30, "0300000040"),
        ((1 << 32) - 1, "03ffffffff"),
        (1 << 32, "070000000001"),
    ],
)
def test_compact_known_encodings(n: int, hex_: str) -> None:
    assert encode_compact(n).hex() == hex_
    r = ByteReader(bytes.fromhex(hex_))
    assert r.compact() == n
    assert r.at_end()


@pytest.mark.parametrize("hex_", ["0100", "02000000", "0300000000", "07ffffffff00"])
def test_compact_rejects_non_minimal(hex_: str) -> None:
    with pytest.raises(MalformedField, match="non-minimal"):
        ByteReader(bytes.fromhex(hex_)).compact()


def test_compact_rejects_negative() -> None:
    with pytest.raises(ValueError):
        encode_compact(-1)


def test_truncated_read_reports_offset() -> None:
    r = ByteReader(b"\x01\x02")
    r.u8()
    with pytest.raises(TruncatedInput) as ei:
        r.u32()
    assert ei.value.offset == 1


def test_invalid_bool_and_option_tag() -> None:
    with pytest.raises(MalformedField, match="bool"):
        ByteReader(b"\x02").bool()
    with pytest.raises(MalformedField, match="option"):
        ByteReader(b"\x02").option(ByteReader.u8)


def test_invalid_utf8_string() -> None:
    with pytest.raises(MalformedField, match="UTF-8"):
        ByteReader(b"\x04\xff").str()


def test_vec_tags_element_index_in_path() -> None:
    w = ByteWriter()
    w.compact(2)
    w.str("ok")
    w.compact(5)  # declares 5 bytes, none follow
    r = ByteReader(w.getvalue())

    with pytest.raises(TruncatedInput) as ei:
        with r.field("names"):
            r.vec(ByteReader.str)
    assert ei.value.path == ["names", "[1]"]
    assert ei.value.field_path == "names[1]"
    assert "at names[1]" in str(ei.value)


def test_writer_mirrors_reader() -> None:
    w = ByteWriter()
    w.u8(7)
    w.sint(-2, 2)
    w.bool(True)
    w.char("é")
    w.option(None, ByteWriter.u8)
    w.option(9, ByteWriter.u8)
    w.vec(["a", "bc"], ByteWriter.str)
    w.bytes(b"\x00\x01")

    r = ByteReader(w.getvalue())
    assert r.u8() == 7
    assert r.sint(2) == -2
    assert r.bool() is True
    assert r.char() == "é"
    assert r.option(ByteReader.u8) is None
    assert r.option(ByteReader.u8) == 9
    assert r.vec(ByteReader.str) == ["a", "bc"]
    assert r.bytes() == b"\x00\x01"
    r.expect_end()


def test_expect_end_rejects_trailing_bytes() -> None:
    r = ByteReader(b"\x00\x00")
    r.u8()
    with pytest.raises(MalformedField, match="trailing"):
        r.expect_end()
