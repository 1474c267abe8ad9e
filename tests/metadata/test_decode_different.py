"""Tests for the dual-representation cell in `desub.metadata.decode_different`."""

import pytest
from pydantic import ValidationError

from desub.core.codec import ByteWriter
from desub.metadata import (
    DecodeDifferent,
    DefaultByteGetter,
    ErrorMetadata,
    FnEncode,
    ModuleConstantMetadata,
)
from desub.metadata.decode_different import materialize_descriptor, to_plain


class _Calls:
    def __init__(self) -> None:
        self.n = 0

    def default_byte(self) -> bytes:
        self.n += 1
        return b"\x2a\x00"


def _encoded(cell, write) -> bytes:
    w = ByteWriter()
    cell.encode_to(w, write)
    return w.getvalue()


def test_static_and_decoded_strings_encode_identically() -> None:
    described = DecodeDifferent.from_descriptor("Balances")
    decoded = DecodeDifferent.from_decoded("Balances")

    assert described == decoded
    assert _encoded(described, ByteWriter.str) == _encoded(decoded, ByteWriter.str)
    assert _encoded(described, ByteWriter.str) == b"\x20Balances"


def test_fn_descriptor_equals_decoded_list() -> None:
    described = DecodeDifferent.from_descriptor(FnEncode(lambda: ("a", "b")))
    decoded = DecodeDifferent.from_decoded(["a", "b"])

    assert described == decoded
    assert described.materialize() == ["a", "b"]
    assert isinstance(described.materialize(), list)
    assert DecodeDifferent.from_decoded(["a"]) != decoded


def test_materialize_returns_fresh_copy() -> None:
    cell = DecodeDifferent.from_descriptor(("x",))
    first = cell.materialize()
    first.append("y")

    assert cell.materialize() == ["x"]


def test_default_byte_getter_is_lazy() -> None:
    source = _Calls()
    cell = DecodeDifferent.from_descriptor(DefaultByteGetter(source))
    assert source.n == 0

    assert cell.materialize() == b"\x2a\x00"
    assert cell == DecodeDifferent.from_decoded(b"\x2a\x00")
    assert source.n == 2


def test_representation_flags_and_raw() -> None:
    fn = FnEncode(lambda: ())
    cell = DecodeDifferent.from_descriptor(fn)

    assert cell.is_descriptor and not cell.is_decoded
    assert cell.raw is fn
    assert materialize_descriptor(fn) == []
    assert materialize_descriptor(("a",)) == ["a"]


def test_cells_are_unhashable() -> None:
    with pytest.raises(TypeError):
        hash(DecodeDifferent.from_decoded("x"))


def test_to_plain_json_mode() -> None:
    cell = DecodeDifferent.from_decoded([b"\x01\x02", ("k", FnEncode(lambda: ("v",)))])

    assert to_plain(cell, "json") == ["0x0102", ["k", ["v"]]]
    assert to_plain(cell) == [b"\x01\x02", ["k", ["v"]]]


def test_record_fields_accept_raw_values_and_descriptors() -> None:
    a = ErrorMetadata(name="Overflow", documentation=("Too big.",))
    b = ErrorMetadata(
        name=DecodeDifferent.from_decoded("Overflow"),
        documentation=FnEncode(lambda: ("Too big.",)),
    )

    assert a == b
    assert a.documentation.is_descriptor
    assert a.encode() == b.encode()
    assert a.model_dump(mode="json") == {"name": "Overflow", "documentation": ["Too big."]}


def test_record_fields_reject_none() -> None:
    with pytest.raises(ValidationError):
        ErrorMetadata(name=None, documentation=())


def test_decoded_cell_keeps_its_own_copy() -> None:
    docs = ["a"]
    err = ErrorMetadata(name="X", documentation=docs)

    docs.append("b")
    err.documentation.materialize().append("c")

    assert err.documentation.materialize() == ["a"]
    assert err.encode() == b"\x04X\x04\x04a"


def test_decoded_cell_stores_nested_sequences_as_tuples() -> None:
    cell = DecodeDifferent.from_decoded([("k", ["v"])])

    assert cell.raw == (("k", ("v",)),)
    assert cell == DecodeDifferent.from_descriptor((("k", FnEncode(lambda: ("v",))),))


@pytest.mark.parametrize(
    "kwargs",
    [
        {"name": 5, "documentation": []},
        {"name": "X", "documentation": [1]},
        {"name": DecodeDifferent.from_decoded(5), "documentation": []},
    ],
)
def test_record_fields_validate_decoded_content(kwargs) -> None:
    with pytest.raises(ValidationError):
        ErrorMetadata(**kwargs)


def test_byte_cells_accept_hex_from_json_dump() -> None:
    const = ModuleConstantMetadata(name="ExistentialDeposit", ty="Balance", value=b"\x01\x00", documentation=[])

    back = ModuleConstantMetadata.model_validate(const.model_dump(mode="json"))

    assert back == const
    assert back.value.materialize() == b"\x01\x00"
    assert back.encode() == const.encode()
