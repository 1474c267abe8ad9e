"""Shared metadata fixtures built from static descriptors."""

from __future__ import annotations

import pytest

from desub.core.codec import encode_compact
from desub.metadata import (
    DecodeDifferent,
    DefaultByteGetter,
    FnEncode,
    FunctionArgumentMetadata,
    FunctionMetadata,
    ModuleConstantMetadata,
    ModuleMetadata,
    RuntimeMetadataPrefixed,
    RuntimeMetadataV8,
    StorageDoubleMap,
    StorageEntryMetadata,
    StorageEntryModifier,
    StorageHasher,
    StorageMap,
    StorageMetadata,
    StoragePlain,
)


class ZeroBalance:
    def default_byte(self) -> bytes:
        return bytes(16)


def _s(text: str) -> bytes:
    raw = text.encode("utf-8")
    return encode_compact(len(raw)) + raw


def balances_module() -> ModuleMetadata:
    return ModuleMetadata(
        name=DecodeDifferent.from_descriptor("Balances"),
        storage=None,
        calls=DecodeDifferent.from_descriptor(
            FnEncode(
                lambda: (
                    FunctionMetadata(
                        name=DecodeDifferent.from_descriptor("transfer"),
                        arguments=DecodeDifferent.from_descriptor(
                            (
                                FunctionArgumentMetadata(name="dest", ty="AccountId"),
                                FunctionArgumentMetadata(name="value", ty="Balance"),
                            )
                        ),
                        documentation=DecodeDifferent.from_descriptor(()),
                    ),
                )
            )
        ),
        event=None,
        constants=DecodeDifferent.from_descriptor(
            FnEncode(
                lambda: (
                    ModuleConstantMetadata(
                        name="ExistentialDeposit",
                        ty="Balance",
                        value=DefaultByteGetter(ZeroBalance()),
                        documentation=(),
                    ),
                )
            )
        ),
        errors=DecodeDifferent.from_descriptor(FnEncode(lambda: ())),
    )


def balances_bytes() -> bytes:
    """Hand-assembled wire form of the Balances-only metadata."""
    return b"".join(
        [
            b"meta",
            b"\x08",
            encode_compact(1),  # modules
            _s("Balances"),
            b"\x00",  # storage: None
            b"\x01",  # calls: Some
            encode_compact(1),
            _s("transfer"),
            encode_compact(2),
            _s("dest"),
            _s("AccountId"),
            _s("value"),
            _s("Balance"),
            encode_compact(0),  # call docs
            b"\x00",  # event: None
            encode_compact(1),  # constants
            _s("ExistentialDeposit"),
            _s("Balance"),
            encode_compact(16) + bytes(16),
            encode_compact(0),  # constant docs
            encode_compact(0),  # errors
        ]
    )


def system_module() -> ModuleMetadata:
    entries = (
        StorageEntryMetadata(
            name="Number",
            modifier=StorageEntryModifier.DEFAULT,
            ty=StoragePlain(ty="BlockNumber"),
            default=DefaultByteGetter(ZeroBalance()),
            documentation=("Current block number.",),
        ),
        StorageEntryMetadata(
            name="AccountNonce",
            modifier=StorageEntryModifier.DEFAULT,
            ty=StorageMap(
                hasher=StorageHasher.BLAKE2_256,
                key="AccountId",
                value="Index",
                is_linked=True,
            ),
            default=b"\x00\x00\x00\x00",
            documentation=(),
        ),
        StorageEntryMetadata(
            name="Approvals",
            modifier=StorageEntryModifier.OPTIONAL,
            ty=StorageDoubleMap(
                hasher=StorageHasher.TWOX64_CONCAT,
                key1="AccountId",
                key2="AccountId",
                value="Balance",
                key2_hasher=StorageHasher.BLAKE2_128,
            ),
            default=b"",
            documentation=("Allowances.", "Second line."),
        ),
    )
    return ModuleMetadata(
        name="System",
        storage=FnEncode(lambda: StorageMetadata(prefix="System", entries=entries)),
        calls=None,
        event=None,
        constants=FnEncode(lambda: ()),
        errors=FnEncode(lambda: ()),
    )


@pytest.fixture
def balances() -> RuntimeMetadataPrefixed:
    return RuntimeMetadataPrefixed.from_v8(RuntimeMetadataV8(modules=(balances_module(),)))


@pytest.fixture
def balances_blob() -> bytes:
    return balances_bytes()


@pytest.fixture
def runtime() -> RuntimeMetadataPrefixed:
    return RuntimeMetadataPrefixed.from_v8(RuntimeMetadataV8(modules=(system_module(), balances_module())))
