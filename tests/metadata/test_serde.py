from desub.core.hashing import json_loads
from desub.metadata import (
    decode_metadata,
    metadata_fingerprint,
    metadata_to_json,
    metadata_to_json_obj,
)


def test_json_view_of_balances(balances) -> None:
    obj = metadata_to_json_obj(balances)

    assert obj["magic"] == 0x6174656D
    assert obj["metadata"]["version"] == 8
    module = obj["metadata"]["payload"]["modules"][0]
    assert module["name"] == "Balances"
    assert module["storage"] is None
    assert module["calls"][0]["arguments"] == [
        {"name": "dest", "ty": "AccountId"},
        {"name": "value", "ty": "Balance"},
    ]
    assert module["constants"][0]["value"] == "0x" + "00" * 16


def test_descriptor_and_decoded_share_json_and_fingerprint(balances, balances_blob) -> None:
    decoded = decode_metadata(balances_blob)

    assert metadata_to_json(decoded) == metadata_to_json(balances)
    assert metadata_fingerprint(decoded) == metadata_fingerprint(balances)
    assert metadata_to_json_obj(balances.v8) == metadata_to_json_obj(balances)


def test_storage_enums_serialize_as_values(runtime) -> None:
    obj = json_loads(metadata_to_json(runtime))
    entries = obj["metadata"]["payload"]["modules"][0]["storage"]["entries"]

    assert [e["ty"]["kind"] for e in entries] == ["plain", "map", "double_map"]
    assert entries[1]["ty"]["hasher"] == "blake2_256"
    assert entries[1]["ty"]["is_linked"] is True
    assert entries[2]["modifier"] == "optional"


def test_fingerprint_changes_with_content(balances, runtime) -> None:
    assert metadata_fingerprint(balances) != metadata_fingerprint(runtime)
    assert len(metadata_fingerprint(balances)) == 64
