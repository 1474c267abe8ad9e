from desub.core.hashing import hash_bytes, hash_json, json_dumps_canonical, json_loads


def test_json_dumps_canonical_sorted_and_ascii_policy() -> None:
    obj1 = {"b": 2, "a": 1, "nested": {"y": 2, "x": 1}, "doc": "ünïcode"}
    obj2 = {"nested": {"x": 1, "y": 2}, "a": 1, "doc": "ünïcode", "b": 2}
    s1 = json_dumps_canonical(obj1)
    s2 = json_dumps_canonical(obj2)
    assert s1 == s2  # keys sorted canonically
    assert "ünïcode" in s1
    assert " " not in json_dumps_canonical({"a": [1, 2]})


def test_hash_json_order_invariant() -> None:
    assert hash_json({"x": 1, "z": {"b": 2, "a": 1}}) == hash_json({"z": {"a": 1, "b": 2}, "x": 1})


def test_hash_bytes_is_sha256_hex() -> None:
    digest = hash_bytes(b"")
    assert digest == "e3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855"


def test_canonical_dump_parses_back() -> None:
    obj = {"k": [1, 2, 3], "m": {"n": 4}}
    s = json_dumps_canonical(obj)
    back = json_loads(s)
    assert back == obj
