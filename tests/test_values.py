import pytest

from sling.values import Header, Values, canonical_header_key, is_token


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("content-tYPE", "Content-Type"),
        ("User-AGENT", "User-Agent"),
        ("a", "A"),
        ("x-request-id", "X-Request-Id"),
        ("not a token", "not a token"),
    ],
)
def test_canonical_header_key(raw, expected):
    assert canonical_header_key(raw) == expected


def test_is_token():
    assert is_token("GET")
    assert is_token("red")
    assert not is_token("@")
    assert not is_token("")
    assert not is_token("GET ")


def test_header_add_appends_under_canonical_key():
    header = Header()
    header.add("A", "B")
    header.add("a", "c")

    assert header == {"A": ["B", "c"]}
    assert header.values_for("a") == ["B", "c"]


def test_header_set_replaces_all_values():
    header = Header()
    header.add("A", "B")
    header.set("a", "c")

    assert header == {"A": ["c"]}


def test_header_lookup_is_case_insensitive():
    header = Header({"content-type": "application/json"})

    assert "CONTENT-TYPE" in header
    assert header.get("content-type") == "application/json"
    assert header["Content-type"] == ["application/json"]
    assert header.get("missing") == ""


def test_header_dict_methods_canonicalise_keys():
    header = Header({"Content-Type": "text/plain"})

    assert header.pop("content-type") == ["text/plain"]
    assert header.pop("content-type", None) is None

    header.setdefault("x-request-id", []).append("7")
    header.update({"user-agent": ["sling"]}, accept=["*/*"])

    assert header == {
        "X-Request-Id": ["7"],
        "User-Agent": ["sling"],
        "Accept": ["*/*"],
    }


def test_header_delete():
    header = Header({"Authorization": ["Bearer x"]})
    header.delete("authorization")
    header.delete("missing")

    assert header == {}


def test_header_copy_is_independent():
    header = Header({"A": ["1"]})
    copied = header.copy()
    copied.add("A", "2")
    copied.set("B", "3")

    assert header == {"A": ["1"]}
    assert isinstance(copied, Header)


def test_header_to_flat_joins_values():
    header = Header({"Accept": ["text/html", "application/json"], "X": "y"})

    assert header.to_flat() == {"Accept": "text/html, application/json", "X": "y"}


def test_values_keep_keys_verbatim():
    values = Values()
    values.add("Kind_Name", "recent")

    assert "kind_name" not in values
    assert values.get("Kind_Name") == "recent"


def test_values_extend_is_additive():
    values = Values({"limit": ["30"]})
    values.extend(Values({"limit": ["30"], "count": ["25"]}))

    assert values == {"limit": ["30", "30"], "count": ["25"]}


def test_values_encode_sorts_keys_and_keeps_value_order():
    values = Values()
    values.add("limit", "30")
    values.add("kind_name", "recent")
    values.add("count", "25")
    values.add("count", "5")

    assert values.encode() == "count=25&count=5&kind_name=recent&limit=30"


def test_values_encode_escapes():
    values = Values({"q": ["a b&c"]})

    assert values.encode() == "q=a+b%26c"
