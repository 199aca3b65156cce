"""Tests for bracket-notation query string decoding."""

from logbook.utils.query_string import decode_nested, split_key


def test_split_key():
    assert split_key("filter[created][from]") == ["filter", "created", "from"]
    assert split_key("mimetype") == ["mimetype"]
    assert split_key("broken[key") == ["broken[key"]


def test_nested_decoding():
    decoded = decode_nested([
        ("filter[created][from]", "1"),
        ("filter[tag][values]", "1,2"),
        ("filter[created][to]", "2"),
        ("page[limit]", "10"),
    ])

    assert decoded == {
        "filter": {"created": {"from": "1", "to": "2"}, "tag": {"values": "1,2"}},
        "page": {"limit": "10"},
    }


def test_key_order_follows_first_appearance():
    decoded = decode_nested([("sort[title]", "asc"), ("sort[id]", "desc"), ("sort[title]", "desc")])

    assert list(decoded["sort"].items()) == [("title", "desc"), ("id", "desc")]


def test_object_wins_over_scalar():
    assert decode_nested([("filter", "x"), ("filter[title]", "a")]) == {"filter": {"title": "a"}}
    assert decode_nested([("filter[title]", "a"), ("filter", "x")]) == {"filter": {"title": "a"}}
