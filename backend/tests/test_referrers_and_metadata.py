from __future__ import annotations

import pytest

from indeks.services.event_metadata import get_mapping, get_number, get_string, parse_metadata
from indeks.services.referrers import referrer_domain


@pytest.mark.parametrize(
    ("referrer", "expected"),
    [
        ("https://www.google.com/search?q=indeks", "www.google.com"),
        ("http://News.Ycombinator.com/item?id=1", "news.ycombinator.com"),
        ("https://example.test:8443/path", "example.test"),
        ("not a url", "not a url"),
        ("google.com", "google.com"),
        ("http://[::1", "http://[::1"),
        ("", ""),
    ],
)
def test_referrer_domain(referrer, expected):
    assert referrer_domain(referrer) == expected


def test_referrer_domain_none_is_empty():
    assert referrer_domain(None) == ""


def test_parse_metadata_accepts_json_text_and_mappings():
    assert parse_metadata('{"scrollPercentage": 40}') == {"scrollPercentage": 40}
    assert parse_metadata({"depth": 10}) == {"depth": 10}


@pytest.mark.parametrize("payload", ["", "{not json", "[1, 2]", "42", None, 17, ["a"]])
def test_parse_metadata_falls_back_to_empty_bag(payload):
    assert dict(parse_metadata(payload)) == {}


def test_get_number_rejects_non_numeric_values():
    metadata = {
        "int": 5,
        "float": 12.5,
        "text": "50",
        "flag": True,
        "nan": float("nan"),
        "none": None,
    }
    assert get_number(metadata, "int") == 5
    assert get_number(metadata, "float") == 12.5
    assert get_number(metadata, "text") is None
    assert get_number(metadata, "flag") is None
    assert get_number(metadata, "nan") is None
    assert get_number(metadata, "none") is None
    assert get_number(metadata, "missing") is None


def test_get_string_and_mapping_return_none_on_mismatch():
    metadata = {"id": "buy", "blank": "", "count": 3, "element": {"id": "x"}}
    assert get_string(metadata, "id") == "buy"
    assert get_string(metadata, "blank") is None
    assert get_string(metadata, "count") is None
    assert get_mapping(metadata, "element") == {"id": "x"}
    assert get_mapping(metadata, "id") is None
