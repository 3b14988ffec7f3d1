import pytest

from mbr.utils.url import construct_api_url, normalize_base_url


@pytest.mark.parametrize(
    "base_url, expected",
    [
        ("http://localhost:3000", "http://localhost:3000"),
        ("http://localhost:3000/", "http://localhost:3000"),
        ("  https://mb.example.com/api/ ", "https://mb.example.com"),
        ("https://host/metabase", "https://host/metabase"),
    ],
)
def test_normalize_base_url(base_url, expected):
    assert normalize_base_url(base_url) == expected


def test_construct_api_url_adds_leading_slash():
    assert construct_api_url("http://h:3000/", "api/card/1") == "http://h:3000/api/card/1"


def test_construct_api_url_keeps_context_path():
    url = construct_api_url("https://host/metabase", "/api/user/current")
    assert url == "https://host/metabase/api/user/current"


def test_construct_api_url_encodes_query_and_skips_none():
    url = construct_api_url(
        "http://h", "/api/search", {"q": "sales report", "models": "card", "limit": None}
    )
    assert url == "http://h/api/search?q=sales+report&models=card"
