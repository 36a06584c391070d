import pytest

from article_renderer.components.cookies.cookie_header import (
    base_url,
    host_of,
    normalize_domain,
    parse_cookie_string,
    parse_to_map,
    serialize_map,
    split_header_pairs,
    truncate,
    url_variants,
)
from article_renderer.core.exceptions import MalformedInputError


def test_parse_to_map_trims_names_and_values():
    assert parse_to_map(" a = 1 ;b=2") == {"a": "1", "b": "2"}


def test_parse_to_map_last_duplicate_wins():
    assert parse_to_map("a=1; b=2; a=3") == {"a": "3", "b": "2"}


def test_parse_to_map_skips_empty_and_malformed_segments():
    assert parse_to_map("a=1;; novalue ; =orphan; b=2;") == {"a": "1", "b": "2"}


def test_parse_to_map_keeps_equals_inside_values():
    assert parse_to_map("token=abc==; q=x=y") == {"token": "abc==", "q": "x=y"}


@pytest.mark.parametrize("header", [None, "", "   ", ";;"])
def test_parse_to_map_empty_input(header):
    assert parse_to_map(header) == {}


def test_split_header_pairs_preserves_order_and_duplicates():
    assert split_header_pairs("b=2; a=1; b=3") == [("b", "2"), ("a", "1"), ("b", "3")]


def test_serialize_map_reparses_to_same_mapping():
    cookies = {"session": "abc", "theme": "dark"}
    header = serialize_map(cookies)
    assert header == "session=abc; theme=dark"
    assert parse_to_map(header) == cookies


def test_parse_cookie_string_attributes():
    record = parse_cookie_string("sid=xyz; Domain=.example.com; Path=/news; Secure; HttpOnly; Max-Age=60")
    assert record.name == "sid"
    assert record.value == "xyz"
    assert record.domain == ".example.com"
    assert record.path == "/news"
    assert record.attributes["secure"] == ""
    assert record.attributes["httponly"] == ""
    assert record.attributes["max-age"] == "60"
    assert record.to_pair() == "sid=xyz"


def test_parse_cookie_string_bare_pair_has_no_scope():
    record = parse_cookie_string("a=1")
    assert record.domain is None
    assert record.path is None
    assert record.attributes == {}


@pytest.mark.parametrize("cookie", ["", "   ", "novalue; path=/", "=1; path=/"])
def test_parse_cookie_string_rejects_malformed(cookie):
    with pytest.raises(MalformedInputError):
        parse_cookie_string(cookie)


def test_base_url_and_host():
    assert base_url("https://News.Example.com:8443/a/b?c=1") == "https://news.example.com"
    assert host_of("http://WWW.Example.com/path") == "www.example.com"


@pytest.mark.parametrize("url", ["example.com/path", "/relative", ""])
def test_base_url_rejects_relative_urls(url):
    with pytest.raises(MalformedInputError):
        base_url(url)


@pytest.mark.parametrize("domain, expected", [
    ("example.com", "example.com"),
    ("www.example.com", "example.com"),
    (".example.com", "example.com"),
    ("  WWW.Example.COM ", "example.com"),
    ("news.example.com", "news.example.com"),
])
def test_normalize_domain(domain, expected):
    assert normalize_domain(domain) == expected


def test_url_variants_cover_scheme_and_www():
    assert url_variants("www.example.com") == [
        "https://example.com",
        "http://example.com",
        "https://www.example.com",
        "http://www.example.com",
    ]


def test_truncate():
    assert truncate(None) == ""
    assert truncate("short") == "short"
    assert truncate("x" * 250) == "x" * 200 + "..."
    assert truncate("abcdef", limit=3) == "abc..."
