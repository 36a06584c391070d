"""
Helpers for the two cookie representations the renderer passes around.

A *cookie header string* is what a browser sends for a URL:
``"name=value; name2=value2"``. A *cookie string* is what gets written into a
jar for a URL: ``"name=value; domain=.example.com; path=/"``. Both are
semicolon-delimited; malformed segments (no ``=``) are dropped rather than
reported.
"""
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Tuple
from urllib.parse import urlsplit

from article_renderer.core.exceptions import MalformedInputError


@dataclass(frozen=True)
class CookieRecord:
    """A single name/value pair, optionally scoped to a domain and path."""
    name: str
    value: str
    domain: Optional[str] = None
    path: Optional[str] = None
    attributes: Dict[str, str] = field(default_factory=dict, compare=False)

    def to_pair(self) -> str:
        return f"{self.name}={self.value}"


def split_header_pairs(header: Optional[str]) -> List[Tuple[str, str]]:
    """
    Splits a cookie header string into trimmed ``(name, value)`` pairs, in order.

    Empty segments and segments without ``=`` are skipped. Only the first ``=``
    separates name from value, so values may themselves contain ``=``.
    """
    pairs: List[Tuple[str, str]] = []
    if not header:
        return pairs
    for segment in header.split(";"):
        trimmed = segment.strip()
        if not trimmed or "=" not in trimmed:
            continue
        name, value = trimmed.split("=", 1)
        name = name.strip()
        if not name:
            continue
        pairs.append((name, value.strip()))
    return pairs


def parse_to_map(header: Optional[str]) -> Dict[str, str]:
    """
    Parses a cookie header string into a ``name -> value`` mapping.

    The last occurrence of a duplicated name wins.
    """
    cookie_map: Dict[str, str] = {}
    for name, value in split_header_pairs(header):
        cookie_map[name] = value
    return cookie_map


def serialize_map(cookies: Mapping[str, str]) -> str:
    """Serializes a ``name -> value`` mapping as a cookie header string."""
    return "; ".join(f"{name}={value}" for name, value in cookies.items())


def parse_cookie_string(cookie: str) -> CookieRecord:
    """
    Parses a jar-bound cookie string (``name=value; Domain=...; Path=...``).

    Attribute names are case-insensitive and stored lower-cased. Flag
    attributes such as ``Secure`` map to an empty string.

    Raises:
        MalformedInputError: If the leading segment is not a ``name=value`` pair.
    """
    if not cookie or not cookie.strip():
        raise MalformedInputError("Cookie string is empty.")
    segments = [segment.strip() for segment in cookie.split(";")]
    head = segments[0]
    if "=" not in head:
        raise MalformedInputError(f"Cookie string '{truncate(cookie)}' has no name=value pair.")
    name, value = head.split("=", 1)
    name = name.strip()
    if not name:
        raise MalformedInputError(f"Cookie string '{truncate(cookie)}' has an empty name.")

    attributes: Dict[str, str] = {}
    for segment in segments[1:]:
        if not segment:
            continue
        if "=" in segment:
            attr_name, attr_value = segment.split("=", 1)
            attributes[attr_name.strip().lower()] = attr_value.strip()
        else:
            attributes[segment.lower()] = ""

    domain = attributes.get("domain") or None
    path = attributes.get("path") or None
    return CookieRecord(name=name, value=value.strip(), domain=domain, path=path, attributes=attributes)


def base_url(url: str) -> str:
    """Returns the ``scheme://host`` part of an absolute URL."""
    parts = urlsplit(url)
    if not parts.scheme or not parts.hostname:
        raise MalformedInputError(f"'{url}' is not an absolute URL.")
    return f"{parts.scheme}://{parts.hostname}"


def host_of(url: str) -> str:
    """Returns the lower-cased host of an absolute URL."""
    host = urlsplit(url).hostname
    if not host:
        raise MalformedInputError(f"'{url}' has no host.")
    return host.lower()


def normalize_domain(domain: str) -> str:
    """Strips scheme-less decoration (leading dots, ``www.``) from a domain name."""
    normalized = domain.strip().lower().lstrip(".")
    if normalized.startswith("www."):
        normalized = normalized[len("www."):]
    return normalized


def url_variants(domain: str) -> List[str]:
    """The four URLs a domain's cookies are probed and written under."""
    bare = normalize_domain(domain)
    return [
        f"https://{bare}",
        f"http://{bare}",
        f"https://www.{bare}",
        f"http://www.{bare}",
    ]


def truncate(text: Optional[str], limit: int = 200) -> str:
    """Shortens cookie material for log lines."""
    if not text:
        return ""
    return text if len(text) <= limit else f"{text[:limit]}..."
