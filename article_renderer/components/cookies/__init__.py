"""
Cookie component for the article renderer.

Holds the `CookieStore` adapter, the backends it can sit on, and the
helpers that convert between cookie header strings and mappings.
"""
from .backends import CookieBackend, MemoryCookieBackend, PlaywrightCookieBackend
from .cookie_header import CookieRecord, parse_to_map, serialize_map
from .cookie_store import CookieStore

__all__ = [
    "CookieBackend",
    "CookieRecord",
    "CookieStore",
    "MemoryCookieBackend",
    "PlaywrightCookieBackend",
    "parse_to_map",
    "serialize_map",
]
