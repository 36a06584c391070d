"""
Cookie store adapter.

`CookieStore` is the only way the rest of the renderer touches cookies. It
wraps an injected `CookieBackend` and translates between cookie header
strings and ``name -> value`` mappings, including the bulk per-domain
export/import the host application uses to carry logins across restarts.
"""
from typing import Dict, Iterable, Mapping, Optional

from article_renderer.components.cookies.backends import CookieBackend
from article_renderer.components.cookies.cookie_header import (
    base_url,
    host_of,
    normalize_domain,
    parse_to_map,
    serialize_map,
    split_header_pairs,
    truncate,
    url_variants,
)
from article_renderer.core.exceptions import CookieStoreError, MalformedInputError
from article_renderer.core.logger import get_logger

logger = get_logger(__name__)


class CookieStore:
    """
    Adapter over a URL-and-domain-keyed cookie backend.

    Attributes:
        backend (CookieBackend): The jar all reads and writes go to.
    """

    # Kept as static helpers so callers holding only a store can still use them.
    parse_to_map = staticmethod(parse_to_map)
    serialize = staticmethod(serialize_map)

    def __init__(self, backend: CookieBackend):
        self.backend = backend

    async def get(self, url: Optional[str]) -> Optional[str]:
        """
        Returns the cookie header the backend would send for `url`.

        Returns:
            Optional[str]: The header string, or None for an empty URL or an empty jar.
        """
        if not url:
            return None
        await self.flush()
        header = await self.backend.get_cookie_header(url)
        if not header:
            logger.debug(f"get({url}): No cookies found")
            return None
        logger.debug(f"get({url}): Found {len(header.split(';'))} cookies")
        logger.debug(f"  Cookies: {truncate(header)}")
        return header

    async def set(self, url: Optional[str], cookie: Optional[str]) -> bool:
        """
        Writes one cookie string for `url` and flushes.

        Returns:
            bool: False for a missing URL/cookie or when the backend rejects it.
        """
        if not url or not cookie:
            return False
        accepted = await self.backend.set_cookie(url, cookie)
        await self.flush()
        return accepted

    async def clear_all(self) -> bool:
        cleared = await self.backend.remove_all()
        await self.flush()
        logger.info(f"Cookie jar cleared (success={cleared}).")
        return cleared

    async def submit(self, url: Optional[str]) -> Optional[str]:
        """
        Flushes and returns the header for `url`.

        Used by the host after an in-app login to pull the session cookies the
        browser just received.
        """
        if not url:
            return None
        await self.flush()
        return await self.backend.get_cookie_header(url) or None

    async def flush(self) -> bool:
        """Persists the backend. Failures are logged, never raised."""
        try:
            await self.backend.flush()
        except CookieStoreError as e:
            logger.error(f"Cookie flush failed: {e.message}")
            return False
        return True

    async def merge_header(self, url: str, raw_header: Optional[str]) -> int:
        """
        Applies every ``name=value`` pair of a cookie header to `url`.

        Each pair is written to the scheme+host base URL and to the exact URL,
        so both host-scoped and path-scoped lookups find it. Empty segments and
        segments without ``=`` are skipped.

        Returns:
            int: The number of pairs applied.
        """
        if not raw_header or not raw_header.strip():
            logger.debug(f"merge_header({url}): No cookies to apply (cookie header is empty)")
            return 0

        root = base_url(url)
        applied = 0
        for name, value in split_header_pairs(raw_header):
            pair = f"{name}={value}"
            await self.backend.set_cookie(root, pair)
            await self.backend.set_cookie(url, pair)
            applied += 1
        logger.debug(f"merge_header({url}): Applied {applied} cookies from header {truncate(raw_header)}")
        return applied

    async def cookies_for_domain(self, url: Optional[str]) -> Optional[Dict[str, str]]:
        """
        Returns the cookies sent to `url` as a ``name -> value`` mapping.

        Returns:
            Optional[Dict[str, str]]: None for an empty URL, an empty mapping when
            the URL cannot be parsed or the jar has nothing for it.
        """
        if not url:
            return None
        try:
            host = host_of(url)
        except MalformedInputError as e:
            logger.error(f"Error getting cookies: {e.message}")
            return {}
        await self.flush()
        cookie_map = parse_to_map(await self.backend.get_cookie_header(url))
        logger.debug(f"cookies_for_domain({url}): Found {len(cookie_map)} cookies for host {host}")
        for name, value in cookie_map.items():
            logger.debug(f"  Cookie: {name} = {truncate(value, 20)}")
        return cookie_map

    async def export_for_domains(self, domains: Iterable[str]) -> Dict[str, Dict[str, str]]:
        """
        Collects the cookies of each domain across its https/http and www/bare URLs.

        Results are keyed by the domain as requested (whitespace stripped).
        Domains whose probes all come back empty are left out of the result.
        """
        exported: Dict[str, Dict[str, str]] = {}
        for domain in domains:
            if not domain or not domain.strip():
                continue
            key = domain.strip()
            merged: Dict[str, str] = {}
            for url in url_variants(normalize_domain(key)):
                merged.update(parse_to_map(await self.backend.get_cookie_header(url)))
            if merged:
                exported[key] = merged
        logger.info(f"Exported cookies for {len(exported)} of the requested domains.")
        return exported

    async def import_for_domains(self, cookies_by_domain: Mapping[str, Mapping[str, str]]) -> int:
        """
        Writes a ``domain -> {name: value}`` mapping back into the jar.

        Every record is written under each of the domain's four URL variants,
        twice per URL: once with a ``domain=.<domain>`` attribute and once
        host-exact. Engines disagree on how they scope each form, and writing
        both keeps the cookie retrievable under all of them.

        Returns:
            int: The number of writes the backend accepted.
        """
        accepted = 0
        for domain, cookies in cookies_by_domain.items():
            if not domain or not cookies:
                continue
            bare = normalize_domain(domain)
            for url in url_variants(bare):
                for name, value in cookies.items():
                    if await self.backend.set_cookie(url, f"{name}={value}; domain=.{bare}; path=/"):
                        accepted += 1
                    if await self.backend.set_cookie(url, f"{name}={value}; path=/"):
                        accepted += 1
        await self.flush()
        logger.info(f"Imported cookies for {len(cookies_by_domain)} domains ({accepted} writes accepted).")
        return accepted
