"""
Cookie backends consumed by the `CookieStore` adapter.

A backend is the jar itself: it knows how to read the header a URL would be
sent with, accept a cookie string for a URL, forget everything, and persist
itself. Two implementations are provided:

- `PlaywrightCookieBackend` wraps a Playwright `BrowserContext`, so cookies
  written here are the ones rendered pages actually see.
- `MemoryCookieBackend` is a self-contained jar following the host-only /
  domain / path rules browsers apply, used when no browser is running and
  throughout the test suite.
"""
import itertools
import os
import time
from dataclasses import dataclass
from email.utils import parsedate_to_datetime
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import urlsplit

from playwright.async_api import BrowserContext, Error as PlaywrightError

from article_renderer.components.cookies.cookie_header import CookieRecord, parse_cookie_string, truncate
from article_renderer.core.exceptions import CookieStoreError, MalformedInputError
from article_renderer.core.logger import get_logger

logger = get_logger(__name__)


class CookieBackend:
    """Interface every cookie jar exposes to the `CookieStore`."""

    async def get_cookie_header(self, url: str) -> Optional[str]:
        """Returns the ``name=value; ...`` header the URL would be sent with, or None."""
        raise NotImplementedError

    async def set_cookie(self, url: str, cookie: str) -> bool:
        """Stores a cookie string as if the URL had sent it. Returns False when rejected."""
        raise NotImplementedError

    async def remove_all(self) -> bool:
        raise NotImplementedError

    async def flush(self) -> None:
        """Persists pending writes."""
        raise NotImplementedError


# --- In-memory jar ---

@dataclass
class _StoredCookie:
    name: str
    value: str
    domain: str
    path: str
    host_only: bool
    secure: bool
    created: int


def _domain_match(host: str, domain: str) -> bool:
    if host == domain:
        return True
    if not host.endswith("." + domain):
        return False
    # IP literals never domain-match anything but themselves.
    return not host.replace(".", "").isdigit()


def _path_match(request_path: str, cookie_path: str) -> bool:
    if request_path == cookie_path:
        return True
    if not request_path.startswith(cookie_path):
        return False
    return cookie_path.endswith("/") or request_path[len(cookie_path)] == "/"


def _default_path(url_path: str) -> str:
    if not url_path or not url_path.startswith("/"):
        return "/"
    last_slash = url_path.rfind("/")
    if last_slash == 0:
        return "/"
    return url_path[:last_slash]


def _is_expired(record: CookieRecord) -> bool:
    max_age = record.attributes.get("max-age")
    if max_age is not None:
        try:
            return int(max_age) <= 0
        except ValueError:
            return False
    expires = record.attributes.get("expires")
    if expires:
        try:
            return parsedate_to_datetime(expires).timestamp() <= time.time()
        except (TypeError, ValueError):
            return False
    return False


class MemoryCookieBackend(CookieBackend):
    """
    An in-process cookie jar.

    Domain cookies (written with a ``domain`` attribute) and host-only cookies
    are kept apart, the way Chromium keys them, so writing the same pair once
    per scope yields two entries that may both be sent.
    """

    def __init__(self):
        self._cookies: Dict[Tuple[str, str, str], _StoredCookie] = {}
        self._sequence = itertools.count()
        self.flush_count = 0

    async def get_cookie_header(self, url: str) -> Optional[str]:
        parts = urlsplit(url)
        host = (parts.hostname or "").lower()
        if not host:
            return None
        request_path = parts.path or "/"
        is_secure = parts.scheme == "https"

        matching: List[_StoredCookie] = []
        for stored in self._cookies.values():
            if stored.host_only:
                if host != stored.domain:
                    continue
            elif not _domain_match(host, stored.domain):
                continue
            if not _path_match(request_path, stored.path):
                continue
            if stored.secure and not is_secure:
                continue
            matching.append(stored)

        if not matching:
            return None
        # Longer paths first, then oldest first, as browsers order the Cookie header.
        matching.sort(key=lambda c: (-len(c.path), c.created))
        return "; ".join(f"{c.name}={c.value}" for c in matching)

    async def set_cookie(self, url: str, cookie: str) -> bool:
        try:
            record = parse_cookie_string(cookie)
        except MalformedInputError as e:
            logger.debug(f"Rejected cookie for {url}: {e.message}")
            return False

        parts = urlsplit(url)
        host = (parts.hostname or "").lower()
        if not host:
            return False

        if record.domain:
            domain = record.domain.lower().lstrip(".")
            if not _domain_match(host, domain):
                logger.debug(f"Rejected cookie '{record.name}': domain '{domain}' does not cover host '{host}'.")
                return False
            host_only = False
        else:
            domain = host
            host_only = True

        path = record.path if record.path and record.path.startswith("/") else _default_path(parts.path)
        key = ("" if host_only else ".") + domain, path, record.name

        if _is_expired(record):
            self._cookies.pop(key, None)
            return True

        existing = self._cookies.get(key)
        self._cookies[key] = _StoredCookie(
            name=record.name,
            value=record.value,
            domain=domain,
            path=path,
            host_only=host_only,
            secure="secure" in record.attributes,
            created=existing.created if existing else next(self._sequence),
        )
        return True

    async def remove_all(self) -> bool:
        self._cookies.clear()
        return True

    async def flush(self) -> None:
        self.flush_count += 1

    def __len__(self) -> int:
        return len(self._cookies)


# --- Playwright-backed jar ---

class PlaywrightCookieBackend(CookieBackend):
    """
    Cookie jar of a Playwright `BrowserContext`.

    Every page the renderer opens lives in this context, so a cookie set here
    is sent with the page's navigation. `flush()` writes the context's storage
    state to `storage_state_path` when one is configured.
    """

    def __init__(self, context: BrowserContext, storage_state_path: Optional[str] = None):
        self.context = context
        self.storage_state_path = storage_state_path

    async def get_cookie_header(self, url: str) -> Optional[str]:
        try:
            cookies = await self.context.cookies(url)
        except PlaywrightError as e:
            logger.error(f"Failed to read cookies for {url}: {e}", exc_info=True)
            return None
        if not cookies:
            return None
        return "; ".join(f"{c['name']}={c['value']}" for c in cookies)

    async def set_cookie(self, url: str, cookie: str) -> bool:
        try:
            record = parse_cookie_string(cookie)
        except MalformedInputError as e:
            logger.debug(f"Rejected cookie for {url}: {e.message}")
            return False

        entry = self._to_playwright_cookie(url, record)
        if entry is None:
            return False
        try:
            await self.context.add_cookies([entry])
        except PlaywrightError as e:
            logger.warning(f"Browser rejected cookie '{record.name}' for {url}: {e}")
            return False
        logger.debug(f"Stored cookie {truncate(record.to_pair(), 40)} for {url}")
        return True

    @staticmethod
    def _to_playwright_cookie(url: str, record: CookieRecord) -> Optional[Dict[str, Any]]:
        entry: Dict[str, Any] = {"name": record.name, "value": record.value}
        if record.domain:
            # A leading dot makes Playwright scope the cookie to subdomains too.
            domain = record.domain if record.domain.startswith(".") else "." + record.domain
            entry["domain"] = domain
            entry["path"] = record.path or "/"
        elif record.path:
            host = urlsplit(url).hostname
            if not host:
                return None
            entry["domain"] = host
            entry["path"] = record.path
        else:
            entry["url"] = url

        attributes = record.attributes
        if "secure" in attributes:
            entry["secure"] = True
        if "httponly" in attributes:
            entry["httpOnly"] = True
        same_site = attributes.get("samesite", "").capitalize()
        if same_site in ("Strict", "Lax", "None"):
            entry["sameSite"] = same_site
        if "max-age" in attributes:
            try:
                entry["expires"] = time.time() + int(attributes["max-age"])
            except ValueError:
                pass
        return entry

    async def remove_all(self) -> bool:
        try:
            await self.context.clear_cookies()
        except PlaywrightError as e:
            logger.error(f"Failed to clear browser cookies: {e}", exc_info=True)
            return False
        return True

    async def flush(self) -> None:
        if not self.storage_state_path:
            return
        try:
            directory = os.path.dirname(os.path.abspath(self.storage_state_path))
            os.makedirs(directory, exist_ok=True)
            await self.context.storage_state(path=self.storage_state_path)
        except (OSError, PlaywrightError) as e:
            raise CookieStoreError(f"Failed to persist cookies to '{self.storage_state_path}': {e}")
