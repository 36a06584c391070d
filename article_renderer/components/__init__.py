"""
Components sub-package for the article renderer.

- `renderer`: browser surfaces, the DOM sanitizer, the readiness poller and
  the render session controller.
- `cookies`: the cookie store adapter and its backends.

The `__all__` variable defines the public API of this sub-package.
"""
from .cookies.cookie_store import CookieStore
from .cookies.backends import MemoryCookieBackend, PlaywrightCookieBackend
from .renderer.page_renderer import PageRenderer
from .renderer.playwright_manager import PlaywrightManager

__all__ = [
    "CookieStore",
    "MemoryCookieBackend",
    "PageRenderer",
    "PlaywrightCookieBackend",
    "PlaywrightManager",
]
