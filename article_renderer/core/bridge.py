"""
Method-call bridge between a host application and the renderer.

The host (the reader app, or the HTTP API in `article_renderer.api`) invokes
operations by name with a mapping of arguments, the way a platform channel
delivers calls. `RenderBridge.handle()` dispatches them to the cookie store
and the page renderer.

Supported methods:
    getCookies(url)                     -> header string or None
    setCookie(url, cookie)              -> bool
    clearCookies()                      -> bool
    submitCookies(url)                  -> header string or None
    getAllCookiesForDomain(url)         -> {name: value} or None
    exportAllCookies(domains)           -> {domain: {name: value}}
    importCookies(cookies)              -> bool
    renderPage(url, timeoutMs, postLoadDelayMs, userAgent, cookieHeader) -> html or None

Missing or malformed arguments are answered with an empty result rather than
an error. Render timeouts and load errors propagate as `RenderTimeoutError`
and `PageLoadError`. Unknown method names raise `MethodNotImplementedError`.
"""
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional, TYPE_CHECKING

from article_renderer.components.cookies.cookie_store import CookieStore
from article_renderer.components.renderer.page_renderer import PageRenderer
from article_renderer.core.exceptions import MalformedInputError, MethodNotImplementedError
from article_renderer.core.logger import get_logger

if TYPE_CHECKING:
    from article_renderer.components.renderer.playwright_manager import PlaywrightManager
    from article_renderer.core.config import ConfigurationManager

logger = get_logger(__name__)

Handler = Callable[[Mapping[str, Any]], Awaitable[Any]]


def _str_arg(arguments: Mapping[str, Any], name: str) -> Optional[str]:
    value = arguments.get(name)
    if value is None:
        return None
    if not isinstance(value, str):
        raise MalformedInputError(f"Argument '{name}' must be a string, got {type(value).__name__}.")
    return value


def _int_arg(arguments: Mapping[str, Any], name: str) -> Optional[int]:
    value = arguments.get(name)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int):
        raise MalformedInputError(f"Argument '{name}' must be an integer, got {type(value).__name__}.")
    return value


class RenderBridge:
    """
    Dispatches named host calls to the cookie store and the renderer.

    Attributes:
        cookie_store (CookieStore): Shared by cookie calls and renders.
        renderer (PageRenderer): Runs `renderPage`.
    """

    def __init__(self, cookie_store: CookieStore, renderer: PageRenderer):
        self.cookie_store = cookie_store
        self.renderer = renderer
        self._handlers: Dict[str, Handler] = {
            "getCookies": self._get_cookies,
            "setCookie": self._set_cookie,
            "clearCookies": self._clear_cookies,
            "submitCookies": self._submit_cookies,
            "getAllCookiesForDomain": self._get_all_cookies_for_domain,
            "exportAllCookies": self._export_all_cookies,
            "importCookies": self._import_cookies,
            "renderPage": self._render_page,
        }

    @classmethod
    def from_playwright(cls, manager: 'PlaywrightManager', config: Optional['ConfigurationManager'] = None) -> 'RenderBridge':
        """Builds a bridge whose cookies and surfaces come from an entered `PlaywrightManager`."""
        cookie_store = CookieStore(manager.cookie_backend)
        renderer = PageRenderer(manager.new_surface, cookie_store, config=config)
        return cls(cookie_store, renderer)

    @property
    def methods(self) -> List[str]:
        return sorted(self._handlers)

    async def handle(self, method: str, arguments: Optional[Mapping[str, Any]] = None) -> Any:
        """
        Runs the named method.

        Raises:
            MethodNotImplementedError: If `method` is not one of `methods`.
            RenderTimeoutError, PageLoadError: From `renderPage`.
        """
        handler = self._handlers.get(method)
        if handler is None:
            logger.warning(f"Bridge call to unknown method '{method}'.")
            raise MethodNotImplementedError(method)

        if arguments is None:
            arguments = {}
        if not isinstance(arguments, Mapping):
            logger.warning(f"{method}: arguments must be a mapping, got {type(arguments).__name__}.")
            return None

        try:
            return await handler(arguments)
        except MalformedInputError as e:
            logger.warning(f"{method}: {e.message}")
            return None

    async def _get_cookies(self, arguments: Mapping[str, Any]) -> Optional[str]:
        return await self.cookie_store.get(_str_arg(arguments, "url"))

    async def _set_cookie(self, arguments: Mapping[str, Any]) -> bool:
        try:
            url = _str_arg(arguments, "url")
            cookie = _str_arg(arguments, "cookie")
        except MalformedInputError as e:
            logger.warning(f"setCookie: {e.message}")
            return False
        return await self.cookie_store.set(url, cookie)

    async def _clear_cookies(self, arguments: Mapping[str, Any]) -> bool:
        return await self.cookie_store.clear_all()

    async def _submit_cookies(self, arguments: Mapping[str, Any]) -> Optional[str]:
        return await self.cookie_store.submit(_str_arg(arguments, "url"))

    async def _get_all_cookies_for_domain(self, arguments: Mapping[str, Any]) -> Optional[Dict[str, str]]:
        return await self.cookie_store.cookies_for_domain(_str_arg(arguments, "url"))

    async def _export_all_cookies(self, arguments: Mapping[str, Any]) -> Dict[str, Dict[str, str]]:
        domains = arguments.get("domains")
        if not isinstance(domains, list):
            logger.warning("exportAllCookies: 'domains' must be a list.")
            return {}
        return await self.cookie_store.export_for_domains(d for d in domains if isinstance(d, str))

    async def _import_cookies(self, arguments: Mapping[str, Any]) -> bool:
        cookies = arguments.get("cookies")
        if not isinstance(cookies, Mapping):
            logger.warning("importCookies: 'cookies' must be a mapping of domain to cookies.")
            return False
        well_formed = {
            domain: {str(name): str(value) for name, value in values.items()}
            for domain, values in cookies.items()
            if isinstance(domain, str) and isinstance(values, Mapping)
        }
        if len(well_formed) != len(cookies):
            logger.warning(f"importCookies: skipped {len(cookies) - len(well_formed)} malformed domain entries.")
        await self.cookie_store.import_for_domains(well_formed)
        return True

    async def _render_page(self, arguments: Mapping[str, Any]) -> Optional[str]:
        result = await self.renderer.render_url(
            _str_arg(arguments, "url"),
            timeout_ms=_int_arg(arguments, "timeoutMs"),
            post_load_delay_ms=_int_arg(arguments, "postLoadDelayMs"),
            user_agent=_str_arg(arguments, "userAgent"),
            cookie_header=_str_arg(arguments, "cookieHeader"),
        )
        return result.html if result is not None else None
