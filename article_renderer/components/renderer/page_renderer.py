"""
Entry point of the render pipeline.

`PageRenderer` prepares cookies for a request, asks its surface factory for a
fresh page, and hands both to a new `RenderSession`. Concurrent renders get
independent sessions and independent surfaces.
"""
from typing import Awaitable, Callable, Optional, TYPE_CHECKING

from article_renderer.components.cookies.cookie_header import truncate
from article_renderer.components.cookies.cookie_store import CookieStore
from article_renderer.components.renderer.models import RenderRequest, RenderResult
from article_renderer.components.renderer.readiness import ContentReadinessPoller
from article_renderer.components.renderer.sanitizer import DomSanitizer
from article_renderer.components.renderer.session import DEFAULT_SETTLE_DELAY_MS, RenderSession
from article_renderer.components.renderer.surface import BrowserSurface
from article_renderer.core.logger import get_logger

if TYPE_CHECKING:
    from article_renderer.core.config import ConfigurationManager

logger = get_logger(__name__)

SurfaceFactory = Callable[[Optional[str]], Awaitable[BrowserSurface]]

DEFAULT_TIMEOUT_MS = 15000
DEFAULT_POST_LOAD_DELAY_MS = 0


class PageRenderer:
    """
    Renders pages through the sanitize / poll / extract pipeline.

    Attributes:
        surface_factory (SurfaceFactory): Coroutine returning a new surface,
            given an optional user agent.
        cookie_store (CookieStore): The store request cookies are merged into.
    """

    def __init__(
        self,
        surface_factory: SurfaceFactory,
        cookie_store: CookieStore,
        config: Optional['ConfigurationManager'] = None,
        sanitizer: Optional[DomSanitizer] = None,
        poller: Optional[ContentReadinessPoller] = None,
    ):
        self.surface_factory = surface_factory
        self.cookie_store = cookie_store
        self.sanitizer = sanitizer or DomSanitizer(config=config)
        self.poller = poller or ContentReadinessPoller(config=config)

        if config:
            self.default_timeout_ms = int(config.get('components.renderer.default_timeout_ms', DEFAULT_TIMEOUT_MS))
            self.default_post_load_delay_ms = int(config.get('components.renderer.default_post_load_delay_ms', DEFAULT_POST_LOAD_DELAY_MS))
            self.settle_delay_ms = int(config.get('components.renderer.settle_delay_ms', DEFAULT_SETTLE_DELAY_MS))
        else:
            self.default_timeout_ms = DEFAULT_TIMEOUT_MS
            self.default_post_load_delay_ms = DEFAULT_POST_LOAD_DELAY_MS
            self.settle_delay_ms = DEFAULT_SETTLE_DELAY_MS

    async def render_url(
        self,
        url: Optional[str],
        timeout_ms: Optional[int] = None,
        post_load_delay_ms: Optional[int] = None,
        user_agent: Optional[str] = None,
        cookie_header: Optional[str] = None,
    ) -> Optional[RenderResult]:
        """
        Builds a `RenderRequest` from loose arguments and renders it.

        Returns:
            Optional[RenderResult]: None for an empty URL; no session is created.

        Raises:
            MalformedInputError: If the URL is not absolute or the timeout is not positive.
        """
        if not url:
            return None
        request = RenderRequest(
            target_url=url,
            timeout_ms=timeout_ms if timeout_ms is not None else self.default_timeout_ms,
            post_load_delay_ms=post_load_delay_ms if post_load_delay_ms is not None else self.default_post_load_delay_ms,
            user_agent=user_agent or None,
            cookie_header=cookie_header or None,
        )
        return await self.render(request)

    async def render(self, request: RenderRequest) -> RenderResult:
        """
        Renders one request.

        Raises:
            RenderTimeoutError: The session ran out of time.
            PageLoadError: The engine reported a navigation failure.
            RendererError: No surface could be created.
        """
        url = request.target_url
        logger.info(f"renderPage({url})")

        if request.cookie_header and request.cookie_header.strip():
            logger.debug(f"  Applying {len(request.cookie_header.split(';'))} cookies from header")
            logger.debug(f"  Cookie header: {truncate(request.cookie_header)}")
        await self.cookie_store.merge_header(url, request.cookie_header)
        await self.cookie_store.flush()

        if request.cookie_header:
            applied = await self.cookie_store.backend.get_cookie_header(url)
            if applied:
                logger.debug(f"  Cookies verified: {truncate(applied)}")
            else:
                logger.warning(f"  No cookies found for {url} after applying the cookie header.")

        surface = await self.surface_factory(request.user_agent)
        session = RenderSession(
            request=request,
            surface=surface,
            cookie_store=self.cookie_store,
            sanitizer=self.sanitizer,
            poller=self.poller,
            settle_delay_ms=self.settle_delay_ms,
        )
        return await session.run()
