"""
Manages the Playwright browser the renderer draws its surfaces from.

This module provides the `PlaywrightManager` class, an asynchronous context
manager that starts Playwright, launches one browser and one browser context,
and hands out a fresh page (wrapped as a `PlaywrightSurface`) for every
render. All pages share the context, and with it the cookie jar exposed as
`cookie_backend`.
"""
import json
import os
from typing import Optional, TYPE_CHECKING

from playwright.async_api import async_playwright, Browser, BrowserContext, Playwright

from article_renderer.components.cookies.backends import PlaywrightCookieBackend
from article_renderer.components.renderer.surface import PlaywrightSurface
from article_renderer.core.exceptions import RendererError
from article_renderer.core.logger import get_logger

if TYPE_CHECKING:
    from article_renderer.core.config import ConfigurationManager

logger = get_logger(__name__)

SUPPORTED_BROWSER_TYPES = ('chromium', 'firefox', 'webkit')


class PlaywrightManager:
    """
    Asynchronous context manager for the Playwright browser and its context.

    Configured via `components.playwright_manager.*`:
    `browser_type`, `headless` and `storage_state_path` (where the cookie jar
    is persisted on flush and restored from on startup).

    Attributes:
        browser_type (str): The type of browser to launch (e.g., 'chromium').
        playwright (Optional[Playwright]): The Playwright engine instance.
        browser (Optional[Browser]): The launched browser.
        context (Optional[BrowserContext]): The context every surface is opened in.
    """
    DEFAULT_BROWSER_TYPE = 'chromium'

    def __init__(self, config: Optional['ConfigurationManager'] = None):
        """
        Initializes the PlaywrightManager.

        Args:
            config (Optional[ConfigurationManager]): Source of the
                `components.playwright_manager.*` settings. Defaults are used if None.

        Raises:
            RendererError: If an unsupported browser type is configured.
        """
        if config:
            self.browser_type = config.get('components.playwright_manager.browser_type', self.DEFAULT_BROWSER_TYPE)
            self.headless = bool(config.get('components.playwright_manager.headless', True))
            self.storage_state_path = config.get('components.playwright_manager.storage_state_path')
        else:
            self.browser_type = self.DEFAULT_BROWSER_TYPE
            self.headless = True
            self.storage_state_path = None

        logger.info(f"PlaywrightManager configured to use browser: {self.browser_type}")

        if self.browser_type not in SUPPORTED_BROWSER_TYPES:
            logger.error(f"Unsupported browser type configured: {self.browser_type}")
            raise RendererError(f"Unsupported browser type: {self.browser_type}. Must be 'chromium', 'firefox', or 'webkit'.")

        self.playwright: Optional[Playwright] = None
        self.browser: Optional[Browser] = None
        self.context: Optional[BrowserContext] = None
        self._cookie_backend: Optional[PlaywrightCookieBackend] = None

    async def __aenter__(self) -> 'PlaywrightManager':
        """
        Starts Playwright, launches the browser and opens the shared context.

        Raises:
            RendererError: If Playwright fails to start or the browser fails to
                           launch (typically missing browser binaries).
        """
        logger.debug(f"Entering PlaywrightManager context: Starting Playwright and launching {self.browser_type} browser.")
        try:
            self.playwright = await async_playwright().start()
            browser_launcher = getattr(self.playwright, self.browser_type)
            self.browser = await browser_launcher.launch(headless=self.headless)

            context_options = {"java_script_enabled": True}
            if self.storage_state_path and os.path.exists(self.storage_state_path):
                context_options["storage_state"] = self.storage_state_path
                logger.info(f"Restoring cookies from {self.storage_state_path}")
            self.context = await self.browser.new_context(**context_options)
            self._cookie_backend = PlaywrightCookieBackend(self.context, self.storage_state_path)
            logger.info(f"{self.browser_type} browser launched successfully.")
        except Exception as e:
            logger.error(f"Failed to initialize Playwright or launch browser {self.browser_type}: {e}", exc_info=True)
            await self._shutdown()
            raise RendererError(f"Failed to initialize Playwright or launch browser {self.browser_type}: {e}")
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        logger.debug("Exiting PlaywrightManager context: Closing browser and stopping Playwright.")
        if self._cookie_backend is not None:
            try:
                await self._cookie_backend.flush()
            except Exception as e:
                logger.error(f"Error persisting cookies on shutdown: {e}", exc_info=True)
        await self._shutdown()

    async def _shutdown(self) -> None:
        if self.context:
            try:
                await self.context.close()
            except Exception as e:
                logger.error(f"Error closing browser context: {e}", exc_info=True)
        if self.browser:
            try:
                await self.browser.close()
                logger.info("Browser closed successfully.")
            except Exception as e:
                logger.error(f"Error closing browser: {e}", exc_info=True)
        if self.playwright:
            try:
                await self.playwright.stop()
                logger.info("Playwright stopped successfully.")
            except Exception as e:
                logger.error(f"Error stopping Playwright: {e}", exc_info=True)

        self.context = None
        self.browser = None
        self.playwright = None
        self._cookie_backend = None

    @property
    def cookie_backend(self) -> PlaywrightCookieBackend:
        if self._cookie_backend is None:
            raise RendererError("Browser is not initialized. Ensure PlaywrightManager is used within an 'async with' statement.")
        return self._cookie_backend

    async def new_surface(self, user_agent: Optional[str] = None) -> PlaywrightSurface:
        """
        Opens a new page in the shared context.

        Args:
            user_agent (Optional[str]): Overrides the User-Agent header and
                `navigator.userAgent` for this page only.

        Raises:
            RendererError: If the manager has not been entered or the page cannot be opened.
        """
        if not self.context:
            logger.error("new_surface called but browser is not initialized.")
            raise RendererError("Browser is not initialized. Ensure PlaywrightManager is used within an 'async with' statement.")

        try:
            page = await self.context.new_page()
            if user_agent:
                await page.set_extra_http_headers({"User-Agent": user_agent})
                await page.add_init_script(
                    "Object.defineProperty(navigator, 'userAgent', { get: () => %s });" % json.dumps(user_agent)
                )
        except Exception as e:
            logger.error(f"Failed to open a new page: {e}", exc_info=True)
            raise RendererError(f"Failed to open a new page: {e}")
        return PlaywrightSurface(page)
