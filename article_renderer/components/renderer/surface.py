"""
Browser surfaces.

A surface is one exclusively-owned page in a browser engine. The render
session drives it through four operations (load, evaluate, destroy, and the
two navigation events it reports back) and never touches the engine
directly.
"""
import asyncio
import json
from typing import Callable, Optional

from playwright.async_api import Error as PlaywrightError, Page

from article_renderer.core.exceptions import ScriptEvaluationError
from article_renderer.core.logger import get_logger

logger = get_logger(__name__)

LoadFinishedCallback = Callable[[str], None]
LoadErrorCallback = Callable[[Optional[int], Optional[str], Optional[str]], None]


class BrowserSurface:
    """
    Base class for browser surfaces.

    Subclasses implement `load`, `evaluate` and `destroy`, and report
    navigation results through `_emit_load_finished` / `_emit_load_error`.
    Events emitted after `destroy()` are dropped.
    """

    def __init__(self):
        self._on_load_finished: Optional[LoadFinishedCallback] = None
        self._on_load_error: Optional[LoadErrorCallback] = None
        self.destroyed = False

    def set_listeners(self, on_load_finished: LoadFinishedCallback, on_load_error: LoadErrorCallback) -> None:
        self._on_load_finished = on_load_finished
        self._on_load_error = on_load_error

    def _emit_load_finished(self, url: str) -> None:
        if self.destroyed or self._on_load_finished is None:
            return
        self._on_load_finished(url)

    def _emit_load_error(self, code: Optional[int], description: Optional[str], url: Optional[str]) -> None:
        if self.destroyed or self._on_load_error is None:
            return
        self._on_load_error(code, description, url)

    async def load(self, url: str) -> None:
        """Starts navigating to `url`. Returns once navigation has begun, not finished."""
        raise NotImplementedError

    async def evaluate(self, script: str) -> Optional[str]:
        """
        Runs `script` in the page and returns its result as JSON text.

        Raises:
            ScriptEvaluationError: If the script throws or cannot be evaluated.
        """
        raise NotImplementedError

    async def destroy(self) -> None:
        raise NotImplementedError


class PlaywrightSurface(BrowserSurface):
    """
    A surface backed by a Playwright `Page`.

    Navigation runs as a background task so `load()` returns immediately; the
    task reports back through the load-finished / load-error events the same
    way an embedded WebView would.
    """

    def __init__(self, page: Page):
        super().__init__()
        self.page = page
        self._navigation: Optional[asyncio.Task] = None

    async def load(self, url: str) -> None:
        self._navigation = asyncio.ensure_future(self._navigate(url))

    async def _navigate(self, url: str) -> None:
        try:
            # The session owns the time budget, so Playwright's own timeout is disabled.
            response = await self.page.goto(url, wait_until="load", timeout=0)
        except PlaywrightError as e:
            logger.debug(f"Navigation to {url} failed: {e.message}")
            self._emit_load_error(None, e.message, url)
            return
        if response is not None and response.status >= 400:
            logger.info(f"{url} answered HTTP {response.status}; rendering the error page as loaded.")
        self._emit_load_finished(self.page.url)

    async def evaluate(self, script: str) -> Optional[str]:
        try:
            value = await self.page.evaluate(script)
        except PlaywrightError as e:
            raise ScriptEvaluationError(f"Script evaluation failed: {e.message}")
        return json.dumps(value)

    async def destroy(self) -> None:
        if self.destroyed:
            return
        self.destroyed = True
        if self._navigation is not None and not self._navigation.done():
            self._navigation.cancel()
        try:
            await self.page.close()
        except PlaywrightError as e:
            logger.error(f"Error closing page: {e}", exc_info=True)
