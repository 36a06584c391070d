"""
Render session controller.

A `RenderSession` drives one page load end to end: it starts a timeout
timer, begins navigation, and when the page reports it has finished it runs
the sanitizer, the readiness poller and the HTML extraction. Three things
can end a session (the timer, a load error, or a successful extraction) and
they race each other on the asyncio event loop. A `CompletionLatch` decides
the winner: every terminal branch calls `try_complete()` and only the first
call takes effect. Teardown (timer cancelled, cookies flushed on success,
surface destroyed) happens exactly once, after the latch has closed.
"""
import asyncio
from typing import Optional

from article_renderer.components.cookies.cookie_store import CookieStore
from article_renderer.components.renderer.decoding import decode_script_result
from article_renderer.components.renderer.models import (
    MODE_FIXED_DELAY,
    STATUS_CANCELLED,
    STATUS_LOAD_ERROR,
    STATUS_SUCCESS,
    STATUS_TIMEOUT,
    ReadinessReport,
    RenderOutcome,
    RenderRequest,
    RenderResult,
)
from article_renderer.components.renderer.readiness import ContentReadinessPoller, inspect_html
from article_renderer.components.renderer.sanitizer import DomSanitizer
from article_renderer.components.renderer.surface import BrowserSurface
from article_renderer.core.exceptions import (
    PageLoadError,
    RendererError,
    RenderTimeoutError,
    ScriptEvaluationError,
)
from article_renderer.core.logger import get_logger

logger = get_logger(__name__)

OUTER_HTML_SCRIPT = "(function(){return document.documentElement.outerHTML;})()"
DEFAULT_SETTLE_DELAY_MS = 500


class CompletionLatch:
    """
    Single-writer completion flag.

    The event loop runs one callback at a time, so a plain attribute is enough;
    what matters is that every terminal path checks and sets it before doing
    anything else.
    """

    def __init__(self):
        self._outcome: Optional[RenderOutcome] = None

    @property
    def completed(self) -> bool:
        return self._outcome is not None

    @property
    def outcome(self) -> Optional[RenderOutcome]:
        return self._outcome

    def try_complete(self, outcome: RenderOutcome) -> bool:
        """Closes the latch with `outcome`. Returns False if it was already closed."""
        if self._outcome is not None:
            return False
        self._outcome = outcome
        return True


class RenderSession:
    """
    One render of one `RenderRequest` on one exclusively-owned surface.

    Attributes:
        request (RenderRequest): What to render.
        surface (BrowserSurface): The page this session owns until teardown.
        latch (CompletionLatch): Holds the session's single outcome.
        poll_attempt_count (int): Readiness attempts made so far.
    """

    def __init__(
        self,
        request: RenderRequest,
        surface: BrowserSurface,
        cookie_store: CookieStore,
        sanitizer: DomSanitizer,
        poller: ContentReadinessPoller,
        settle_delay_ms: int = DEFAULT_SETTLE_DELAY_MS,
    ):
        self.request = request
        self.surface = surface
        self.cookie_store = cookie_store
        self.sanitizer = sanitizer
        self.poller = poller
        self.settle_delay_ms = settle_delay_ms

        self.latch = CompletionLatch()
        self.poll_attempt_count = 0

        self._timer: Optional[asyncio.TimerHandle] = None
        self._pipeline: Optional[asyncio.Future] = None
        self._outcome_ready: Optional[asyncio.Future] = None
        self._surface_released = False
        self._started = False

    def is_live(self) -> bool:
        return not self.latch.completed

    async def run(self) -> RenderResult:
        """
        Renders the page and returns the extracted HTML.

        Raises:
            RenderTimeoutError: If the timeout fired before the render finished.
            PageLoadError: If the engine reported a navigation failure, or the
                           final HTML could not be read from the page.
        """
        if self._started:
            raise RendererError("A render session can only run once.")
        self._started = True

        loop = asyncio.get_running_loop()
        self._outcome_ready = loop.create_future()
        self.surface.set_listeners(self._on_load_finished, self._on_load_error)
        self._timer = loop.call_later(self.request.timeout_ms / 1000, self._on_timeout)
        logger.debug(f"Render session started for {self.request.target_url} ({self.request.mode} mode, timeout {self.request.timeout_ms}ms).")

        try:
            try:
                await self.surface.load(self.request.target_url)
            except RendererError as e:
                self._on_load_error(None, e.message, self.request.target_url)
            except Exception as e:
                logger.error(f"Navigation to {self.request.target_url} failed to start: {e}", exc_info=True)
                self._on_load_error(None, f"Navigation failed: {e}", self.request.target_url)
            outcome = await self._outcome_ready
        except asyncio.CancelledError:
            self.latch.try_complete(RenderOutcome(status=STATUS_CANCELLED))
            logger.info(f"Render of {self.request.target_url} cancelled by caller.")
            raise
        finally:
            await self._teardown()

        return self._to_result(outcome)

    # --- Event handlers (all run on the event loop) ---

    def _on_timeout(self) -> None:
        if self.latch.completed:
            return
        error = RenderTimeoutError(self.request.target_url, self.request.timeout_ms)
        if self._complete(RenderOutcome(status=STATUS_TIMEOUT, error=error)):
            logger.warning(f"Timed out rendering {self.request.target_url} after {self.request.timeout_ms}ms.")

    def _on_load_error(self, code: Optional[int], description: Optional[str], failing_url: Optional[str]) -> None:
        if self.latch.completed:
            logger.debug(f"Ignoring load error for completed session: {description}")
            return
        error = PageLoadError(
            description or "Page load failed",
            url=failing_url or self.request.target_url,
            error_code=code,
        )
        if self._complete(RenderOutcome(status=STATUS_LOAD_ERROR, error=error)):
            logger.warning(f"Load error rendering {self.request.target_url}: {error.description}")

    def _on_load_finished(self, finished_url: str) -> None:
        if self.latch.completed:
            logger.debug(f"Ignoring late load-finished event for {finished_url}.")
            return
        if self._pipeline is not None:
            logger.debug(f"Ignoring duplicate load-finished event for {finished_url}.")
            return
        self._pipeline = asyncio.ensure_future(self._process_page(finished_url))

    def _record_attempt(self, attempt: int, report: ReadinessReport) -> None:
        self.poll_attempt_count = attempt

    # --- Pipeline ---

    async def _process_page(self, finished_url: str) -> None:
        try:
            await self._extract(finished_url)
        except Exception as e:
            logger.error(f"Render pipeline failed for {finished_url}: {e}", exc_info=True)
            self._complete(RenderOutcome(
                status=STATUS_LOAD_ERROR,
                error=PageLoadError(f"Render pipeline failed: {e}", url=finished_url),
            ))

    async def _extract(self, finished_url: str) -> None:
        fixed_delay = self.request.mode == MODE_FIXED_DELAY

        if fixed_delay:
            await asyncio.sleep(self.request.post_load_delay_ms / 1000)
            if self.latch.completed:
                return

        # Cleanup must settle before readiness is measured.
        await self.sanitizer.clean(self.surface)
        if self.latch.completed:
            return

        report: Optional[ReadinessReport] = None
        content_ready: Optional[bool] = None
        if fixed_delay:
            await asyncio.sleep(self.settle_delay_ms / 1000)
        else:
            poll = await self.poller.wait_for_content(
                self.surface, is_live=self.is_live, on_attempt=self._record_attempt
            )
            report, content_ready = poll.report, poll.ready
        if self.latch.completed:
            return

        try:
            raw = await self.surface.evaluate(OUTER_HTML_SCRIPT)
        except ScriptEvaluationError as e:
            if not self.latch.completed:
                self._complete(RenderOutcome(
                    status=STATUS_LOAD_ERROR,
                    error=PageLoadError(f"Failed to extract HTML: {e.message}", url=finished_url),
                ))
            return
        if self.latch.completed:
            return

        html = decode_script_result(raw)
        if content_ready is None:
            report = inspect_html(html, self.poller.thresholds)
            content_ready = report.has_content
        if self._complete(RenderOutcome(status=STATUS_SUCCESS, html=html, report=report, content_ready=content_ready)):
            logger.info(f"HTML extracted from {finished_url} ({len(html or '')} chars, content_ready={content_ready}).")

    # --- Completion ---

    def _complete(self, outcome: RenderOutcome) -> bool:
        if not self.latch.try_complete(outcome):
            return False
        if self._timer is not None:
            self._timer.cancel()
        if self._outcome_ready is not None and not self._outcome_ready.done():
            self._outcome_ready.set_result(outcome)
        return True

    async def _teardown(self) -> None:
        if self._timer is not None:
            self._timer.cancel()

        pipeline = self._pipeline
        if pipeline is not None and not pipeline.done():
            pipeline.cancel()
            await asyncio.wait([pipeline])

        outcome = self.latch.outcome
        if outcome is not None and outcome.succeeded:
            try:
                await self.cookie_store.flush()
            except Exception as e:
                logger.error(f"Cookie flush after rendering {self.request.target_url} failed: {e}", exc_info=True)

        if self._surface_released:
            return
        self._surface_released = True
        try:
            await self.surface.destroy()
        except Exception as e:
            logger.error(f"Error releasing surface for {self.request.target_url}: {e}", exc_info=True)

    def _to_result(self, outcome: RenderOutcome) -> RenderResult:
        if outcome.status == STATUS_SUCCESS:
            return RenderResult(
                url=self.request.target_url,
                html=outcome.html,
                content_ready=bool(outcome.content_ready),
                mode=self.request.mode,
                poll_attempts=self.poll_attempt_count,
                report=outcome.report,
            )
        raise outcome.error
