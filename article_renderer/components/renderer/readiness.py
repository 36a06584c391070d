"""
Content-readiness polling.

JavaScript-heavy article pages often finish "loading" long before the
article body is in the DOM. The poller repeatedly measures the paragraphs
inside likely article containers and stops as soon as there is enough text
to be worth extracting, or after a fixed number of attempts.

The same predicate can score a static HTML snapshot with BeautifulSoup,
which the renderer uses when it ran in fixed-delay mode and never polled.
"""
import asyncio
import json
from dataclasses import dataclass
from typing import Callable, Iterable, List, Optional, TYPE_CHECKING

from bs4 import BeautifulSoup

from article_renderer.components.renderer.decoding import decode_script_result
from article_renderer.components.renderer.models import ReadinessReport
from article_renderer.components.renderer.surface import BrowserSurface
from article_renderer.core.exceptions import ScriptEvaluationError
from article_renderer.core.logger import get_logger

if TYPE_CHECKING:
    from article_renderer.core.config import ConfigurationManager

logger = get_logger(__name__)

# No configuration may raise the attempt count past this.
HARD_MAX_ATTEMPTS = 10
DEFAULT_INTERVAL_MS = 500

CONTAINER_SELECTORS: List[str] = [
    'article',
    '[role="article"]',
    '[role="main"]',
    'main',
    '[class*="article-body"]',
    '[class*="article-content"]',
    '[class*="post-content"]',
    '[class*="entry-content"]',
    '[class*="story-body"]',
    '#content',
    '.content',
]
PARAGRAPH_SELECTOR = 'p'

_SCRIPT_TEMPLATE = """
(function() {
    var selectors = %(containers)s;
    var seen = new Set();
    var lengths = [];
    selectors.forEach(function(selector) {
        var containers;
        try { containers = document.querySelectorAll(selector); } catch (e) { return; }
        containers.forEach(function(container) {
            container.querySelectorAll(%(paragraph)s).forEach(function(p) {
                if (seen.has(p)) { return; }
                seen.add(p);
                lengths.push((p.textContent || '').trim().length);
            });
        });
    });
    return JSON.stringify({ lengths: lengths });
})()
"""

READINESS_SCRIPT = _SCRIPT_TEMPLATE % {
    "containers": json.dumps(CONTAINER_SELECTORS),
    "paragraph": json.dumps(PARAGRAPH_SELECTOR),
}


@dataclass(frozen=True)
class ReadinessThresholds:
    """
    The readiness predicate.

    A paragraph is meaningful when its trimmed text is longer than
    `min_paragraph_length`; a page is ready when it has at least
    `min_paragraphs` meaningful paragraphs holding at least
    `min_total_text_length` characters between them.
    """
    min_paragraph_length: int = 50
    min_paragraphs: int = 3
    min_total_text_length: int = 500

    def score(self, paragraph_lengths: Iterable[int]) -> ReadinessReport:
        meaningful = [length for length in paragraph_lengths if length > self.min_paragraph_length]
        count = len(meaningful)
        total = sum(meaningful)
        return ReadinessReport(
            has_content=count >= self.min_paragraphs and total >= self.min_total_text_length,
            paragraph_count=count,
            total_text_length=total,
        )


def inspect_html(html: Optional[str], thresholds: Optional[ReadinessThresholds] = None) -> ReadinessReport:
    """Applies the readiness predicate to an HTML snapshot."""
    thresholds = thresholds or ReadinessThresholds()
    if not html:
        return ReadinessReport.empty()
    soup = BeautifulSoup(html, 'html.parser')
    seen = set()
    lengths: List[int] = []
    for selector in CONTAINER_SELECTORS:
        for container in soup.select(selector):
            for paragraph in container.select(PARAGRAPH_SELECTOR):
                if id(paragraph) in seen:
                    continue
                seen.add(id(paragraph))
                lengths.append(len(paragraph.get_text().strip()))
    return thresholds.score(lengths)


@dataclass(frozen=True)
class PollResult:
    ready: bool
    report: ReadinessReport
    attempts: int


class ContentReadinessPoller:
    """
    Polls a surface until the readiness predicate holds or attempts run out.

    Attributes:
        max_attempts (int): Attempts per poll, never more than `HARD_MAX_ATTEMPTS`.
        interval_ms (int): Pause between attempts.
        thresholds (ReadinessThresholds): The predicate applied to each attempt.
    """

    def __init__(
        self,
        config: Optional['ConfigurationManager'] = None,
        max_attempts: Optional[int] = None,
        interval_ms: Optional[int] = None,
        thresholds: Optional[ReadinessThresholds] = None,
    ):
        if config:
            max_attempts = max_attempts if max_attempts is not None else config.get('components.readiness.max_attempts')
            interval_ms = interval_ms if interval_ms is not None else config.get('components.readiness.interval_ms')
            if thresholds is None:
                thresholds = ReadinessThresholds(
                    min_paragraph_length=int(config.get('components.readiness.min_paragraph_length', 50)),
                    min_paragraphs=int(config.get('components.readiness.min_paragraphs', 3)),
                    min_total_text_length=int(config.get('components.readiness.min_total_text_length', 500)),
                )

        attempts = int(max_attempts) if max_attempts is not None else HARD_MAX_ATTEMPTS
        if attempts > HARD_MAX_ATTEMPTS:
            logger.warning(f"Readiness max_attempts={attempts} exceeds the cap; using {HARD_MAX_ATTEMPTS}.")
        self.max_attempts = max(1, min(attempts, HARD_MAX_ATTEMPTS))
        self.interval_ms = int(interval_ms) if interval_ms is not None else DEFAULT_INTERVAL_MS
        self.thresholds = thresholds or ReadinessThresholds()

    async def check(self, surface: BrowserSurface) -> ReadinessReport:
        """
        One read-only readiness attempt. Any script failure reads as "not ready".
        """
        try:
            raw = decode_script_result(await surface.evaluate(READINESS_SCRIPT))
            lengths = json.loads(raw)["lengths"]
            return self.thresholds.score(int(length) for length in lengths)
        except ScriptEvaluationError as e:
            logger.debug(f"Readiness check failed: {e.message}")
        except (ValueError, TypeError, KeyError) as e:
            logger.debug(f"Readiness check returned an unusable result: {e}")
        return ReadinessReport.empty()

    async def wait_for_content(
        self,
        surface: BrowserSurface,
        is_live: Callable[[], bool] = lambda: True,
        on_attempt: Optional[Callable[[int, ReadinessReport], None]] = None,
    ) -> PollResult:
        """
        Polls until ready, exhausted, or `is_live()` turns False.

        Args:
            surface (BrowserSurface): The page to measure.
            is_live (Callable[[], bool]): Checked before every attempt; polling stops
                as soon as the owning session has completed.
            on_attempt (Optional[Callable]): Called with the attempt number and its report.

        Returns:
            PollResult: Whether content was found, the last report, and the attempts used.
        """
        report = ReadinessReport.empty()
        attempts = 0
        while attempts < self.max_attempts:
            if not is_live():
                break
            attempts += 1
            report = await self.check(surface)
            if on_attempt is not None:
                on_attempt(attempts, report)
            if report.has_content:
                logger.debug(
                    f"Content ready after {attempts} attempt(s): "
                    f"{report.paragraph_count} paragraphs, {report.total_text_length} chars."
                )
                return PollResult(ready=True, report=report, attempts=attempts)
            if attempts < self.max_attempts:
                await asyncio.sleep(self.interval_ms / 1000)

        logger.debug(
            f"Content not ready after {attempts} attempt(s) "
            f"({report.paragraph_count} paragraphs, {report.total_text_length} chars); extracting anyway."
        )
        return PollResult(ready=False, report=report, attempts=attempts)
