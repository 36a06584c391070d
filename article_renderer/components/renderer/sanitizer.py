"""
DOM sanitizer: strips client-side paywall obstructions from a rendered page.

The cleanup runs inside the page as a single injected script. It removes
overlay elements, clears blur filters, unhides subscriber-only blocks and
re-enables scrolling. Failures never abort a render; they are logged and the
pipeline carries on as if cleanup had been attempted.
"""
import json
from typing import Iterable, List, Optional, TYPE_CHECKING

from article_renderer.components.renderer.decoding import decode_script_result
from article_renderer.components.renderer.surface import BrowserSurface
from article_renderer.core.exceptions import ScriptEvaluationError
from article_renderer.core.logger import get_logger

if TYPE_CHECKING:
    from article_renderer.core.config import ConfigurationManager

logger = get_logger(__name__)

CLEANUP_DONE = "cleanup-done"
CLEANUP_SKIPPED = "cleanup-skipped"

OBSTRUCTION_SELECTORS: List[str] = [
    '[class*="paywall"]',
    '[id*="paywall"]',
    '[class*="premium"]',
    '[class*="subscribe-modal"]',
    '[class*="subscribe-prompt"]',
    '.overlay',
    '.modal-backdrop',
]

LOCKED_CONTENT_SELECTORS: List[str] = [
    '.subscriber-content',
    '.premium-content',
    '.locked-content',
    '[data-subscriber="true"]',
]

_SCRIPT_TEMPLATE = """
(function() {
    try {
        document.querySelectorAll(%(obstructions)s).forEach(function(el) { el.remove(); });

        document.querySelectorAll('*').forEach(function(el) {
            var style = window.getComputedStyle(el);
            var filter = style.filter || '';
            var webkitFilter = style.webkitFilter || '';
            if (filter.indexOf('blur') !== -1 || webkitFilter.indexOf('blur') !== -1) {
                el.style.filter = 'none';
                el.style.webkitFilter = 'none';
            }
        });

        document.querySelectorAll(%(locked)s).forEach(function(el) {
            el.style.display = 'block';
            el.style.visibility = 'visible';
            el.style.opacity = '1';
            el.style.height = 'auto';
        });

        if (document.body) { document.body.style.overflow = 'auto'; }
        document.documentElement.style.overflow = 'auto';
        return %(done)s;
    } catch (e) {
        return %(skipped)s;
    }
})()
"""


def build_sanitizer_script(obstruction_selectors: Iterable[str], locked_selectors: Iterable[str]) -> str:
    """Renders the cleanup script for the given selector lists."""
    return _SCRIPT_TEMPLATE % {
        "obstructions": json.dumps(", ".join(obstruction_selectors)),
        "locked": json.dumps(", ".join(locked_selectors)),
        "done": json.dumps(CLEANUP_DONE),
        "skipped": json.dumps(CLEANUP_SKIPPED),
    }


class DomSanitizer:
    """
    Runs the paywall cleanup script on a surface.

    Extra obstruction selectors can be supplied through
    `components.sanitizer.extra_obstruction_selectors`.
    """

    def __init__(self, config: Optional['ConfigurationManager'] = None, extra_obstruction_selectors: Optional[List[str]] = None):
        extra = list(extra_obstruction_selectors or [])
        if config:
            extra.extend(config.get('components.sanitizer.extra_obstruction_selectors', []) or [])
        self.obstruction_selectors = OBSTRUCTION_SELECTORS + [s for s in extra if s not in OBSTRUCTION_SELECTORS]
        self.script = build_sanitizer_script(self.obstruction_selectors, LOCKED_CONTENT_SELECTORS)

    async def clean(self, surface: BrowserSurface) -> bool:
        """
        Runs the cleanup and waits for it to finish.

        Returns:
            bool: True when the page reported the cleanup as done. False means the
            cleanup was skipped or failed; the render continues either way.
        """
        try:
            result = decode_script_result(await surface.evaluate(self.script))
        except ScriptEvaluationError as e:
            logger.warning(f"Paywall cleanup skipped: {e.message}")
            return False
        if result != CLEANUP_DONE:
            logger.warning(f"Paywall cleanup did not complete (script returned {result!r}).")
            return False
        logger.debug("Paywall cleanup done.")
        return True
