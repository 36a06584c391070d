"""
Renderer component for the article renderer.

Loads pages in a headless browser, removes paywall obstructions, waits for
the article body to appear and extracts the final HTML.
"""
from .models import ReadinessReport, RenderRequest, RenderResult
from .page_renderer import PageRenderer
from .playwright_manager import PlaywrightManager
from .readiness import ContentReadinessPoller, ReadinessThresholds, inspect_html
from .sanitizer import DomSanitizer
from .session import CompletionLatch, RenderSession

__all__ = [
    "CompletionLatch",
    "ContentReadinessPoller",
    "DomSanitizer",
    "PageRenderer",
    "PlaywrightManager",
    "ReadinessReport",
    "ReadinessThresholds",
    "RenderRequest",
    "RenderResult",
    "RenderSession",
    "inspect_html",
]
