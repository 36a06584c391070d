import asyncio
import json
import os

# Short poll intervals and settle delays for everything built from the global config.
os.environ.setdefault("APP_ENV", "testing")

import pytest

from article_renderer.components.cookies.backends import MemoryCookieBackend
from article_renderer.components.cookies.cookie_store import CookieStore
from article_renderer.components.renderer.page_renderer import PageRenderer
from article_renderer.components.renderer.readiness import READINESS_SCRIPT, ContentReadinessPoller
from article_renderer.components.renderer.sanitizer import CLEANUP_DONE, DomSanitizer
from article_renderer.components.renderer.session import OUTER_HTML_SCRIPT
from article_renderer.components.renderer.surface import BrowserSurface
from article_renderer.core.exceptions import ScriptEvaluationError

ARTICLE_HTML = (
    "<html><body><article>"
    + "".join(f"<p>{'Paragraph %d of the article body. ' % i * 5}</p>" for i in range(4))
    + "</article></body></html>"
)


class FakeSurface(BrowserSurface):
    """
    Scripted browser surface.

    `load` decides which navigation event fires: "finish", "error",
    "finish_twice" or "hang" (nothing fires). `readiness` is a list of
    paragraph-length lists returned by successive readiness checks; the last
    one repeats.
    """

    def __init__(self, html=ARTICLE_HTML, load="finish", readiness=None, load_delay=0.0,
                 eval_delay=0.0, fail_scripts=(), error_description="net::ERR_NAME_NOT_RESOLVED",
                 sanitize_result=CLEANUP_DONE):
        super().__init__()
        self.html = html
        self.load_behavior = load
        self.readiness = list(readiness) if readiness is not None else [[300, 300, 300]]
        self.load_delay = load_delay
        self.eval_delay = eval_delay
        self.fail_scripts = set(fail_scripts)
        self.error_description = error_description
        self.sanitize_result = sanitize_result

        self.loaded_urls = []
        self.scripts = []
        self.readiness_calls = 0
        self.destroy_count = 0

    async def load(self, url):
        self.loaded_urls.append(url)
        loop = asyncio.get_running_loop()
        if self.load_behavior == "finish":
            loop.call_later(self.load_delay, self._emit_load_finished, url)
        elif self.load_behavior == "finish_twice":
            loop.call_later(self.load_delay, self._emit_load_finished, url)
            loop.call_later(self.load_delay, self._emit_load_finished, url)
        elif self.load_behavior == "error":
            loop.call_later(self.load_delay, self._emit_load_error, -2, self.error_description, url)

    @staticmethod
    def script_kind(script):
        if script == READINESS_SCRIPT:
            return "readiness"
        if script == OUTER_HTML_SCRIPT:
            return "extract"
        if CLEANUP_DONE in script:
            return "sanitize"
        return "other"

    async def evaluate(self, script):
        kind = self.script_kind(script)
        self.scripts.append(kind)
        if self.eval_delay:
            await asyncio.sleep(self.eval_delay)
        if kind in self.fail_scripts:
            raise ScriptEvaluationError(f"{kind} script failed")
        if kind == "sanitize":
            return json.dumps(self.sanitize_result)
        if kind == "readiness":
            lengths = self.readiness[min(self.readiness_calls, len(self.readiness) - 1)]
            self.readiness_calls += 1
            return json.dumps(json.dumps({"lengths": lengths}))
        if kind == "extract":
            return json.dumps(self.html)
        return "null"

    async def destroy(self):
        self.destroy_count += 1
        self.destroyed = True


class RecordingBackend(MemoryCookieBackend):
    """Memory jar that also records every write it is asked to make."""

    def __init__(self):
        super().__init__()
        self.writes = []

    async def set_cookie(self, url, cookie):
        self.writes.append((url, cookie))
        return await super().set_cookie(url, cookie)


@pytest.fixture
def make_surface():
    return FakeSurface


@pytest.fixture
def recording_backend():
    return RecordingBackend()


@pytest.fixture
def cookie_store(recording_backend):
    return CookieStore(recording_backend)


@pytest.fixture
def fast_poller():
    return ContentReadinessPoller(max_attempts=10, interval_ms=5)


@pytest.fixture
def make_renderer(cookie_store, fast_poller):
    """
    Builds a PageRenderer whose factory hands out the given surfaces in order
    and records the user agent each was requested with.
    """
    def _make(*surfaces, settle_delay_ms=5):
        queue = list(surfaces)
        requested_agents = []

        async def factory(user_agent):
            requested_agents.append(user_agent)
            return queue.pop(0)

        renderer = PageRenderer(factory, cookie_store, sanitizer=DomSanitizer(), poller=fast_poller)
        renderer.settle_delay_ms = settle_delay_ms
        renderer.requested_agents = requested_agents
        return renderer

    return _make
