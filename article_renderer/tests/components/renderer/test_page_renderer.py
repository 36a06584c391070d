import pytest

from article_renderer.components.cookies.backends import MemoryCookieBackend
from article_renderer.components.cookies.cookie_store import CookieStore
from article_renderer.components.renderer.page_renderer import DEFAULT_TIMEOUT_MS, PageRenderer
from article_renderer.core.exceptions import MalformedInputError, RenderTimeoutError


class MockConfigurationManager:
    def __init__(self, settings=None):
        self.settings = settings if settings is not None else {}

    def get(self, key, default=None):
        try:
            value = self.settings
            for k_part in key.split('.'):
                value = value[k_part]
            return value
        except (KeyError, TypeError):
            return default


async def _unused_factory(user_agent):
    raise AssertionError("no surface should be requested")


def test_defaults_without_config():
    renderer = PageRenderer(_unused_factory, CookieStore(MemoryCookieBackend()))
    assert renderer.default_timeout_ms == DEFAULT_TIMEOUT_MS == 15000
    assert renderer.default_post_load_delay_ms == 0
    assert renderer.settle_delay_ms == 500
    assert renderer.poller.max_attempts == 10


def test_defaults_from_config():
    config = MockConfigurationManager(settings={"components": {
        "renderer": {"default_timeout_ms": 9000, "default_post_load_delay_ms": 250, "settle_delay_ms": 100},
        "readiness": {"max_attempts": 5, "interval_ms": 100},
    }})
    renderer = PageRenderer(_unused_factory, CookieStore(MemoryCookieBackend()), config=config)
    assert renderer.default_timeout_ms == 9000
    assert renderer.default_post_load_delay_ms == 250
    assert renderer.settle_delay_ms == 100
    assert renderer.poller.max_attempts == 5
    assert renderer.poller.interval_ms == 100


@pytest.mark.asyncio
@pytest.mark.parametrize("url", [None, ""])
async def test_empty_url_creates_no_session(url):
    renderer = PageRenderer(_unused_factory, CookieStore(MemoryCookieBackend()))
    assert await renderer.render_url(url) is None


@pytest.mark.asyncio
@pytest.mark.parametrize("kwargs", [
    {"url": "/relative/path"},
    {"url": "https://example.com", "timeout_ms": 0},
    {"url": "https://example.com", "post_load_delay_ms": -1},
])
async def test_invalid_requests_are_rejected_before_a_surface_exists(kwargs):
    renderer = PageRenderer(_unused_factory, CookieStore(MemoryCookieBackend()))
    with pytest.raises(MalformedInputError):
        await renderer.render_url(**kwargs)


@pytest.mark.asyncio
async def test_render_url_applies_cookies_before_navigation(make_surface, make_renderer, cookie_store, recording_backend):
    url = "https://news.example.com/world/story"

    class CookieCheckingSurface(make_surface):
        async def load(self, target):
            self.cookies_at_load = await cookie_store.get(target)
            await super().load(target)

    surface = CookieCheckingSurface()
    renderer = make_renderer(surface)

    result = await renderer.render_url(url, cookie_header="sid=abc; theme=dark", user_agent="ReaderBot/1.0")

    assert result.html == surface.html
    assert CookieStore.parse_to_map(surface.cookies_at_load) == {"sid": "abc", "theme": "dark"}
    assert ("https://news.example.com", "sid=abc") in recording_backend.writes
    assert (url, "sid=abc") in recording_backend.writes
    assert renderer.requested_agents == ["ReaderBot/1.0"]


@pytest.mark.asyncio
async def test_render_url_uses_default_timeout_and_mode(make_surface, make_renderer):
    surface = make_surface()
    renderer = make_renderer(surface)
    renderer.default_post_load_delay_ms = 5

    result = await renderer.render_url("https://example.com/a")

    assert result.mode == "fixed_delay"
    assert "readiness" not in surface.scripts
    assert renderer.requested_agents == [None]


@pytest.mark.asyncio
async def test_timeout_propagates(make_surface, make_renderer):
    surface = make_surface(load="hang")
    renderer = make_renderer(surface)

    with pytest.raises(RenderTimeoutError):
        await renderer.render_url("https://example.com/slow", timeout_ms=20)
    assert surface.destroy_count == 1


@pytest.mark.asyncio
async def test_each_render_gets_its_own_surface(make_surface, make_renderer):
    first, second = make_surface(html="<html>1</html>"), make_surface(html="<html>2</html>")
    renderer = make_renderer(first, second)

    assert (await renderer.render_url("https://example.com/1")).html == "<html>1</html>"
    assert (await renderer.render_url("https://example.com/2")).html == "<html>2</html>"
    assert first.destroy_count == second.destroy_count == 1
