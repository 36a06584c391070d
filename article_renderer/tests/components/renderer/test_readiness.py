import asyncio

import pytest

from article_renderer.components.renderer import readiness
from article_renderer.components.renderer.readiness import (
    HARD_MAX_ATTEMPTS,
    ContentReadinessPoller,
    ReadinessThresholds,
    inspect_html,
)


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


@pytest.fixture
def recorded_sleeps(monkeypatch):
    delays = []

    async def fake_sleep(delay):
        delays.append(delay)

    monkeypatch.setattr(readiness.asyncio, "sleep", fake_sleep)
    return delays


def _paragraph(length):
    return "<p>" + "x" * length + "</p>"


# --- Predicate ---

def test_three_long_paragraphs_are_ready():
    report = ReadinessThresholds().score([170, 170, 170])
    assert report.has_content
    assert report.paragraph_count == 3
    assert report.total_text_length == 510


def test_two_sixty_char_paragraphs_are_not_ready():
    report = ReadinessThresholds().score([60, 60])
    assert not report.has_content
    assert report.paragraph_count == 2


def test_two_paragraphs_are_not_enough_however_long():
    report = ReadinessThresholds().score([600, 600])
    assert not report.has_content
    assert report.total_text_length == 1200


def test_short_paragraphs_do_not_count():
    report = ReadinessThresholds().score([40] * 20 + [50, 50, 50])
    assert not report.has_content
    assert report.paragraph_count == 0
    assert report.total_text_length == 0


def test_meaningful_paragraphs_below_total_are_not_ready():
    report = ReadinessThresholds().score([60, 60, 60, 60])
    assert report.paragraph_count == 4
    assert not report.has_content


def test_custom_thresholds():
    assert ReadinessThresholds(min_paragraph_length=10, min_paragraphs=1, min_total_text_length=20).score([25]).has_content


# --- Static snapshots ---

def test_inspect_html_counts_paragraphs_in_article_containers():
    html = "<html><body><article>" + "".join(_paragraph(200) for _ in range(3)) + "</article></body></html>"
    report = inspect_html(html)
    assert report.has_content
    assert report.paragraph_count == 3
    assert report.total_text_length == 600


def test_inspect_html_ignores_paragraphs_outside_containers():
    html = "<html><body><div class='sidebar'>" + "".join(_paragraph(200) for _ in range(5)) + "</div></body></html>"
    assert not inspect_html(html).has_content


def test_inspect_html_counts_nested_containers_once():
    html = (
        "<html><body><main><article class='article-body'>"
        + "".join(_paragraph(120) for _ in range(3))
        + "</article></main></body></html>"
    )
    report = inspect_html(html)
    assert report.paragraph_count == 3
    assert report.total_text_length == 360
    assert not report.has_content


@pytest.mark.parametrize("html", [None, ""])
def test_inspect_html_empty(html):
    assert inspect_html(html).paragraph_count == 0


# --- Poller ---

def test_poller_caps_attempts_at_hard_max():
    poller = ContentReadinessPoller(max_attempts=25, interval_ms=1)
    assert poller.max_attempts == HARD_MAX_ATTEMPTS == 10


def test_poller_reads_config():
    config = MockConfigurationManager(settings={"components": {"readiness": {
        "max_attempts": 4, "interval_ms": 250, "min_paragraph_length": 20,
        "min_paragraphs": 2, "min_total_text_length": 100,
    }}})
    poller = ContentReadinessPoller(config=config)
    assert poller.max_attempts == 4
    assert poller.interval_ms == 250
    assert poller.thresholds == ReadinessThresholds(20, 2, 100)


def test_poller_defaults():
    poller = ContentReadinessPoller()
    assert poller.max_attempts == 10
    assert poller.interval_ms == 500
    assert poller.thresholds == ReadinessThresholds()


@pytest.mark.asyncio
async def test_ready_on_first_attempt_does_not_sleep(make_surface, recorded_sleeps):
    surface = make_surface(readiness=[[200, 200, 200]])
    result = await ContentReadinessPoller().wait_for_content(surface)

    assert result.ready
    assert result.attempts == 1
    assert recorded_sleeps == []


@pytest.mark.asyncio
async def test_becomes_ready_on_third_attempt(make_surface, recorded_sleeps):
    surface = make_surface(readiness=[[], [200], [200, 200, 200]])
    attempts_seen = []
    result = await ContentReadinessPoller().wait_for_content(
        surface, on_attempt=lambda attempt, report: attempts_seen.append((attempt, report.has_content))
    )

    assert result.ready
    assert result.attempts == 3
    assert attempts_seen == [(1, False), (2, False), (3, True)]
    assert recorded_sleeps == [0.5, 0.5]


@pytest.mark.asyncio
async def test_gives_up_after_ten_attempts(make_surface, recorded_sleeps):
    surface = make_surface(readiness=[[60, 60]])
    result = await ContentReadinessPoller(max_attempts=50).wait_for_content(surface)

    assert not result.ready
    assert result.attempts == 10
    assert surface.readiness_calls == 10
    # No pause after the final attempt.
    assert recorded_sleeps == [0.5] * 9
    assert result.report.paragraph_count == 2


@pytest.mark.asyncio
async def test_script_failure_counts_as_not_ready(make_surface, recorded_sleeps):
    surface = make_surface(fail_scripts={"readiness"})
    result = await ContentReadinessPoller(max_attempts=3).wait_for_content(surface)

    assert not result.ready
    assert result.attempts == 3
    assert result.report.paragraph_count == 0


@pytest.mark.asyncio
async def test_stops_when_session_is_no_longer_live(make_surface, recorded_sleeps):
    surface = make_surface(readiness=[[]])
    live = iter([True, True, False])
    result = await ContentReadinessPoller().wait_for_content(surface, is_live=lambda: next(live))

    assert result.attempts == 2
    assert surface.readiness_calls == 2


@pytest.mark.asyncio
async def test_check_handles_unusable_result(make_surface):
    class OddSurface(make_surface):
        async def evaluate(self, script):
            return '"{\\"unexpected\\": true}"'

    report = await ContentReadinessPoller().check(OddSurface())
    assert report.paragraph_count == 0
    assert not report.has_content


@pytest.mark.asyncio
async def test_real_interval_is_awaited(make_surface):
    surface = make_surface(readiness=[[], [200, 200, 200]])
    loop = asyncio.get_running_loop()
    started = loop.time()
    result = await ContentReadinessPoller(interval_ms=20).wait_for_content(surface)

    assert result.attempts == 2
    assert loop.time() - started >= 0.015
