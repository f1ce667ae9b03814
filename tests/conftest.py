"""Pytest configuration and fixtures."""

from contextlib import asynccontextmanager

import pytest
from playwright.async_api import TimeoutError as PlaywrightTimeoutError
from redis.exceptions import ConnectionError as RedisConnectionError

from chartrender.config.settings import Settings
from chartrender.infrastructure.cache.bounded_cache import glob_to_regex
from chartrender.services.render.models import ChartData, RenderOptions, RenderResult

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 24 + b"fake-chart"


class FakePage:
    """Stand-in for a Playwright page."""

    def __init__(
        self,
        *,
        viewport_error=None,
        content_errors=(),
        selector_outcomes=None,
        selector_error=None,
        screenshot_error=None,
        image=PNG_BYTES,
    ):
        self.viewport_error = viewport_error
        self.content_errors = list(content_errors)
        self.selector_outcomes = list(selector_outcomes) if selector_outcomes is not None else None
        self.selector_error = selector_error
        self.screenshot_error = screenshot_error
        self.image = image
        self.viewports = []
        self.content_calls = []
        self.selector_calls = 0
        self.screenshot_calls = []

    async def set_viewport_size(self, size):
        self.viewports.append(size)
        if self.viewport_error:
            raise self.viewport_error

    async def set_content(self, html, wait_until=None, timeout=None):
        self.content_calls.append({"html": html, "wait_until": wait_until, "timeout": timeout})
        if self.content_errors:
            error = self.content_errors.pop(0)
            if error is not None:
                raise error

    async def wait_for_selector(self, selector, state=None, timeout=None):
        self.selector_calls += 1
        if self.selector_error:
            raise self.selector_error
        ready = True
        if self.selector_outcomes is not None:
            ready = self.selector_outcomes.pop(0) if self.selector_outcomes else False
        if not ready:
            raise PlaywrightTimeoutError(f"Timeout {timeout}ms exceeded waiting for {selector}")
        return object()

    async def screenshot(self, **kwargs):
        self.screenshot_calls.append(kwargs)
        if self.screenshot_error:
            raise self.screenshot_error
        return self.image


class FakeBrowser:
    def __init__(self, page):
        self.page = page
        self.close_count = 0

    async def new_page(self):
        return self.page

    async def close(self):
        self.close_count += 1


class FakeLauncher:
    """Scoped browser factory that counts acquisitions and teardowns."""

    def __init__(self, page=None, launch_error=None):
        self.page = page or FakePage()
        self.browser = FakeBrowser(self.page)
        self.launch_error = launch_error
        self.enter_count = 0
        self.exit_count = 0

    def __call__(self):
        return self._scope()

    @asynccontextmanager
    async def _scope(self):
        self.enter_count += 1
        if self.launch_error is not None:
            raise self.launch_error
        try:
            yield self.browser
        finally:
            await self.browser.close()
            self.exit_count += 1


class FakeEngine:
    """Render engine double that counts invocations."""

    def __init__(self, image=PNG_BYTES, error=None, gate=None):
        self.image = image
        self.error = error
        self.gate = gate
        self.calls = 0

    async def render(self, chart_type, chart_data, options):
        self.calls += 1
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        return RenderResult(
            image=self.image,
            width=options.width,
            height=options.height,
            duration_ms=1.0,
        )


class FakeRedis:
    """Minimal async Redis double.

    ``fail=True`` breaks every command; ``fail_on`` breaks only the named ones.
    """

    def __init__(self, fail=False, fail_on=()):
        self.fail = fail
        self.fail_on = set(fail_on)
        self.data = {}
        self.ttls = {}
        self.closed = 0
        self.commands = []

    def _check(self, command):
        self.commands.append(command)
        if self.fail or command in self.fail_on:
            raise RedisConnectionError("Error 111 connecting to localhost:6379. Connection refused.")

    async def ping(self):
        self._check("PING")
        return True

    async def get(self, key):
        self._check("GET")
        return self.data.get(key)

    async def setex(self, key, ttl, value):
        self._check("SETEX")
        self.data[key] = value
        self.ttls[key] = ttl
        return True

    async def delete(self, *keys):
        self._check("DEL")
        return sum(1 for key in keys if self.data.pop(key, None) is not None)

    async def scan_iter(self, match=None, count=None):
        self._check("SCAN")
        matcher = glob_to_regex(match or "*")
        for key in list(self.data):
            if matcher.match(key):
                yield key

    async def info(self):
        self._check("INFO")
        return {
            "used_memory_human": "1.00M",
            "connected_clients": 1,
            "keyspace_hits": 3,
            "keyspace_misses": 1,
        }

    async def aclose(self):
        self.closed += 1


@pytest.fixture
def settings():
    """Provide settings fixture."""
    return Settings(redis_url="", render_single_flight=False)


@pytest.fixture
def png_bytes():
    return PNG_BYTES


@pytest.fixture
def sales_data():
    """Single-dataset bar chart data."""
    return ChartData.model_validate(
        {"labels": ["Jan", "Feb"], "datasets": [{"label": "Sales", "data": [10, 20]}]}
    )


@pytest.fixture
def two_series_data():
    return ChartData.model_validate(
        {
            "labels": ["Q1", "Q2", "Q3"],
            "datasets": [
                {"label": "Revenue", "data": [5, 7, 9]},
                {"label": "Cost", "data": [3, 4, 6]},
            ],
        }
    )


@pytest.fixture
def default_options():
    return RenderOptions()


@pytest.fixture
def fake_page():
    return FakePage


@pytest.fixture
def fake_launcher():
    return FakeLauncher


@pytest.fixture
def fake_engine():
    return FakeEngine


@pytest.fixture
def fake_redis():
    return FakeRedis
