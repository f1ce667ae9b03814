"""Browser-backed chart renderer."""

import asyncio
import logging
import time
from collections.abc import Callable
from contextlib import AbstractAsyncContextManager

from playwright.async_api import Browser, Page
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from chartrender.config.constants import (
    RENDERED_SELECTOR,
    ChartType,
    RenderStage,
    RenderStageDescription,
)
from chartrender.config.settings import Settings
from chartrender.infrastructure.logging.logger import StructuredLogger
from chartrender.orchestrator.step_timer import timed_stage
from chartrender.services.render.browser import chromium_browser
from chartrender.services.render.document import build_chart_config, build_document
from chartrender.services.render.errors import (
    CaptureFailure,
    ContentLoadFailure,
    GenerationError,
    LaunchFailure,
    RenderError,
    RenderTimeout,
    classify_failure,
)
from chartrender.services.render.models import ChartData, RenderOptions, RenderResult
from chartrender.utils.retry import BoundedPoller, PollExhausted, Sleep

logger = logging.getLogger(__name__)

BrowserLauncher = Callable[[], AbstractAsyncContextManager[Browser]]


def _classified(error: Exception, fallback: type[RenderError], reason: str | None = None) -> RenderError:
    """Prefer a crash classification; otherwise report the stage failure."""
    classified = classify_failure(error)
    if isinstance(classified, GenerationError):
        return fallback(reason=reason, detail=str(error))
    return classified


class RenderEngine:
    """Renders charts to PNG in a fresh headless browser per request.

    Each call owns exactly one browser process, released on every exit path.
    """

    def __init__(
        self,
        settings: Settings,
        launcher: BrowserLauncher | None = None,
        sleep: Sleep = asyncio.sleep,
    ):
        """Initialize the engine.

        Args:
            settings: Application settings (timeouts, poll policy, Chart.js URL)
            launcher: Factory for a scoped browser; defaults to Playwright Chromium
            sleep: Awaitable sleep used between render polls
        """
        self.settings = settings
        self._launcher = launcher or (lambda: chromium_browser(settings))
        self._sleep = sleep
        self.structured = StructuredLogger(__name__)

    async def render(
        self,
        chart_type: ChartType,
        chart_data: ChartData,
        options: RenderOptions,
    ) -> RenderResult:
        """Render a chart and return the PNG with timing metadata.

        Raises:
            RenderError: Classified failure of any stage
        """
        chart_type = ChartType(chart_type)
        context = {
            "chart_type": chart_type.value,
            "width": options.width,
            "height": options.height,
            "theme": options.theme.value,
        }
        prepare_start = time.perf_counter()
        chart_config = build_chart_config(chart_type, chart_data, options)
        document = build_document(chart_config, options, self.settings.chartjs_url)
        self.structured.log_step(
            RenderStage.INIT.value,
            {
                **context,
                "description": RenderStageDescription.INIT.value,
                "document_length": len(document),
            },
            duration_ms=(time.perf_counter() - prepare_start) * 1000,
        )
        logger.info(
            "Generating chart in browser: type=%s size=%sx%s theme=%s datasets=%s",
            chart_type.value,
            options.width,
            options.height,
            options.theme.value,
            len(chart_data.datasets),
        )

        start = time.perf_counter()
        try:
            async with self._launcher() as browser:
                self._log_launched(start, context)
                page = await self._open_page(browser, options, context)
                await self._load_document(page, document, context)
                attempts = await self._wait_for_render(page, context)
                image = await self._capture(page, options, context)
        except RenderError as e:
            if isinstance(e, LaunchFailure):
                self.structured.log_step(
                    RenderStage.LAUNCH_FAILED.value,
                    {**context, "error": e.reason},
                    duration_ms=(time.perf_counter() - start) * 1000,
                )
            self.structured.log_error(
                "render", e, {**context, "kind": e.kind.value, "detail": e.detail}
            )
            raise
        except Exception as e:
            error = classify_failure(e)
            self.structured.log_error(
                "render", e, {**context, "kind": error.kind.value, "detail": error.detail}
            )
            raise error from e

        duration_ms = (time.perf_counter() - start) * 1000
        result = RenderResult(
            image=image,
            width=options.width,
            height=options.height,
            duration_ms=duration_ms,
            attempts=attempts,
        )
        self.structured.log_step(
            RenderStage.DONE.value,
            {**context, "size": result.size, "attempts": attempts},
            duration_ms=duration_ms,
        )
        return result

    def _log_launched(self, start: float, context: dict) -> None:
        self.structured.log_step(
            RenderStage.LAUNCHING.value,
            {**context, "description": RenderStageDescription.LAUNCHING.value},
            duration_ms=(time.perf_counter() - start) * 1000,
        )

    async def _open_page(self, browser: Browser, options: RenderOptions, context: dict) -> Page:
        async with timed_stage(RenderStage.PAGE_OPEN, self.structured, **context) as stage:
            page = await browser.new_page()
            try:
                await page.set_viewport_size({"width": options.width, "height": options.height})
            except PlaywrightError as e:
                logger.warning("Failed to set viewport, continuing with default: %s", e)
                stage.note(viewport="default")
            return page

    async def _load_document(self, page: Page, document: str, context: dict) -> None:
        async with timed_stage(
            RenderStage.CONTENT_LOADING,
            self.structured,
            failed_stage=RenderStage.CONTENT_FAILED,
            **context,
        ) as stage:
            try:
                await page.set_content(
                    document,
                    wait_until="networkidle",
                    timeout=self.settings.content_load_timeout * 1000,
                )
                stage.note(wait_until="networkidle")
                return
            except PlaywrightError as e:
                logger.warning(
                    "Failed to load content with networkidle, trying with domcontentloaded: %s", e
                )

            try:
                await page.set_content(
                    document,
                    wait_until="domcontentloaded",
                    timeout=self.settings.content_fallback_timeout * 1000,
                )
            except PlaywrightError as e:
                raise _classified(e, ContentLoadFailure) from e
            stage.note(wait_until="domcontentloaded")

    async def _wait_for_render(self, page: Page, context: dict) -> int:
        poller = BoundedPoller(
            max_attempts=self.settings.render_poll_attempts,
            delay=self.settings.render_poll_delay,
            sleep=self._sleep,
            name="Chart render",
        )

        async def canvas_ready() -> bool:
            try:
                await page.wait_for_selector(
                    RENDERED_SELECTOR,
                    state="attached",
                    timeout=self.settings.render_poll_timeout * 1000,
                )
            except PlaywrightTimeoutError:
                return False
            return True

        async with timed_stage(
            RenderStage.WAITING_RENDER,
            self.structured,
            failed_stage=RenderStage.RENDER_TIMEOUT,
            **context,
        ) as stage:
            try:
                attempts = await poller.run(canvas_ready)
            except PollExhausted as e:
                raise RenderTimeout(
                    reason=f"Failed to render chart after {e.attempts} attempts"
                ) from e
            stage.note(attempts=attempts)
            return attempts

    async def _capture(self, page: Page, options: RenderOptions, context: dict) -> bytes:
        async with timed_stage(
            RenderStage.CAPTURED,
            self.structured,
            failed_stage=RenderStage.CAPTURE_FAILED,
            **context,
        ):
            try:
                return await page.screenshot(
                    clip={"x": 0, "y": 0, "width": options.width, "height": options.height},
                    type="png",
                    omit_background=False,
                    timeout=self.settings.capture_timeout * 1000,
                )
            except PlaywrightError as e:
                first_line = str(e).splitlines()[0] if str(e) else type(e).__name__
                raise _classified(e, CaptureFailure, reason=f"Screenshot failed: {first_line}") from e
