"""Scoped headless Chromium acquisition via Playwright."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from playwright.async_api import Browser, async_playwright
from playwright.async_api import Error as PlaywrightError

from chartrender.config.constants import BROWSER_ARGS
from chartrender.config.settings import Settings
from chartrender.services.render.errors import LaunchFailure

logger = logging.getLogger(__name__)


@asynccontextmanager
async def chromium_browser(settings: Settings) -> AsyncIterator[Browser]:
    """Launch one isolated Chromium process and always tear it down.

    Raises:
        LaunchFailure: If the driver or the browser cannot start
    """
    try:
        playwright = await async_playwright().start()
    except Exception as e:
        logger.error("Playwright driver failed to start: %s", e, exc_info=True)
        raise LaunchFailure(detail=str(e)) from e

    try:
        try:
            browser = await playwright.chromium.launch(
                headless=True,
                executable_path=settings.chromium_path or None,
                args=list(BROWSER_ARGS),
                timeout=settings.browser_launch_timeout * 1000,
            )
        except PlaywrightError as e:
            logger.error("Chromium launch failed: %s", e, exc_info=True)
            raise LaunchFailure(detail=str(e)) from e

        try:
            yield browser
        finally:
            try:
                await browser.close()
            except Exception as e:
                logger.warning("Failed to close browser properly: %s", e)
    finally:
        try:
            await playwright.stop()
        except Exception as e:
            logger.warning("Failed to stop Playwright driver: %s", e)
