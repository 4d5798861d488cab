import asyncio
import logging

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Page

from hatter.automate.timings import DEFAULT_TIMINGS, Timings

logger = logging.getLogger(__name__)


async def wait_for_page_stable(page: Page, timeout: int = 3000):
    """Give the page a short chance to go network-idle. Best effort."""
    try:
        await page.wait_for_load_state("networkidle", timeout=timeout)
    except PlaywrightError as e:
        logger.debug(f"Timeout waiting for page to stabilize: {e}")


async def _main_frame_navigated(page: Page, timeout: int):
    await page.wait_for_event(
        "framenavigated",
        predicate=lambda frame: frame == page.main_frame,
        timeout=timeout,
    )
    await page.wait_for_load_state("load", timeout=timeout)


async def wait_for_navigation(page: Page, timings: Timings = DEFAULT_TIMINGS) -> bool:
    """Wait for a navigation, tolerating single-page apps that never fire one.

    Races the main frame's navigation event against a fixed fallback delay.
    Returns True if a navigation finished first, False if the fallback won.
    Neither outcome is an error.
    """
    navigation = asyncio.ensure_future(_main_frame_navigated(page, timings.navigation_timeout))
    fallback = asyncio.ensure_future(asyncio.sleep(timings.navigation_fallback / 1000))
    try:
        done, _ = await asyncio.wait(
            {navigation, fallback}, return_when=asyncio.FIRST_COMPLETED
        )
    finally:
        for task in (navigation, fallback):
            if not task.done():
                task.cancel()

    if navigation in done:
        error = navigation.exception()
        if error is None:
            logger.info(f"🔗  Navigation completed: {page.url}")
            return True
        logger.debug(f"Navigation wait ended without a navigation: {error}")

    logger.info("No navigation detected (likely SPA)")
    return False
