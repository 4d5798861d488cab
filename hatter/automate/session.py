import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from playwright.async_api import Page, async_playwright

from hatter.automate.browser_config import BrowserConfig

logger = logging.getLogger(__name__)


@asynccontextmanager
async def open_session(config: Optional[BrowserConfig] = None) -> AsyncIterator[Page]:
    """Launch a dedicated browser and yield its single page.

    The browser is closed when the block exits, whatever the outcome.
    """
    config = config or BrowserConfig()
    async with async_playwright() as playwright:
        browser_type = getattr(playwright, config.browser_class, None) or playwright.chromium
        logger.debug(f"Launching {config.browser_class} browser (headless={config.headless})")
        browser = await browser_type.launch(**config.launch_options())
        try:
            context = await browser.new_context(**config.context_options())
            init_script = config.fingerprint.init_script()
            if init_script:
                await context.add_init_script(init_script)
            page = await context.new_page()
            yield page
        finally:
            await browser.close()
            logger.debug("Browser closed.")
