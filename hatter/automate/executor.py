import asyncio
import base64
import logging
import time
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Dict, List, Optional

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Page

from hatter.automate.browser_config import BrowserConfig
from hatter.automate.errors import ActionError
from hatter.automate.navigation import wait_for_navigation, wait_for_page_stable
from hatter.automate.selector_util import resolve_selector
from hatter.automate.session import open_session
from hatter.automate.stability import (
    DEFAULT_CHALLENGE_MARKERS,
    ChallengeMarkers,
    wait_for_challenge,
)
from hatter.automate.timings import DEFAULT_TIMINGS, Timings
from hatter.automate.validation import validate_commands
from hatter.models.command import COMMAND_TYPES, UnknownCommand, parse_command
from hatter.models.report import ExecutionReport, Screenshot

logger = logging.getLogger(__name__)

SCROLL_SCRIPT = "(y) => window.scrollTo(0, y == null ? document.body.scrollHeight : y)"
TEXT_PRESENT_SCRIPT = "(text) => document.body.innerText.includes(text)"
EVALUATE_SCRIPT = "(body) => new Function(body)()"

EVALUATE_DISABLED_MESSAGE = (
    "evaluate commands are disabled; set HATTER_ALLOW_EVALUATE=true to allow arbitrary page scripts"
)

Handler = Callable[[Page, Any], Awaitable[Optional[Screenshot]]]


def _now_ms() -> int:
    return int(time.time() * 1000)


async def capture_screenshot(page: Page, filename: str, kind: str) -> Screenshot:
    """Capture the viewport as an inline PNG data URI."""
    png = await page.screenshot(full_page=False, type="png")
    encoded = base64.b64encode(png).decode("ascii")
    return Screenshot(
        filename=filename,
        data=f"data:image/png;base64,{encoded}",
        taken_at=datetime.now(timezone.utc).isoformat(),
        type=kind,
    )


class CommandExecutor:
    """Runs a command list against one dedicated browser session."""

    def __init__(
        self,
        browser_config: Optional[BrowserConfig] = None,
        session_factory=open_session,
        timings: Timings = DEFAULT_TIMINGS,
        markers: ChallengeMarkers = DEFAULT_CHALLENGE_MARKERS,
        allow_evaluate: bool = False,
    ):
        self.browser_config = browser_config or BrowserConfig()
        self.session_factory = session_factory
        self.timings = timings
        self.markers = markers
        self.allow_evaluate = allow_evaluate

        self._action_handlers: Dict[str, Handler] = {
            "navigate": self._navigate,
            "waitForSelector": self._wait_for_selector,
            "waitForSelectorPartial": self._wait_for_selector,
            "type": self._type,
            "typePartial": self._type,
            "click": self._click,
            "clickPartial": self._click,
            "selectOption": self._select_option,
            "hover": self._hover,
            "scroll": self._scroll,
            "wait": self._wait,
            "waitForNavigation": self._wait_for_navigation,
            "waitForText": self._wait_for_text,
            "screenshot": self._screenshot,
            "getCookies": self._get_cookies,
            "setCookie": self._set_cookie,
            "evaluate": self._evaluate,
            "assertText": self._assert_text,
            "assertElementExists": self._assert_element_exists,
            "clearInput": self._clear_input,
        }
        missing = set(COMMAND_TYPES) - set(self._action_handlers)
        if missing:
            raise RuntimeError(f"No executor handler for actions: {sorted(missing)}")

    async def run(self, commands: List[Any]) -> ExecutionReport:
        """Execute ``commands`` in order and report the outcome.

        Raises CommandValidationError before opening a browser if the list is
        empty or not a list. Everything after that ends up in the report.
        """
        validate_commands(commands)

        start = time.perf_counter()
        screenshots: List[Screenshot] = []
        error: Optional[str] = None

        try:
            async with self.session_factory(self.browser_config) as page:
                logger.info("Starting test execution...")
                try:
                    for index, command in enumerate(commands, start=1):
                        screenshot = await self.execute_command(page, command, index)
                        if screenshot:
                            screenshots.append(screenshot)
                    logger.info("Test completed successfully!")
                except Exception as e:
                    error = str(e) or type(e).__name__
                    logger.error(f"Test failed: {error}")
                    failure = await self._capture_failure_screenshot(page)
                    if failure:
                        screenshots.append(failure)
        except Exception as e:
            # launching or closing the browser failed
            logger.error(f"Browser session error: {e}", exc_info=True)
            if error is None:
                error = str(e) or type(e).__name__

        execution_time = int((time.perf_counter() - start) * 1000)
        return ExecutionReport(
            success=error is None,
            error=error,
            execution_time=execution_time,
            screenshots=screenshots,
        )

    async def execute_command(self, page: Page, raw: Any, index: int) -> Optional[Screenshot]:
        command = parse_command(raw)
        logger.info(f"Step {index}: {command.description or command.action}")

        if isinstance(command, UnknownCommand):
            logger.warning(f"⚠️  Unknown command: {command.action}")
            return None

        handler = self._action_handlers[command.action]
        try:
            return await handler(page, command)
        except PlaywrightError as e:
            raise ActionError(f"Step {index} ({command.action}) failed: {e.message}") from e

    async def _capture_failure_screenshot(self, page: Page) -> Optional[Screenshot]:
        try:
            return await capture_screenshot(page, f"test-failure-{_now_ms()}.png", "failure")
        except Exception as e:
            logger.error(f"Failed to capture failure screenshot: {e}")
            return None

    async def _locate(self, page: Page, command, state: str = "visible"):
        selector = resolve_selector(command)
        locator = page.locator(selector).first
        await locator.wait_for(state=state, timeout=self.timings.selector_timeout)
        return locator

    # --- Action handlers ---
    async def _navigate(self, page: Page, command) -> None:
        logger.info(f"🔗  Navigating to {command.url}")
        await page.goto(
            command.url, wait_until="load", timeout=self.timings.navigation_timeout
        )
        await wait_for_page_stable(page, self.timings.network_idle_timeout)
        await wait_for_challenge(page, self.markers, self.timings)

    async def _wait_for_selector(self, page: Page, command) -> None:
        logger.info(f"Waiting for selector: {resolve_selector(command)}")
        await self._locate(page, command, state="attached")

    async def _type(self, page: Page, command) -> None:
        locator = await self._locate(page, command)
        logger.info(f"⌨️  Typing into: {resolve_selector(command)}")
        await locator.click(timeout=self.timings.selector_timeout)
        await locator.press_sequentially(command.text, delay=self.timings.type_delay)

    async def _click(self, page: Page, command) -> None:
        locator = await self._locate(page, command)
        logger.info(f"🖱️  Clicking: {resolve_selector(command)}")
        await locator.scroll_into_view_if_needed(timeout=self.timings.selector_timeout)
        await locator.click(timeout=self.timings.selector_timeout)

    async def _select_option(self, page: Page, command) -> None:
        locator = await self._locate(page, command, state="attached")
        logger.info(f"Selecting option {command.value!r} in: {command.selector}")
        await locator.select_option(value=command.value, timeout=self.timings.selector_timeout)

    async def _hover(self, page: Page, command) -> None:
        locator = await self._locate(page, command)
        logger.info(f"Hovering over: {command.selector}")
        await locator.hover(timeout=self.timings.selector_timeout)

    async def _scroll(self, page: Page, command) -> None:
        logger.info(f"🔍  Scrolling to {command.y if command.y is not None else 'bottom'}")
        await page.evaluate(SCROLL_SCRIPT, command.y)
        await asyncio.sleep(self.timings.scroll_pause / 1000)

    async def _wait(self, page: Page, command) -> None:
        logger.info(f"🕒  Waiting {command.duration}ms")
        await asyncio.sleep(command.duration / 1000)

    async def _wait_for_navigation(self, page: Page, command) -> None:
        logger.info("Waiting for navigation or content load...")
        await wait_for_navigation(page, self.timings)

    async def _wait_for_text(self, page: Page, command) -> None:
        logger.info(f"Waiting for text: {command.text}")
        await page.wait_for_function(
            TEXT_PRESENT_SCRIPT, arg=command.text, timeout=self.timings.text_timeout
        )

    async def _screenshot(self, page: Page, command) -> Screenshot:
        filename = command.filename or f"screenshot-{_now_ms()}.png"
        logger.info(f"📸  Taking screenshot: {filename}")
        return await capture_screenshot(page, filename, "success")

    async def _get_cookies(self, page: Page, command) -> None:
        cookies = await page.context.cookies()
        logger.info(f"🍪  Current cookies: {cookies}")

    async def _set_cookie(self, page: Page, command) -> None:
        cookie = dict(command.cookie)
        if "url" not in cookie and "domain" not in cookie:
            cookie["url"] = page.url
        logger.info(f"🍪  Setting cookie: {cookie.get('name')}")
        await page.context.add_cookies([cookie])

    async def _evaluate(self, page: Page, command) -> None:
        if not self.allow_evaluate:
            raise ActionError(EVALUATE_DISABLED_MESSAGE)
        logger.info("Executing custom JavaScript...")
        result = await page.evaluate(EVALUATE_SCRIPT, command.code)
        logger.info(f"Evaluation result: {result}")

    async def _assert_text(self, page: Page, command) -> None:
        locator = await self._locate(page, command, state="attached")
        text = await locator.text_content() or ""
        if command.expected_text not in text:
            raise ActionError(
                f'Text assertion failed: Expected "{command.expected_text}" but found "{text}"'
            )
        logger.info("✅  Text assertion passed")

    async def _assert_element_exists(self, page: Page, command) -> None:
        selector = resolve_selector(command)
        if await page.locator(selector).count() == 0:
            raise ActionError(f'Element assertion failed: Element "{selector}" not found')
        logger.info("✅  Element assertion passed")

    async def _clear_input(self, page: Page, command) -> None:
        locator = await self._locate(page, command)
        logger.info(f"Clearing input: {command.selector}")
        await locator.click(click_count=3, timeout=self.timings.selector_timeout)
        await page.keyboard.press("Backspace")
