import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

from hatter.automate.browser_config import BrowserConfig
from hatter.automate.errors import ActionError
from hatter.automate.executor import (
    EVALUATE_DISABLED_MESSAGE,
    EVALUATE_SCRIPT,
    SCROLL_SCRIPT,
    TEXT_PRESENT_SCRIPT,
)
from hatter.automate.selector_util import resolve_selector
from hatter.automate.stability import (
    CHALLENGE_DETECTION_SCRIPT,
    DEFAULT_CHALLENGE_MARKERS,
    ChallengeMarkers,
)
from hatter.automate.timings import DEFAULT_TIMINGS, Timings
from hatter.models.command import COMMAND_TYPES, UnknownCommand, parse_command

logger = logging.getLogger(__name__)

STEP_INDENT = "    "


def _literal(value: Any) -> str:
    """Render a value as a Python literal safe to embed in generated source."""
    return repr(value)


def _comment(text: Optional[str]) -> str:
    # keep free text on a single comment line
    return " ".join(str(text or "").split())


class CommandScriptGenerator:
    """Generates a standalone Playwright script from a command list.

    Every value taken from a command is embedded as a Python literal, and the
    helpers, timeouts and challenge markers are the ones the executor uses, so
    the script behaves like an executor run of the same commands.
    """

    def __init__(
        self,
        commands: List[Any],
        test_name: str = "Untitled test",
        test_description: str = "",
        browser_config: Optional[BrowserConfig] = None,
        timings: Timings = DEFAULT_TIMINGS,
        markers: ChallengeMarkers = DEFAULT_CHALLENGE_MARKERS,
        allow_evaluate: bool = False,
    ):
        self.commands = commands
        self.test_name = test_name
        self.test_description = test_description
        self.browser_config = browser_config or BrowserConfig()
        self.timings = timings
        self.markers = markers
        self.allow_evaluate = allow_evaluate

        self._action_handlers: Dict[str, Callable[[Any], List[str]]] = {
            "navigate": self._map_navigate,
            "waitForSelector": self._map_wait_for_selector,
            "waitForSelectorPartial": self._map_wait_for_selector,
            "type": self._map_type,
            "typePartial": self._map_type,
            "click": self._map_click,
            "clickPartial": self._map_click,
            "selectOption": self._map_select_option,
            "hover": self._map_hover,
            "scroll": self._map_scroll,
            "wait": self._map_wait,
            "waitForNavigation": self._map_wait_for_navigation,
            "waitForText": self._map_wait_for_text,
            "screenshot": self._map_screenshot,
            "getCookies": self._map_get_cookies,
            "setCookie": self._map_set_cookie,
            "evaluate": self._map_evaluate,
            "assertText": self._map_assert_text,
            "assertElementExists": self._map_assert_element_exists,
            "clearInput": self._map_clear_input,
        }
        missing = set(COMMAND_TYPES) - set(self._action_handlers)
        if missing:
            raise RuntimeError(f"No script mapping for actions: {sorted(missing)}")

    def _get_header(self) -> List[str]:
        return [
            f"# {_comment(self.test_name)}",
            f"# {_comment(self.test_description)}",
            f"# Generated on: {datetime.now(timezone.utc).isoformat()}",
            "",
        ]

    def _get_imports_and_constants(self) -> List[str]:
        config = self.browser_config
        browser_type = config.browser_class if config.browser_class in ("chromium", "firefox", "webkit") else "chromium"
        launch_options = config.launch_options()
        proxy_password = []
        if "password" in launch_options.get("proxy", {}):
            # credentials are read at run time, never written into the script
            launch_options["proxy"] = {k: v for k, v in launch_options["proxy"].items() if k != "password"}
            proxy_password = [
                'LAUNCH_OPTIONS["proxy"]["password"] = os.environ.get("HATTER_PROXY_PASSWORD", "")',
            ]
        return [
            "import asyncio",
            "import os",
            "import sys",
            "import time",
            "",
            "from playwright.async_api import Error as PlaywrightError",
            "from playwright.async_api import async_playwright",
            "",
            f"TEST_NAME = {_literal(self.test_name)}",
            f"BROWSER_TYPE = {_literal(browser_type)}",
            f"LAUNCH_OPTIONS = {_literal(launch_options)}",
            *proxy_password,
            f"CONTEXT_OPTIONS = {_literal(config.context_options())}",
            f"FINGERPRINT_SCRIPT = {_literal(config.fingerprint.init_script())}",
            "",
            f"SELECTOR_TIMEOUT = {self.timings.selector_timeout}",
            f"NAVIGATION_TIMEOUT = {self.timings.navigation_timeout}",
            f"TEXT_TIMEOUT = {self.timings.text_timeout}",
            f"NETWORK_IDLE_TIMEOUT = {self.timings.network_idle_timeout}",
            f"TYPE_DELAY = {self.timings.type_delay}",
            f"SCROLL_PAUSE = {self.timings.scroll_pause}",
            f"CHALLENGE_MAX_WAIT = {self.timings.challenge_max_wait}",
            f"CHALLENGE_POLL_INTERVAL = {self.timings.challenge_poll_interval}",
            f"CHALLENGE_SETTLE_DELAY = {self.timings.challenge_settle_delay}",
            f"NAVIGATION_FALLBACK = {self.timings.navigation_fallback}",
            "",
            f"CHALLENGE_MARKERS = {_literal(self.markers.model_dump())}",
            f"CHALLENGE_DETECTION_SCRIPT = {_literal(CHALLENGE_DETECTION_SCRIPT)}",
            f"SCROLL_SCRIPT = {_literal(SCROLL_SCRIPT)}",
            f"TEXT_PRESENT_SCRIPT = {_literal(TEXT_PRESENT_SCRIPT)}",
            f"EVALUATE_SCRIPT = {_literal(EVALUATE_SCRIPT)}",
            "",
        ]

    def _get_helpers(self) -> List[str]:
        return [
            "",
            "class StepError(Exception):",
            "    pass",
            "",
            "",
            "async def wait_for_page_stable(page):",
            '    """Give the page a short chance to go network-idle."""',
            "    try:",
            '        await page.wait_for_load_state("networkidle", timeout=NETWORK_IDLE_TIMEOUT)',
            "    except PlaywrightError:",
            "        pass",
            "",
            "",
            "async def wait_for_challenge(page):",
            '    """Wait out an anti-bot interstitial for a bounded time, then settle."""',
            "    loop = asyncio.get_running_loop()",
            "    deadline = loop.time() + CHALLENGE_MAX_WAIT / 1000",
            "    while loop.time() < deadline:",
            "        try:",
            "            detected = await page.evaluate(CHALLENGE_DETECTION_SCRIPT, CHALLENGE_MARKERS)",
            "        except PlaywrightError:",
            "            detected = True",
            "        if not detected:",
            "            break",
            "        print('  Challenge detected, waiting...')",
            "        await asyncio.sleep(CHALLENGE_POLL_INTERVAL / 1000)",
            "    if CHALLENGE_SETTLE_DELAY:",
            "        await asyncio.sleep(CHALLENGE_SETTLE_DELAY / 1000)",
            "",
            "",
            "async def wait_for_navigation(page):",
            '    """Race a main-frame navigation against a fixed fallback for single-page apps."""',
            "    async def navigated():",
            "        await page.wait_for_event(",
            '            "framenavigated",',
            "            predicate=lambda frame: frame == page.main_frame,",
            "            timeout=NAVIGATION_TIMEOUT,",
            "        )",
            '        await page.wait_for_load_state("load", timeout=NAVIGATION_TIMEOUT)',
            "",
            "    navigation = asyncio.ensure_future(navigated())",
            "    fallback = asyncio.ensure_future(asyncio.sleep(NAVIGATION_FALLBACK / 1000))",
            "    try:",
            "        done, _ = await asyncio.wait({navigation, fallback}, return_when=asyncio.FIRST_COMPLETED)",
            "    finally:",
            "        for task in (navigation, fallback):",
            "            if not task.done():",
            "                task.cancel()",
            "    if navigation in done and navigation.exception() is None:",
            "        print(f'  Navigation completed: {page.url}')",
            "    else:",
            "        print('  No navigation detected (likely SPA)')",
            "",
        ]

    # --- Action mapping methods ---
    def _map_navigate(self, command) -> List[str]:
        return [
            f"print({_literal(f'Navigating to: {command.url}')})",
            f'await page.goto({_literal(command.url)}, wait_until="load", timeout=NAVIGATION_TIMEOUT)',
            "await wait_for_page_stable(page)",
            "await wait_for_challenge(page)",
        ]

    def _map_wait_for_selector(self, command) -> List[str]:
        selector = resolve_selector(command)
        return [
            f"print({_literal(f'Waiting for selector: {selector}')})",
            f'await page.locator({_literal(selector)}).first.wait_for(state="attached", timeout=SELECTOR_TIMEOUT)',
        ]

    def _locate_lines(self, selector: str, state: str = "visible") -> List[str]:
        return [
            f"locator = page.locator({_literal(selector)}).first",
            f'await locator.wait_for(state="{state}", timeout=SELECTOR_TIMEOUT)',
        ]

    def _map_type(self, command) -> List[str]:
        selector = resolve_selector(command)
        return [
            f"print({_literal(f'Typing into: {selector}')})",
            *self._locate_lines(selector),
            "await locator.click(timeout=SELECTOR_TIMEOUT)",
            f"await locator.press_sequentially({_literal(command.text)}, delay=TYPE_DELAY)",
        ]

    def _map_click(self, command) -> List[str]:
        selector = resolve_selector(command)
        return [
            f"print({_literal(f'Clicking: {selector}')})",
            *self._locate_lines(selector),
            "await locator.scroll_into_view_if_needed(timeout=SELECTOR_TIMEOUT)",
            "await locator.click(timeout=SELECTOR_TIMEOUT)",
        ]

    def _map_select_option(self, command) -> List[str]:
        selector = resolve_selector(command)
        return [
            f"print({_literal(f'Selecting option in: {selector}')})",
            *self._locate_lines(selector, state="attached"),
            f"await locator.select_option(value={_literal(command.value)}, timeout=SELECTOR_TIMEOUT)",
        ]

    def _map_hover(self, command) -> List[str]:
        selector = resolve_selector(command)
        return [
            f"print({_literal(f'Hovering over: {selector}')})",
            *self._locate_lines(selector),
            "await locator.hover(timeout=SELECTOR_TIMEOUT)",
        ]

    def _map_scroll(self, command) -> List[str]:
        return [
            "print('Scrolling page...')",
            f"await page.evaluate(SCROLL_SCRIPT, {_literal(command.y)})",
            "await asyncio.sleep(SCROLL_PAUSE / 1000)",
        ]

    def _map_wait(self, command) -> List[str]:
        return [
            f"print('Waiting {command.duration:g}ms...')",
            f"await asyncio.sleep({_literal(command.duration)} / 1000)",
        ]

    def _map_wait_for_navigation(self, command) -> List[str]:
        return [
            "print('Waiting for navigation or content load...')",
            "await wait_for_navigation(page)",
        ]

    def _map_wait_for_text(self, command) -> List[str]:
        return [
            f"print({_literal(f'Waiting for text: {command.text}')})",
            f"await page.wait_for_function(TEXT_PRESENT_SCRIPT, arg={_literal(command.text)}, timeout=TEXT_TIMEOUT)",
        ]

    def _map_screenshot(self, command) -> List[str]:
        filename = command.filename or f"screenshot-{int(datetime.now(timezone.utc).timestamp() * 1000)}.png"
        return [
            f"print({_literal(f'Taking screenshot: {filename}')})",
            f'await page.screenshot(path={_literal(filename)}, full_page=False, type="png")',
        ]

    def _map_get_cookies(self, command) -> List[str]:
        return [
            "cookies = await page.context.cookies()",
            "print('Current cookies:', cookies)",
        ]

    def _map_set_cookie(self, command) -> List[str]:
        return [
            "print('Setting cookie...')",
            f"cookie = dict({_literal(dict(command.cookie))})",
            'if "url" not in cookie and "domain" not in cookie:',
            '    cookie["url"] = page.url',
            "await page.context.add_cookies([cookie])",
        ]

    def _map_evaluate(self, command) -> List[str]:
        if not self.allow_evaluate:
            return [f"raise StepError({_literal(EVALUATE_DISABLED_MESSAGE)})"]
        return [
            "print('Executing custom JavaScript...')",
            f"result = await page.evaluate(EVALUATE_SCRIPT, {_literal(command.code)})",
            "print('Evaluation result:', result)",
        ]

    def _map_assert_text(self, command) -> List[str]:
        selector = resolve_selector(command)
        expected = command.expected_text
        failure_prefix = 'Text assertion failed: Expected "%s" but found "' % expected
        return [
            f"print({_literal(f'Asserting text in: {selector}')})",
            *self._locate_lines(selector, state="attached"),
            'text = await locator.text_content() or ""',
            f"if {_literal(expected)} not in text:",
            f"    raise StepError({_literal(failure_prefix)} + text + {_literal(chr(34))})",
            "print('Text assertion passed')",
        ]

    def _map_assert_element_exists(self, command) -> List[str]:
        selector = resolve_selector(command)
        failure = 'Element assertion failed: Element "%s" not found' % selector
        return [
            f"print({_literal(f'Asserting element exists: {selector}')})",
            f"if await page.locator({_literal(selector)}).count() == 0:",
            f"    raise StepError({_literal(failure)})",
            "print('Element assertion passed')",
        ]

    def _map_clear_input(self, command) -> List[str]:
        selector = resolve_selector(command)
        return [
            f"print({_literal(f'Clearing input: {selector}')})",
            *self._locate_lines(selector),
            "await locator.click(click_count=3, timeout=SELECTOR_TIMEOUT)",
            'await page.keyboard.press("Backspace")',
        ]

    def _map_step(self, raw: Any) -> List[str]:
        try:
            command = parse_command(raw)
        except ActionError as e:
            # reproduce the executor failing at this step
            return [f"raise StepError({_literal(str(e))})"]

        if isinstance(command, UnknownCommand):
            return [
                f"# Unknown command: {_comment(command.action)}",
                f"print('Unknown command:', {_literal(command.raw)})",
            ]

        try:
            return self._action_handlers[command.action](command)
        except ActionError as e:
            return [f"raise StepError({_literal(str(e))})"]

    def _get_run_test(self) -> List[str]:
        lines = [
            "",
            "async def run_test(page):",
            "    print(f'Starting test: {TEST_NAME}')",
        ]
        for index, raw in enumerate(self.commands, start=1):
            description = raw.get("description") if isinstance(raw, dict) else None
            if not isinstance(description, str):
                description = None
            lines.append("")
            lines.append(f"    # Step {index}: {_comment(description)}".rstrip())
            lines.extend(STEP_INDENT + line for line in self._map_step(raw))
        lines.append("")
        return lines

    def _get_main(self) -> List[str]:
        return [
            "",
            "async def main():",
            "    async with async_playwright() as p:",
            "        browser = await getattr(p, BROWSER_TYPE).launch(**LAUNCH_OPTIONS)",
            "        try:",
            "            context = await browser.new_context(**CONTEXT_OPTIONS)",
            "            if FINGERPRINT_SCRIPT:",
            "                await context.add_init_script(FINGERPRINT_SCRIPT)",
            "            page = await context.new_page()",
            "            try:",
            "                await run_test(page)",
            "            except Exception as e:",
            "                print(f'Test failed: {e}', file=sys.stderr)",
            "                try:",
            "                    await page.screenshot(path=f'test-failure-{int(time.time() * 1000)}.png', full_page=False)",
            "                except PlaywrightError as screenshot_error:",
            "                    print(f'Failed to capture failure screenshot: {screenshot_error}', file=sys.stderr)",
            "                return False",
            "            print('Test completed successfully!')",
            "            return True",
            "        finally:",
            "            await browser.close()",
            "",
            "",
            "if __name__ == '__main__':",
            "    sys.exit(0 if asyncio.run(main()) else 1)",
            "",
        ]

    def generate_script_content(self) -> str:
        """Generates the full script as a string."""
        script_lines = []
        script_lines.extend(self._get_header())
        script_lines.extend(self._get_imports_and_constants())
        script_lines.extend(self._get_helpers())
        script_lines.extend(self._get_run_test())
        script_lines.extend(self._get_main())
        logger.debug(f"Generated script for {len(self.commands)} commands")
        return "\n".join(script_lines)
