import asyncio
import time

from fakes import FAST_TIMINGS, FakePage
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from hatter.automate.navigation import wait_for_navigation, wait_for_page_stable


def test_navigation_event_wins():
    assert asyncio.run(wait_for_navigation(FakePage(navigates=True), FAST_TIMINGS)) is True


def test_single_page_app_falls_back_without_error():
    start = time.perf_counter()
    navigated = asyncio.run(wait_for_navigation(FakePage(), FAST_TIMINGS))
    elapsed_ms = (time.perf_counter() - start) * 1000

    assert navigated is False
    # the fallback, not the navigation timeout, bounds the wait
    assert elapsed_ms < FAST_TIMINGS.navigation_timeout


def test_page_stable_swallows_timeouts():
    class BusyPage(FakePage):
        async def wait_for_load_state(self, state="load", timeout=None):
            raise PlaywrightTimeoutError("Timeout 10ms exceeded.")

    asyncio.run(wait_for_page_stable(BusyPage(), timeout=10))
