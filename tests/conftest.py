import asyncio

import pytest
from fakes import FAST_TIMINGS, FakeSessionFactory, login_page
from playwright.async_api import Error as PlaywrightError

from hatter.automate.browser_config import BrowserConfig
from hatter.automate.executor import CommandExecutor
from hatter.automate.session import open_session


@pytest.fixture(name="page")
def page_fixture():
    return login_page()


@pytest.fixture(name="sessions")
def sessions_fixture(page):
    return FakeSessionFactory(page)


@pytest.fixture(name="executor")
def executor_fixture(sessions):
    return CommandExecutor(session_factory=sessions, timings=FAST_TIMINGS)


@pytest.fixture(name="browser_config", scope="session")
def browser_config_fixture():
    """A BrowserConfig that is known to launch; skips when Chromium is not installed."""
    config = BrowserConfig()

    async def launch():
        try:
            async with open_session(config):
                return None
        except PlaywrightError as e:
            return e.message

    error = asyncio.run(launch())
    if error:
        pytest.skip(f"Chromium is not available: {error.splitlines()[0]}")
    return config
