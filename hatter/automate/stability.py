import asyncio
import logging
from typing import Any, Dict, List, Optional

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Page

from hatter.automate.timings import DEFAULT_TIMINGS, Timings

logger = logging.getLogger(__name__)

CHALLENGE_DETECTION_SCRIPT = """(markers) => {
    const bodyText = (document.body && document.body.innerText) || '';
    const title = document.title || '';
    return markers.phrases.some((phrase) => bodyText.includes(phrase)) ||
        markers.titles.some((fragment) => title.includes(fragment)) ||
        markers.selectors.some((selector) => document.querySelector(selector) !== null);
}"""


class ChallengeMarkers:
    """Heuristics that identify an automated-traffic interstitial."""

    def __init__(
        self,
        phrases: Optional[List[str]] = None,
        titles: Optional[List[str]] = None,
        selectors: Optional[List[str]] = None,
    ):
        self.phrases = phrases if phrases is not None else [
            "Verifying you are human",
            "Checking your browser",
        ]
        self.titles = titles if titles is not None else ["Just a moment"]
        self.selectors = selectors if selectors is not None else [
            ".cf-browser-verification",
            "#cf-challenge-running",
        ]

    def model_dump(self) -> Dict[str, Any]:
        return {
            "phrases": list(self.phrases),
            "titles": list(self.titles),
            "selectors": list(self.selectors),
        }


DEFAULT_CHALLENGE_MARKERS = ChallengeMarkers()


async def is_challenge_present(page: Page, markers: ChallengeMarkers) -> bool:
    try:
        return bool(await page.evaluate(CHALLENGE_DETECTION_SCRIPT, markers.model_dump()))
    except PlaywrightError as e:
        # context destroyed by a challenge redirect; poll again
        logger.debug(f"Challenge check failed, treating page as still settling: {e}")
        return True


async def wait_for_challenge(
    page: Page,
    markers: ChallengeMarkers = DEFAULT_CHALLENGE_MARKERS,
    timings: Timings = DEFAULT_TIMINGS,
) -> int:
    """Wait out an anti-bot interstitial, then let the page settle.

    Polls every ``challenge_poll_interval`` ms until no marker is present or
    ``challenge_max_wait`` ms have passed. Never raises: a challenge that does
    not clear only delays the run. Returns the number of polls that still saw
    a challenge.
    """
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timings.challenge_max_wait / 1000
    rounds = 0

    while loop.time() < deadline:
        if not await is_challenge_present(page, markers):
            logger.info("✅  Challenge completed or not detected")
            break
        rounds += 1
        logger.info("🛡️  Challenge detected, waiting...")
        await asyncio.sleep(timings.challenge_poll_interval / 1000)
    else:
        logger.warning(
            f"Challenge still present after {timings.challenge_max_wait}ms, proceeding anyway"
        )

    if timings.challenge_settle_delay:
        await asyncio.sleep(timings.challenge_settle_delay / 1000)
    return rounds
