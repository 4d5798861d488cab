import asyncio
import time

from fakes import FAST_TIMINGS, FakePage
from playwright.async_api import Error as PlaywrightError

from hatter.automate.stability import (
    CHALLENGE_DETECTION_SCRIPT,
    ChallengeMarkers,
    is_challenge_present,
    wait_for_challenge,
)


def test_clean_page_takes_zero_rounds():
    page = FakePage()
    assert asyncio.run(wait_for_challenge(page, timings=FAST_TIMINGS)) == 0
    assert page.evaluations == [CHALLENGE_DETECTION_SCRIPT]


def test_challenge_that_clears_is_waited_out():
    page = FakePage(challenge_polls=3)
    assert asyncio.run(wait_for_challenge(page, timings=FAST_TIMINGS)) == 3
    assert page.challenge_polls == 0


def test_challenge_that_never_clears_stops_at_the_ceiling():
    page = FakePage(challenge_polls=-1)
    start = time.perf_counter()
    rounds = asyncio.run(wait_for_challenge(page, timings=FAST_TIMINGS))
    elapsed_ms = (time.perf_counter() - start) * 1000

    assert rounds > 0
    ceiling = FAST_TIMINGS.challenge_max_wait + FAST_TIMINGS.challenge_poll_interval
    assert elapsed_ms < ceiling + FAST_TIMINGS.challenge_settle_delay + 500


def test_detection_error_counts_as_challenged():
    class BrokenPage(FakePage):
        async def evaluate(self, expression, arg=None):
            raise PlaywrightError("Execution context was destroyed")

    assert asyncio.run(is_challenge_present(BrokenPage(), ChallengeMarkers())) is True


def test_markers_are_passed_to_the_page():
    seen = []

    class RecordingPage(FakePage):
        async def evaluate(self, expression, arg=None):
            seen.append(arg)
            return False

    markers = ChallengeMarkers(phrases=["Hold on"], titles=[], selectors=["#gate"])
    asyncio.run(is_challenge_present(RecordingPage(), markers))
    assert seen == [{"phrases": ["Hold on"], "titles": [], "selectors": ["#gate"]}]
