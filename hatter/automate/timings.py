class Timings:
    """Fixed waits and timeouts, in milliseconds, shared by the executor, scraper and compiler."""

    def __init__(
        self,
        selector_timeout: int = 10000,
        navigation_timeout: int = 30000,
        text_timeout: int = 10000,
        network_idle_timeout: int = 3000,
        type_delay: int = 50,
        scroll_pause: int = 500,
        challenge_max_wait: int = 15000,
        challenge_poll_interval: int = 1000,
        challenge_settle_delay: int = 2000,
        navigation_fallback: int = 3000,
    ):
        self.selector_timeout = selector_timeout
        self.navigation_timeout = navigation_timeout
        self.text_timeout = text_timeout
        self.network_idle_timeout = network_idle_timeout
        self.type_delay = type_delay
        self.scroll_pause = scroll_pause
        self.challenge_max_wait = challenge_max_wait
        self.challenge_poll_interval = challenge_poll_interval
        self.challenge_settle_delay = challenge_settle_delay
        self.navigation_fallback = navigation_fallback

    def model_dump(self) -> dict:
        return dict(vars(self))


DEFAULT_TIMINGS = Timings()

# scraping waits longer for dynamic form content after the gate
SCRAPE_TIMINGS = Timings(challenge_settle_delay=3000)
