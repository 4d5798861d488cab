import asyncio

from hatter.automate import session
from hatter.automate.browser_config import BrowserConfig, FingerprintProfile, ProxyConfig


def test_default_launch_options():
    options = BrowserConfig().launch_options()
    assert options["headless"] is True
    assert options["args"] == [
        "--disable-blink-features=AutomationControlled",
        "--disable-features=IsolateOrigins,site-per-process",
        "--no-sandbox",
        "--disable-setuid-sandbox",
        "--disable-web-security",
    ]
    assert "proxy" not in options


def test_secure_sandboxed_launch():
    args = BrowserConfig(no_sandbox=False, disable_security=False).launch_args()
    assert "--no-sandbox" not in args
    assert "--disable-web-security" not in args


def test_non_chromium_browsers_get_no_chromium_switches():
    assert "args" not in BrowserConfig(browser_class="firefox").launch_options()


def test_proxy():
    config = BrowserConfig(proxy=ProxyConfig(server="http://proxy:8080", username="bob"))
    assert config.launch_options()["proxy"] == {"server": "http://proxy:8080", "username": "bob"}
    assert "proxy" not in BrowserConfig(proxy=ProxyConfig()).launch_options()


def test_context_options():
    config = BrowserConfig(window_width=1280, window_height=720, locale="en-GB")
    options = config.context_options()
    assert options["viewport"] == {"width": 1280, "height": 720}
    assert options["locale"] == "en-GB"
    assert options["bypass_csp"] is True
    assert "timezone_id" not in options
    assert "bypass_csp" not in BrowserConfig(disable_security=False).context_options()


def test_fingerprint_init_script():
    script = FingerprintProfile().init_script()
    assert "navigator, 'webdriver'" in script
    assert "window.chrome.runtime" in script
    assert "notifications" in script

    assert FingerprintProfile(
        hide_webdriver=False, chrome_runtime=False, notifications_permission_passthrough=False
    ).init_script() is None


class FakeContext:
    def __init__(self, calls):
        self.calls = calls

    async def add_init_script(self, script):
        self.calls.append(("add_init_script", script))

    async def new_page(self):
        self.calls.append(("new_page",))
        return "page"


class FakeBrowser:
    def __init__(self, calls):
        self.calls = calls

    async def new_context(self, **options):
        self.calls.append(("new_context", options))
        return FakeContext(self.calls)

    async def close(self):
        self.calls.append(("close",))


class FakeBrowserType:
    def __init__(self, calls):
        self.calls = calls

    async def launch(self, **options):
        self.calls.append(("launch", options))
        return FakeBrowser(self.calls)


class FakePlaywright:
    def __init__(self, calls):
        self.chromium = FakeBrowserType(calls)

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        return False


def test_open_session_applies_config_and_closes(monkeypatch):
    calls = []
    monkeypatch.setattr(session, "async_playwright", lambda: FakePlaywright(calls))
    config = BrowserConfig()

    async def use_session():
        async with session.open_session(config) as page:
            assert page == "page"

    asyncio.run(use_session())

    assert [call[0] for call in calls] == ["launch", "new_context", "add_init_script", "new_page", "close"]
    assert calls[0][1] == config.launch_options()
    assert calls[1][1] == config.context_options()
    assert calls[2][1] == config.fingerprint.init_script()
