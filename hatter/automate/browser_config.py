from typing import Any, Dict, List, Optional

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)

_HIDE_WEBDRIVER = """Object.defineProperty(navigator, 'webdriver', {
    get: () => false,
});"""

_CHROME_RUNTIME = """window.chrome = window.chrome || {};
window.chrome.runtime = window.chrome.runtime || {};"""

_NOTIFICATIONS_PERMISSION = """if (window.navigator.permissions && window.navigator.permissions.query) {
    const originalQuery = window.navigator.permissions.query.bind(window.navigator.permissions);
    window.navigator.permissions.query = (parameters) => (
        parameters && parameters.name === 'notifications'
            ? Promise.resolve({ state: Notification.permission })
            : originalQuery(parameters)
    );
}"""


class ProxyConfig:

    def __init__(
        self,
        server: Optional[str] = None,
        username: Optional[str] = None,
        password: Optional[str] = None,
        bypass: Optional[str] = None,
    ):
        self.server = server
        self.username = username
        self.password = password
        self.bypass = bypass

    def model_dump(self) -> Dict[str, Any]:
        result = {}
        if self.server:
            result["server"] = self.server
        if self.username:
            result["username"] = self.username
        if self.password:
            result["password"] = self.password
        if self.bypass:
            result["bypass"] = self.bypass
        return result


class FingerprintProfile:
    """Declarative set of navigator overrides applied once per browser context."""

    def __init__(
        self,
        user_agent: str = DEFAULT_USER_AGENT,
        hide_webdriver: bool = True,
        chrome_runtime: bool = True,
        notifications_permission_passthrough: bool = True,
    ):
        self.user_agent = user_agent
        self.hide_webdriver = hide_webdriver
        self.chrome_runtime = chrome_runtime
        self.notifications_permission_passthrough = notifications_permission_passthrough

    def init_script(self) -> Optional[str]:
        """Render the enabled overrides as a single init script, or None if there are none."""
        parts = []
        if self.hide_webdriver:
            parts.append(_HIDE_WEBDRIVER)
        if self.chrome_runtime:
            parts.append(_CHROME_RUNTIME)
        if self.notifications_permission_passthrough:
            parts.append(_NOTIFICATIONS_PERMISSION)
        if not parts:
            return None
        return "\n".join(parts)


class BrowserConfig:
    """Session configuration: how the browser is launched and how its context looks."""

    def __init__(
        self,
        headless: bool = True,
        proxy: Optional[ProxyConfig] = None,
        browser_class: str = "chromium",
        no_sandbox: bool = True,
        disable_security: bool = True,
        window_width: int = 1920,
        window_height: int = 1080,
        locale: Optional[str] = None,
        timezone_id: Optional[str] = None,
        fingerprint: Optional[FingerprintProfile] = None,
    ):
        self.headless = headless
        self.proxy = proxy
        self.browser_class = browser_class
        self.no_sandbox = no_sandbox
        self.disable_security = disable_security
        self.window_width = window_width
        self.window_height = window_height
        self.locale = locale
        self.timezone_id = timezone_id
        self.fingerprint = fingerprint or FingerprintProfile()

    def launch_args(self) -> List[str]:
        # chromium-only switches
        if self.browser_class != "chromium":
            return []
        args = [
            "--disable-blink-features=AutomationControlled",
            "--disable-features=IsolateOrigins,site-per-process",
        ]
        if self.no_sandbox:
            args.extend(["--no-sandbox", "--disable-setuid-sandbox"])
        if self.disable_security:
            args.append("--disable-web-security")
        return args

    def launch_options(self) -> Dict[str, Any]:
        options: Dict[str, Any] = {"headless": self.headless}
        args = self.launch_args()
        if args:
            options["args"] = args
        if self.proxy and self.proxy.model_dump():
            options["proxy"] = self.proxy.model_dump()
        return options

    def context_options(self) -> Dict[str, Any]:
        options: Dict[str, Any] = {
            "viewport": {"width": self.window_width, "height": self.window_height},
            "user_agent": self.fingerprint.user_agent,
        }
        if self.locale:
            options["locale"] = self.locale
        if self.timezone_id:
            options["timezone_id"] = self.timezone_id
        if self.disable_security:
            options["bypass_csp"] = True
            options["ignore_https_errors"] = True
        return options
