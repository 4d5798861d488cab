import os
import logging
from typing import Optional

from dotenv import load_dotenv

from hatter.automate.browser_config import (
    DEFAULT_USER_AGENT,
    BrowserConfig,
    FingerprintProfile,
    ProxyConfig,
)

logger = logging.getLogger(__name__)

load_dotenv()


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


API_PREFIX = os.getenv("API_PREFIX", "/api")
FRONTEND_URL = os.getenv("FRONTEND_URL", "*")
PORT = int(os.getenv("PORT", "3001"))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

BROWSER_HEADLESS = _env_flag("HATTER_HEADLESS", "true")
BROWSER_CLASS = os.getenv("HATTER_BROWSER", "chromium")
VIEWPORT_WIDTH = int(os.getenv("HATTER_VIEWPORT_WIDTH", "1920"))
VIEWPORT_HEIGHT = int(os.getenv("HATTER_VIEWPORT_HEIGHT", "1080"))
USER_AGENT = os.getenv("HATTER_USER_AGENT", DEFAULT_USER_AGENT)
ALLOW_EVALUATE = _env_flag("HATTER_ALLOW_EVALUATE", "false")
LOCALE = os.getenv("HATTER_LOCALE") or None
TIMEZONE_ID = os.getenv("HATTER_TIMEZONE") or None

PROXY_SERVER = os.getenv("HATTER_PROXY_SERVER") or None
PROXY_USERNAME = os.getenv("HATTER_PROXY_USERNAME") or None
PROXY_PASSWORD = os.getenv("HATTER_PROXY_PASSWORD") or None
PROXY_BYPASS = os.getenv("HATTER_PROXY_BYPASS") or None


def get_proxy_config() -> Optional[ProxyConfig]:
    if not PROXY_SERVER:
        return None
    return ProxyConfig(
        server=PROXY_SERVER,
        username=PROXY_USERNAME,
        password=PROXY_PASSWORD,
        bypass=PROXY_BYPASS,
    )


def get_browser_config() -> BrowserConfig:
    if BROWSER_CLASS not in ("chromium", "firefox", "webkit"):
        logger.warning(f"Unsupported HATTER_BROWSER '{BROWSER_CLASS}', falling back to chromium")
    config = BrowserConfig(
        headless=BROWSER_HEADLESS,
        browser_class=BROWSER_CLASS if BROWSER_CLASS in ("chromium", "firefox", "webkit") else "chromium",
        window_width=VIEWPORT_WIDTH,
        window_height=VIEWPORT_HEIGHT,
        fingerprint=FingerprintProfile(user_agent=USER_AGENT),
        locale=LOCALE,
        timezone_id=TIMEZONE_ID,
        proxy=get_proxy_config(),
    )
    logger.debug(
        f"Browser configuration: {config.browser_class}, headless={config.headless}, "
        f"proxy={PROXY_SERVER or 'none'}"
    )
    return config
