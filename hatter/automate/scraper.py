import logging
from typing import Any, Dict, List, Optional

from playwright.async_api import Error as PlaywrightError

from hatter.automate.browser_config import BrowserConfig
from hatter.automate.errors import ScrapeError
from hatter.automate.navigation import wait_for_page_stable
from hatter.automate.selector_util import escape_attribute_value
from hatter.automate.session import open_session
from hatter.automate.stability import (
    DEFAULT_CHALLENGE_MARKERS,
    ChallengeMarkers,
    wait_for_challenge,
)
from hatter.automate.timings import SCRAPE_TIMINGS, Timings
from hatter.models.form_field import FieldOption, FormField, ScrapeResult

logger = logging.getLogger(__name__)

# Collects raw attributes only; selector and label priority are decided in Python.
FORM_SCRAPE_SCRIPT = """() => {
    const query = [
        'input:not([type="hidden" i])',
        'textarea',
        'select',
        'button[type="submit" i]',
        'button:not([type])',
    ].join(', ');
    const controls = 'input, select, textarea, button';
    const textOf = (node) => {
        if (!node) {
            return null;
        }
        const copy = node.cloneNode(true);
        copy.querySelectorAll(controls).forEach((control) => control.remove());
        return (copy.textContent || '').replace(/\\s+/g, ' ').trim();
    };
    return Array.from(document.querySelectorAll(query)).map((el) => {
        const tagName = el.tagName.toLowerCase();
        const id = el.getAttribute('id');
        let nthOfType = 1;
        for (let sibling = el.previousElementSibling; sibling; sibling = sibling.previousElementSibling) {
            if (sibling.tagName === el.tagName) {
                nthOfType += 1;
            }
        }
        const forLabel = id ? document.querySelector(`label[for="${CSS.escape(id)}"]`) : null;
        return {
            tagName: tagName,
            type: el.type || tagName,
            typeAttribute: el.getAttribute('type'),
            id: id,
            cssId: id ? CSS.escape(id) : null,
            name: el.getAttribute('name'),
            placeholder: el.getAttribute('placeholder'),
            value: el.value || null,
            required: Boolean(el.required),
            firstClass: el.classList.length ? CSS.escape(el.classList[0]) : null,
            nthOfType: nthOfType,
            forLabelText: textOf(forLabel),
            wrappingLabelText: textOf(el.closest('label')),
            ariaLabel: el.getAttribute('aria-label'),
            options: tagName === 'select'
                ? Array.from(el.options).map((option) => ({ value: option.value, text: option.text.trim() }))
                : null,
        };
    });
}"""


def choose_selector(raw: Dict[str, Any]) -> str:
    """Pick a selector: id, then name, placeholder, first class, then position."""
    tag = raw.get("tagName") or "input"
    if raw.get("cssId"):
        return f"#{raw['cssId']}"
    if raw.get("name"):
        return f'{tag}[name="{escape_attribute_value(raw["name"])}"]'
    if raw.get("placeholder"):
        return f'{tag}[placeholder="{escape_attribute_value(raw["placeholder"])}"]'
    if raw.get("firstClass"):
        return f"{tag}.{raw['firstClass']}"
    nth = raw.get("nthOfType") or 1
    if raw.get("typeAttribute"):
        return f'{tag}[type="{escape_attribute_value(raw["typeAttribute"])}"]:nth-of-type({nth})'
    return f"{tag}:nth-of-type({nth})"


def resolve_label(raw: Dict[str, Any]) -> Optional[str]:
    """Pick a label: label[for], wrapping label, aria-label, then placeholder."""
    for key in ("forLabelText", "wrappingLabelText", "ariaLabel", "placeholder"):
        value = (raw.get(key) or "").strip()
        if value:
            return value
    return None


def build_form_field(raw: Dict[str, Any]) -> FormField:
    options = raw.get("options")
    return FormField(
        tag_name=raw.get("tagName") or "input",
        type=raw.get("type") or raw.get("tagName") or "text",
        id=raw.get("id") or None,
        name=raw.get("name") or None,
        placeholder=raw.get("placeholder") or None,
        value=raw.get("value") or None,
        required=bool(raw.get("required")),
        selector=choose_selector(raw),
        label=resolve_label(raw),
        options=[FieldOption(**option) for option in options] if options is not None else None,
    )


class FormScraper:
    """Loads a page in its own browser session and inventories its form fields."""

    def __init__(
        self,
        browser_config: Optional[BrowserConfig] = None,
        session_factory=open_session,
        timings: Timings = SCRAPE_TIMINGS,
        markers: ChallengeMarkers = DEFAULT_CHALLENGE_MARKERS,
    ):
        self.browser_config = browser_config or BrowserConfig()
        self.session_factory = session_factory
        self.timings = timings
        self.markers = markers

    async def scrape(self, url: str) -> ScrapeResult:
        if not url:
            raise ScrapeError("No URL provided")

        logger.info(f"Scraping form: {url}")
        try:
            async with self.session_factory(self.browser_config) as page:
                await page.goto(url, wait_until="load", timeout=self.timings.navigation_timeout)
                await wait_for_page_stable(page, self.timings.network_idle_timeout)
                await wait_for_challenge(page, self.markers, self.timings)
                raw_fields: List[Dict[str, Any]] = await page.evaluate(FORM_SCRAPE_SCRIPT) or []
        except PlaywrightError as e:
            logger.error(f"Scraping error for {url}: {e.message}")
            raise ScrapeError(f"Failed to scrape {url}: {e.message}") from e

        fields = [build_form_field(raw) for raw in raw_fields]
        logger.info(f"Found {len(fields)} fields")
        return ScrapeResult(success=True, url=url, fields=fields, total_fields=len(fields))
