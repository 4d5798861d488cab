import logging
from typing import Any

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from hatter.automate.scraper import FormScraper
from hatter.config import get_browser_config
from hatter.models.form_field import ScrapeResult
from hatter.models.run import ScrapeRequest

logger = logging.getLogger(__name__)

router = APIRouter(tags=["forms"])


def get_form_scraper() -> FormScraper:
    return FormScraper(browser_config=get_browser_config())


@router.post("/scrape-form", response_model=ScrapeResult, response_model_exclude_none=True)
async def scrape_form(
    request: ScrapeRequest,
    scraper: FormScraper = Depends(get_form_scraper),
) -> Any:
    if not request.url:
        logger.warning("Scrape request without a URL")
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"success": False, "error": "No URL provided"},
        )
    return await scraper.scrape(request.url)
