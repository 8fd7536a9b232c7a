"""Page fetcher/extractor: pull the question and best answer out of a Stack Overflow page."""

import logging

import httpx
from bs4 import BeautifulSoup

from .exceptions import NetworkError
from .models import ExtractedSource, ExtractionResult, Found, NotFound

logger = logging.getLogger(__name__)

TITLE_SELECTOR = "h1.fs-headline1"
POST_BODY_SELECTOR = "div.js-post-body"
FALLBACK_TITLE = "No Title"


def parse_question_page(html: str, url: str) -> ExtractionResult:
    """Extract title, question and best answer from page HTML.

    The first post body is the question and the second the top answer; any
    further answers are ignored. Pages with fewer than two post bodies are
    reported as NotFound.
    """
    soup = BeautifulSoup(html, "html.parser")

    h1 = soup.select_one(TITLE_SELECTOR)
    title = h1.get_text().strip() if h1 else ""
    if not title:
        title = FALLBACK_TITLE

    bodies = soup.select(POST_BODY_SELECTOR)
    if len(bodies) < 2:
        return NotFound(url=url, reason=f"expected 2 post bodies, found {len(bodies)}")

    return Found(
        source=ExtractedSource(
            title=title,
            url=url,
            question=bodies[0].get_text().strip(),
            answer=bodies[1].get_text().strip(),
        )
    )


class PageExtractor:
    """Fetches result pages and parses them."""

    def __init__(self, client: httpx.AsyncClient):
        self.client = client

    async def fetch(self, url: str) -> str:
        try:
            response = await self.client.get(url, headers={"Accept": "text/html"})
        except httpx.HTTPError as e:
            raise NetworkError(f"Fetching {url} failed: {e}") from e
        return response.text

    async def extract(self, url: str) -> ExtractionResult:
        """Fetch ``url`` and extract its question/answer pair."""
        html = await self.fetch(url)
        result = parse_question_page(html, url)
        if isinstance(result, NotFound):
            logger.info(f"Skipping {url}: {result.reason}")
        return result
