"""Query dispatcher: send a site-restricted query to the search proxy."""

import json
import logging
from urllib.parse import urljoin

import httpx

from .exceptions import MalformedResponseError, NetworkError
from .models import SearchResult

logger = logging.getLogger(__name__)

SITE_FILTER = "site:stackoverflow.com"


def build_query(query: str) -> str:
    return f"{query} {SITE_FILTER}"


def parse_search_response(body: str) -> list[SearchResult]:
    """Parse ``{"organic": [{"link": ...}, ...]}`` preserving the backend's order.

    Raises:
        MalformedResponseError: If the body is not JSON or lacks an ``organic`` list.
    """
    try:
        data = json.loads(body)
    except json.JSONDecodeError as e:
        raise MalformedResponseError(f"Search response is not valid JSON: {e}") from e

    if not isinstance(data, dict) or "organic" not in data:
        raise MalformedResponseError("Search response has no 'organic' field")

    organic = data["organic"]
    if not isinstance(organic, list):
        raise MalformedResponseError(f"'organic' must be a list, got {type(organic).__name__}")

    results = []
    for i, entry in enumerate(organic):
        if not isinstance(entry, dict) or not isinstance(entry.get("link"), str):
            raise MalformedResponseError(f"Organic result {i} has no 'link'")
        results.append(SearchResult(link=entry["link"]))
    return results


class SearchClient:
    """Dispatches queries to ``<proxy_url>search``."""

    def __init__(self, client: httpx.AsyncClient, proxy_url: str):
        self.client = client
        self.endpoint = urljoin(proxy_url if proxy_url.endswith("/") else proxy_url + "/", "search")

    async def search(self, query: str) -> list[SearchResult]:
        """Run one search request. No retries."""
        payload = {"q": build_query(query)}
        logger.info(f"Searching: {payload['q'][:100]}")

        try:
            response = await self.client.post(
                self.endpoint,
                json=payload,
                headers={"Content-Type": "application/json"},
            )
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise NetworkError(f"Search request to {self.endpoint} failed: {e}") from e

        results = parse_search_response(response.text)
        logger.info(f"Search returned {len(results)} result(s)")
        return results

    async def dispatch(self, query: str) -> list[str]:
        """Return result URLs in ranking order."""
        return [result.link for result in await self.search(query)]
