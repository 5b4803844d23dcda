"""Web search client for gathering article sources."""

import logging
from typing import List, Optional

import httpx

from ..errors import SearchError, ServiceAuthError
from .models import SearchResult

logger = logging.getLogger(__name__)

SEARCH_API_URL = "https://www.googleapis.com/customsearch/v1"
SEARCH_FIELDS = "items(title,snippet,link)"


FALLBACK_SOURCES = {
    "web3": [
        SearchResult(
            title="Web3 Development Guide",
            snippet="Introduction to blockchain and decentralized application development.",
            link="https://ethereum.org/en/developers/",
        ),
        SearchResult(
            title="Blockchain Technology Explained",
            snippet="Overview of blockchain technology, its applications and potential.",
            link="https://www.ibm.com/topics/blockchain",
        ),
        SearchResult(
            title="Decentralized Finance (DeFi) Explained",
            snippet="Understanding the revolution in financial services through blockchain.",
            link="https://ethereum.org/en/defi/",
        ),
    ],
    "ai": [
        SearchResult(
            title="Getting Started with AI",
            snippet="Learn about artificial intelligence and its applications in modern technology.",
            link="https://www.ibm.com/topics/artificial-intelligence",
        ),
        SearchResult(
            title="Machine Learning Overview",
            snippet="Comprehensive introduction to machine learning concepts and applications.",
            link="https://www.ibm.com/topics/machine-learning",
        ),
        SearchResult(
            title="AI Research at OpenAI",
            snippet="Latest developments in artificial intelligence research and applications.",
            link="https://openai.com/research/",
        ),
    ],
    "default": [
        SearchResult(
            title="Understanding Web Development",
            snippet="A comprehensive guide to modern web development practices and technologies.",
            link="https://developer.mozilla.org/en-US/docs/Learn",
        ),
        SearchResult(
            title="Web Technology for Developers",
            snippet="Comprehensive resource for web technology, standards and best practices.",
            link="https://developer.mozilla.org/en-US/docs/Web",
        ),
        SearchResult(
            title="Digital Technology Trends",
            snippet="Overview of current technological innovations and future directions.",
            link="https://www.mckinsey.com/capabilities/mckinsey-digital/our-insights",
        ),
    ],
}


def fallback_sources(topic: str) -> List[SearchResult]:
    """Curated sources used when no search credentials are configured."""
    lower_topic = topic.lower()
    words = set(lower_topic.replace("-", " ").split())

    if any(k in lower_topic for k in ("blockchain", "crypto", "web3")):
        key = "web3"
    elif "ai" in words or "machine learning" in lower_topic or "artificial intelligence" in lower_topic:
        key = "ai"
    else:
        key = "default"

    return [result.model_copy() for result in FALLBACK_SOURCES[key]]


class SearchClient:
    """Query the search API for pages about a topic."""

    def __init__(
        self,
        api_key: Optional[str],
        engine_id: Optional[str],
        timeout: float = 15.0,
        fallback_when_unconfigured: bool = True,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """
        Initialize search client.

        Args:
            api_key: Search API key
            engine_id: Custom search engine ID
            timeout: Request timeout in seconds
            fallback_when_unconfigured: Return curated sources if credentials are missing
            transport: Custom httpx transport (for testing)
        """
        self.api_key = api_key
        self.engine_id = engine_id
        self.timeout = timeout
        self.fallback_when_unconfigured = fallback_when_unconfigured
        self.transport = transport

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key and self.engine_id)

    async def search(self, topic: str, num: int = 5) -> List[SearchResult]:
        """
        Search for pages about a topic.

        Returns an empty list when the API has no results; the caller decides
        whether that is fatal.

        Raises:
            SearchError: the API call failed or credentials are missing
        """
        if not self.is_configured:
            if self.fallback_when_unconfigured:
                logger.warning("Search credentials missing, using fallback sources for '%s'", topic)
                return fallback_sources(topic)[:num]
            raise SearchError("Search API credentials are not configured")

        params = {
            "key": self.api_key,
            "cx": self.engine_id,
            "q": topic,
            "num": num,
            "fields": SEARCH_FIELDS,
            "safe": "active",
        }

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.get(SEARCH_API_URL, params=params)
                response.raise_for_status()
                data = response.json()
        except httpx.HTTPStatusError as e:
            if e.response.status_code in (401, 403):
                raise ServiceAuthError("search", e.response.text, stage="sources") from e
            raise SearchError(f"Search API returned HTTP {e.response.status_code}") from e
        except httpx.HTTPError as e:
            raise SearchError(f"Search API request failed: {e}") from e
        except ValueError as e:
            raise SearchError(f"Search API returned invalid JSON: {e}") from e

        items = data.get("items") or []
        results = []
        for item in items:
            link = item.get("link") or ""
            if not link.startswith("http"):
                continue
            results.append(
                SearchResult(
                    title=item.get("title") or "Untitled",
                    snippet=item.get("snippet") or "No description available",
                    link=link,
                )
            )

        logger.info("Found %d valid sources for topic '%s'", len(results), topic)
        return results[:num]
