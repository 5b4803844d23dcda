"""Source page fetcher and text extractor."""

import asyncio
import logging
from typing import List, Optional

import httpx
import trafilatura

from .models import SearchResult, SourceDocument

logger = logging.getLogger(__name__)


class PageFetcher:
    """Fetch source pages and extract their main text."""

    def __init__(
        self,
        timeout: float = 10.0,
        stagger_delay: float = 1.0,
        user_agent: str = "Pressroom/1.0 (Article Generator)",
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """
        Initialize page fetcher.

        Args:
            timeout: Per-page timeout in seconds
            stagger_delay: Delay added per result index before fetching
            user_agent: User-Agent header sent to source sites
            transport: Custom httpx transport (for testing)
        """
        self.timeout = timeout
        self.stagger_delay = stagger_delay
        self.user_agent = user_agent
        self.transport = transport

    def extract_text(self, html: str, url: Optional[str] = None) -> str:
        """Extract main content, falling back to whole-document text."""
        extracted = trafilatura.extract(
            html,
            include_comments=False,
            include_tables=False,
            deduplicate=True,
            url=url,
        )
        if extracted and extracted.strip():
            return extracted.strip()

        # Fallback: every visible text node of the page
        fallback = trafilatura.html2txt(html)
        return (fallback or "").strip()

    def _failed(self, result: SearchResult, error: str) -> SourceDocument:
        return SourceDocument(result=result, text="", fetch_success=False, error=error)

    async def fetch_page(self, result: SearchResult, index: int = 0) -> SourceDocument:
        """Fetch and extract a single page, never raising."""
        # Throttle: later results start later so destination sites see a trickle
        delay = index * self.stagger_delay
        if delay > 0:
            await asyncio.sleep(delay)

        try:
            headers = {
                "User-Agent": self.user_agent,
                "Accept": "text/html,application/xhtml+xml",
            }

            async with httpx.AsyncClient(
                timeout=self.timeout,
                follow_redirects=True,
                headers=headers,
                transport=self.transport,
            ) as client:
                response = await client.get(result.link)
                response.raise_for_status()

            text = self.extract_text(response.text, url=str(response.url))
            if not text:
                return self._failed(result, "No content extracted")

            return SourceDocument(result=result, text=text, fetch_success=True)

        except httpx.HTTPStatusError as e:
            error_msg = f"HTTP {e.response.status_code}"
            if e.response.status_code == 404:
                error_msg = "Page not found (404)"
            elif e.response.status_code == 403:
                error_msg = "Access forbidden (403)"
            elif e.response.status_code >= 500:
                error_msg = f"Server error ({e.response.status_code})"
            return self._failed(result, error_msg)
        except httpx.TimeoutException:
            return self._failed(result, "Request timed out")
        except httpx.HTTPError as e:
            return self._failed(result, f"Request failed: {e}")
        except Exception as e:
            logger.warning("Unexpected error extracting %s: %s", result.link, e)
            return self._failed(result, f"Unexpected error: {e}")

    async def fetch_all(self, results: List[SearchResult]) -> List[SourceDocument]:
        """Fetch all pages concurrently with staggered starts, keeping order."""
        if not results:
            return []

        tasks = [self.fetch_page(result, index) for index, result in enumerate(results)]
        documents = await asyncio.gather(*tasks)

        failed = [doc for doc in documents if not doc.fetch_success]
        for doc in failed:
            logger.info("Source fetch failed for %s: %s", doc.link, doc.error)

        return list(documents)
