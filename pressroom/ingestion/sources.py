"""Combine search and page fetching into one gathering step."""

from typing import List

from .models import SourceBundle, SourceDocument
from .page_fetcher import PageFetcher
from .search_client import SearchClient


class SourceGatherer:
    """Search a topic and annotate each result with its page text."""

    def __init__(self, search_client: SearchClient, page_fetcher: PageFetcher, num_results: int = 5) -> None:
        self.search_client = search_client
        self.page_fetcher = page_fetcher
        self.num_results = num_results

    async def gather(self, topic: str) -> SourceBundle:
        """Return every search result with best-effort page text.

        An empty bundle means the search found nothing.
        """
        results = await self.search_client.search(topic, num=self.num_results)
        used_fallback = not self.search_client.is_configured

        documents: List[SourceDocument] = await self.page_fetcher.fetch_all(results)
        return SourceBundle(topic=topic, documents=documents, used_fallback=used_fallback)


def build_context(documents: List[SourceDocument], max_chars_per_source: int = 4000) -> str:
    """Concatenate usable source text into one prompt context block."""
    blocks = []
    for i, doc in enumerate(documents, 1):
        text = doc.text.strip()
        if len(text) > max_chars_per_source:
            text = text[:max_chars_per_source] + "..."
        blocks.append(f"Source {i}: {doc.result.title}\nURL: {doc.link}\n\n{text}")
    return "\n\n---\n\n".join(blocks)
