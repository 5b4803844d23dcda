"""Source gathering: web search and page extraction."""

from .models import SearchResult, SourceBundle, SourceDocument
from .page_fetcher import PageFetcher
from .search_client import SearchClient, fallback_sources
from .sources import SourceGatherer, build_context

__all__ = [
    "PageFetcher",
    "SearchClient",
    "SearchResult",
    "SourceBundle",
    "SourceDocument",
    "SourceGatherer",
    "build_context",
    "fallback_sources",
]
