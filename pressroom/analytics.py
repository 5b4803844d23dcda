"""Aggregate statistics over published articles."""

import re
from collections import Counter
from typing import Iterable, List, Tuple

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .models import Article, normalize_address

MIN_KEYWORD_LENGTH = 4
TOP_KEYWORDS = 10

_WORD_SPLIT_RE = re.compile(r"\W+")


class Analytics(BaseModel):
    """Dashboard numbers for the published catalogue."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    published_count: int = Field(0, description="Number of published articles")
    unique_publishers: int = Field(0, description="Distinct author addresses")
    top_keywords: List[Tuple[str, int]] = Field(default_factory=list, description="(keyword, count), most frequent first")


def extract_keywords(text: str) -> List[str]:
    """Lower-cased words of at least four characters."""
    return [w for w in _WORD_SPLIT_RE.split(text.lower()) if len(w) >= MIN_KEYWORD_LENGTH]


def compute_analytics(articles: Iterable[Article], top: int = TOP_KEYWORDS) -> Analytics:
    """Count articles, publishers and the most frequent keywords.

    Keywords come from titles and bodies; ties keep first-seen order.
    """
    publishers = set()
    counts: Counter = Counter()
    total = 0

    for article in articles:
        total += 1
        publishers.add(normalize_address(article.author_address))
        counts.update(extract_keywords(article.title))
        counts.update(extract_keywords(article.content))

    return Analytics(
        published_count=total,
        unique_publishers=len(publishers),
        top_keywords=counts.most_common(top),
    )
