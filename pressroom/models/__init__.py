"""Data models for Pressroom."""

from .article import Article, normalize_address
from .media import StoredAudio, StoredImage

__all__ = ["Article", "StoredAudio", "StoredImage", "normalize_address"]
