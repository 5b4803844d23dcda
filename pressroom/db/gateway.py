"""Connection-scoped facade over article and media storage."""

from typing import Any, Dict, List, Mapping, Optional

from ..models import Article, StoredAudio, StoredImage
from .articles import ArticleStorage
from .connection import get_connection
from .media import MediaRecords


class PersistenceGateway:
    """
    Run each storage operation on its own pooled connection.

    Callers never see a connection; the pipeline runs these methods in a
    worker thread and the API calls them from its route handlers.
    """

    def __init__(self, db_config: Dict[str, Any]) -> None:
        self.db_config = db_config
        self.articles = ArticleStorage()
        self.media = MediaRecords()

    def create_article(self, data: Mapping[str, Any]) -> Article:
        with get_connection(self.db_config) as conn:
            return self.articles.create_article(conn, data)

    def get_article(self, article_id: int) -> Article:
        with get_connection(self.db_config) as conn:
            return self.articles.get_article(conn, article_id)

    def update_article(self, article_id: int, fields: Mapping[str, Any]) -> Article:
        with get_connection(self.db_config) as conn:
            return self.articles.update_article(conn, article_id, fields)

    def publish_article(
        self,
        article_id: int,
        signature: Optional[str],
        source_links: Optional[List[str]] = None,
    ) -> Article:
        with get_connection(self.db_config) as conn:
            return self.articles.publish_article(conn, article_id, signature, source_links)

    def delete_article(self, article_id: int) -> None:
        with get_connection(self.db_config) as conn:
            self.articles.delete_article(conn, article_id)

    def list_drafts_by_author(self, author_address: str) -> List[Article]:
        with get_connection(self.db_config) as conn:
            return self.articles.list_drafts_by_author(conn, author_address)

    def list_published_by_author(self, author_address: str) -> List[Article]:
        with get_connection(self.db_config) as conn:
            return self.articles.list_published_by_author(conn, author_address)

    def list_published(self, limit: Optional[int] = None) -> List[Article]:
        with get_connection(self.db_config) as conn:
            return self.articles.list_published(conn, limit=limit)

    def record_image(
        self,
        filename: str,
        source_url: str,
        local_path: str,
        article_id: Optional[int] = None,
    ) -> StoredImage:
        with get_connection(self.db_config) as conn:
            return self.media.record_image(conn, filename, source_url, local_path, article_id)

    def record_audio(self, filename: str, duration: float, local_path: str, article_id: int) -> StoredAudio:
        with get_connection(self.db_config) as conn:
            return self.media.record_audio(conn, filename, duration, local_path, article_id)
