"""Article storage: the persistence gateway for article records.

Every write to the ``articles`` table goes through ``ArticleStorage``. The
draft -> published transition is one-way and only ``publish_article`` can
perform it; ``update_article`` never touches ``is_draft`` or ``signature``.
"""

from typing import Any, List, Mapping, Optional

from psycopg import Connection, sql
from psycopg.types.json import Jsonb

from ..errors import ArticleNotFoundError, InvalidRequestError
from ..models import Article, normalize_address

# Literal message the wallet signs before publishing
PUBLISH_MESSAGE = "Verified content"

MAX_ADDRESS_LENGTH = 42

REQUIRED_TEXT_FIELDS = ("title", "content", "description")

# Optional on update but the column is NOT NULL
NON_NULL_FIELDS = ("image_url",)

EDITABLE_FIELDS = (
    "title",
    "content",
    "description",
    "summary",
    "image_url",
    "thumbnail_url",
    "video_url",
    "video_duration",
    "audio_url",
    "audio_duration",
    "source_links",
)

PROTECTED_FIELDS = ("id", "is_draft", "signature", "author_address", "created_at", "updated_at")


def _require_text(data: Mapping[str, Any], field: str) -> str:
    value = data.get(field)
    if not isinstance(value, str) or not value.strip():
        raise InvalidRequestError(f"{field} is required")
    return value


def _normalize_links(links: Optional[List[str]]) -> List[str]:
    """Drop empty entries and duplicates while keeping order."""
    return list(dict.fromkeys(link for link in (links or []) if link))


class ArticleStorage:
    """Create, update, publish, delete and list articles."""

    def create_article(self, conn: Connection, data: Mapping[str, Any]) -> Article:
        """
        Insert a new draft article.

        Whatever the caller sends, the row starts as a draft with an empty
        signature.

        Raises:
            InvalidRequestError: author address or a required text field is missing
        """
        author = data.get("author_address")
        if not isinstance(author, str) or not author.strip():
            raise InvalidRequestError("authorAddress is required")
        author = normalize_address(author)
        if len(author) > MAX_ADDRESS_LENGTH:
            raise InvalidRequestError("authorAddress is too long")

        title = _require_text(data, "title")
        content = _require_text(data, "content")
        description = _require_text(data, "description")
        summary = data.get("summary") or description

        with conn.cursor() as cur:
            cur.execute(
                """
                INSERT INTO articles (
                    title, content, description, summary,
                    image_url, thumbnail_url, video_url, video_duration,
                    audio_url, audio_duration,
                    author_address, signature, source_links, is_draft
                ) VALUES (
                    %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, '', %s, TRUE
                )
                RETURNING *
                """,
                (
                    title,
                    content,
                    description,
                    summary,
                    data.get("image_url") or "",
                    data.get("thumbnail_url"),
                    data.get("video_url"),
                    data.get("video_duration"),
                    data.get("audio_url"),
                    data.get("audio_duration"),
                    author,
                    Jsonb(_normalize_links(data.get("source_links"))),
                ),
            )
            row = cur.fetchone()

        conn.commit()
        return Article.model_validate(row)

    def get_article(self, conn: Connection, article_id: int) -> Article:
        """Get article by ID."""
        with conn.cursor() as cur:
            cur.execute("SELECT * FROM articles WHERE id = %s", (article_id,))
            row = cur.fetchone()

        if row is None:
            raise ArticleNotFoundError(article_id)
        return Article.model_validate(row)

    def update_article(
        self,
        conn: Connection,
        article_id: int,
        fields: Mapping[str, Any],
    ) -> Article:
        """
        Apply a partial update.

        Raises:
            InvalidRequestError: a protected or unknown field was supplied, or a
                required text field was blanked or image_url nulled
            ArticleNotFoundError: no article with this id
        """
        protected = [f for f in fields if f in PROTECTED_FIELDS]
        if protected:
            raise InvalidRequestError(f"Fields cannot be updated: {', '.join(protected)}")

        unknown = [f for f in fields if f not in EDITABLE_FIELDS]
        if unknown:
            raise InvalidRequestError(f"Unknown fields: {', '.join(unknown)}")

        for field in REQUIRED_TEXT_FIELDS + ("summary",):
            if field in fields:
                _require_text(fields, field)
        for field in NON_NULL_FIELDS:
            if field in fields and fields[field] is None:
                raise InvalidRequestError(f"{field} cannot be null")

        if not fields:
            return self.get_article(conn, article_id)

        values = []
        assignments = []
        for field, value in fields.items():
            if field == "source_links":
                value = Jsonb(_normalize_links(value))
            assignments.append(sql.SQL("{} = %s").format(sql.Identifier(field)))
            values.append(value)

        query = sql.SQL("UPDATE articles SET {} WHERE id = %s RETURNING *").format(
            sql.SQL(", ").join(assignments)
        )

        with conn.cursor() as cur:
            cur.execute(query, (*values, article_id))
            row = cur.fetchone()

        if row is None:
            conn.rollback()
            raise ArticleNotFoundError(article_id)

        conn.commit()
        return Article.model_validate(row)

    def publish_article(
        self,
        conn: Connection,
        article_id: int,
        signature: Optional[str],
        source_links: Optional[List[str]] = None,
    ) -> Article:
        """
        Publish an article.

        Only the presence of a signature is checked; it is not verified
        against the author address. Publishing an already published article
        succeeds again and stores the new signature.

        Raises:
            InvalidRequestError: signature missing or blank
            ArticleNotFoundError: no article with this id
        """
        if not isinstance(signature, str) or not signature.strip():
            raise InvalidRequestError("signature is required to publish")

        with conn.cursor() as cur:
            if source_links is None:
                cur.execute(
                    """
                    UPDATE articles
                    SET is_draft = FALSE, signature = %s
                    WHERE id = %s
                    RETURNING *
                    """,
                    (signature.strip(), article_id),
                )
            else:
                cur.execute(
                    """
                    UPDATE articles
                    SET is_draft = FALSE, signature = %s, source_links = %s
                    WHERE id = %s
                    RETURNING *
                    """,
                    (signature.strip(), Jsonb(_normalize_links(source_links)), article_id),
                )
            row = cur.fetchone()

        if row is None:
            conn.rollback()
            raise ArticleNotFoundError(article_id)

        conn.commit()
        return Article.model_validate(row)

    def delete_article(self, conn: Connection, article_id: int) -> None:
        """Hard-delete an article."""
        with conn.cursor() as cur:
            cur.execute("DELETE FROM articles WHERE id = %s RETURNING id", (article_id,))
            row = cur.fetchone()

        if row is None:
            conn.rollback()
            raise ArticleNotFoundError(article_id)

        conn.commit()

    def list_drafts_by_author(self, conn: Connection, author_address: str) -> List[Article]:
        """Drafts of one author, newest first."""
        return self._list(conn, is_draft=True, author_address=author_address)

    def list_published_by_author(self, conn: Connection, author_address: str) -> List[Article]:
        """Published articles of one author, newest first."""
        return self._list(conn, is_draft=False, author_address=author_address)

    def list_published(self, conn: Connection, limit: Optional[int] = None) -> List[Article]:
        """All published articles, newest first."""
        return self._list(conn, is_draft=False, limit=limit)

    def _list(
        self,
        conn: Connection,
        is_draft: bool,
        author_address: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> List[Article]:
        query = "SELECT * FROM articles WHERE is_draft = %s"
        params: List[Any] = [is_draft]

        if author_address is not None:
            query += " AND author_address = %s"
            params.append(normalize_address(author_address))

        query += " ORDER BY created_at DESC, id DESC"

        if limit is not None:
            query += " LIMIT %s"
            params.append(limit)

        with conn.cursor() as cur:
            cur.execute(query, params)
            rows = cur.fetchall()

        return [Article.model_validate(row) for row in rows]
