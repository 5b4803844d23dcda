"""Append-only provenance records for stored media."""

from typing import Optional

from psycopg import Connection

from ..models import StoredAudio, StoredImage


class MediaRecords:
    """Insert and read StoredImage / StoredAudio rows."""

    def record_image(
        self,
        conn: Connection,
        filename: str,
        source_url: str,
        local_path: str,
        article_id: Optional[int] = None,
    ) -> StoredImage:
        """Record a downloaded image."""
        with conn.cursor() as cur:
            cur.execute(
                """
                INSERT INTO stored_images (filename, source_url, local_path, article_id)
                VALUES (%s, %s, %s, %s)
                RETURNING *
                """,
                (filename, source_url, local_path, article_id),
            )
            row = cur.fetchone()

        conn.commit()
        return StoredImage.model_validate(row)

    def record_audio(
        self,
        conn: Connection,
        filename: str,
        duration: float,
        local_path: str,
        article_id: int,
    ) -> StoredAudio:
        """Record a stored narration file."""
        with conn.cursor() as cur:
            cur.execute(
                """
                INSERT INTO stored_audio (filename, duration, local_path, article_id)
                VALUES (%s, %s, %s, %s)
                RETURNING *
                """,
                (filename, duration, local_path, article_id),
            )
            row = cur.fetchone()

        conn.commit()
        return StoredAudio.model_validate(row)
