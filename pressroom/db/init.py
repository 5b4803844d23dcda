"""Database initialization and schema management."""

import logging
from typing import Any, Dict

from psycopg import Connection
from psycopg.errors import DatabaseError

from .connection import get_connection

logger = logging.getLogger(__name__)


SCHEMA_SQL = """
-- Articles table
CREATE TABLE IF NOT EXISTS articles (
    id SERIAL PRIMARY KEY,
    title TEXT NOT NULL CHECK (title <> ''),
    content TEXT NOT NULL CHECK (content <> ''),
    description TEXT NOT NULL CHECK (description <> ''),
    summary TEXT NOT NULL CHECK (summary <> ''),
    image_url TEXT NOT NULL DEFAULT '',
    thumbnail_url TEXT,
    video_url TEXT,
    video_duration REAL,
    audio_url TEXT,
    audio_duration REAL,
    author_address VARCHAR(42) NOT NULL CHECK (author_address = lower(author_address)),
    signature TEXT NOT NULL DEFAULT '',
    source_links JSONB NOT NULL DEFAULT '[]'::jsonb,
    is_draft BOOLEAN NOT NULL DEFAULT TRUE,
    created_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP,
    updated_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP,
    CHECK (is_draft OR signature <> '')
);

-- Images downloaded from the image model
CREATE TABLE IF NOT EXISTS stored_images (
    id SERIAL PRIMARY KEY,
    filename TEXT NOT NULL,
    source_url TEXT NOT NULL,
    local_path TEXT NOT NULL,
    article_id INTEGER REFERENCES articles(id) ON DELETE SET NULL,
    created_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP
);

-- Narration audio
CREATE TABLE IF NOT EXISTS stored_audio (
    id SERIAL PRIMARY KEY,
    filename TEXT NOT NULL,
    duration REAL NOT NULL,
    local_path TEXT NOT NULL,
    article_id INTEGER NOT NULL REFERENCES articles(id) ON DELETE CASCADE,
    created_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP
);

-- Create indexes
CREATE INDEX IF NOT EXISTS idx_articles_author_draft ON articles(author_address, is_draft);
CREATE INDEX IF NOT EXISTS idx_articles_created_at ON articles(created_at);
CREATE INDEX IF NOT EXISTS idx_stored_images_article_id ON stored_images(article_id);
CREATE INDEX IF NOT EXISTS idx_stored_audio_article_id ON stored_audio(article_id);

-- Update trigger function
CREATE OR REPLACE FUNCTION update_updated_at_column()
RETURNS TRIGGER AS $$
BEGIN
    NEW.updated_at = CURRENT_TIMESTAMP;
    RETURN NEW;
END;
$$ language 'plpgsql';

-- Publishing is one-way
CREATE OR REPLACE FUNCTION forbid_unpublish()
RETURNS TRIGGER AS $$
BEGIN
    IF OLD.is_draft = FALSE AND NEW.is_draft = TRUE THEN
        RAISE EXCEPTION 'published article % cannot return to draft', OLD.id;
    END IF;
    RETURN NEW;
END;
$$ language 'plpgsql';

CREATE OR REPLACE TRIGGER update_articles_updated_at BEFORE UPDATE ON articles
    FOR EACH ROW EXECUTE FUNCTION update_updated_at_column();

CREATE OR REPLACE TRIGGER articles_forbid_unpublish BEFORE UPDATE ON articles
    FOR EACH ROW EXECUTE FUNCTION forbid_unpublish();
"""


def validate_connection(config: Dict[str, Any]) -> bool:
    """Validate database connection."""
    try:
        with get_connection(config) as conn:
            with conn.cursor() as cur:
                cur.execute("SELECT 1 AS ok")
                result = cur.fetchone()
                return result is not None and result["ok"] == 1
    except Exception as e:
        logger.error("Database connection failed: %s", e)
        return False


def create_schema(conn: Connection) -> None:
    """Create tables, indexes and triggers on an open connection."""
    with conn.cursor() as cur:
        cur.execute(SCHEMA_SQL)
    conn.commit()


def init_database(config: Dict[str, Any]) -> None:
    """Initialize database schema."""
    try:
        with get_connection(config) as conn:
            create_schema(conn)
            logger.info("Database schema initialized successfully")
    except DatabaseError as e:
        logger.error("Failed to initialize database schema: %s", e)
        raise
