"""Article model for generated and published content."""

from datetime import datetime
from typing import List, Optional

from pydantic import Field, field_validator

from .base import DBModel


def normalize_address(address: str) -> str:
    """Canonical form of a wallet address used for storage and comparison."""
    return address.strip().lower()


class Article(DBModel):
    """Article model."""

    title: str = Field(..., description="Article title")
    content: str = Field(..., description="Markdown-like article body")
    description: str = Field(..., description="Short description")
    summary: str = Field(..., description="Summary, defaults to description")
    image_url: str = Field("", description="Local URL of the stored illustration")
    thumbnail_url: Optional[str] = Field(None, description="Local URL of the thumbnail")
    video_url: Optional[str] = Field(None, description="Video URL")
    video_duration: Optional[float] = Field(None, description="Video duration in seconds")
    audio_url: Optional[str] = Field(None, description="Local URL of the narration")
    audio_duration: Optional[float] = Field(None, description="Narration duration in seconds")
    author_address: str = Field(..., description="Lower-cased wallet address of the author")
    signature: str = Field("", description="Publish signature, empty while draft")
    source_links: List[str] = Field(default_factory=list, description="Ordered source URLs")
    is_draft: bool = Field(True, description="Draft until published")
    updated_at: Optional[datetime] = Field(None, description="Last update timestamp")

    @field_validator("author_address")
    @classmethod
    def _normalize_author(cls, v: str) -> str:
        return normalize_address(v)

    @property
    def is_published(self) -> bool:
        return not self.is_draft
