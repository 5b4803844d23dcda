"""Provenance records for persisted media files."""

from typing import Optional

from pydantic import Field

from .base import DBModel


class StoredImage(DBModel):
    """Image downloaded from a generation API and stored locally."""

    filename: str = Field(..., description="File name under the images folder")
    source_url: str = Field(..., description="Original (ephemeral) image URL")
    local_path: str = Field(..., description="Absolute path of the stored file")
    article_id: Optional[int] = Field(None, description="Owning article, unset for temporary saves")


class StoredAudio(DBModel):
    """Narration audio stored locally."""

    filename: str = Field(..., description="File name under the audio folder")
    duration: float = Field(..., description="Estimated duration in seconds")
    local_path: str = Field(..., description="Absolute path of the stored file")
    article_id: int = Field(..., description="Owning article")
