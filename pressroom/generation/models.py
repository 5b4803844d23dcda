"""Data models for generation."""

from typing import Any, Dict

from pydantic import BaseModel, Field


class GeneratedContent(BaseModel):
    """Structured article returned by the language model."""

    title: str = Field(..., description="Article title")
    content: str = Field(..., description="Article body")
    description: str = Field(..., description="Short description")
    summary: str = Field(..., description="Summary")
    usage: Dict[str, Any] = Field(default_factory=dict, description="Token usage of the call that produced it")


class SavedMedia(BaseModel):
    """A media file written under the media root."""

    filename: str = Field(..., description="File name")
    local_path: str = Field(..., description="Absolute path on disk")
    public_url: str = Field(..., description="URL path the API serves it under")
    source_url: str = Field("", description="Where the file was downloaded from, if anywhere")


class Narration(BaseModel):
    """Synthesized speech for an article."""

    audio: bytes = Field(..., description="Encoded audio")
    duration: float = Field(..., description="Estimated duration in seconds")
    truncated: bool = Field(False, description="Whether the input text was cut")
