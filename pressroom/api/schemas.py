"""Request and response bodies for the HTTP API (camelCase on the wire)."""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class APIModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ErrorResponse(APIModel):
    message: str
    stage: Optional[str] = None


class CreateArticleRequest(APIModel):
    """Manual draft creation. Presence checks happen in the gateway so they map to 400."""

    title: Optional[str] = None
    content: Optional[str] = None
    description: Optional[str] = None
    summary: Optional[str] = None
    image_url: Optional[str] = None
    thumbnail_url: Optional[str] = None
    video_url: Optional[str] = None
    video_duration: Optional[float] = None
    audio_url: Optional[str] = None
    audio_duration: Optional[float] = None
    author_address: Optional[str] = None
    source_links: Optional[List[str]] = None


class UpdateArticleRequest(APIModel):
    """Partial update. Unknown keys, including isDraft and signature, are rejected."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")

    title: Optional[str] = None
    content: Optional[str] = None
    description: Optional[str] = None
    summary: Optional[str] = None
    image_url: Optional[str] = None
    thumbnail_url: Optional[str] = None
    video_url: Optional[str] = None
    video_duration: Optional[float] = None
    audio_url: Optional[str] = None
    audio_duration: Optional[float] = None
    source_links: Optional[List[str]] = None


class PublishRequest(APIModel):
    signature: Optional[str] = None
    source_links: Optional[List[str]] = None


class GenerateRequest(APIModel):
    topic: Optional[str] = None
    author_address: Optional[str] = None


class SaveImageRequest(APIModel):
    image_url: str = Field(..., description="Remote image to download")
    article_id: Optional[int] = Field(None, description="Article to link the image to")


class SaveAudioRequest(APIModel):
    audio: str = Field(..., description="Base64-encoded audio")
    article_id: int = Field(..., description="Article the narration belongs to")
    duration: Optional[float] = Field(None, description="Duration in seconds")
    extension: str = Field(".mp3", description="File extension")


class SavedMediaResponse(APIModel):
    url: str
    filename: str
