"""Image generation and local media storage."""

import asyncio
import logging
import uuid
from pathlib import Path
from typing import Optional

import httpx
import openai
import pendulum
from openai import AsyncOpenAI

from ..errors import ImageGenerationError, MediaDownloadError, ServiceAuthError
from .models import SavedMedia

logger = logging.getLogger(__name__)

MEDIA_URL_PREFIX = "/media"

CONTENT_TYPE_EXTENSIONS = {
    "image/png": ".png",
    "image/jpeg": ".jpg",
    "image/webp": ".webp",
    "image/gif": ".gif",
    "audio/mpeg": ".mp3",
    "audio/wav": ".wav",
}


def _media_filename(extension: str) -> str:
    """Timestamped, collision-free file name."""
    timestamp = pendulum.now("UTC").format("YYYYMMDD-HHmmss")
    return f"{timestamp}-{uuid.uuid4().hex[:8]}{extension}"


class ImageSynthesizer:
    """Request illustrations from the image model."""

    def __init__(self, client: AsyncOpenAI, model: str = "dall-e-3", size: str = "1024x1024") -> None:
        self.client = client
        self.model = model
        self.size = size

    @staticmethod
    def build_prompt(topic: str) -> str:
        return f"Create an image for an article about {topic}"

    @staticmethod
    def build_thumbnail_prompt(topic: str) -> str:
        return (
            f'Create a cinematic thumbnail for "{topic}". Professional tech-focused '
            f"composition, high contrast, modern design, with visual elements representing {topic}."
        )

    async def create_image(self, topic: str) -> str:
        """
        Generate one illustration and return its (ephemeral) URL.

        Raises:
            ServiceAuthError: credentials rejected
            ImageGenerationError: any other API failure or an empty response
        """
        return await self._generate(self.build_prompt(topic))

    async def create_thumbnail(self, topic: str) -> str:
        """Generate a high quality cover thumbnail; errors as for create_image."""
        return await self._generate(self.build_thumbnail_prompt(topic), quality="hd")

    async def _generate(self, prompt: str, **options) -> str:
        try:
            response = await self.client.images.generate(
                model=self.model,
                prompt=prompt,
                n=1,
                size=self.size,
                **options,
            )
        except openai.AuthenticationError as e:
            logger.error("Image model rejected credentials: %s", e)
            raise ServiceAuthError("image generation", str(e), stage="image") from e
        except openai.OpenAIError as e:
            raise ImageGenerationError(f"Failed to generate image: {e}") from e

        if not response.data or not response.data[0].url:
            raise ImageGenerationError("Image model returned no image URL")

        return response.data[0].url


class MediaStore:
    """Write images and audio under the media root."""

    def __init__(
        self,
        media_root: Path,
        download_retries: int = 3,
        retry_backoff: float = 2.0,
        download_timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """
        Initialize media store.

        Args:
            media_root: Directory holding ``images/`` and ``audio/``
            download_retries: Attempts per download
            retry_backoff: Fixed delay between attempts in seconds
            download_timeout: Per-attempt timeout in seconds
            transport: Custom httpx transport (for testing)
        """
        self.media_root = Path(media_root)
        self.download_retries = max(1, download_retries)
        self.retry_backoff = retry_backoff
        self.download_timeout = download_timeout
        self.transport = transport

    def _write(self, folder: str, filename: str, data: bytes) -> SavedMedia:
        directory = self.media_root / folder
        directory.mkdir(parents=True, exist_ok=True)
        path = directory / filename
        path.write_bytes(data)
        return SavedMedia(
            filename=filename,
            local_path=str(path.resolve()),
            public_url=f"{MEDIA_URL_PREFIX}/{folder}/{filename}",
        )

    async def download(self, url: str) -> httpx.Response:
        """
        Download a URL with a fixed number of attempts.

        Raises:
            MediaDownloadError: every attempt failed
        """
        last_error: Optional[Exception] = None

        async with httpx.AsyncClient(
            timeout=self.download_timeout,
            follow_redirects=True,
            transport=self.transport,
        ) as client:
            for attempt in range(1, self.download_retries + 1):
                try:
                    response = await client.get(url)
                    response.raise_for_status()
                    if not response.content:
                        raise MediaDownloadError("Downloaded file is empty")
                    return response
                except (httpx.HTTPError, MediaDownloadError) as e:
                    last_error = e
                    logger.warning(
                        "Download attempt %d/%d failed for %s: %s",
                        attempt, self.download_retries, url, e,
                    )
                    if attempt < self.download_retries and self.retry_backoff > 0:
                        await asyncio.sleep(self.retry_backoff)

        raise MediaDownloadError(
            f"Failed to download media after {self.download_retries} attempts: {last_error}"
        )

    async def save_image(self, source_url: str) -> SavedMedia:
        """Download a generated image and store it locally."""
        response = await self.download(source_url)
        content_type = response.headers.get("content-type", "").split(";")[0].strip()
        extension = CONTENT_TYPE_EXTENSIONS.get(content_type, ".png")

        saved = await asyncio.to_thread(self._write, "images", _media_filename(extension), response.content)
        saved.source_url = source_url
        return saved

    async def save_audio(self, audio: bytes, extension: str = ".mp3") -> SavedMedia:
        """Store narration audio locally."""
        return await asyncio.to_thread(self._write, "audio", _media_filename(extension), audio)
