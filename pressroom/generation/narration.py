"""Article narration via text-to-speech."""

import asyncio
import logging
import re
from typing import Tuple

import openai
from openai import AsyncOpenAI

from ..errors import NarrationError, NarrationTimeoutError, ServiceAuthError
from .models import Narration
from .references import strip_reference_sources

logger = logging.getLogger(__name__)

CONTINUATION_NOTE = " ... The full article continues on the page."

# Average speaking rate used for duration estimates
WORDS_PER_MINUTE = 150.0


def _format_for_tts(content: str) -> str:
    """Remove markdown that would be read out literally."""
    tts_content = strip_reference_sources(content)

    # Links: keep the label, drop the URL
    tts_content = re.sub(r"\[([^\]]+)\]\([^)]+\)", r"\1", tts_content)
    tts_content = re.sub(r"<https?://[^>]+>", "", tts_content)
    # Heading markers, emphasis and list bullets
    tts_content = re.sub(r"^#{1,6}\s*", "", tts_content, flags=re.MULTILINE)
    tts_content = re.sub(r"[*_`]+", "", tts_content)
    tts_content = re.sub(r"^[ \t]*[-•][ \t]+", "", tts_content, flags=re.MULTILINE)

    # Clean up excessive whitespace but preserve paragraph breaks
    tts_content = re.sub(r"\n{3,}", "\n\n", tts_content)
    tts_content = re.sub(r"[ \t]+", " ", tts_content)

    return tts_content.strip()


def prepare_narration_text(text: str, max_chars: int = 4000) -> Tuple[str, bool]:
    """
    Clean text for speech and cut it to the upstream input limit.

    Returns:
        Tuple of (text, truncated). When truncated, the text ends with a
        continuation note and still fits in ``max_chars``.
    """
    cleaned = _format_for_tts(text)
    if len(cleaned) <= max_chars:
        return cleaned, False

    budget = max(0, max_chars - len(CONTINUATION_NOTE))
    cut = cleaned[:budget]
    # Back off to a word boundary
    boundary = cut.rfind(" ")
    if boundary > budget // 2:
        cut = cut[:boundary]

    return cut.rstrip() + CONTINUATION_NOTE, True


def estimate_duration(text: str) -> float:
    """Estimated spoken duration in seconds."""
    words = len(re.findall(r"\b\w+\b", text))
    return round(words / WORDS_PER_MINUTE * 60.0, 1)


class NarrationSynthesizer:
    """Convert article text to speech with a hard time bound."""

    def __init__(
        self,
        client: AsyncOpenAI,
        model: str = "tts-1",
        voice: str = "alloy",
        max_chars: int = 4000,
        timeout_seconds: float = 60.0,
    ) -> None:
        self.client = client
        self.model = model
        self.voice = voice
        self.max_chars = max_chars
        self.timeout_seconds = timeout_seconds

    async def _synthesize(self, text: str) -> bytes:
        try:
            response = await self.client.audio.speech.create(
                model=self.model,
                voice=self.voice,
                input=text,
            )
        except openai.AuthenticationError as e:
            logger.error("Speech model rejected credentials: %s", e)
            raise ServiceAuthError("text-to-speech", str(e), stage="narration") from e
        except openai.OpenAIError as e:
            raise NarrationError(f"Failed to generate audio: {e}") from e

        return response.content

    async def narrate(self, text: str) -> Narration:
        """
        Produce narration audio for ``text``.

        Raises:
            NarrationTimeoutError: the call did not finish in time
            NarrationError: API error or empty audio
            ServiceAuthError: credentials rejected
        """
        prepared, truncated = prepare_narration_text(text, self.max_chars)
        if not prepared:
            raise NarrationError("Nothing to narrate")

        try:
            audio = await asyncio.wait_for(self._synthesize(prepared), timeout=self.timeout_seconds)
        except asyncio.TimeoutError as e:
            raise NarrationTimeoutError(
                f"Audio generation timed out after {self.timeout_seconds:g}s"
            ) from e

        if not audio:
            raise NarrationError("Speech model returned no audio")

        return Narration(audio=audio, duration=estimate_duration(prepared), truncated=truncated)
