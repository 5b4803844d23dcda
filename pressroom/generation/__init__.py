"""Article, image and narration generation."""

from .images import ImageSynthesizer, MediaStore
from .llm_provider import LLMProvider, MockLLMProvider, OpenAIProvider
from .models import GeneratedContent, Narration, SavedMedia
from .narration import NarrationSynthesizer, estimate_duration, prepare_narration_text
from .references import ensure_reference_sources, extract_reference_links

__all__ = [
    "GeneratedContent",
    "ImageSynthesizer",
    "LLMProvider",
    "MediaStore",
    "MockLLMProvider",
    "Narration",
    "NarrationSynthesizer",
    "OpenAIProvider",
    "SavedMedia",
    "ensure_reference_sources",
    "estimate_duration",
    "extract_reference_links",
    "prepare_narration_text",
]
