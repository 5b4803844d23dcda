"""Data models for the generation pipeline."""

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from ..errors import ADMIN_ACTION_MESSAGE
from ..models import Article

NarrationFailure = Literal["api_key", "timeout", "failed", "disabled"]

NARRATION_FAILURE_MESSAGES: Dict[str, str] = {
    "api_key": "Article created without audio. " + ADMIN_ACTION_MESSAGE.format(service="text-to-speech"),
    "timeout": "Article created without audio: audio generation timed out.",
    "failed": "Article created without audio: audio generation failed.",
    "disabled": "Article created without audio: narration is disabled.",
}


class StageReport(BaseModel):
    """Outcome of one pipeline stage."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    name: str = Field(..., description="Stage name")
    success: bool = Field(..., description="Whether the stage completed")
    duration: float = Field(0.0, description="Seconds spent in the stage")
    error: Optional[str] = Field(None, description="Error message if failed")
    stats: Dict[str, Any] = Field(default_factory=dict)


class GenerationResult(BaseModel):
    """What the caller gets back from one generation."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    generation_id: str = Field("", description="Identifier carried by every progress event of this run")
    article: Article = Field(..., description="The saved draft")
    status: Literal["success", "partial_success"] = Field("success")
    narration_failure: Optional[NarrationFailure] = Field(None, description="Why audio is missing")
    message: str = Field("Article generated", description="Human-readable outcome")
    source_links: List[str] = Field(default_factory=list, description="Gathered search links")
    stages: List[StageReport] = Field(default_factory=list)
    usage: Dict[str, Any] = Field(default_factory=dict, description="Language model usage statistics")
