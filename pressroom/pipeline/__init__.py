"""Article generation pipeline."""

from .models import GenerationResult, StageReport
from .orchestrator import GenerationPipeline, PipelineStage
from .progress import GenerationEvent, ProgressNotifier, ProgressUpdate, progress

__all__ = [
    "GenerationEvent",
    "GenerationPipeline",
    "GenerationResult",
    "PipelineStage",
    "ProgressNotifier",
    "ProgressUpdate",
    "StageReport",
    "progress",
]
