"""FastAPI dependencies.

Each service is built lazily on first use and kept on ``app.state``; tests
replace them through ``app.dependency_overrides``.
"""

from fastapi import Request

from ..db import PersistenceGateway
from ..generation import MediaStore
from ..pipeline import GenerationPipeline


def get_gateway(request: Request) -> PersistenceGateway:
    state = request.app.state
    if getattr(state, "gateway", None) is None:
        state.gateway = PersistenceGateway(state.config.get_db_config())
    return state.gateway


def get_media_store(request: Request) -> MediaStore:
    state = request.app.state
    if getattr(state, "media_store", None) is None:
        images = state.config.config.images
        state.media_store = MediaStore(
            state.config.media_root,
            download_retries=images.download_retries,
            retry_backoff=images.retry_backoff,
            download_timeout=images.download_timeout,
        )
    return state.media_store


def get_pipeline(request: Request) -> GenerationPipeline:
    state = request.app.state
    if getattr(state, "pipeline", None) is None:
        state.pipeline = GenerationPipeline.from_config(state.config)
    return state.pipeline
