"""Media routes: store a remote image or uploaded narration locally."""

import asyncio
import base64
import binascii

from fastapi import APIRouter, Depends

from ..db import PersistenceGateway
from ..errors import InvalidRequestError
from ..generation import MediaStore, estimate_duration
from .dependencies import get_gateway, get_media_store
from .schemas import SaveAudioRequest, SavedMediaResponse, SaveImageRequest

router = APIRouter(tags=["media"])

AUDIO_EXTENSIONS = (".mp3", ".wav")


@router.post("/images/save", response_model=SavedMediaResponse)
async def save_image(
    request: SaveImageRequest,
    media_store: MediaStore = Depends(get_media_store),
    gateway: PersistenceGateway = Depends(get_gateway),
) -> SavedMediaResponse:
    """Download an image, record it and, if an article is given, make it the article image."""
    if request.article_id is not None:
        await asyncio.to_thread(gateway.get_article, request.article_id)

    saved = await media_store.save_image(request.image_url)
    await asyncio.to_thread(
        gateway.record_image, saved.filename, request.image_url, saved.local_path, request.article_id
    )
    if request.article_id is not None:
        await asyncio.to_thread(gateway.update_article, request.article_id, {"image_url": saved.public_url})

    return SavedMediaResponse(url=saved.public_url, filename=saved.filename)


@router.post("/audio/save", response_model=SavedMediaResponse)
async def save_audio(
    request: SaveAudioRequest,
    media_store: MediaStore = Depends(get_media_store),
    gateway: PersistenceGateway = Depends(get_gateway),
) -> SavedMediaResponse:
    """Store narration audio and attach it to its article."""
    try:
        audio = base64.b64decode(request.audio, validate=True)
    except binascii.Error as e:
        raise InvalidRequestError(f"audio is not valid base64: {e}") from e
    if request.extension not in AUDIO_EXTENSIONS:
        raise InvalidRequestError(f"extension must be one of {', '.join(AUDIO_EXTENSIONS)}")
    if not audio:
        raise InvalidRequestError("audio is empty")

    article = await asyncio.to_thread(gateway.get_article, request.article_id)
    duration = request.duration
    if duration is None:
        duration = estimate_duration(article.content)

    saved = await media_store.save_audio(audio, request.extension)
    await asyncio.to_thread(gateway.record_audio, saved.filename, duration, saved.local_path, article.id)
    await asyncio.to_thread(
        gateway.update_article, article.id, {"audio_url": saved.public_url, "audio_duration": duration}
    )

    return SavedMediaResponse(url=saved.public_url, filename=saved.filename)
