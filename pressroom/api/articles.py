"""Article routes."""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response

from ..analytics import Analytics, compute_analytics
from ..db import PersistenceGateway
from ..models import Article
from ..pipeline import GenerationPipeline, GenerationResult
from .dependencies import get_gateway, get_pipeline
from .schemas import CreateArticleRequest, GenerateRequest, PublishRequest, UpdateArticleRequest

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/articles", tags=["articles"])


@router.get("", response_model=List[Article])
def list_published(
    limit: Optional[int] = Query(None, ge=1),
    gateway: PersistenceGateway = Depends(get_gateway),
) -> List[Article]:
    """All published articles, newest first."""
    return gateway.list_published(limit=limit)


@router.get("/analytics", response_model=Analytics)
def analytics(gateway: PersistenceGateway = Depends(get_gateway)) -> Analytics:
    return compute_analytics(gateway.list_published())


@router.get("/drafts/{address}", response_model=List[Article])
def list_drafts(address: str, gateway: PersistenceGateway = Depends(get_gateway)) -> List[Article]:
    return gateway.list_drafts_by_author(address)


@router.get("/published/{address}", response_model=List[Article])
def list_published_by_author(address: str, gateway: PersistenceGateway = Depends(get_gateway)) -> List[Article]:
    return gateway.list_published_by_author(address)


@router.post("/generate", response_model=GenerationResult)
async def generate_article(
    request: GenerateRequest,
    pipeline: GenerationPipeline = Depends(get_pipeline),
) -> GenerationResult:
    """Run the generation pipeline and return the saved draft."""
    return await pipeline.generate(request.topic or "", request.author_address or "")


@router.post("", response_model=Article, status_code=201)
def create_article(request: CreateArticleRequest, gateway: PersistenceGateway = Depends(get_gateway)) -> Article:
    """Create a draft by hand."""
    return gateway.create_article(request.model_dump(exclude_none=True))


@router.get("/{article_id}", response_model=Article)
def get_article(article_id: int, gateway: PersistenceGateway = Depends(get_gateway)) -> Article:
    return gateway.get_article(article_id)


@router.put("/{article_id}", response_model=Article)
def update_article(
    article_id: int,
    request: UpdateArticleRequest,
    gateway: PersistenceGateway = Depends(get_gateway),
) -> Article:
    return gateway.update_article(article_id, request.model_dump(exclude_unset=True))


@router.post("/{article_id}/publish", response_model=Article)
def publish_article(
    article_id: int,
    request: PublishRequest,
    gateway: PersistenceGateway = Depends(get_gateway),
) -> Article:
    """Publish with a wallet signature over the fixed publish message."""
    article = gateway.publish_article(article_id, request.signature, request.source_links)
    logger.info("Published article %s by %s", article.id, article.author_address)
    return article


@router.delete("/{article_id}", status_code=204)
def delete_article(article_id: int, gateway: PersistenceGateway = Depends(get_gateway)) -> Response:
    gateway.delete_article(article_id)
    return Response(status_code=204)
