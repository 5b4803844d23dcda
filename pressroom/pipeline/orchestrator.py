"""Pipeline orchestrator that turns a topic into a saved draft article."""

import asyncio
import logging
import time
import uuid
from typing import Any, Callable, Dict, List, Optional, TypeVar

from openai import AsyncOpenAI

from ..config import Config
from ..db import PersistenceGateway
from ..errors import (
    InvalidRequestError,
    NoSourcesFoundError,
    NarrationTimeoutError,
    PersistenceError,
    PressroomError,
    ServiceAuthError,
)
from ..generation import (
    ImageSynthesizer,
    LLMProvider,
    MediaStore,
    MockLLMProvider,
    NarrationSynthesizer,
    OpenAIProvider,
    ensure_reference_sources,
)
from ..ingestion import PageFetcher, SearchClient, SourceGatherer, build_context
from ..models import Article
from .models import NARRATION_FAILURE_MESSAGES, GenerationResult, StageReport
from .progress import GenerationEvent, ProgressNotifier, progress

logger = logging.getLogger(__name__)

T = TypeVar("T")


class PipelineStage:
    """Represents a pipeline stage."""

    def __init__(self, name: str, description: str):
        self.name = name
        self.description = description
        self.start_time: Optional[float] = None
        self.end_time: Optional[float] = None
        self.success = False
        self.error: Optional[str] = None
        self.stats: Dict = {}

    def start(self):
        """Mark stage as started."""
        self.start_time = time.monotonic()

    def complete(self, stats: Optional[Dict] = None):
        """Mark stage as completed successfully."""
        self.end_time = time.monotonic()
        self.success = True
        if stats:
            self.stats.update(stats)

    def fail(self, error: str):
        """Mark stage as failed."""
        self.end_time = time.monotonic()
        self.success = False
        self.error = error

    @property
    def duration(self) -> float:
        """Get stage duration in seconds."""
        if self.start_time is not None and self.end_time is not None:
            return self.end_time - self.start_time
        return 0.0

    def report(self) -> StageReport:
        return StageReport(
            name=self.name,
            success=self.success,
            duration=round(self.duration, 3),
            error=self.error,
            stats=self.stats,
        )


class GenerationPipeline:
    """
    Run sources -> content -> image -> persist -> thumbnail -> narration.

    Any failure before the draft is saved aborts the run and nothing is
    written to the articles table. Narration, the thumbnail and the article-linked
    image copy are best effort: their failures leave the draft in place and are
    reported on the result.
    """

    def __init__(
        self,
        gatherer: SourceGatherer,
        llm_provider: LLMProvider,
        image_synthesizer: ImageSynthesizer,
        media_store: MediaStore,
        gateway: PersistenceGateway,
        narrator: Optional[NarrationSynthesizer] = None,
        notifier: ProgressNotifier = progress,
        max_chars_per_source: int = 4000,
    ) -> None:
        """
        Initialize pipeline.

        Args:
            gatherer: Search plus page fetching
            llm_provider: Article writer
            image_synthesizer: Illustration generator
            media_store: Local media storage
            gateway: Article and media persistence (synchronous)
            narrator: Text-to-speech; None disables narration
            notifier: Channel that receives lifecycle events
            max_chars_per_source: Source text passed to the model per page
        """
        self.gatherer = gatherer
        self.llm_provider = llm_provider
        self.image_synthesizer = image_synthesizer
        self.media_store = media_store
        self.gateway = gateway
        self.narrator = narrator
        self.notifier = notifier
        self.max_chars_per_source = max_chars_per_source

    @classmethod
    def from_config(cls, config: Config, notifier: ProgressNotifier = progress) -> "GenerationPipeline":
        """Wire every component from configuration."""
        settings = config.config
        search_key, engine_id = config.get_search_credentials()

        gatherer = SourceGatherer(
            SearchClient(
                api_key=search_key,
                engine_id=engine_id,
                fallback_when_unconfigured=settings.search.fallback_when_unconfigured,
            ),
            PageFetcher(
                timeout=settings.scraping.timeout,
                stagger_delay=settings.scraping.stagger_delay,
                user_agent=settings.scraping.user_agent,
            ),
            num_results=settings.search.num_results,
        )

        client = _get_openai_client(config)
        narrator = None
        if settings.narration.enabled:
            narrator = NarrationSynthesizer(
                client,
                model=settings.narration.model,
                voice=settings.narration.voice,
                max_chars=settings.narration.max_chars,
                timeout_seconds=settings.narration.timeout_seconds,
            )

        return cls(
            gatherer=gatherer,
            llm_provider=_get_llm_provider(config, client),
            image_synthesizer=ImageSynthesizer(client, model=settings.images.model, size=settings.images.size),
            media_store=MediaStore(
                config.media_root,
                download_retries=settings.images.download_retries,
                retry_backoff=settings.images.retry_backoff,
                download_timeout=settings.images.download_timeout,
            ),
            gateway=PersistenceGateway(config.get_db_config()),
            narrator=narrator,
            notifier=notifier,
            max_chars_per_source=settings.scraping.max_chars_per_source,
        )

    async def _persist(self, operation: Callable[..., T], *args: Any) -> T:
        """Run a gateway call off the event loop, wrapping driver errors."""
        try:
            return await asyncio.to_thread(operation, *args)
        except PressroomError:
            raise
        except Exception as e:
            raise PersistenceError(f"Failed to save article data: {e}") from e

    async def generate(self, topic: str, author_address: str) -> GenerationResult:
        """
        Generate, illustrate, save and narrate an article.

        Raises:
            InvalidRequestError: topic or author address missing
            GenerationError: a hard stage failed; no article row was written
        """
        topic = (topic or "").strip()
        if not topic:
            raise InvalidRequestError("topic is required")
        if not author_address or not author_address.strip():
            raise InvalidRequestError("authorAddress is required")

        generation_id = uuid.uuid4().hex
        stages: List[PipelineStage] = []

        def notify(event: GenerationEvent, **payload: Any) -> None:
            self.notifier.emit(event, generation_id=generation_id, **payload)

        def begin(name: str, description: str) -> PipelineStage:
            stage = PipelineStage(name, description)
            stages.append(stage)
            stage.start()
            logger.info("%s: %s", description, topic)
            return stage

        # Stage 1: gather sources
        stage = begin("sources", "Gathering sources")
        notify(GenerationEvent.SOURCES_GATHERING, topic=topic)
        try:
            bundle = await self.gatherer.gather(topic)
            if bundle.is_empty():
                raise NoSourcesFoundError(topic)
        except PressroomError as e:
            stage.fail(str(e))
            raise

        usable = bundle.usable
        if not usable:
            logger.warning("No source pages could be read for '%s'; writing from the topic alone", topic)
        stage.complete({
            "found": len(bundle.documents),
            "usable": len(usable),
            "fallback": bundle.used_fallback,
        })
        notify(
            GenerationEvent.SOURCES_FOUND,
            count=len(bundle.documents),
            usable=len(usable),
            links=bundle.links,
        )

        # Stage 2: write the article
        stage = begin("content", "Generating article")
        try:
            context = build_context(usable, self.max_chars_per_source)
            generated = await self.llm_provider.generate_article(topic, context)
        except PressroomError as e:
            stage.fail(str(e))
            raise

        titles = {doc.link: doc.result.title for doc in bundle.documents if doc.result.title}
        content = ensure_reference_sources(generated.content, bundle.links, titles)
        stage.complete({"title": generated.title, "characters": len(content)})
        notify(GenerationEvent.CONTENT_GENERATED, title=generated.title)

        # Stage 3: illustrate and keep a temporary copy
        stage = begin("image", "Creating image")
        try:
            image_source = await self.image_synthesizer.create_image(topic)
            temporary = await self.media_store.save_image(image_source)
            await self._persist(
                self.gateway.record_image,
                temporary.filename,
                image_source,
                temporary.local_path,
                None,
            )
        except PressroomError as e:
            stage.fail(str(e))
            raise

        stage.complete({"filename": temporary.filename})
        notify(GenerationEvent.IMAGE_CREATED, image_url=temporary.public_url)

        # Stage 4: save the draft
        stage = begin("persist", "Saving draft")
        try:
            article = await self._persist(
                self.gateway.create_article,
                {
                    "title": generated.title,
                    "content": content,
                    "description": generated.description,
                    "summary": generated.summary,
                    "image_url": temporary.public_url,
                    "author_address": author_address,
                    "source_links": bundle.links,
                },
            )
        except PressroomError as e:
            stage.fail(str(e))
            raise

        article, relinked = await self._relink_image(article, image_source)
        stage.complete({"article_id": article.id, "image_relinked": relinked})
        notify(GenerationEvent.ARTICLE_SAVED, article_id=article.id)

        # Stage 5: cover thumbnail, best effort
        stage = begin("thumbnail", "Creating thumbnail")
        article = await self._add_thumbnail(article, topic, stage)

        # Stage 6: narration, best effort
        stage = begin("narration", "Creating audio")
        article, failure = await self._narrate(article, stage, notify)

        result = GenerationResult(
            generation_id=generation_id,
            article=article,
            source_links=bundle.links,
            stages=[s.report() for s in stages],
            usage=generated.usage,
        )
        if failure:
            result.status = "partial_success"
            result.narration_failure = failure
            result.message = NARRATION_FAILURE_MESSAGES[failure]

        logger.info("Generated article %s for '%s' (%s)", article.id, topic, result.status)
        return result

    async def _relink_image(self, article: Article, image_source: str):
        """Save the image again under the new article id.

        Failure keeps the temporary copy as the article image.
        """
        try:
            linked = await self.media_store.save_image(image_source)
            await self._persist(
                self.gateway.record_image,
                linked.filename,
                image_source,
                linked.local_path,
                article.id,
            )
            article = await self._persist(self.gateway.update_article, article.id, {"image_url": linked.public_url})
        except (PressroomError, OSError) as e:
            logger.warning("Keeping temporary image for article %s: %s", article.id, e)
            return article, False
        return article, True

    async def _add_thumbnail(self, article: Article, topic: str, stage: PipelineStage) -> Article:
        """Generate, store and attach a cover thumbnail; failure leaves the draft without one."""
        try:
            thumbnail_source = await self.image_synthesizer.create_thumbnail(topic)
            saved = await self.media_store.save_image(thumbnail_source)
            await self._persist(
                self.gateway.record_image,
                saved.filename,
                thumbnail_source,
                saved.local_path,
                article.id,
            )
            article = await self._persist(self.gateway.update_article, article.id, {"thumbnail_url": saved.public_url})
        except (PressroomError, OSError) as e:
            logger.warning("No thumbnail for article %s: %s", article.id, e)
            stage.fail(str(e))
            return article

        stage.complete({"filename": saved.filename})
        return article

    async def _narrate(self, article: Article, stage: PipelineStage, notify: Callable[..., None]):
        """Attach narration audio; returns (article, failure reason or None)."""
        if self.narrator is None:
            stage.fail("Narration disabled")
            notify(GenerationEvent.AUDIO_FAILED, article_id=article.id, reason="disabled")
            return article, "disabled"

        try:
            narration = await self.narrator.narrate(f"{article.title}. {article.content}")
            saved = await self.media_store.save_audio(narration.audio)
            await self._persist(
                self.gateway.record_audio,
                saved.filename,
                narration.duration,
                saved.local_path,
                article.id,
            )
            article = await self._persist(
                self.gateway.update_article,
                article.id,
                {"audio_url": saved.public_url, "audio_duration": narration.duration},
            )
        except Exception as e:
            if isinstance(e, ServiceAuthError):
                reason = "api_key"
            elif isinstance(e, NarrationTimeoutError):
                reason = "timeout"
            else:
                reason = "failed"
            logger.warning("Narration failed for article %s (%s): %s", article.id, reason, e)
            stage.fail(str(e))
            notify(
                GenerationEvent.AUDIO_FAILED,
                article_id=article.id,
                reason=reason,
                message=NARRATION_FAILURE_MESSAGES[reason],
            )
            return article, reason

        stage.complete({"duration": narration.duration, "truncated": narration.truncated})
        notify(
            GenerationEvent.AUDIO_CREATED,
            article_id=article.id,
            audio_url=article.audio_url,
            duration=narration.duration,
        )
        return article, None


def _get_openai_client(config: Config) -> AsyncOpenAI:
    """Shared client for text, image and speech calls."""
    llm_config = config.get_llm_config()
    api_key = llm_config.get("api_key")
    if not api_key:
        raise ServiceAuthError("OpenAI", "no API key configured")
    return AsyncOpenAI(api_key=api_key, base_url=llm_config.get("base_url"))


def _get_llm_provider(config: Config, client: AsyncOpenAI) -> LLMProvider:
    """Get configured LLM provider."""
    llm_config = config.get_llm_config()

    if llm_config.get("provider") == "openai":
        return OpenAIProvider(
            model=llm_config.get("model", "gpt-4o"),
            temperature=llm_config.get("temperature", 0.7),
            client=client,
        )

    logger.warning("Unknown LLM provider '%s'. Using mock provider.", llm_config.get("provider"))
    return MockLLMProvider()
