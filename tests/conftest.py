from __future__ import annotations

import asyncio
import json
from datetime import datetime, timedelta, timezone
from pathlib import Path
from types import SimpleNamespace
from typing import Any, Callable, Dict, List, Optional

import httpx
import openai
import pytest

from pressroom.config import Config, ConfigModel
from pressroom.db.articles import EDITABLE_FIELDS, NON_NULL_FIELDS, PROTECTED_FIELDS
from pressroom.errors import ArticleNotFoundError, InvalidRequestError
from pressroom.generation import ImageSynthesizer, MediaStore, NarrationSynthesizer, OpenAIProvider
from pressroom.ingestion import PageFetcher, SearchClient, SourceGatherer
from pressroom.models import Article, StoredAudio, StoredImage, normalize_address
from pressroom.pipeline import GenerationPipeline, ProgressNotifier

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64

GENERATED_ARTICLE = {
    "title": "Microgrids Keep the Lights On",
    "content": "# Microgrids\n\nLocal grids pair solar with storage.\n\n## Why it matters\n\nResilience.",
    "description": "How microgrids make renewable power resilient.",
    "summary": "Microgrids combine generation and storage close to where power is used.",
}


# ---------------------------------------------------------------------------
# In-memory persistence gateway
# ---------------------------------------------------------------------------


class InMemoryGateway:
    """Same contract as PersistenceGateway, kept in dicts."""

    def __init__(self) -> None:
        self.articles: Dict[int, Article] = {}
        self.images: List[StoredImage] = []
        self.audio: List[StoredAudio] = []
        self.fail_create: Optional[Exception] = None
        self.fail_linked_image: Optional[Exception] = None
        self._next_id = 1
        self._clock = datetime(2024, 1, 1, tzinfo=timezone.utc)

    def _now(self) -> datetime:
        self._clock += timedelta(seconds=1)
        return self._clock

    def create_article(self, data: Dict[str, Any]) -> Article:
        if self.fail_create is not None:
            raise self.fail_create
        author = data.get("author_address")
        if not author or not str(author).strip():
            raise InvalidRequestError("authorAddress is required")
        for field in ("title", "content", "description"):
            if not data.get(field):
                raise InvalidRequestError(f"{field} is required")

        fields = {k: v for k, v in data.items() if k in EDITABLE_FIELDS and v is not None}
        fields["summary"] = fields.get("summary") or fields["description"]
        fields["source_links"] = list(dict.fromkeys(fields.get("source_links") or []))
        now = self._now()
        article = Article(
            id=self._next_id,
            author_address=author,
            is_draft=True,
            signature="",
            created_at=now,
            updated_at=now,
            **fields,
        )
        self.articles[article.id] = article
        self._next_id += 1
        return article

    def get_article(self, article_id: int) -> Article:
        if article_id not in self.articles:
            raise ArticleNotFoundError(article_id)
        return self.articles[article_id]

    def update_article(self, article_id: int, fields: Dict[str, Any]) -> Article:
        protected = [f for f in fields if f in PROTECTED_FIELDS]
        if protected:
            raise InvalidRequestError(f"Fields cannot be updated: {', '.join(protected)}")
        unknown = [f for f in fields if f not in EDITABLE_FIELDS]
        if unknown:
            raise InvalidRequestError(f"Unknown fields: {', '.join(unknown)}")
        nulled = [f for f in NON_NULL_FIELDS if f in fields and fields[f] is None]
        if nulled:
            raise InvalidRequestError(f"{nulled[0]} cannot be null")
        article = self.get_article(article_id)
        updated = article.model_copy(update={**fields, "updated_at": self._now()})
        self.articles[article_id] = updated
        return updated

    def publish_article(self, article_id: int, signature: Optional[str], source_links=None) -> Article:
        if not signature or not signature.strip():
            raise InvalidRequestError("signature is required to publish")
        article = self.get_article(article_id)
        update: Dict[str, Any] = {"is_draft": False, "signature": signature.strip()}
        if source_links is not None:
            update["source_links"] = list(dict.fromkeys(source_links))
        published = article.model_copy(update=update)
        self.articles[article_id] = published
        return published

    def delete_article(self, article_id: int) -> None:
        self.get_article(article_id)
        del self.articles[article_id]

    def _sorted(self, articles: List[Article]) -> List[Article]:
        return sorted(articles, key=lambda a: (a.created_at, a.id), reverse=True)

    def list_drafts_by_author(self, author_address: str) -> List[Article]:
        author = normalize_address(author_address)
        return self._sorted([a for a in self.articles.values() if a.is_draft and a.author_address == author])

    def list_published_by_author(self, author_address: str) -> List[Article]:
        author = normalize_address(author_address)
        return self._sorted([a for a in self.articles.values() if not a.is_draft and a.author_address == author])

    def list_published(self, limit: Optional[int] = None) -> List[Article]:
        published = self._sorted([a for a in self.articles.values() if not a.is_draft])
        return published[:limit] if limit is not None else published

    def record_image(self, filename, source_url, local_path, article_id=None) -> StoredImage:
        if article_id is not None and self.fail_linked_image is not None:
            raise self.fail_linked_image
        image = StoredImage(
            id=len(self.images) + 1,
            filename=filename,
            source_url=source_url,
            local_path=local_path,
            article_id=article_id,
        )
        self.images.append(image)
        return image

    def record_audio(self, filename, duration, local_path, article_id) -> StoredAudio:
        audio = StoredAudio(
            id=len(self.audio) + 1,
            filename=filename,
            duration=duration,
            local_path=local_path,
            article_id=article_id,
        )
        self.audio.append(audio)
        return audio


# ---------------------------------------------------------------------------
# OpenAI stand-in
# ---------------------------------------------------------------------------


def openai_auth_error() -> openai.AuthenticationError:
    request = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")
    response = httpx.Response(401, request=request)
    return openai.AuthenticationError("Incorrect API key provided", response=response, body=None)


def openai_connection_error() -> openai.APIConnectionError:
    request = httpx.Request("POST", "https://api.openai.com/v1/images/generations")
    return openai.APIConnectionError(request=request)


class StubOpenAI:
    """Just enough of AsyncOpenAI for chat, images and speech."""

    def __init__(
        self,
        article: Optional[Dict[str, Any]] = None,
        image_url: Optional[str] = "https://images.example.com/generated.png",
        audio: bytes = b"ID3-fake-mp3",
        speech_delay: float = 0.0,
        chat_error: Optional[Exception] = None,
        image_error: Optional[Exception] = None,
        speech_error: Optional[Exception] = None,
    ) -> None:
        self.article = article if article is not None else dict(GENERATED_ARTICLE)
        self.image_url = image_url
        self.audio_bytes = audio
        self.speech_delay = speech_delay
        self.chat_error = chat_error
        self.image_error = image_error
        self.speech_error = speech_error
        self.requests: Dict[str, List[Dict[str, Any]]] = {"chat": [], "images": [], "speech": []}

        self.chat = SimpleNamespace(completions=SimpleNamespace(create=self._chat))
        self.images = SimpleNamespace(generate=self._image)
        self.audio = SimpleNamespace(speech=SimpleNamespace(create=self._speech))

    async def _chat(self, **kwargs):
        self.requests["chat"].append(kwargs)
        if self.chat_error is not None:
            raise self.chat_error
        return SimpleNamespace(
            choices=[SimpleNamespace(message=SimpleNamespace(content=json.dumps(self.article)))],
            usage=SimpleNamespace(total_tokens=150, prompt_tokens=100, completion_tokens=50),
        )

    async def _image(self, **kwargs):
        self.requests["images"].append(kwargs)
        if self.image_error is not None:
            raise self.image_error
        return SimpleNamespace(data=[SimpleNamespace(url=self.image_url)])

    async def _speech(self, **kwargs):
        self.requests["speech"].append(kwargs)
        if self.speech_delay:
            await asyncio.sleep(self.speech_delay)
        if self.speech_error is not None:
            raise self.speech_error
        return SimpleNamespace(content=self.audio_bytes)


# ---------------------------------------------------------------------------
# HTTP transports
# ---------------------------------------------------------------------------


def page_html(title: str) -> str:
    paragraph = (
        f"{title} is discussed at length in this report. Community energy projects combine "
        "rooftop solar, batteries and smart controllers so neighbourhoods can keep power "
        "flowing during outages. Operators describe lower bills and fewer interruptions."
    )
    return (
        f"<html><head><title>{title}</title></head><body><article>"
        f"<h1>{title}</h1><p>{paragraph}</p><p>{paragraph}</p></article></body></html>"
    )


def search_transport(links: List[str], status: int = 200) -> httpx.MockTransport:
    def handler(request: httpx.Request) -> httpx.Response:
        if status != 200:
            return httpx.Response(status, text="denied")
        items = [{"title": f"Source {i}", "snippet": f"Snippet {i}", "link": link} for i, link in enumerate(links, 1)]
        return httpx.Response(200, json={"items": items})

    return httpx.MockTransport(handler)


def pages_transport(failing_hosts=()) -> httpx.MockTransport:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.host in failing_hosts:
            return httpx.Response(404, text="missing")
        return httpx.Response(200, html=page_html(f"Report from {request.url.host}"))

    return httpx.MockTransport(handler)


def image_transport(succeed_times: Optional[int] = None) -> httpx.MockTransport:
    """Serve a PNG; after ``succeed_times`` successes every request fails."""
    served = {"count": 0}

    def handler(request: httpx.Request) -> httpx.Response:
        if succeed_times is not None and served["count"] >= succeed_times:
            return httpx.Response(500, text="expired")
        served["count"] += 1
        return httpx.Response(200, content=PNG_BYTES, headers={"content-type": "image/png"})

    return httpx.MockTransport(handler)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


FIVE_LINKS = [
    "https://energy.example.org/microgrids",
    "https://news.example.com/grid-storage",
    "https://broken.example.net/outage-report",
    "https://research.example.edu/community-solar",
    "https://blog.example.io/resilience",
]


@pytest.fixture
def gateway() -> InMemoryGateway:
    return InMemoryGateway()


@pytest.fixture
def notifier() -> ProgressNotifier:
    return ProgressNotifier()


@pytest.fixture
def config(tmp_path: Path) -> Config:
    return Config(config_path=tmp_path / "config.yaml", config=ConfigModel(media_root=str(tmp_path / "public")))


@pytest.fixture
def build_pipeline(tmp_path: Path, gateway: InMemoryGateway, notifier: ProgressNotifier) -> Callable[..., GenerationPipeline]:
    """Pipeline over fake search, pages, OpenAI and storage."""

    def _build(
        client: Optional[StubOpenAI] = None,
        links: Optional[List[str]] = None,
        failing_hosts=("broken.example.net",),
        image_successes: Optional[int] = None,
        narration_timeout: float = 5.0,
        narrate: bool = True,
    ) -> GenerationPipeline:
        client = client or StubOpenAI()
        search = SearchClient(
            api_key="key",
            engine_id="engine",
            transport=search_transport(FIVE_LINKS if links is None else links),
        )
        fetcher = PageFetcher(stagger_delay=0, transport=pages_transport(failing_hosts))
        return GenerationPipeline(
            gatherer=SourceGatherer(search, fetcher),
            llm_provider=OpenAIProvider(client=client),
            image_synthesizer=ImageSynthesizer(client),
            media_store=MediaStore(
                tmp_path / "public",
                download_retries=2,
                retry_backoff=0,
                transport=image_transport(image_successes),
            ),
            gateway=gateway,
            narrator=NarrationSynthesizer(client, timeout_seconds=narration_timeout) if narrate else None,
            notifier=notifier,
        )

    return _build
