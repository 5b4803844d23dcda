from __future__ import annotations

from pathlib import Path

import pytest

from conftest import FIVE_LINKS, StubOpenAI, openai_auth_error, openai_connection_error
from pressroom.errors import (
    ImageGenerationError,
    InvalidRequestError,
    NoSourcesFoundError,
    PersistenceError,
    ServiceAuthError,
)
from pressroom.generation.references import REFERENCE_HEADING, extract_reference_links
from pressroom.pipeline import GenerationEvent


def record_events(notifier):
    events = []
    notifier.subscribe(lambda update: events.append(update))
    return events


@pytest.mark.asyncio
async def test_generate_saves_draft_with_every_search_link(build_pipeline, gateway, notifier) -> None:
    client = StubOpenAI()
    pipeline = build_pipeline(client=client)
    events = record_events(notifier)

    result = await pipeline.generate("renewable energy microgrids", "0xABCdef0000000000000000000000000000000001")

    assert result.status == "success"
    assert result.narration_failure is None

    article = gateway.articles[result.article.id]
    assert article.is_draft is True
    assert article.signature == ""
    assert article.author_address == "0xabcdef0000000000000000000000000000000001"
    assert article.source_links == FIVE_LINKS

    # The failed fetch still appears in the references, in search order
    assert REFERENCE_HEADING in article.content
    assert extract_reference_links(article.content) == FIVE_LINKS

    # The model only saw the four readable pages
    prompt = client.requests["chat"][0]["messages"][1]["content"]
    assert "Source 4:" in prompt
    assert "Source 5:" not in prompt
    assert "broken.example.net" not in prompt

    assert [e.event for e in events] == [
        GenerationEvent.SOURCES_GATHERING,
        GenerationEvent.SOURCES_FOUND,
        GenerationEvent.CONTENT_GENERATED,
        GenerationEvent.IMAGE_CREATED,
        GenerationEvent.ARTICLE_SAVED,
        GenerationEvent.AUDIO_CREATED,
    ]
    assert events[1].payload["count"] == 5
    assert events[1].payload["usable"] == 4


@pytest.mark.asyncio
async def test_generate_stores_image_twice_and_audio(build_pipeline, gateway, tmp_path: Path) -> None:
    result = await build_pipeline().generate("community solar", "0xabc")
    article = result.article

    temporary, linked, thumbnail = gateway.images
    assert temporary.article_id is None
    assert linked.article_id == article.id
    assert article.image_url == f"/media/images/{linked.filename}"
    assert Path(linked.local_path).exists()
    assert thumbnail.article_id == article.id
    assert article.thumbnail_url == f"/media/images/{thumbnail.filename}"

    assert len(gateway.audio) == 1
    assert gateway.audio[0].article_id == article.id
    assert article.audio_url == f"/media/audio/{gateway.audio[0].filename}"
    assert article.audio_duration is not None and article.audio_duration > 0
    assert (tmp_path / "public" / "audio" / gateway.audio[0].filename).read_bytes() == b"ID3-fake-mp3"


@pytest.mark.asyncio
async def test_zero_search_results_writes_nothing(build_pipeline, gateway, notifier) -> None:
    client = StubOpenAI()
    pipeline = build_pipeline(client=client, links=[])
    events = record_events(notifier)

    with pytest.raises(NoSourcesFoundError):
        await pipeline.generate("an empty topic", "0xabc")

    assert gateway.articles == {}
    assert gateway.images == []
    assert client.requests["chat"] == []
    assert [e.event for e in events] == [GenerationEvent.SOURCES_GATHERING]


@pytest.mark.asyncio
async def test_narration_timeout_is_partial_success(build_pipeline, gateway, notifier) -> None:
    client = StubOpenAI(speech_delay=0.5)
    pipeline = build_pipeline(client=client, narration_timeout=0.05)
    events = record_events(notifier)

    result = await pipeline.generate("grid storage", "0xabc")

    assert result.status == "partial_success"
    assert result.narration_failure == "timeout"
    assert "timed out" in result.message
    assert result.article.audio_url is None
    assert result.article.audio_duration is None
    assert gateway.articles[result.article.id].audio_url is None
    assert gateway.audio == []

    assert events[-1].event == GenerationEvent.AUDIO_FAILED
    assert events[-1].payload["reason"] == "timeout"
    assert GenerationEvent.AUDIO_CREATED not in [e.event for e in events]


@pytest.mark.asyncio
async def test_narration_auth_failure_asks_for_administrator(build_pipeline) -> None:
    client = StubOpenAI(speech_error=openai_auth_error())
    result = await build_pipeline(client=client).generate("grid storage", "0xabc")

    assert result.status == "partial_success"
    assert result.narration_failure == "api_key"
    assert "administrator" in result.message


@pytest.mark.asyncio
async def test_narration_empty_audio_is_generic_failure(build_pipeline) -> None:
    client = StubOpenAI(audio=b"")
    result = await build_pipeline(client=client).generate("grid storage", "0xabc")

    assert result.narration_failure == "failed"


@pytest.mark.asyncio
async def test_narration_disabled(build_pipeline, notifier) -> None:
    events = record_events(notifier)
    result = await build_pipeline(narrate=False).generate("grid storage", "0xabc")

    assert result.narration_failure == "disabled"
    assert events[-1].event == GenerationEvent.AUDIO_FAILED


@pytest.mark.asyncio
async def test_failed_image_relink_keeps_temporary_copy(build_pipeline, gateway) -> None:
    pipeline = build_pipeline(image_successes=1)

    result = await pipeline.generate("microgrids", "0xabc")

    assert result.status == "success"
    assert len(gateway.images) == 1
    temporary = gateway.images[0]
    assert temporary.article_id is None
    assert result.article.image_url == f"/media/images/{temporary.filename}"
    persist = next(stage for stage in result.stages if stage.name == "persist")
    assert persist.stats["image_relinked"] is False


@pytest.mark.asyncio
async def test_content_auth_error_aborts_before_any_write(build_pipeline, gateway, notifier) -> None:
    client = StubOpenAI(chat_error=openai_auth_error())
    events = record_events(notifier)

    with pytest.raises(ServiceAuthError) as exc_info:
        await build_pipeline(client=client).generate("microgrids", "0xabc")

    assert exc_info.value.stage == "content"
    assert "administrator" in str(exc_info.value)
    assert gateway.articles == {}
    assert [e.event for e in events] == [GenerationEvent.SOURCES_GATHERING, GenerationEvent.SOURCES_FOUND]


@pytest.mark.asyncio
async def test_image_failure_aborts_before_article_write(build_pipeline, gateway) -> None:
    client = StubOpenAI(image_error=openai_connection_error())

    with pytest.raises(ImageGenerationError):
        await build_pipeline(client=client).generate("microgrids", "0xabc")

    assert gateway.articles == {}


@pytest.mark.asyncio
async def test_database_failure_becomes_persistence_error(build_pipeline, gateway, notifier) -> None:
    gateway.fail_create = RuntimeError("connection refused")
    events = record_events(notifier)

    with pytest.raises(PersistenceError):
        await build_pipeline().generate("microgrids", "0xabc")

    assert GenerationEvent.ARTICLE_SAVED not in [e.event for e in events]


@pytest.mark.asyncio
async def test_missing_author_is_rejected_before_network(build_pipeline) -> None:
    client = StubOpenAI()
    with pytest.raises(InvalidRequestError):
        await build_pipeline(client=client).generate("microgrids", "  ")
    assert client.requests["chat"] == []


@pytest.mark.asyncio
async def test_raising_listener_does_not_abort_generation(build_pipeline, notifier) -> None:
    def broken(update):
        raise RuntimeError("ui went away")

    notifier.subscribe(broken)
    result = await build_pipeline().generate("microgrids", "0xabc")

    assert result.status == "success"


@pytest.mark.asyncio
async def test_all_pages_unreadable_still_generates(build_pipeline, gateway) -> None:
    hosts = tuple(link.split("/")[2] for link in FIVE_LINKS)
    client = StubOpenAI()

    result = await build_pipeline(client=client, failing_hosts=hosts).generate("microgrids", "0xabc")

    assert client.requests["chat"][0]["messages"][1]["content"] == "Write an article about microgrids."
    assert extract_reference_links(result.article.content) == FIVE_LINKS


@pytest.mark.asyncio
async def test_thumbnail_is_requested_in_hd_and_attached(build_pipeline, gateway) -> None:
    client = StubOpenAI()
    result = await build_pipeline(client=client).generate("microgrids", "0xabc")

    illustration, cover = client.requests["images"]
    assert "quality" not in illustration
    assert cover["quality"] == "hd"
    assert gateway.articles[result.article.id].thumbnail_url == result.article.thumbnail_url
    thumbnail = next(stage for stage in result.stages if stage.name == "thumbnail")
    assert thumbnail.success is True


@pytest.mark.asyncio
async def test_thumbnail_failure_keeps_the_draft(build_pipeline, gateway) -> None:
    gateway.fail_linked_image = RuntimeError("disk full")

    result = await build_pipeline().generate("microgrids", "0xabc")

    assert result.status == "success"
    assert result.article.thumbnail_url is None
    assert gateway.articles[result.article.id].thumbnail_url is None
    thumbnail = next(stage for stage in result.stages if stage.name == "thumbnail")
    assert thumbnail.success is False
    assert "disk full" in thumbnail.error


@pytest.mark.asyncio
async def test_usage_covers_only_the_current_generation(build_pipeline) -> None:
    pipeline = build_pipeline()

    first = await pipeline.generate("microgrids", "0xabc")
    second = await pipeline.generate("tidal power", "0xabc")

    assert first.usage["api_calls"] == 1
    assert second.usage["api_calls"] == 1
    assert second.usage["total_tokens"] == 150


@pytest.mark.asyncio
async def test_every_event_carries_the_generation_id(build_pipeline, notifier) -> None:
    events = record_events(notifier)
    pipeline = build_pipeline()

    first = await pipeline.generate("microgrids", "0xabc")
    second = await pipeline.generate("tidal power", "0xabc")

    assert first.generation_id and second.generation_id
    assert first.generation_id != second.generation_id
    ids = [e.payload["generation_id"] for e in events]
    assert ids == [first.generation_id] * 6 + [second.generation_id] * 6
