"""Unit tests for the acquisition orchestrator (source fallback policy)."""

import pytest

from services.errors import AcquisitionError, AllInstancesFailedError, SourceError
from services.video_filter import ShortsFilterConfig
from services.video_search_service import SourcePolicy, VideoSearchService


@pytest.mark.unit
@pytest.mark.asyncio
async def test_primary_results_are_used(make_source, make_video):
    primary = make_source("piped", [make_video("p1"), make_video("p2")])
    fallback = make_source("ytdlp", [make_video("y1")])
    service = VideoSearchService([primary, fallback])

    videos = await service.search("cs2 cheat", 50)

    assert [v.video_id for v in videos] == ["p1", "p2"]
    assert fallback.calls == []


@pytest.mark.unit
@pytest.mark.asyncio
async def test_falls_back_when_primary_fails(make_source, make_video):
    """Every proxy instance fails, the scraper answers."""
    primary = make_source("piped", error=AllInstancesFailedError("piped", 13))
    fallback = make_source("ytdlp", [make_video("y1"), make_video("y2")])
    service = VideoSearchService([primary, fallback])

    videos = await service.search("cs2 cheat", 50)

    assert [v.video_id for v in videos] == ["y1", "y2"]
    assert fallback.calls == [("search", "cs2 cheat", 50)]


@pytest.mark.unit
@pytest.mark.asyncio
async def test_falls_back_when_primary_is_empty(make_source, make_video):
    primary = make_source("piped", [])
    fallback = make_source("ytdlp", [make_video("y1")])
    service = VideoSearchService([primary, fallback])

    assert [v.video_id for v in await service.search("q")] == ["y1"]


@pytest.mark.unit
@pytest.mark.asyncio
async def test_forced_primary_keeps_empty_result(make_source, make_video):
    primary = make_source("piped", [])
    fallback = make_source("ytdlp", [make_video("y1")])
    service = VideoSearchService([primary, fallback], policy=SourcePolicy.FORCE_PRIMARY)

    assert await service.search("q") == []
    assert fallback.calls == []


@pytest.mark.unit
@pytest.mark.asyncio
async def test_forced_primary_still_rescued_on_error(make_source, make_video):
    primary = make_source("piped", error=AllInstancesFailedError("piped", 3))
    fallback = make_source("ytdlp", [make_video("y1")])
    service = VideoSearchService([primary, fallback], policy=SourcePolicy.FORCE_PRIMARY)

    assert [v.video_id for v in await service.search("q")] == ["y1"]


@pytest.mark.unit
@pytest.mark.asyncio
async def test_all_sources_failed(make_source):
    primary = make_source("piped", error=AllInstancesFailedError("piped", 13))
    fallback = make_source("ytdlp", error=SourceError("yt-dlp exited with code 1"))
    service = VideoSearchService([primary, fallback])

    with pytest.raises(AcquisitionError) as exc_info:
        await service.search("q")

    assert set(exc_info.value.failures) == {"piped", "ytdlp"}


@pytest.mark.unit
@pytest.mark.asyncio
async def test_empty_last_source_returns_empty(make_source):
    primary = make_source("piped", error=AllInstancesFailedError("piped", 2))
    fallback = make_source("ytdlp", [])
    service = VideoSearchService([primary, fallback])

    assert await service.search("q") == []


@pytest.mark.unit
@pytest.mark.asyncio
async def test_blank_query_touches_no_source(make_source):
    primary = make_source("piped", [])
    service = VideoSearchService([primary])

    assert await service.search("   ") == []
    assert primary.calls == []


@pytest.mark.unit
@pytest.mark.asyncio
async def test_results_deduplicated_filtered_and_capped(make_source, make_video):
    primary = make_source(
        "piped",
        [
            make_video("a"),
            make_video("a"),
            make_video("short", length_seconds=30),
            make_video("b"),
            make_video("c"),
        ],
    )
    service = VideoSearchService([primary], shorts_config=ShortsFilterConfig(enabled=True))

    videos = await service.search("q", max_results=2)

    assert [v.video_id for v in videos] == ["a", "b"]


@pytest.mark.unit
@pytest.mark.asyncio
async def test_trending_passes_category(make_source, make_video):
    primary = make_source("piped", [make_video("t1")])
    service = VideoSearchService([primary])

    await service.trending("gaming", 10)

    assert primary.calls == [("trending", "gaming", 10)]


@pytest.mark.unit
def test_requires_a_source():
    with pytest.raises(ValueError):
        VideoSearchService([])
