"""Shared pytest fixtures for infringement finder tests."""

import sys
from pathlib import Path
from typing import Callable, Dict, Optional

import pytest

# Add src directory to path for imports
src_path = Path(__file__).parent.parent / "src"
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))

from models.analysis import ClassificationResult, CopyrightType  # noqa: E402
from models.video import VideoRecord  # noqa: E402
from services.video_sources.base import VideoSource  # noqa: E402


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeSource(VideoSource):
    """In-memory video source recording its calls."""

    def __init__(self, name: str, results=None, error: Optional[Exception] = None):
        self.name = name
        self.results = list(results or [])
        self.error = error
        self.calls: list[tuple] = []

    def get_source_name(self) -> str:
        return self.name

    async def search_videos(self, query: str, max_results: int = 50) -> list[VideoRecord]:
        self.calls.append(("search", query, max_results))
        if self.error is not None:
            raise self.error
        return list(self.results)

    async def get_trending(self, category: str = "default", max_results: int = 50) -> list[VideoRecord]:
        self.calls.append(("trending", category, max_results))
        if self.error is not None:
            raise self.error
        return list(self.results)


class FakeClassifier:
    """Classifier returning canned verdicts keyed by video id."""

    def __init__(self, verdicts: Optional[Dict[str, tuple]] = None, default=(False, 10)):
        self.verdicts = verdicts or {}
        self.default = default
        self.seen: list[str] = []

    async def classify(self, video: VideoRecord) -> ClassificationResult:
        self.seen.append(video.video_id)
        infringing, confidence = self.verdicts.get(video.video_id, self.default)
        return ClassificationResult(
            video_id=video.video_id,
            video_title=video.title,
            channel_name=video.author,
            is_likely_infringing=infringing,
            confidence_score=confidence,
            reasons=["canned"],
            copyright_type=CopyrightType.SOFTWARE if infringing else CopyrightType.NONE,
        )


@pytest.fixture
def make_video() -> Callable[..., VideoRecord]:
    """Factory for VideoRecord test data."""

    def _make(video_id: str = "vid_001", title: str = "Some video", **kwargs) -> VideoRecord:
        kwargs.setdefault("author", "Some Channel")
        kwargs.setdefault("length_seconds", 600)
        kwargs.setdefault("source", "test")
        return VideoRecord(video_id=video_id, title=title, **kwargs)

    return _make


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def fake_classifier() -> FakeClassifier:
    return FakeClassifier()


@pytest.fixture
def sample_config() -> Dict:
    """Sample configuration for testing."""
    return {
        "gemini_api_key": "test_gemini_key",
        "gemini_model": "gemini-2.5-flash",
        "classifier_temperature": 0.1,
        "classifier_max_tokens": 150,
        "classifier_timeout_seconds": 30.0,
        "batch_size": 25,
        "batch_pause_ms": 0,
        "skip_shorts": True,
        "shorts_max_seconds": 75,
        "force_piped": False,
        "piped_dynamic": False,
        "piped_timeout_seconds": 12.0,
        "piped_region": "US",
        "instance_refresh_seconds": 600,
        "ytdlp_binary": "yt-dlp",
        "ytdlp_timeout_seconds": 300.0,
        "search_cache_enabled": True,
        "search_cache_ttl_seconds": 3600,
        "search_cache_max_entries": 100,
        "vidiq_api_token": "",
        "vidiq_base_url": "https://api.vidiq.com",
        "keyword_timeout_seconds": 10.0,
        "medium_priority_limit": 20,
        "strikable_threshold": 70,
        "server_host": "127.0.0.1",
        "server_port": 3000,
        "cors_origins": ["http://localhost:3000"],
        "log_level": "INFO",
        "log_json": False,
    }


@pytest.fixture
def make_source() -> Callable[..., FakeSource]:
    """Factory for in-memory video sources."""
    return FakeSource


@pytest.fixture
def make_classifier() -> Callable[..., FakeClassifier]:
    """Factory for canned classifiers."""
    return FakeClassifier
