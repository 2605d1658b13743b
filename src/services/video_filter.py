"""Metadata filters applied to acquired videos before scoring.

Filters include:
- Short-form clip exclusion (duration threshold or "#shorts" style markers)
- Channel whitelist exclusion (case-insensitive exact channel name match)
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Iterable, Optional

from models.video import VideoRecord
from utils.config import load_config

logger = logging.getLogger(__name__)

DEFAULT_SHORTS_MAX_SECONDS = 75

SHORT_FORM_MARKERS = ("#shorts", "#short")
_SHORTS_WORD_RE = re.compile(r"(?<![\w#])shorts(?!\w)")


@dataclass
class ShortsFilterConfig:
    """Configuration for short-form exclusion."""

    enabled: bool = True
    max_seconds: int = DEFAULT_SHORTS_MAX_SECONDS

    @classmethod
    def from_config(cls, config: Optional[dict] = None) -> "ShortsFilterConfig":
        """Create ShortsFilterConfig from application config."""
        if config is None:
            config = load_config()
        return cls(
            enabled=config.get("skip_shorts", True),
            max_seconds=config.get("shorts_max_seconds", DEFAULT_SHORTS_MAX_SECONDS),
        )


@dataclass
class FilterStats:
    """Statistics from filtering a batch of videos."""

    total_input: int = 0
    total_passed: int = 0
    total_filtered: int = 0
    reasons: dict[str, int] = field(default_factory=dict)

    @property
    def filter_rate(self) -> float:
        """Return the percentage of videos that were filtered out."""
        if self.total_input == 0:
            return 0.0
        return (self.total_filtered / self.total_input) * 100

    def record(self, reason: Optional[str]) -> None:
        self.total_input += 1
        if reason is None:
            self.total_passed += 1
        else:
            self.total_filtered += 1
            self.reasons[reason] = self.reasons.get(reason, 0) + 1

    def to_dict(self) -> dict:
        """Convert stats to dictionary for reporting."""
        return {
            "total_input": self.total_input,
            "total_passed": self.total_passed,
            "total_filtered": self.total_filtered,
            "filter_rate_percent": round(self.filter_rate, 1),
            "reasons": dict(self.reasons),
        }

    def __str__(self) -> str:
        """Human-readable summary."""
        return (
            f"Filtered {self.total_filtered}/{self.total_input} videos "
            f"({self.filter_rate:.1f}%), {self.total_passed} passed"
        )


def has_short_form_marker(text: str) -> bool:
    """True when text carries a short-form marker token (case-insensitive)."""
    lowered = (text or "").lower()
    if any(marker in lowered for marker in SHORT_FORM_MARKERS):
        return True
    return bool(_SHORTS_WORD_RE.search(lowered))


def is_short_duration(length_seconds: int, max_seconds: int = DEFAULT_SHORTS_MAX_SECONDS) -> bool:
    """True for a known duration at or under the threshold (0 means unknown)."""
    return 0 < length_seconds <= max_seconds


def is_short_video(video: VideoRecord, max_seconds: int = DEFAULT_SHORTS_MAX_SECONDS) -> bool:
    """Check if a video is a short-form clip by duration or marker token."""
    if is_short_duration(video.length_seconds, max_seconds):
        return True
    return has_short_form_marker(video.title) or has_short_form_marker(video.description)


def filter_shorts(
    videos: list[VideoRecord], config: Optional[ShortsFilterConfig] = None
) -> tuple[list[VideoRecord], FilterStats]:
    """Remove short-form clips when the filter is enabled."""
    if config is None:
        config = ShortsFilterConfig.from_config()

    stats = FilterStats()
    if not config.enabled:
        for _ in videos:
            stats.record(None)
        return list(videos), stats

    kept = []
    for video in videos:
        if is_short_video(video, config.max_seconds):
            stats.record("short-form")
            continue
        stats.record(None)
        kept.append(video)

    if stats.total_filtered:
        logger.info(f"[VideoFilter] Shorts: {stats}")
    return kept, stats


def normalize_channel_name(name: str) -> str:
    """Normalize a channel name for whitelist comparison."""
    return " ".join(str(name or "").split()).casefold()


def build_whitelist(channels: Iterable[str]) -> set[str]:
    """Normalized, non-empty set of whitelisted channel names."""
    return {normalize_channel_name(channel) for channel in channels or [] if normalize_channel_name(channel)}


def filter_whitelisted_channels(
    videos: list[VideoRecord], channel_whitelist: Iterable[str]
) -> tuple[list[VideoRecord], FilterStats]:
    """Drop videos whose channel is on the whitelist."""
    whitelist = build_whitelist(channel_whitelist)
    stats = FilterStats()
    kept = []
    for video in videos:
        if whitelist and normalize_channel_name(video.author) in whitelist:
            stats.record("whitelisted channel")
            continue
        stats.record(None)
        kept.append(video)

    if stats.total_filtered:
        logger.info(f"[VideoFilter] Whitelist: {stats}")
    return kept, stats
