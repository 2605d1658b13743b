"""Video acquisition across interchangeable retrieval sources.

Responsibilities:
- Try sources in order (proxy first, scraper as fallback) under a source policy
- Exclude short-form clips when enabled
- Deduplicate by video id and cap results to the requested count

Fallback attempts are strictly sequential: a later source only runs after the
earlier one has failed or come back empty.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Awaitable, Callable, Optional

from models.video import VideoRecord
from services.errors import AcquisitionError
from services.video_filter import ShortsFilterConfig, filter_shorts
from services.video_sources.base import VideoSource

logger = logging.getLogger(__name__)


class SourcePolicy(str, Enum):
    """How the orchestrator moves between sources."""

    # Try each source in order; fall through on error or empty result
    FALLBACK = "fallback"
    # Use the primary source; fall through only when it raises
    FORCE_PRIMARY = "force_primary"


class VideoSearchService:
    """Acquisition orchestrator over an ordered list of video sources."""

    def __init__(
        self,
        video_sources: list[VideoSource],
        policy: SourcePolicy = SourcePolicy.FALLBACK,
        shorts_config: Optional[ShortsFilterConfig] = None,
    ):
        """Initialize the video search service.

        Args:
            video_sources: Sources in priority order (primary first)
            policy: Fallback policy between sources
            shorts_config: Short-form exclusion settings (disabled when None)
        """
        if not video_sources:
            raise ValueError("At least one video source is required")

        self.video_sources = video_sources
        self.policy = policy
        self.shorts_config = shorts_config or ShortsFilterConfig(enabled=False)

        logger.info(
            f"[VideoSearchService] Initialized with sources "
            f"{[source.get_source_name() for source in video_sources]}, policy={policy.value}"
        )

    async def search(self, query: str, max_results: int = 50) -> list[VideoRecord]:
        """Search for videos, falling back across sources.

        Raises:
            AcquisitionError: every source failed
        """
        if not query or not query.strip():
            logger.warning("Empty search query provided")
            return []

        return await self._acquire(
            label=query,
            fetch=lambda source: source.search_videos(query, max_results),
            max_results=max_results,
        )

    async def trending(self, category: str = "default", max_results: int = 50) -> list[VideoRecord]:
        """Get trending videos, falling back across sources.

        Raises:
            AcquisitionError: every source failed
        """
        return await self._acquire(
            label=f"trending:{category or 'default'}",
            fetch=lambda source: source.get_trending(category or "default", max_results),
            max_results=max_results,
        )

    async def _acquire(
        self,
        label: str,
        fetch: Callable[[VideoSource], Awaitable[list[VideoRecord]]],
        max_results: int,
    ) -> list[VideoRecord]:
        failures: dict[str, str] = {}
        last_index = len(self.video_sources) - 1

        for index, source in enumerate(self.video_sources):
            name = source.get_source_name()
            try:
                results = await fetch(source)
            except Exception as e:
                failures[name] = str(e) or type(e).__name__
                if index < last_index:
                    logger.warning(f"[VideoSearchService] {name} failed for '{label}', falling back: {e}")
                else:
                    logger.error(f"[VideoSearchService] {name} failed for '{label}': {e}")
                continue

            if results or index == last_index:
                return self._finalize(results, max_results)

            if self.policy is SourcePolicy.FORCE_PRIMARY and index == 0:
                # Forced primary: an empty answer is still an answer
                return self._finalize(results, max_results)

            logger.warning(f"[VideoSearchService] {name} returned no results for '{label}', falling back")

        raise AcquisitionError(label, failures)

    def _finalize(self, videos: list[VideoRecord], max_results: int) -> list[VideoRecord]:
        """Apply the short-form filter, dedupe by id and cap the list."""
        filtered, _ = filter_shorts(videos, self.shorts_config)

        seen: set[str] = set()
        unique = []
        for video in filtered:
            if video.video_id in seen:
                continue
            seen.add(video.video_id)
            unique.append(video)

        return unique[:max_results]

    async def close(self) -> None:
        for source in self.video_sources:
            await source.close()
