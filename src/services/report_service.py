"""Aggregate classification results into summary reports and takedown lists."""

import logging
from collections import Counter
from typing import Iterable

from models.analysis import ClassificationResult, StrikableVideo, SummaryReport
from models.video import VideoRecord

logger = logging.getLogger(__name__)

HIGH_CONFIDENCE_MIN = 80
TOP_INFRINGING_LIMIT = 10
DEFAULT_STRIKABLE_THRESHOLD = 70


def summarize(results: list[ClassificationResult]) -> SummaryReport:
    """Summarize a result set. Pure; safe on an empty list."""
    total = len(results)
    infringing = [result for result in results if result.is_likely_infringing]
    high_confidence = sum(1 for result in infringing if result.confidence_score >= HIGH_CONFIDENCE_MIN)

    percentage = f"{len(infringing) / total * 100:.1f}" if total else "0.0"
    breakdown = Counter(result.copyright_type.value for result in infringing)

    return SummaryReport(
        total_analyzed=total,
        likely_infringing=len(infringing),
        high_confidence=high_confidence,
        percentage_infringing=percentage,
        type_breakdown=dict(breakdown),
        top_infringing=infringing[:TOP_INFRINGING_LIMIT],
    )


def select_strikable(
    results: Iterable[ClassificationResult],
    videos: Iterable[VideoRecord],
    threshold: int = DEFAULT_STRIKABLE_THRESHOLD,
) -> list[StrikableVideo]:
    """Likely-infringing results at or above ``threshold``, joined to their videos.

    Results whose video id is not in ``videos`` are skipped.
    """
    by_id = {video.video_id: video for video in videos}
    strikable = []

    for result in results:
        if not result.is_likely_infringing or result.confidence_score < threshold:
            continue
        video = by_id.get(result.video_id)
        if video is None:
            logger.warning(f"[Report] No source metadata for {result.video_id}, skipping")
            continue
        strikable.append(
            StrikableVideo(
                url=video.url,
                title=video.title,
                channel=video.author,
                confidence_score=result.confidence_score,
                keyword=video.search_keyword,
                reasons=list(result.reasons),
                description=video.description,
                view_count=video.view_count,
                length_seconds=video.length_seconds,
                published_text=video.published_text,
            )
        )

    return strikable
