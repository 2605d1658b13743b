"""Keyword heuristic that triages videos before expensive classification.

Each video gets an infringement score from keyword and pattern weights, and
the batch is split into priority tiers so only the suspicious part of a large
result set reaches the classifier.
"""

import logging

from models.video import PreFilterResult, PrefilteredVideo, PrefilterPartition, VideoRecord
from services.lexicon import (
    DISTRIBUTION_INDICATORS,
    INFRINGEMENT_KEYWORDS,
    LEGITIMATE_KEYWORDS,
    MESSAGING_INVITE_RE,
    YEAR_TOKEN_RE,
    count_hits,
)
from services.video_filter import DEFAULT_SHORTS_MAX_SECONDS, is_short_duration

logger = logging.getLogger(__name__)

KEYWORD_WEIGHT = 1
DISTRIBUTION_WEIGHT = 3
YEAR_WORKING_BONUS = 3
FREE_DOWNLOAD_BONUS = 3
MESSAGING_INVITE_BONUS = 2
SHORT_FORM_PENALTY = 2

HIGH_PRIORITY_MIN_SCORE = 3


class PreFilterService:
    """Scores and partitions videos by likely-infringement signal."""

    def __init__(self, shorts_max_seconds: int = DEFAULT_SHORTS_MAX_SECONDS):
        self.shorts_max_seconds = shorts_max_seconds

    def score(self, video: VideoRecord) -> PreFilterResult:
        """Compute the triage score for one video."""
        title = video.title.lower()
        description = video.description.lower()
        combined = f"{title} {description}"

        infringement_score = KEYWORD_WEIGHT * count_hits(combined, INFRINGEMENT_KEYWORDS)
        infringement_score += DISTRIBUTION_WEIGHT * count_hits(combined, DISTRIBUTION_INDICATORS)
        legitimate_score = KEYWORD_WEIGHT * count_hits(combined, LEGITIMATE_KEYWORDS)

        # Suspicious patterns
        if YEAR_TOKEN_RE.search(title) and "working" in title:
            infringement_score += YEAR_WORKING_BONUS
        if "download" in title and "free" in title:
            infringement_score += FREE_DOWNLOAD_BONUS
        if MESSAGING_INVITE_RE.search(description):
            infringement_score += MESSAGING_INVITE_BONUS

        # Short clips pick up keywords incidentally; de-prioritize them by duration alone
        if is_short_duration(video.length_seconds, self.shorts_max_seconds):
            infringement_score = max(0, infringement_score - SHORT_FORM_PENALTY)

        total = infringement_score + legitimate_score
        probability = infringement_score / total if total > 0 else 0.0

        return PreFilterResult(
            infringement_score=infringement_score,
            legitimate_score=legitimate_score,
            infringement_probability=probability,
            priority=infringement_score,
            should_analyze=infringement_score >= 2 or legitimate_score == 0,
        )

    def partition(self, videos: list[VideoRecord]) -> PrefilterPartition:
        """Score every video and split the set into priority tiers.

        Lists are sorted by descending priority; ``sorted`` is stable so ties
        keep their input order.
        """
        scored = [PrefilteredVideo(video=video, prefilter=self.score(video)) for video in videos]
        ranked = sorted(scored, key=lambda item: item.prefilter.priority, reverse=True)

        partition = PrefilterPartition(all=ranked)
        for item in ranked:
            score = item.prefilter.infringement_score
            if score >= HIGH_PRIORITY_MIN_SCORE:
                partition.high_priority.append(item)
            elif score > 0:
                partition.medium_priority.append(item)
            else:
                partition.low_priority.append(item)

        counts = partition.counts()
        logger.info(
            f"[PreFilter] {counts['high']} high, {counts['medium']} medium, "
            f"{counts['low']} low priority"
        )
        return partition

    @staticmethod
    def select_for_analysis(
        partition: PrefilterPartition,
        medium_limit: int = 0,
    ) -> list[VideoRecord]:
        """Videos to send to the classifier: every high-priority one plus the
        first ``medium_limit`` medium-priority ones."""
        selected = [item.video for item in partition.high_priority]
        if medium_limit > 0:
            selected.extend(item.video for item in partition.medium_priority[:medium_limit])
        return selected
