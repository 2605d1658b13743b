"""End-to-end analysis flows: acquire, triage, classify, report.

Two request flows share the same stages:
- Search flow: one keyword query (or a trending category), high-priority plus
  a bounded slice of medium-priority videos are classified, summary report.
- Subject flow: keyword research expands a subject into several queries run
  concurrently, only high-priority videos are classified, and high-confidence
  infringing results are returned as takedown candidates.

Progress events are published to the broadcaster at each stage.
"""

import asyncio
import logging
from dataclasses import replace
from typing import Iterable, Optional

from models.analysis import (
    KeywordSet,
    ProgressEvent,
    ProgressStep,
    SearchAnalysis,
    SubjectAnalysis,
)
from models.video import VideoRecord
from services.batch_runner import BatchRunner
from services.errors import AcquisitionError, InvalidRequestError
from services.keyword_research import KeywordResearchService
from services.prefilter_service import PreFilterService
from services.progress_broadcaster import ProgressBroadcaster
from services.report_service import select_strikable, summarize
from services.video_filter import build_whitelist, filter_whitelisted_channels, normalize_channel_name
from services.video_search_service import VideoSearchService
from utils.logging import run_context

logger = logging.getLogger(__name__)

MAX_DERIVED_QUERIES = 5
SUBJECT_QUERY_MAX_RESULTS = 50


def _analyzing_progress(base: int, span: int, current: int, total: int) -> int:
    return base + (current * span) // total if total else base


class AnalysisService:
    """Runs the search and subject analysis pipelines."""

    def __init__(
        self,
        search_service: VideoSearchService,
        prefilter: PreFilterService,
        batch_runner: BatchRunner,
        keyword_service: KeywordResearchService,
        broadcaster: Optional[ProgressBroadcaster] = None,
        medium_priority_limit: int = 20,
        strikable_threshold: int = 70,
    ):
        """Initialize the analysis pipeline.

        Args:
            search_service: Acquisition orchestrator
            prefilter: Heuristic triage
            batch_runner: Batched classifier runner
            keyword_service: Subject keyword research
            broadcaster: Progress channel (a private one is created when None)
            medium_priority_limit: Medium-priority videos classified in the search flow
            strikable_threshold: Minimum confidence for a takedown candidate
        """
        self.search_service = search_service
        self.prefilter = prefilter
        self.batch_runner = batch_runner
        self.keyword_service = keyword_service
        self.broadcaster = broadcaster or ProgressBroadcaster()
        self.medium_priority_limit = medium_priority_limit
        self.strikable_threshold = strikable_threshold

    def _publish(self, step: ProgressStep, message: str, progress: int, **extra) -> None:
        self.broadcaster.publish(ProgressEvent(step=step, message=message, progress=progress, **extra))

    def _analyzing_callback(self, base: int, span: int):
        def on_progress(current: int, total: int, title: str) -> None:
            self._publish(
                ProgressStep.ANALYZING,
                f"Analyzing video {current} of {total}",
                _analyzing_progress(base, span, current, total),
                current=current,
                total=total,
                current_video=title,
            )

        return on_progress

    async def analyze_search(
        self,
        keywords: Optional[str] = None,
        category: Optional[str] = None,
        max_results: int = 50,
        channel_whitelist: Iterable[str] = (),
    ) -> SearchAnalysis:
        """Search (or fetch trending), triage and classify.

        Raises:
            InvalidRequestError: neither keywords nor category given, or bad max_results
            AcquisitionError: every video source failed
        """
        keywords = (keywords or "").strip()
        category = (category or "").strip()
        if not keywords and not category:
            raise InvalidRequestError("Please provide either keywords or category")
        if max_results < 1:
            raise InvalidRequestError(f"maxResults must be positive, got {max_results}")

        flow, target = ("search", keywords) if keywords else ("trending", category)
        with run_context(flow, target):
            if keywords:
                logger.info(f"[Analysis] Search flow for '{keywords}' (max {max_results})")
                videos = await self.search_service.search(keywords, max_results)
            else:
                logger.info(f"[Analysis] Trending flow for category '{category}' (max {max_results})")
                videos = await self.search_service.trending(category, max_results)

            if not videos:
                return SearchAnalysis(message="No videos found", videos=0)

            self._publish(ProgressStep.SEARCH_COMPLETE, f"Found {len(videos)} videos", 10)

            candidates, _ = filter_whitelisted_channels(videos, channel_whitelist)
            partition = self.prefilter.partition(candidates)
            to_analyze = self.prefilter.select_for_analysis(partition, self.medium_priority_limit)
            logger.info(
                f"[Analysis] Pre-filtered {len(candidates)} videos to {len(to_analyze)} for classification"
            )

            self._publish(
                ProgressStep.FILTER_COMPLETE,
                f"Pre-filtered to {len(to_analyze)} suspicious videos",
                20,
                total_videos=len(to_analyze),
            )

            analyses = await self.batch_runner.run(to_analyze, on_progress=self._analyzing_callback(20, 70))
            report = summarize(analyses)
            logger.info(
                f"[Analysis] Complete: {report.likely_infringing}/{report.total_analyzed} likely infringing"
            )
            return SearchAnalysis(message="Analysis complete", videos=len(videos), analyses=analyses, report=report)

    async def _search_keyword(self, keyword: str) -> tuple[list[VideoRecord], Optional[str]]:
        """Search one derived query, returning (videos, error message)."""
        try:
            return await self.search_service.search(keyword, SUBJECT_QUERY_MAX_RESULTS), None
        except Exception as e:
            logger.error(f"[Analysis] Search failed for '{keyword}': {e}")
            return [], str(e)

    @staticmethod
    def _merge_results(
        queries: list[str],
        results: list[list[VideoRecord]],
        channel_whitelist: Iterable[str],
    ) -> list[VideoRecord]:
        """Merge per-query results: whitelist, dedupe by id, tag with the first query."""
        whitelist = build_whitelist(channel_whitelist)
        seen: set[str] = set()
        merged = []
        for keyword, videos in zip(queries, results):
            for video in videos:
                if normalize_channel_name(video.author) in whitelist:
                    continue
                if video.video_id in seen:
                    continue
                seen.add(video.video_id)
                # Copy: cached records are shared across requests
                merged.append(replace(video, search_keyword=keyword))
        return merged

    async def analyze_subject(
        self,
        subject_name: str,
        channel_whitelist: Iterable[str] = (),
    ) -> SubjectAnalysis:
        """Research keywords for a subject, search them all and list takedown candidates.

        Raises:
            InvalidRequestError: empty subject name
            AcquisitionError: every query failed on every source
        """
        subject_name = (subject_name or "").strip()
        if not subject_name:
            raise InvalidRequestError("Please provide a subject name")

        with run_context("subject", subject_name):
            logger.info(f"[Analysis] Subject flow for '{subject_name}'")
            self._publish(
                ProgressStep.KEYWORD_RESEARCH,
                f"Researching cheat keywords for {subject_name}",
                5,
            )

            keyword_set: KeywordSet = await self.keyword_service.get_keywords(subject_name)
            queries = [keyword_set.main_keyword]
            queries.extend(entry.keyword for entry in keyword_set.top_keywords[:MAX_DERIVED_QUERIES])

            self._publish(
                ProgressStep.SEARCHING,
                f"Searching {len(queries)} keywords for {subject_name} cheats",
                15,
                keywords=list(queries),
            )

            outcomes = await asyncio.gather(*(self._search_keyword(query) for query in queries))
            failures = {query: error for query, (_, error) in zip(queries, outcomes) if error is not None}
            if len(failures) == len(queries):
                logger.error(f"[Analysis] Every query failed for '{subject_name}'")
                raise AcquisitionError(subject_name, failures)
            if failures:
                logger.warning(f"[Analysis] {len(failures)} of {len(queries)} queries failed, continuing")

            videos = self._merge_results(queries, [found for found, _ in outcomes], channel_whitelist)
            logger.info(f"[Analysis] {len(videos)} unique videos across {len(queries)} queries")

            self._publish(
                ProgressStep.SEARCH_COMPLETE,
                f"Found {len(videos)} unique videos across all keywords",
                30,
            )

            if not videos:
                return SubjectAnalysis(
                    message="No videos found",
                    subject_name=subject_name,
                    keywords=keyword_set,
                    total_videos_analyzed=0,
                )

            partition = self.prefilter.partition(videos)
            to_analyze = self.prefilter.select_for_analysis(partition, medium_limit=0)

            self._publish(
                ProgressStep.FILTER_COMPLETE,
                f"Pre-filtered to {len(to_analyze)} high-priority cheat videos",
                40,
                total_videos=len(to_analyze),
            )

            analyses = await self.batch_runner.run(to_analyze, on_progress=self._analyzing_callback(40, 50))
            strikable = select_strikable(analyses, videos, self.strikable_threshold)
            logger.info(f"[Analysis] {len(strikable)} strikable videos for '{subject_name}'")

            return SubjectAnalysis(
                message="Analysis complete",
                subject_name=subject_name,
                keywords=keyword_set,
                total_videos_analyzed=len(videos),
                strikable_videos=strikable,
            )

    async def close(self) -> None:
        await self.search_service.close()
        await self.keyword_service.close()


def create_analysis_service(config: dict, broadcaster: Optional[ProgressBroadcaster] = None) -> AnalysisService:
    """Wire the full pipeline from the application config."""
    from services.ai_service import AIService
    from services.instance_directory import InstanceDirectory
    from services.search_cache import load_search_cache_from_config
    from services.video_filter import ShortsFilterConfig
    from services.video_search_service import SourcePolicy
    from services.video_sources import PipedVideoSource, YtDlpVideoSource

    instance_directory = InstanceDirectory(
        dynamic_discovery=config.get("piped_dynamic", False),
        refresh_interval=config.get("instance_refresh_seconds", 600),
    )
    sources = [
        PipedVideoSource(
            instance_directory,
            timeout=config.get("piped_timeout_seconds", 12.0),
            region=config.get("piped_region", "US"),
        ),
        YtDlpVideoSource(
            binary_path=config.get("ytdlp_binary", "yt-dlp"),
            timeout=config.get("ytdlp_timeout_seconds", 300.0),
            cache=load_search_cache_from_config(config),
        ),
    ]
    policy = SourcePolicy.FORCE_PRIMARY if config.get("force_piped") else SourcePolicy.FALLBACK
    search_service = VideoSearchService(sources, policy=policy, shorts_config=ShortsFilterConfig.from_config(config))

    classifier = AIService(
        api_key=config.get("gemini_api_key", ""),
        model_name=config.get("gemini_model", "gemini-2.5-flash"),
        temperature=config.get("classifier_temperature", 0.1),
        max_output_tokens=config.get("classifier_max_tokens", 150),
        timeout=config.get("classifier_timeout_seconds", 30.0),
    )
    batch_runner = BatchRunner(
        classifier,
        batch_size=config.get("batch_size", 25),
        pause_seconds=config.get("batch_pause_ms", 200) / 1000,
    )
    keyword_service = KeywordResearchService(
        api_token=config.get("vidiq_api_token", ""),
        base_url=config.get("vidiq_base_url", "https://api.vidiq.com"),
        timeout=config.get("keyword_timeout_seconds", 10.0),
    )

    return AnalysisService(
        search_service=search_service,
        prefilter=PreFilterService(shorts_max_seconds=config.get("shorts_max_seconds", 75)),
        batch_runner=batch_runner,
        keyword_service=keyword_service,
        broadcaster=broadcaster,
        medium_priority_limit=config.get("medium_priority_limit", 20),
        strikable_threshold=config.get("strikable_threshold", 70),
    )
