"""Batched concurrent classification with per-video progress callbacks."""

import asyncio
import inspect
import logging
from typing import Awaitable, Callable, Optional, Protocol, Union

from models.analysis import ClassificationResult
from models.video import VideoRecord

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int, str], Union[None, Awaitable[None]]]


class Classifier(Protocol):
    async def classify(self, video: VideoRecord) -> ClassificationResult: ...


class BatchRunner:
    """Runs a classifier over videos in sequential, internally concurrent batches.

    Batches of ``batch_size`` videos are classified concurrently; the next
    batch starts only after the previous one finished plus ``pause_seconds``.
    Results always come back in input order.
    """

    def __init__(
        self,
        classifier: Classifier,
        batch_size: int = 25,
        pause_seconds: float = 0.2,
    ):
        if batch_size < 1:
            raise ValueError(f"batch_size must be positive, got {batch_size}")
        self.classifier = classifier
        self.batch_size = batch_size
        self.pause_seconds = pause_seconds

    async def _notify(self, on_progress: Optional[ProgressCallback], current: int, total: int, title: str) -> None:
        if on_progress is None:
            return
        try:
            outcome = on_progress(current, total, title)
            if inspect.isawaitable(outcome):
                await outcome
        except Exception as e:
            logger.warning(f"[BatchRunner] Progress callback failed: {e}")

    async def _classify_one(
        self,
        video: VideoRecord,
        position: int,
        total: int,
        on_progress: Optional[ProgressCallback],
    ) -> ClassificationResult:
        await self._notify(on_progress, position, total, video.title)
        try:
            return await self.classifier.classify(video)
        except Exception as e:
            logger.error(f"[BatchRunner] Classifier raised for {video.video_id}: {e}")
            return ClassificationResult.failed(video.video_id, video.title, video.author, str(e) or type(e).__name__)

    async def run(
        self,
        videos: list[VideoRecord],
        on_progress: Optional[ProgressCallback] = None,
    ) -> list[ClassificationResult]:
        """Classify every video.

        Args:
            videos: Videos to classify
            on_progress: Optional ``(current, total, title)`` callback, sync or
                async, invoked right before each video is classified

        Returns:
            One ClassificationResult per input video, same order
        """
        total = len(videos)
        results: list[ClassificationResult] = []
        if total == 0:
            return results

        batch_count = (total + self.batch_size - 1) // self.batch_size
        logger.info(f"[BatchRunner] Classifying {total} videos in {batch_count} batch(es) of up to {self.batch_size}")

        for batch_index, start in enumerate(range(0, total, self.batch_size)):
            batch = videos[start : start + self.batch_size]
            batch_results = await asyncio.gather(
                *[
                    self._classify_one(video, start + offset + 1, total, on_progress)
                    for offset, video in enumerate(batch)
                ]
            )
            results.extend(batch_results)
            logger.debug(f"[BatchRunner] Batch {batch_index + 1}/{batch_count} done")

            if start + self.batch_size < total and self.pause_seconds > 0:
                await asyncio.sleep(self.pause_seconds)

        return results
