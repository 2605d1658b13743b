"""Unit tests for batched concurrent classification."""

import asyncio
from unittest.mock import AsyncMock, patch

import pytest

from services.batch_runner import BatchRunner


class ConcurrencyTracker:
    """Classifier that records how many calls overlap."""

    def __init__(self, inner):
        self.inner = inner
        self.in_flight = 0
        self.max_in_flight = 0

    async def classify(self, video):
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        await asyncio.sleep(0.01)
        self.in_flight -= 1
        return await self.inner.classify(video)


class FlakyClassifier:
    def __init__(self, inner):
        self.inner = inner

    async def classify(self, video):
        if video.video_id == "boom":
            raise RuntimeError("model exploded")
        return await self.inner.classify(video)


@pytest.mark.unit
@pytest.mark.asyncio
async def test_results_keep_input_order(make_video, make_classifier):
    classifier = make_classifier({"b": (True, 90)})
    runner = BatchRunner(classifier, batch_size=2, pause_seconds=0)
    videos = [make_video(video_id) for video_id in ["a", "b", "c", "d", "e"]]

    results = await runner.run(videos)

    assert [r.video_id for r in results] == ["a", "b", "c", "d", "e"]
    assert results[1].is_likely_infringing is True
    assert sorted(classifier.seen) == ["a", "b", "c", "d", "e"]


@pytest.mark.unit
@pytest.mark.asyncio
async def test_concurrency_bounded_by_batch_size(make_video, make_classifier):
    tracker = ConcurrencyTracker(make_classifier())
    runner = BatchRunner(tracker, batch_size=3, pause_seconds=0)

    await runner.run([make_video(f"v{i}") for i in range(7)])

    assert tracker.max_in_flight == 3


@pytest.mark.unit
@pytest.mark.asyncio
async def test_empty_input(make_classifier):
    runner = BatchRunner(make_classifier())

    assert await runner.run([]) == []


@pytest.mark.unit
@pytest.mark.asyncio
async def test_pause_between_batches_only(make_video, make_classifier):
    runner = BatchRunner(make_classifier(), batch_size=2, pause_seconds=0.2)

    with patch("services.batch_runner.asyncio.sleep", new_callable=AsyncMock) as sleep:
        await runner.run([make_video(f"v{i}") for i in range(5)])

    # three batches, two gaps
    assert sleep.await_count == 2
    sleep.assert_awaited_with(0.2)


@pytest.mark.unit
@pytest.mark.asyncio
async def test_progress_callback_positions(make_video, make_classifier):
    calls = []
    runner = BatchRunner(make_classifier(), batch_size=2, pause_seconds=0)
    videos = [make_video(f"v{i}", title=f"title {i}") for i in range(3)]

    await runner.run(videos, on_progress=lambda current, total, title: calls.append((current, total, title)))

    assert sorted(calls) == [(1, 3, "title 0"), (2, 3, "title 1"), (3, 3, "title 2")]


@pytest.mark.unit
@pytest.mark.asyncio
async def test_async_progress_callback(make_video, make_classifier):
    seen = []

    async def on_progress(current, total, title):
        seen.append(current)

    runner = BatchRunner(make_classifier(), batch_size=5, pause_seconds=0)
    await runner.run([make_video("a"), make_video("b")], on_progress=on_progress)

    assert sorted(seen) == [1, 2]


@pytest.mark.unit
@pytest.mark.asyncio
async def test_failing_callback_does_not_stop_run(make_video, make_classifier):
    def on_progress(current, total, title):
        raise RuntimeError("subscriber gone")

    runner = BatchRunner(make_classifier(), pause_seconds=0)
    results = await runner.run([make_video("a")], on_progress=on_progress)

    assert len(results) == 1
    assert results[0].error is None


@pytest.mark.unit
@pytest.mark.asyncio
async def test_classifier_exception_becomes_failed_result(make_video, make_classifier):
    runner = BatchRunner(FlakyClassifier(make_classifier()), pause_seconds=0)

    results = await runner.run([make_video("ok"), make_video("boom")])

    assert results[0].error is None
    assert results[1].video_id == "boom"
    assert results[1].confidence_score == 0
    assert results[1].is_likely_infringing is False
    assert results[1].error == "model exploded"


@pytest.mark.unit
def test_rejects_non_positive_batch_size(make_classifier):
    with pytest.raises(ValueError):
        BatchRunner(make_classifier(), batch_size=0)
