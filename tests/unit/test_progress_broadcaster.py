"""Unit tests for progress event fan-out."""

import pytest

from models.analysis import ProgressEvent, ProgressStep
from services.progress_broadcaster import ProgressBroadcaster


def _event(progress=10, message="working"):
    return ProgressEvent(step=ProgressStep.SEARCHING, message=message, progress=progress)


@pytest.mark.unit
@pytest.mark.asyncio
async def test_every_subscriber_receives_events_in_order():
    broadcaster = ProgressBroadcaster()
    first = broadcaster.subscribe()
    second = broadcaster.subscribe()

    broadcaster.publish(_event(5, "one"))
    broadcaster.publish(_event(15, "two"))

    for subscription in (first, second):
        assert (await subscription.get()).message == "one"
        assert (await subscription.get()).message == "two"


@pytest.mark.unit
@pytest.mark.asyncio
async def test_late_subscriber_misses_earlier_events():
    broadcaster = ProgressBroadcaster()
    broadcaster.publish(_event(5, "early"))

    late = broadcaster.subscribe()
    broadcaster.publish(_event(10, "late"))

    assert late.pending() == 1
    assert (await late.get()).message == "late"


@pytest.mark.unit
def test_publish_without_subscribers_is_noop():
    ProgressBroadcaster().publish(_event())


@pytest.mark.unit
@pytest.mark.asyncio
async def test_closed_subscription_stops_receiving():
    broadcaster = ProgressBroadcaster()
    subscription = broadcaster.subscribe()

    subscription.close()
    broadcaster.publish(_event())

    assert broadcaster.subscriber_count == 0
    assert subscription.pending() == 0
    with pytest.raises(StopAsyncIteration):
        await subscription.__anext__()


@pytest.mark.unit
def test_unsubscribe_unknown_is_ignored():
    broadcaster = ProgressBroadcaster()
    other = ProgressBroadcaster().subscribe()

    broadcaster.unsubscribe(other)

    assert broadcaster.subscriber_count == 0


@pytest.mark.unit
@pytest.mark.asyncio
async def test_get_times_out():
    subscription = ProgressBroadcaster().subscribe()

    assert await subscription.get(timeout=0.01) is None


@pytest.mark.unit
@pytest.mark.asyncio
async def test_failing_subscriber_is_dropped():
    broadcaster = ProgressBroadcaster()
    broken = broadcaster.subscribe()
    healthy = broadcaster.subscribe()

    def explode(event):
        raise RuntimeError("socket closed")

    broken.put = explode
    broadcaster.publish(_event(20, "still delivered"))

    assert broadcaster.subscriber_count == 1
    assert (await healthy.get()).message == "still delivered"


@pytest.mark.unit
@pytest.mark.asyncio
async def test_async_iteration():
    broadcaster = ProgressBroadcaster()
    subscription = broadcaster.subscribe()
    broadcaster.publish(_event(30, "a"))
    broadcaster.publish(_event(40, "b"))

    received = []
    async for event in subscription:
        received.append(event.message)
        if len(received) == 2:
            break

    assert received == ["a", "b"]
