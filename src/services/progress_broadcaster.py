"""Fan-out of pipeline progress events to any number of live subscribers."""

import asyncio
import logging
from typing import Optional

from models.analysis import ProgressEvent

logger = logging.getLogger(__name__)


class Subscription:
    """One subscriber's view of the progress stream.

    Events are buffered in an unbounded queue so a slow consumer never blocks
    the pipeline. Iterate with ``async for`` or call ``get()``.
    """

    def __init__(self, broadcaster: "ProgressBroadcaster"):
        self._broadcaster = broadcaster
        self._queue: asyncio.Queue[ProgressEvent] = asyncio.Queue()
        self.closed = False

    def put(self, event: ProgressEvent) -> None:
        if not self.closed:
            self._queue.put_nowait(event)

    async def get(self, timeout: Optional[float] = None) -> Optional[ProgressEvent]:
        """Next event, or None when ``timeout`` elapses first."""
        if timeout is None:
            return await self._queue.get()
        try:
            return await asyncio.wait_for(self._queue.get(), timeout=timeout)
        except asyncio.TimeoutError:
            return None

    def pending(self) -> int:
        return self._queue.qsize()

    def close(self) -> None:
        self._broadcaster.unsubscribe(self)

    def __aiter__(self):
        return self

    async def __anext__(self) -> ProgressEvent:
        if self.closed:
            raise StopAsyncIteration
        return await self._queue.get()


class ProgressBroadcaster:
    """Publishes progress events to every current subscriber."""

    def __init__(self):
        self._subscribers: list[Subscription] = []

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def subscribe(self) -> Subscription:
        subscription = Subscription(self)
        self._subscribers.append(subscription)
        logger.debug(f"[Progress] Subscriber added ({len(self._subscribers)} total)")
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        """Remove a subscriber immediately. Unknown subscriptions are ignored."""
        subscription.closed = True
        if subscription in self._subscribers:
            self._subscribers.remove(subscription)
            logger.debug(f"[Progress] Subscriber removed ({len(self._subscribers)} total)")

    def publish(self, event: ProgressEvent) -> None:
        """Deliver an event to all subscribers. Never blocks or raises."""
        for subscription in list(self._subscribers):
            try:
                subscription.put(event)
            except Exception as e:
                logger.warning(f"[Progress] Dropping subscriber after delivery error: {e}")
                self.unsubscribe(subscription)
