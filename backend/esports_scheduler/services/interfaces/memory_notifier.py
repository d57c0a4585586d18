"""
In-process notifier - one bounded queue per subscriber.
"""

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from esports_scheduler.core.logging import get_logger
from esports_scheduler.core.metrics import active_subscribers
from esports_scheduler.schemas.change_event import ChangeEvent
from esports_scheduler.services.interfaces.notifier import ChangeNotifier, Subscription

logger = get_logger(__name__)


class QueueSubscription(Subscription):
    def __init__(self, maxsize: int):
        self.queue: asyncio.Queue = asyncio.Queue(maxsize=maxsize)

    async def next_event(self, timeout: Optional[float] = None) -> Optional[ChangeEvent]:
        if timeout is None:
            return await self.queue.get()
        try:
            return await asyncio.wait_for(self.queue.get(), timeout=timeout)
        except asyncio.TimeoutError:
            return None


class InMemoryNotifier(ChangeNotifier):
    """
    Fan-out within a single process.

    Use when:
    - One API instance
    - Tests
    A subscriber whose queue is full misses that event; since every event
    only means "re-fetch", the next one it receives catches it up.
    """

    def __init__(self, queue_size: int = 100):
        self._queue_size = queue_size
        self._subscribers: set[QueueSubscription] = set()

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    async def publish(self, event: ChangeEvent) -> None:
        for subscription in list(self._subscribers):
            try:
                subscription.queue.put_nowait(event)
            except asyncio.QueueFull:
                logger.warning("subscriber_queue_full", event_type=event.type, group_id=event.group_id)

    @asynccontextmanager
    async def subscribe(self) -> AsyncIterator[Subscription]:
        subscription = QueueSubscription(self._queue_size)
        self._subscribers.add(subscription)
        active_subscribers.inc()
        try:
            yield subscription
        finally:
            self._subscribers.discard(subscription)
            active_subscribers.dec()
