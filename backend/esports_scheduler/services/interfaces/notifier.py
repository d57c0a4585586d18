"""
Change notifier interface.
Allows swapping between in-process and cross-instance fan-out.
"""

from abc import ABC, abstractmethod
from typing import AsyncContextManager, Optional

from esports_scheduler.schemas.change_event import ChangeEvent


class Subscription(ABC):
    """
    One viewer's view of the event feed.

    Iterating yields every event published after the subscription opened,
    forever. next_event() with a timeout returns None when nothing arrived,
    which the stream uses to send keepalives.
    """

    @abstractmethod
    async def next_event(self, timeout: Optional[float] = None) -> Optional[ChangeEvent]:
        pass

    def __aiter__(self):
        return self

    async def __anext__(self) -> ChangeEvent:
        while True:
            event = await self.next_event()
            if event is not None:
                return event


class ChangeNotifier(ABC):
    """
    Interface for change notification backends.

    Implementations:
    - InMemoryNotifier: asyncio queues, single process
    - RedisNotifier: Redis pub/sub, shared by every API instance
    """

    @abstractmethod
    async def publish(self, event: ChangeEvent) -> None:
        """
        Deliver an event to current subscribers.

        Raises:
            NotificationDeliveryFailure: transport could not accept the event
        """
        pass

    @abstractmethod
    def subscribe(self) -> AsyncContextManager[Subscription]:
        """
        Open a subscription. Leaving the context releases it.
        """
        pass

    async def start(self) -> None:
        """Acquire backend resources at application startup."""
        pass

    async def close(self) -> None:
        """Release backend resources at shutdown."""
        pass
