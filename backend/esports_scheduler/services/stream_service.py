"""
Server-Sent Events rendering of the change feed.

Wire format:
  : connected          sent once so proxies flush headers
  data: {"type":..., "groupId":...}
  : ping               comment line after each idle keepalive interval

The subscription lives exactly as long as the generator. A disconnect is
noticed either by Starlette cancelling the response task or, at the latest,
by the is_disconnected() check after the next keepalive interval.
"""

from typing import AsyncIterator, Awaitable, Callable

from esports_scheduler.core.logging import get_logger
from esports_scheduler.services.interfaces.notifier import ChangeNotifier

logger = get_logger(__name__)

CONNECTED_LINE = ": connected\n\n"
PING_LINE = ": ping\n\n"


def format_event(payload: str) -> str:
    return f"data: {payload}\n\n"


async def event_stream(
    notifier: ChangeNotifier,
    is_disconnected: Callable[[], Awaitable[bool]],
    keepalive_seconds: float,
) -> AsyncIterator[str]:
    async with notifier.subscribe() as subscription:
        logger.info("subscriber_connected")
        try:
            yield CONNECTED_LINE
            while not await is_disconnected():
                event = await subscription.next_event(timeout=keepalive_seconds)
                if event is None:
                    yield PING_LINE
                    continue
                yield format_event(event.to_json())
        finally:
            logger.info("subscriber_disconnected")
