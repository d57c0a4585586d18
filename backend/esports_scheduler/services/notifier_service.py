"""
Redis pub/sub notifier for multi-instance deployments.
Implements ChangeNotifier so every API instance sees every change.

Failure handling:
  Publishing is advisory. A Redis error is raised as
  NotificationDeliveryFailure, which the booking engine logs and swallows;
  the committed booking stands and viewers catch up on their next event or
  reload.

Ordering:
  Events from one instance arrive in publish order. Across instances there is
  no ordering guarantee, which is fine because an event only means "re-fetch".
"""

from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from pydantic import ValidationError as PydanticValidationError
from redis.exceptions import RedisError

from esports_scheduler.core.exceptions import NotificationDeliveryFailure
from esports_scheduler.core.logging import get_logger
from esports_scheduler.core.metrics import active_subscribers
from esports_scheduler.infrastructure.redis_client import get_redis, close_redis
from esports_scheduler.schemas.change_event import ChangeEvent
from esports_scheduler.services.interfaces.notifier import ChangeNotifier, Subscription

logger = get_logger(__name__)


class PubSubSubscription(Subscription):
    def __init__(self, pubsub):
        self.pubsub = pubsub

    async def next_event(self, timeout: Optional[float] = None) -> Optional[ChangeEvent]:
        message = await self.pubsub.get_message(ignore_subscribe_messages=True, timeout=timeout)
        if message is None:
            return None
        try:
            return ChangeEvent.model_validate_json(message["data"])
        except (PydanticValidationError, TypeError):
            logger.warning("malformed_change_event", payload=str(message.get("data"))[:200])
            return None


class RedisNotifier(ChangeNotifier):
    """
    Use when:
    - More than one API instance serves the stream endpoint
    """

    def __init__(self, channel: str):
        self.channel = channel

    async def start(self) -> None:
        try:
            await get_redis().ping()
            logger.info("redis_notifier_ready", channel=self.channel)
        except RedisError as e:
            # Bookings still work; the stream reconnects once Redis is back
            logger.error("redis_connection_failed", error=str(e))

    async def close(self) -> None:
        await close_redis()

    async def publish(self, event: ChangeEvent) -> None:
        try:
            await get_redis().publish(self.channel, event.to_json())
        except RedisError as e:
            raise NotificationDeliveryFailure(str(e)) from e

    @asynccontextmanager
    async def subscribe(self) -> AsyncIterator[Subscription]:
        pubsub = get_redis().pubsub()
        await pubsub.subscribe(self.channel)
        active_subscribers.inc()
        try:
            yield PubSubSubscription(pubsub)
        finally:
            active_subscribers.dec()
            try:
                await pubsub.unsubscribe(self.channel)
            except RedisError as e:
                logger.warning("redis_unsubscribe_failed", error=str(e))
            await pubsub.aclose()
