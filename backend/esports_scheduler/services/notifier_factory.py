"""
Notifier factory.
Configures which change notification backend the process uses.
"""

from typing import Optional

from esports_scheduler.core.config import get_settings
from esports_scheduler.services.interfaces.notifier import ChangeNotifier
from esports_scheduler.services.interfaces.memory_notifier import InMemoryNotifier
from esports_scheduler.services.notifier_service import RedisNotifier

settings = get_settings()


def build_notifier() -> ChangeNotifier:
    """
    Build the configured notifier.

    - memory: single instance, no external dependency
    - redis: shared channel for horizontally scaled deployments

    Selected by the NOTIFIER_BACKEND env var.
    """
    if settings.NOTIFIER_BACKEND == "redis":
        return RedisNotifier(channel=settings.NOTIFY_CHANNEL)
    return InMemoryNotifier(queue_size=settings.SUBSCRIBER_QUEUE_SIZE)


_notifier: Optional[ChangeNotifier] = None


def get_notifier() -> ChangeNotifier:
    """Process-wide notifier; also the FastAPI dependency routes inject."""
    global _notifier
    if _notifier is None:
        _notifier = build_notifier()
    return _notifier


async def close_notifier() -> None:
    global _notifier
    if _notifier is not None:
        await _notifier.close()
        _notifier = None
