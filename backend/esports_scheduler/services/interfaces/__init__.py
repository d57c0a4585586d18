"""
Service interfaces for dependency inversion.
The booking engine depends on ChangeNotifier, never on a concrete backend.
"""

from .notifier import ChangeNotifier, Subscription
from .memory_notifier import InMemoryNotifier

__all__ = ['ChangeNotifier', 'Subscription', 'InMemoryNotifier']
