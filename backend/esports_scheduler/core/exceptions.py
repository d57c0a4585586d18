"""
Domain error taxonomy for the booking engine.

Each error carries the HTTP status it maps to so the API layer can render
it without knowing about individual failure modes.
"""

from typing import Iterable, Optional


class SchedulerError(Exception):
    status_code: int = 500
    default_detail: str = "Internal error"

    def __init__(self, detail: Optional[str] = None, **extra):
        self.detail = detail or self.default_detail
        # Extra fields rendered next to "detail" in the error body
        self.extra = extra
        super().__init__(self.detail)


class ValidationError(SchedulerError):
    """Malformed input, unknown team/computer, inactive computer, inverted interval."""

    status_code = 400
    default_detail = "Invalid payload"


class NotFoundError(SchedulerError):
    status_code = 404
    default_detail = "Not found"


class BlackoutConflict(SchedulerError):
    """A blackout window covers one or more requested computers."""

    status_code = 409
    default_detail = "Time is blocked by a blackout window"

    def __init__(self, labels: Iterable[str] = ()):
        self.labels = list(dict.fromkeys(labels))
        detail = self.default_detail
        if self.labels:
            detail = f"{detail} for: {', '.join(self.labels)}"
        super().__init__(detail, labels=self.labels)


class BookingConflict(SchedulerError):
    """Overlapping CONFIRMED reservations on one or more requested computers."""

    status_code = 409

    def __init__(self, labels: Iterable[str]):
        # Keep first-seen order, drop duplicates
        self.labels = list(dict.fromkeys(labels))
        super().__init__(f"Already reserved for: {', '.join(self.labels)}", labels=self.labels)


class StorageError(SchedulerError):
    status_code = 500
    default_detail = "Reservation transaction failed"


class NotificationDeliveryFailure(SchedulerError):
    """Raised by notifier backends. The engine logs and swallows it."""

    default_detail = "Change notification could not be delivered"
