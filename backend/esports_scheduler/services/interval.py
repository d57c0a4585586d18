"""
Half-open time interval [start, end) used for every blackout and conflict check.

Two intervals overlap iff a.start < b.end and b.start < a.end, so a booking
that ends exactly when another begins is not a conflict.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from esports_scheduler.core.exceptions import ValidationError


def as_utc(value: datetime) -> datetime:
    """Normalize to an aware UTC instant. Naive values are taken to be UTC already."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


@dataclass(frozen=True)
class TimeInterval:
    start: datetime
    end: datetime

    def __post_init__(self):
        object.__setattr__(self, "start", as_utc(self.start))
        object.__setattr__(self, "end", as_utc(self.end))
        if not self.start < self.end:
            raise ValidationError("startsAt must be before endsAt")

    def overlaps(self, other: "TimeInterval") -> bool:
        return self.start < other.end and other.start < self.end

    @property
    def duration(self):
        return self.end - self.start


def start_of_current_month(now: Optional[datetime] = None) -> datetime:
    """First instant of the current UTC month; the default retention cutoff."""
    now = as_utc(now or datetime.now(timezone.utc))
    return datetime(now.year, now.month, 1, tzinfo=timezone.utc)
