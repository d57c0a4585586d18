"""
Tests for half-open interval semantics.
"""

from datetime import datetime, timedelta, timezone

import pytest

from esports_scheduler.core.exceptions import ValidationError
from esports_scheduler.services.interval import TimeInterval, as_utc, start_of_current_month

T0 = datetime(2030, 1, 15, 18, 0, tzinfo=timezone.utc)
HOUR = timedelta(hours=1)


def test_overlapping_intervals():
    a = TimeInterval(T0, T0 + 2 * HOUR)
    b = TimeInterval(T0 + HOUR, T0 + 3 * HOUR)
    assert a.overlaps(b)
    assert b.overlaps(a)


def test_back_to_back_intervals_do_not_overlap():
    """A slot ending exactly when the next begins is not a conflict."""
    a = TimeInterval(T0, T0 + HOUR)
    b = TimeInterval(T0 + HOUR, T0 + 2 * HOUR)
    assert not a.overlaps(b)
    assert not b.overlaps(a)


def test_contained_interval_overlaps():
    outer = TimeInterval(T0, T0 + 4 * HOUR)
    inner = TimeInterval(T0 + HOUR, T0 + 2 * HOUR)
    assert outer.overlaps(inner)
    assert inner.overlaps(outer)


@pytest.mark.parametrize("end", [T0, T0 - HOUR])
def test_empty_or_inverted_interval_rejected(end):
    with pytest.raises(ValidationError):
        TimeInterval(T0, end)


def test_naive_datetimes_are_treated_as_utc():
    interval = TimeInterval(datetime(2030, 1, 15, 18, 0), datetime(2030, 1, 15, 19, 0))
    assert interval.start == T0
    assert interval.start.tzinfo is not None


def test_offsets_normalized_to_utc():
    plus_two = timezone(timedelta(hours=2))
    value = as_utc(datetime(2030, 1, 15, 20, 0, tzinfo=plus_two))
    assert value == T0
    assert value.utcoffset() == timedelta(0)


def test_start_of_current_month():
    now = datetime(2026, 10, 19, 13, 45, tzinfo=timezone.utc)
    assert start_of_current_month(now) == datetime(2026, 10, 1, tzinfo=timezone.utc)


def test_start_of_current_month_uses_utc_calendar():
    # 00:30 on the 1st in UTC+2 is still the previous month in UTC
    local = datetime(2026, 11, 1, 0, 30, tzinfo=timezone(timedelta(hours=2)))
    assert start_of_current_month(local) == datetime(2026, 10, 1, tzinfo=timezone.utc)
