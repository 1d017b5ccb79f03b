"""
Half-open time intervals ``[start, end)``.

Shifts that merely touch (one ends when the next begins) do not overlap.
Datetimes coming back from SQLite lose their tzinfo; those are read as UTC.
"""
from __future__ import annotations
import math
from datetime import datetime, timezone
from typing import NamedTuple

from core.errors import InvalidInterval


class Interval(NamedTuple):
    start: datetime
    end: datetime


def aware(dt: datetime) -> datetime:
    return dt if dt.tzinfo else dt.replace(tzinfo=timezone.utc)


def to_utc(dt: datetime) -> datetime:
    return aware(dt).astimezone(timezone.utc)


def duration(start: datetime, end: datetime) -> float:
    """Length of ``[start, end)`` in fractional hours."""
    start, end = aware(start), aware(end)
    if end <= start:
        raise InvalidInterval()
    return (end - start).total_seconds() / 3600.0


def overlaps(a: Interval, b: Interval) -> bool:
    return aware(a.start) < aware(b.end) and aware(a.end) > aware(b.start)


def round_to_minutes(hours: float) -> int:
    return int(math.floor(hours * 60 + 0.5))


def format_duration(hours: float) -> str:
    # rounding happens on the minute total, so 59.6 minutes becomes the next hour
    h, m = divmod(round_to_minutes(hours), 60)
    return f"{h} h {m} m"
