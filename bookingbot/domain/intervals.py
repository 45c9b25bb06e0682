"""
Half-open interval arithmetic shared by breaks, slots and bookings.

Intervals are [start, end): touching endpoints never overlap, so a break
ending at 12:00 does not block a slot starting at 12:00. Time-of-day values
are handled as minutes since midnight.
"""

from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone
from typing import Any
from zoneinfo import ZoneInfo

MINUTES_PER_DAY = 24 * 60


def overlaps(a_start: Any, a_end: Any, b_start: Any, b_end: Any) -> bool:
    return a_start < b_end and b_start < a_end


def contains(outer_start: Any, outer_end: Any, inner_start: Any, inner_end: Any) -> bool:
    return outer_start <= inner_start and inner_end <= outer_end


def to_minutes(value: time) -> int:
    return value.hour * 60 + value.minute


def from_minutes(minutes: int) -> time:
    if not 0 <= minutes < MINUTES_PER_DAY:
        raise ValueError(f"minutes out of range for a time of day: {minutes}")
    return time(hour=minutes // 60, minute=minutes % 60)


def duration_minutes(duration: timedelta) -> int:
    return int(duration.total_seconds() // 60)


def local_to_utc(day: date, minutes: int, zone: ZoneInfo) -> datetime:
    """Convert a local day + minutes-since-midnight in `zone` to an aware UTC instant."""
    # Wall-clock combine, so a DST change earlier in the day does not shift the slot.
    local = datetime.combine(day, from_minutes(minutes), tzinfo=zone)
    return local.astimezone(timezone.utc)


def exists_locally(day: date, minutes: int, zone: ZoneInfo) -> bool:
    """False for wall-clock times skipped by a forward DST jump in `zone`."""
    local = datetime.combine(day, from_minutes(minutes), tzinfo=zone)
    back = local.astimezone(timezone.utc).astimezone(zone)
    return back.replace(tzinfo=None) == local.replace(tzinfo=None)


def local_day_bounds_utc(day: date, zone: ZoneInfo) -> tuple[datetime, datetime]:
    """UTC instants of local midnight at the start of `day` and of the following day."""
    start = datetime.combine(day, time.min, tzinfo=zone).astimezone(timezone.utc)
    end = datetime.combine(day + timedelta(days=1), time.min, tzinfo=zone).astimezone(timezone.utc)
    return start, end
