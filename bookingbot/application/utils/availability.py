"""
Slot computation for a single working day.

A candidate start is offered when the slot [start, start + duration) fits
in the work interval, touches no break, exists on the local clock (times
skipped by a DST jump are never offered), overlaps no existing booking (each
booking with its own duration, compared in UTC) and lies strictly after
`now_utc`. Candidates advance by `granularity`, not by the service
duration, so long services still get fine-grained start options. The
calendar existence check walks the very same sequence.
"""

from __future__ import annotations

from datetime import date, datetime, time, timedelta
from typing import Iterable, Iterator
from zoneinfo import ZoneInfo

from bookingbot.domain.entities.appointment import BookedSpan
from bookingbot.domain.entities.schedule import WorkInterval
from bookingbot.domain.intervals import duration_minutes, exists_locally, from_minutes, local_to_utc, overlaps, to_minutes


def iter_slots(
    work_interval: WorkInterval,
    day: date,
    bookings: Iterable[BookedSpan],
    service_duration: timedelta,
    granularity: timedelta,
    now_utc: datetime,
) -> Iterator[time]:
    length = duration_minutes(service_duration)
    step = duration_minutes(granularity)
    if length <= 0:
        raise ValueError(f"Service duration must be positive: {service_duration}")
    if step <= 0:
        raise ValueError(f"Granularity must be positive: {granularity}")
    if day.weekday() != work_interval.day_of_week:
        raise ValueError(f"{day} is not a {work_interval.day_of_week} weekday")

    zone = ZoneInfo(work_interval.timezone)
    booked = list(bookings)
    cursor = work_interval.start_minutes

    while cursor + length <= work_interval.end_minutes:
        slot_end = cursor + length
        if not _hits_break(work_interval, cursor, slot_end) and exists_locally(day, cursor, zone):
            start_utc = local_to_utc(day, cursor, zone)
            end_utc = start_utc + service_duration
            taken = any(overlaps(start_utc, end_utc, span.start, span.end) for span in booked)
            if not taken and start_utc > now_utc:
                yield from_minutes(cursor)
        cursor += step


def compute_slots(
    work_interval: WorkInterval,
    day: date,
    bookings: Iterable[BookedSpan],
    service_duration: timedelta,
    granularity: timedelta,
    now_utc: datetime,
) -> list[time]:
    """All offerable local start times for `day`, strictly increasing."""
    return list(iter_slots(work_interval, day, bookings, service_duration, granularity, now_utc))


def has_any_available_slot(
    work_interval: WorkInterval,
    day: date,
    bookings: Iterable[BookedSpan],
    service_duration: timedelta,
    granularity: timedelta,
    now_utc: datetime,
) -> bool:
    slots = iter_slots(work_interval, day, bookings, service_duration, granularity, now_utc)
    return next(slots, None) is not None


def is_slot_available(
    work_interval: WorkInterval,
    day: date,
    start: time,
    bookings: Iterable[BookedSpan],
    service_duration: timedelta,
    granularity: timedelta,
    now_utc: datetime,
) -> bool:
    target = to_minutes(start)
    for slot in iter_slots(work_interval, day, bookings, service_duration, granularity, now_utc):
        minutes = to_minutes(slot)
        if minutes == target:
            return True
        if minutes > target:
            return False
    return False


def _hits_break(work_interval: WorkInterval, start: int, end: int) -> bool:
    return any(overlaps(start, end, b.start_minutes, b.end_minutes) for b in work_interval.breaks)
