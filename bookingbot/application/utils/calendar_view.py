from __future__ import annotations

import calendar
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from enum import Enum
from typing import Iterable
from zoneinfo import ZoneInfo

from bookingbot.application.utils.availability import has_any_available_slot
from bookingbot.domain.entities.appointment import BookedSpan
from bookingbot.domain.entities.schedule import WeeklySchedule

# Current calendar month plus the next one.
DEFAULT_WINDOW_MONTHS = 2


class DayStatus(str, Enum):
    PAST = "past"
    NOT_WORKING = "not_working"
    FULLY_BOOKED = "fully_booked"
    AVAILABLE = "available"


@dataclass(frozen=True)
class CalendarDay:
    day: date
    status: DayStatus
    is_today: bool = False


@dataclass(frozen=True)
class MonthView:
    month: date  # first day of the month
    today: date
    days: tuple[CalendarDay, ...] = ()
    out_of_range: bool = False
    can_go_back: bool = False
    can_go_forward: bool = False

    @property
    def leading_blanks(self) -> int:
        """Empty cells before day 1 in a Monday-first week grid."""
        return self.month.weekday()


def month_start(value: date) -> date:
    return value.replace(day=1)


def add_months(value: date, months: int) -> date:
    index = value.year * 12 + (value.month - 1) + months
    return date(index // 12, index % 12 + 1, 1)


def is_month_bookable(month: date, today: date, window_months: int = DEFAULT_WINDOW_MONTHS) -> bool:
    first = month_start(today)
    last = add_months(first, window_months - 1)
    return first <= month_start(month) <= last


def local_today(now_utc: datetime, timezone: str) -> date:
    return now_utc.astimezone(ZoneInfo(timezone)).date()


def build_month(
    schedule: WeeklySchedule,
    bookings: Iterable[BookedSpan],
    month: date,
    now_utc: datetime,
    service_duration: timedelta,
    granularity: timedelta,
    reference_timezone: str = "UTC",
    window_months: int = DEFAULT_WINDOW_MONTHS,
) -> MonthView:
    """
    Classify every day of `month` for rendering.

    Priority per day: past, not working, fully booked, available. Months
    outside the booking window come back with `out_of_range=True` and no
    days. The result depends only on the arguments.
    """
    today = local_today(now_utc, reference_timezone)
    first = month_start(month)

    if not is_month_bookable(first, today, window_months):
        return MonthView(month=first, today=today, out_of_range=True)

    booked = list(bookings)
    days: list[CalendarDay] = []
    for day_number in range(1, calendar.monthrange(first.year, first.month)[1] + 1):
        day = first.replace(day=day_number)
        status = _classify(schedule, booked, day, today, now_utc, service_duration, granularity)
        days.append(CalendarDay(day=day, status=status, is_today=day == today))

    return MonthView(
        month=first,
        today=today,
        days=tuple(days),
        can_go_back=is_month_bookable(add_months(first, -1), today, window_months),
        can_go_forward=is_month_bookable(add_months(first, 1), today, window_months),
    )


def _classify(
    schedule: WeeklySchedule,
    bookings: list[BookedSpan],
    day: date,
    today: date,
    now_utc: datetime,
    service_duration: timedelta,
    granularity: timedelta,
) -> DayStatus:
    if day < today:
        return DayStatus.PAST
    work_interval = schedule.for_day(day.weekday())
    if work_interval is None:
        return DayStatus.NOT_WORKING
    if not has_any_available_slot(work_interval, day, bookings, service_duration, granularity, now_utc):
        return DayStatus.FULLY_BOOKED
    return DayStatus.AVAILABLE
