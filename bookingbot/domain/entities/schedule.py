from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import time

from bookingbot.domain.exceptions import BreakOverlapError, InvalidIntervalError
from bookingbot.domain.intervals import contains, overlaps, to_minutes


@dataclass(frozen=True)
class BreakInterval:
    id: int
    start: time
    end: time

    def __post_init__(self) -> None:
        if self.start >= self.end:
            raise InvalidIntervalError(f"Break must start before it ends: {self.start}-{self.end}")

    @property
    def start_minutes(self) -> int:
        return to_minutes(self.start)

    @property
    def end_minutes(self) -> int:
        return to_minutes(self.end)


@dataclass(frozen=True)
class WorkInterval:
    employee_id: int
    day_of_week: int  # 0=Monday .. 6=Sunday, same as date.weekday()
    start: time
    end: time
    timezone: str  # IANA zone id
    breaks: tuple[BreakInterval, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        if not 0 <= self.day_of_week <= 6:
            raise InvalidIntervalError(f"Invalid day of week: {self.day_of_week}")
        if self.start >= self.end:
            raise InvalidIntervalError(f"Work interval must start before it ends: {self.start}-{self.end}")
        for brk in self.breaks:
            if not contains(self.start, self.end, brk.start, brk.end):
                raise InvalidIntervalError(
                    f"Break {brk.start}-{brk.end} lies outside working hours {self.start}-{self.end}"
                )
        ordered = tuple(sorted(self.breaks, key=lambda b: (b.start, b.end)))
        object.__setattr__(self, "breaks", ordered)

    @property
    def start_minutes(self) -> int:
        return to_minutes(self.start)

    @property
    def end_minutes(self) -> int:
        return to_minutes(self.end)

    def with_break(self, brk: BreakInterval) -> WorkInterval:
        """Return a copy with `brk` added. Overlapping an existing break is a conflict."""
        for existing in self.breaks:
            if overlaps(brk.start, brk.end, existing.start, existing.end):
                raise BreakOverlapError(
                    f"Break {brk.start}-{brk.end} overlaps {existing.start}-{existing.end}"
                )
        return replace(self, breaks=self.breaks + (brk,))

    def without_break(self, break_id: int) -> WorkInterval:
        return replace(self, breaks=tuple(b for b in self.breaks if b.id != break_id))

    def with_hours(self, start: time, end: time) -> WorkInterval:
        return replace(self, start=start, end=end)

    def with_timezone(self, timezone: str) -> WorkInterval:
        return replace(self, timezone=timezone)


@dataclass(frozen=True)
class WeeklySchedule:
    employee_id: int
    intervals: dict[int, WorkInterval] = field(default_factory=dict)

    def __post_init__(self) -> None:
        for day, interval in self.intervals.items():
            if day != interval.day_of_week or interval.employee_id != self.employee_id:
                raise InvalidIntervalError(f"Work interval keyed under the wrong day or employee: {day}")

    def for_day(self, day_of_week: int) -> WorkInterval | None:
        return self.intervals.get(day_of_week)

    def working_days(self) -> list[int]:
        return sorted(self.intervals)
