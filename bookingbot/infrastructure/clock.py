from __future__ import annotations

from datetime import datetime, timedelta, timezone

from bookingbot.application.ports.clock import ClockPort


class SystemClock(ClockPort):
    def now_utc(self) -> datetime:
        return datetime.now(timezone.utc)


class FixedClock(ClockPort):
    """Clock frozen at a given instant; `advance` moves it forward."""

    def __init__(self, now: datetime) -> None:
        if now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)
        self._now = now.astimezone(timezone.utc)

    def now_utc(self) -> datetime:
        return self._now

    def advance(self, delta: timedelta) -> None:
        self._now = self._now + delta
