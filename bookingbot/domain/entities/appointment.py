from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from enum import Enum

from bookingbot.domain.exceptions import InvalidTransitionError


class AppointmentStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    REJECTED = "rejected"
    CANCELLED = "cancelled"  # modeled, not reachable by any transition yet

    @property
    def blocks_slot(self) -> bool:
        return self in (AppointmentStatus.PENDING, AppointmentStatus.CONFIRMED)


@dataclass(frozen=True)
class Appointment:
    id: int
    service_id: int
    employee_id: int
    client_id: int
    booking_instant: datetime  # aware, UTC
    duration: timedelta
    status: AppointmentStatus = AppointmentStatus.PENDING
    reminder_sent: bool = False

    @property
    def end_instant(self) -> datetime:
        return self.booking_instant + self.duration

    def confirm(self) -> Appointment:
        return self._transition(AppointmentStatus.CONFIRMED)

    def reject(self) -> Appointment:
        return self._transition(AppointmentStatus.REJECTED)

    def _transition(self, target: AppointmentStatus) -> Appointment:
        if self.status is not AppointmentStatus.PENDING:
            raise InvalidTransitionError(self.id, self.status.value, target.value)
        return replace(self, status=target)


@dataclass(frozen=True)
class BookedSpan:
    """An occupied [start, start + duration) window on an employee's calendar."""

    start: datetime  # aware, UTC
    duration: timedelta

    @property
    def end(self) -> datetime:
        return self.start + self.duration
