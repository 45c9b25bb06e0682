from __future__ import annotations

from dataclasses import dataclass
from datetime import date, time
from typing import ClassVar, Union


@dataclass(frozen=True)
class Idle:
    step_name: ClassVar[str] = "Idle"


# Client booking flow


@dataclass(frozen=True)
class SelectingTenant:
    step_name: ClassVar[str] = "WaitingForTenant"


@dataclass(frozen=True)
class SelectingService:
    step_name: ClassVar[str] = "WaitingForService"
    tenant_id: int


@dataclass(frozen=True)
class SelectingDate:
    step_name: ClassVar[str] = "WaitingForDate"
    service_id: int


@dataclass(frozen=True)
class SelectingTime:
    step_name: ClassVar[str] = "WaitingForTime"
    service_id: int
    day: date
    timezone: str  # zone of the work interval, fixed when the date was chosen


# Owner schedule flows


@dataclass(frozen=True)
class AwaitingWorkStart:
    step_name: ClassVar[str] = "WaitingForWorkStartTime"
    employee_id: int
    day_of_week: int


@dataclass(frozen=True)
class AwaitingWorkEnd:
    step_name: ClassVar[str] = "WaitingForWorkEndTime"
    employee_id: int
    day_of_week: int
    start: time


@dataclass(frozen=True)
class AwaitingBreakStart:
    step_name: ClassVar[str] = "WaitingForBreakStart"
    employee_id: int
    day_of_week: int


@dataclass(frozen=True)
class AwaitingBreakEnd:
    step_name: ClassVar[str] = "WaitingForBreakEnd"
    employee_id: int
    day_of_week: int
    start: time


# Owner tenant profile flows


@dataclass(frozen=True)
class AwaitingServiceName:
    step_name: ClassVar[str] = "WaitingForServiceName"


@dataclass(frozen=True)
class SelectingServiceCurrency:
    step_name: ClassVar[str] = "WaitingForServiceCurrency"
    name: str  # free text, always the last parameter so underscores survive encoding


@dataclass(frozen=True)
class AwaitingServicePrice:
    step_name: ClassVar[str] = "WaitingForServicePrice"
    currency: str
    name: str


@dataclass(frozen=True)
class SelectingServiceDuration:
    step_name: ClassVar[str] = "WaitingForServiceDuration"
    price_cents: int
    currency: str
    name: str


@dataclass(frozen=True)
class AwaitingLocation:
    step_name: ClassVar[str] = "WaitingForLocation"


ConversationStep = Union[
    Idle,
    SelectingTenant,
    SelectingService,
    SelectingDate,
    SelectingTime,
    AwaitingWorkStart,
    AwaitingWorkEnd,
    AwaitingBreakStart,
    AwaitingBreakEnd,
    AwaitingServiceName,
    SelectingServiceCurrency,
    AwaitingServicePrice,
    SelectingServiceDuration,
    AwaitingLocation,
]

STEP_TYPES: tuple[type, ...] = (
    Idle,
    SelectingTenant,
    SelectingService,
    SelectingDate,
    SelectingTime,
    AwaitingWorkStart,
    AwaitingWorkEnd,
    AwaitingBreakStart,
    AwaitingBreakEnd,
    AwaitingServiceName,
    SelectingServiceCurrency,
    AwaitingServicePrice,
    SelectingServiceDuration,
    AwaitingLocation,
)
