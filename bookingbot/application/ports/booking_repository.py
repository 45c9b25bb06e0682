from abc import ABC, abstractmethod
from datetime import datetime, time, timedelta
from decimal import Decimal

from bookingbot.domain.entities.appointment import Appointment, AppointmentStatus, BookedSpan
from bookingbot.domain.entities.client import Client
from bookingbot.domain.entities.schedule import BreakInterval, WeeklySchedule, WorkInterval
from bookingbot.domain.entities.service import Service
from bookingbot.domain.entities.tenant import Employee, Tenant


class BookingRepositoryPort(ABC):
    """
    Durable booking data. Lookups by id raise `NotFoundError` when the row is
    missing; `find_*` lookups return None instead.
    """

    # Tenants / employees

    @abstractmethod
    def list_tenants_for_client(self, chat_id: int) -> list[Tenant]:
        raise NotImplementedError

    @abstractmethod
    def get_tenant(self, tenant_id: int) -> Tenant:
        raise NotImplementedError

    @abstractmethod
    def find_tenant_by_owner(self, owner_chat_id: int) -> Tenant | None:
        raise NotImplementedError

    @abstractmethod
    def get_employee(self, employee_id: int) -> Employee:
        raise NotImplementedError

    @abstractmethod
    def get_employee_for_tenant(self, tenant_id: int) -> Employee:
        raise NotImplementedError

    @abstractmethod
    def set_tenant_location(self, tenant_id: int, latitude: float, longitude: float) -> Tenant:
        raise NotImplementedError

    # Invites

    @abstractmethod
    def ensure_invite_token(self, tenant_id: int) -> str:
        """The tenant's invite token, generated on first use."""
        raise NotImplementedError

    @abstractmethod
    def find_tenant_by_invite_token(self, token: str) -> Tenant | None:
        raise NotImplementedError

    @abstractmethod
    def invite_client(self, chat_id: int, tenant_id: int) -> bool:
        """Let the chat book with the tenant. False when it already could."""
        raise NotImplementedError

    # Services

    @abstractmethod
    def list_services(self, tenant_id: int) -> list[Service]:
        raise NotImplementedError

    @abstractmethod
    def get_service(self, service_id: int) -> Service:
        raise NotImplementedError

    @abstractmethod
    def create_service(
        self, employee_id: int, name: str, duration: timedelta, price: Decimal, currency: str
    ) -> Service:
        raise NotImplementedError

    # Work schedule

    @abstractmethod
    def get_schedule(self, employee_id: int) -> WeeklySchedule:
        raise NotImplementedError

    @abstractmethod
    def save_work_interval(self, interval: WorkInterval) -> None:
        raise NotImplementedError

    @abstractmethod
    def delete_work_interval(self, employee_id: int, day_of_week: int) -> None:
        raise NotImplementedError

    @abstractmethod
    def add_break(self, employee_id: int, day_of_week: int, start: time, end: time) -> BreakInterval:
        """Assign an id and attach the break. Raises `BreakOverlapError` / `InvalidIntervalError`."""
        raise NotImplementedError

    @abstractmethod
    def remove_break(self, employee_id: int, day_of_week: int, break_id: int) -> None:
        raise NotImplementedError

    # Appointments

    @abstractmethod
    def list_blocking_spans(self, employee_id: int, start_utc: datetime, end_utc: datetime) -> list[BookedSpan]:
        """Pending and confirmed appointments of the employee intersecting [start_utc, end_utc)."""
        raise NotImplementedError

    @abstractmethod
    def create_appointment(self, service: Service, client_id: int, booking_instant: datetime) -> Appointment:
        """
        Check-and-insert in one transaction: fails with `SlotUnavailableError`
        when another blocking appointment of the same employee starts at the
        same instant or overlaps the new one.
        """
        raise NotImplementedError

    @abstractmethod
    def get_appointment(self, appointment_id: int) -> Appointment:
        raise NotImplementedError

    @abstractmethod
    def update_status(
        self, appointment_id: int, expected: AppointmentStatus, status: AppointmentStatus
    ) -> Appointment:
        """Compare-and-swap; raises `InvalidTransitionError` when the stored status is not `expected`."""
        raise NotImplementedError

    @abstractmethod
    def list_unreminded_appointments(self, after_utc: datetime) -> list[Appointment]:
        """Confirmed appointments starting after `after_utc` whose reminder has not gone out."""
        raise NotImplementedError

    @abstractmethod
    def mark_reminder_sent(self, appointment_id: int) -> bool:
        """Set the reminder flag once. False when it was already set."""
        raise NotImplementedError

    @abstractmethod
    def list_client_appointments(
        self, client_id: int, after_utc: datetime, status: AppointmentStatus
    ) -> list[Appointment]:
        raise NotImplementedError

    # Clients

    @abstractmethod
    def get_or_create_client(self, chat_id: int, name: str | None) -> Client:
        raise NotImplementedError

    @abstractmethod
    def get_client(self, client_id: int) -> Client:
        raise NotImplementedError

    @abstractmethod
    def set_client_timezone(self, client_id: int, timezone: str) -> Client:
        raise NotImplementedError

    # Preferences

    @abstractmethod
    def get_language(self, chat_id: int) -> str | None:
        raise NotImplementedError

    @abstractmethod
    def set_language(self, chat_id: int, language: str) -> None:
        raise NotImplementedError
