from __future__ import annotations

import itertools
import logging
import secrets
import threading
from dataclasses import replace
from datetime import datetime, time, timedelta, timezone
from decimal import Decimal

from bookingbot.application.ports.booking_repository import BookingRepositoryPort
from bookingbot.domain.entities.appointment import Appointment, AppointmentStatus, BookedSpan
from bookingbot.domain.entities.client import Client
from bookingbot.domain.entities.schedule import BreakInterval, WeeklySchedule, WorkInterval
from bookingbot.domain.entities.service import Service
from bookingbot.domain.entities.tenant import Employee, Tenant
from bookingbot.domain.exceptions import InvalidTransitionError, NotFoundError, SlotUnavailableError
from bookingbot.domain.intervals import overlaps

INVITE_TOKEN_BYTES = 9


class MemoryBookingRepository(BookingRepositoryPort):
    """
    In-process store. A single re-entrant lock plays the role of a database
    transaction: every read-check-write sequence runs while holding it.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._tenants: dict[int, Tenant] = {}
        self._employees: dict[int, Employee] = {}
        self._services: dict[int, Service] = {}
        self._schedules: dict[int, dict[int, WorkInterval]] = {}
        self._appointments: dict[int, Appointment] = {}
        self._clients: dict[int, Client] = {}
        self._invites: dict[int, list[int]] = {}  # client chat id -> tenant ids
        self._languages: dict[int, str] = {}
        self._counters: dict[str, itertools.count] = {}
        self._logger = logging.getLogger(__name__)

    def _next_id(self, kind: str) -> int:
        counter = self._counters.setdefault(kind, itertools.count(1))
        return next(counter)

    # Population

    def add_tenant(self, tenant: Tenant) -> None:
        with self._lock:
            self._tenants[tenant.id] = tenant

    def add_employee(self, employee: Employee) -> None:
        with self._lock:
            self._employees[employee.id] = employee
            self._schedules.setdefault(employee.id, {})

    def add_service(self, service: Service) -> None:
        with self._lock:
            self._services[service.id] = service

    # Tenants / employees

    def list_tenants_for_client(self, chat_id: int) -> list[Tenant]:
        with self._lock:
            return [self._tenants[t] for t in self._invites.get(chat_id, []) if t in self._tenants]

    def get_tenant(self, tenant_id: int) -> Tenant:
        with self._lock:
            tenant = self._tenants.get(tenant_id)
        if tenant is None:
            raise NotFoundError("Tenant", tenant_id)
        return tenant

    def find_tenant_by_owner(self, owner_chat_id: int) -> Tenant | None:
        with self._lock:
            for tenant in self._tenants.values():
                if tenant.owner_chat_id == owner_chat_id:
                    return tenant
        return None

    def get_employee(self, employee_id: int) -> Employee:
        with self._lock:
            employee = self._employees.get(employee_id)
        if employee is None:
            raise NotFoundError("Employee", employee_id)
        return employee

    def get_employee_for_tenant(self, tenant_id: int) -> Employee:
        with self._lock:
            for employee in sorted(self._employees.values(), key=lambda e: e.id):
                if employee.tenant_id == tenant_id:
                    return employee
        raise NotFoundError("Employee of tenant", tenant_id)

    def set_tenant_location(self, tenant_id: int, latitude: float, longitude: float) -> Tenant:
        with self._lock:
            updated = replace(self.get_tenant(tenant_id), latitude=latitude, longitude=longitude)
            self._tenants[tenant_id] = updated
            return updated

    # Invites

    def ensure_invite_token(self, tenant_id: int) -> str:
        with self._lock:
            tenant = self.get_tenant(tenant_id)
            if tenant.invite_token:
                return tenant.invite_token
            token = secrets.token_urlsafe(INVITE_TOKEN_BYTES)
            self._tenants[tenant_id] = replace(tenant, invite_token=token)
            self._logger.info("Invite token created", extra={"reason": f"tenant={tenant_id}"})
            return token

    def find_tenant_by_invite_token(self, token: str) -> Tenant | None:
        if not token:
            return None
        with self._lock:
            for tenant in self._tenants.values():
                if tenant.invite_token == token:
                    return tenant
        return None

    def invite_client(self, chat_id: int, tenant_id: int) -> bool:
        with self._lock:
            invited = self._invites.setdefault(chat_id, [])
            if tenant_id in invited:
                return False
            invited.append(tenant_id)
            return True

    # Services

    def list_services(self, tenant_id: int) -> list[Service]:
        with self._lock:
            employee_ids = {e.id for e in self._employees.values() if e.tenant_id == tenant_id}
            return sorted(
                (s for s in self._services.values() if s.employee_id in employee_ids),
                key=lambda s: s.id,
            )

    def get_service(self, service_id: int) -> Service:
        with self._lock:
            service = self._services.get(service_id)
        if service is None:
            raise NotFoundError("Service", service_id)
        return service

    def create_service(
        self, employee_id: int, name: str, duration: timedelta, price: Decimal, currency: str
    ) -> Service:
        with self._lock:
            if employee_id not in self._employees:
                raise NotFoundError("Employee", employee_id)
            # Seeded services bring their own ids.
            service = Service(
                id=max(self._services, default=0) + 1,
                employee_id=employee_id,
                name=name,
                duration=duration,
                price=price,
                currency=currency,
            )
            self._services[service.id] = service
            return service

    # Work schedule

    def get_schedule(self, employee_id: int) -> WeeklySchedule:
        with self._lock:
            if employee_id not in self._employees:
                raise NotFoundError("Employee", employee_id)
            return WeeklySchedule(employee_id=employee_id, intervals=dict(self._schedules.get(employee_id, {})))

    def save_work_interval(self, interval: WorkInterval) -> None:
        with self._lock:
            if interval.employee_id not in self._employees:
                raise NotFoundError("Employee", interval.employee_id)
            self._schedules.setdefault(interval.employee_id, {})[interval.day_of_week] = interval

    def delete_work_interval(self, employee_id: int, day_of_week: int) -> None:
        with self._lock:
            self._schedules.get(employee_id, {}).pop(day_of_week, None)

    def add_break(self, employee_id: int, day_of_week: int, start: time, end: time) -> BreakInterval:
        with self._lock:
            interval = self._get_interval(employee_id, day_of_week)
            brk = BreakInterval(id=self._next_id("break"), start=start, end=end)
            self._schedules[employee_id][day_of_week] = interval.with_break(brk)
            return brk

    def remove_break(self, employee_id: int, day_of_week: int, break_id: int) -> None:
        with self._lock:
            interval = self._get_interval(employee_id, day_of_week)
            if all(b.id != break_id for b in interval.breaks):
                raise NotFoundError("Break", break_id)
            self._schedules[employee_id][day_of_week] = interval.without_break(break_id)

    def _get_interval(self, employee_id: int, day_of_week: int) -> WorkInterval:
        interval = self._schedules.get(employee_id, {}).get(day_of_week)
        if interval is None:
            raise NotFoundError("Work interval", f"{employee_id}/{day_of_week}")
        return interval

    # Appointments

    def list_blocking_spans(self, employee_id: int, start_utc: datetime, end_utc: datetime) -> list[BookedSpan]:
        with self._lock:
            return [
                BookedSpan(start=a.booking_instant, duration=a.duration)
                for a in self._blocking(employee_id)
                if overlaps(a.booking_instant, a.end_instant, start_utc, end_utc)
            ]

    def _blocking(self, employee_id: int) -> list[Appointment]:
        return sorted(
            (a for a in self._appointments.values() if a.employee_id == employee_id and a.status.blocks_slot),
            key=lambda a: a.booking_instant,
        )

    def create_appointment(self, service: Service, client_id: int, booking_instant: datetime) -> Appointment:
        instant = booking_instant.astimezone(timezone.utc)
        end = instant + service.duration
        with self._lock:
            for existing in self._blocking(service.employee_id):
                if existing.booking_instant == instant or overlaps(
                    instant, end, existing.booking_instant, existing.end_instant
                ):
                    self._logger.info(
                        "Appointment conflict",
                        extra={"appointment_id": existing.id, "reason": f"employee={service.employee_id} at={instant}"},
                    )
                    raise SlotUnavailableError(f"{instant.isoformat()} is already taken")
            appointment = Appointment(
                id=self._next_id("appointment"),
                service_id=service.id,
                employee_id=service.employee_id,
                client_id=client_id,
                booking_instant=instant,
                duration=service.duration,
            )
            self._appointments[appointment.id] = appointment
            return appointment

    def get_appointment(self, appointment_id: int) -> Appointment:
        with self._lock:
            appointment = self._appointments.get(appointment_id)
        if appointment is None:
            raise NotFoundError("Appointment", appointment_id)
        return appointment

    def update_status(
        self, appointment_id: int, expected: AppointmentStatus, status: AppointmentStatus
    ) -> Appointment:
        with self._lock:
            current = self.get_appointment(appointment_id)
            if current.status is not expected:
                raise InvalidTransitionError(appointment_id, current.status.value, status.value)
            updated = replace(current, status=status)
            self._appointments[appointment_id] = updated
            return updated

    def list_unreminded_appointments(self, after_utc: datetime) -> list[Appointment]:
        with self._lock:
            return sorted(
                (
                    a
                    for a in self._appointments.values()
                    if a.status is AppointmentStatus.CONFIRMED
                    and not a.reminder_sent
                    and a.booking_instant > after_utc
                ),
                key=lambda a: a.booking_instant,
            )

    def mark_reminder_sent(self, appointment_id: int) -> bool:
        with self._lock:
            current = self.get_appointment(appointment_id)
            if current.reminder_sent:
                return False
            self._appointments[appointment_id] = replace(current, reminder_sent=True)
            return True

    def list_client_appointments(
        self, client_id: int, after_utc: datetime, status: AppointmentStatus
    ) -> list[Appointment]:
        with self._lock:
            return sorted(
                (
                    a
                    for a in self._appointments.values()
                    if a.client_id == client_id and a.status is status and a.booking_instant >= after_utc
                ),
                key=lambda a: a.booking_instant,
            )

    # Clients

    def get_or_create_client(self, chat_id: int, name: str | None) -> Client:
        with self._lock:
            for client in self._clients.values():
                if client.chat_id == chat_id:
                    return client
            client = Client(id=self._next_id("client"), chat_id=chat_id, name=name or str(chat_id))
            self._clients[client.id] = client
            return client

    def get_client(self, client_id: int) -> Client:
        with self._lock:
            client = self._clients.get(client_id)
        if client is None:
            raise NotFoundError("Client", client_id)
        return client

    def set_client_timezone(self, client_id: int, timezone: str) -> Client:
        with self._lock:
            client = self.get_client(client_id)
            updated = replace(client, timezone=timezone)
            self._clients[client_id] = updated
            return updated

    # Preferences

    def get_language(self, chat_id: int) -> str | None:
        with self._lock:
            return self._languages.get(chat_id)

    def set_language(self, chat_id: int, language: str) -> None:
        with self._lock:
            self._languages[chat_id] = language.upper()
