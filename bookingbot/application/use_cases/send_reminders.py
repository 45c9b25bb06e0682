from __future__ import annotations

import logging
from datetime import timedelta
from zoneinfo import ZoneInfo

from bookingbot.application.ports.booking_repository import BookingRepositoryPort
from bookingbot.application.ports.clock import ClockPort
from bookingbot.application.use_cases.send_reply import SendReplyUseCase
from bookingbot.application.utils.date_parser import format_day, format_hhmm
from bookingbot.domain.entities.appointment import Appointment
from bookingbot.domain.entities.tenant import Tenant
from bookingbot.domain.exceptions import NotFoundError


class SendRemindersUseCase:
    """
    One reminder pass over confirmed appointments.

    An appointment is due once its start is within its tenant's
    `reminder_hours`. The flag is set only after the client was reached, so a
    failed delivery is retried on the next pass while the start is still ahead.
    """

    def __init__(
        self,
        repository: BookingRepositoryPort,
        reply: SendReplyUseCase,
        clock: ClockPort,
        default_timezone: str,
    ) -> None:
        self._repository = repository
        self._reply = reply
        self._clock = clock
        self._default_timezone = default_timezone
        self._logger = logging.getLogger(__name__)

    def execute(self) -> int:
        """Returns the number of reminders delivered."""
        now = self._clock.now_utc()
        tenants: dict[int, Tenant] = {}
        sent = 0
        for appointment in self._repository.list_unreminded_appointments(now):
            try:
                tenant = self._tenant_of(appointment, tenants)
            except NotFoundError:
                self._logger.exception(
                    "Cannot resolve tenant", extra={"appointment_id": appointment.id, "reason": "missing data"}
                )
                continue
            if appointment.booking_instant - now > timedelta(hours=tenant.reminder_hours):
                continue
            if self._remind(appointment, tenant):
                sent += 1
        if sent:
            self._logger.info("Reminders sent", extra={"reason": f"count={sent}"})
        return sent

    def _tenant_of(self, appointment: Appointment, cache: dict[int, Tenant]) -> Tenant:
        employee = self._repository.get_employee(appointment.employee_id)
        if employee.tenant_id not in cache:
            cache[employee.tenant_id] = self._repository.get_tenant(employee.tenant_id)
        return cache[employee.tenant_id]

    def _remind(self, appointment: Appointment, tenant: Tenant) -> bool:
        try:
            client = self._repository.get_client(appointment.client_id)
            service = self._repository.get_service(appointment.service_id)
        except NotFoundError:
            self._logger.exception(
                "Cannot build reminder", extra={"appointment_id": appointment.id, "reason": "missing data"}
            )
            return False

        zone = ZoneInfo(client.timezone or self._default_timezone)
        local = appointment.booking_instant.astimezone(zone)
        text = self._reply.text(
            client.chat_id, "ReminderMessage", service.name, tenant.name, format_day(local), format_hhmm(local), zone.key
        )
        if not self._reply.notify(client.chat_id, text):
            return False
        self._repository.mark_reminder_sent(appointment.id)
        self._logger.info("Reminder sent", extra={"appointment_id": appointment.id, "chat_id": client.chat_id})
        return True
