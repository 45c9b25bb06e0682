from __future__ import annotations

import logging
from zoneinfo import ZoneInfo

from bookingbot.application.exceptions import AccessDeniedError
from bookingbot.application.ports.booking_repository import BookingRepositoryPort
from bookingbot.application.use_cases.send_reply import SendReplyUseCase
from bookingbot.application.utils.date_parser import format_day, format_hhmm
from bookingbot.domain.entities.appointment import Appointment
from bookingbot.domain.entities.tenant import Tenant
from bookingbot.domain.exceptions import NotFoundError


class AppointmentLifecycleUseCase:
    """
    Pending -> Confirmed / Rejected.

    The status change is the authoritative part: it is validated on the
    entity, persisted with a compare-and-swap on the expected status, and
    only then are notifications attempted. A failed notification is logged
    and never undoes the transition.
    """

    def __init__(
        self,
        repository: BookingRepositoryPort,
        reply: SendReplyUseCase,
        default_timezone: str,
    ) -> None:
        self._repository = repository
        self._reply = reply
        self._default_timezone = default_timezone
        self._logger = logging.getLogger(__name__)

    def confirm(self, appointment_id: int, actor_chat_id: int) -> Appointment:
        appointment, tenant = self._load(appointment_id, actor_chat_id)
        target = appointment.confirm()
        updated = self._repository.update_status(appointment.id, appointment.status, target.status)
        self._logger.info(
            "Appointment confirmed", extra={"appointment_id": updated.id, "chat_id": actor_chat_id}
        )

        client_chat = self._notify_client(updated, "YourBookingConfirmed")
        if client_chat is not None and tenant.has_location:
            self._reply.notify_location(client_chat, tenant.latitude, tenant.longitude)
        self._reply.notify(actor_chat_id, self._reply.text(actor_chat_id, "BookingConfirmedAck", updated.id))
        return updated

    def reject(self, appointment_id: int, actor_chat_id: int) -> Appointment:
        appointment, _ = self._load(appointment_id, actor_chat_id)
        target = appointment.reject()
        updated = self._repository.update_status(appointment.id, appointment.status, target.status)
        self._logger.info(
            "Appointment rejected", extra={"appointment_id": updated.id, "chat_id": actor_chat_id}
        )

        self._notify_client(updated, "YourBookingRejected")
        self._reply.notify(actor_chat_id, self._reply.text(actor_chat_id, "BookingRejectedAck", updated.id))
        return updated

    def _load(self, appointment_id: int, actor_chat_id: int) -> tuple[Appointment, Tenant]:
        appointment = self._repository.get_appointment(appointment_id)
        employee = self._repository.get_employee(appointment.employee_id)
        tenant = self._repository.get_tenant(employee.tenant_id)
        if tenant.owner_chat_id != actor_chat_id:
            raise AccessDeniedError(f"Chat {actor_chat_id} does not own appointment {appointment_id}")
        return appointment, tenant

    def _notify_client(self, appointment: Appointment, key: str) -> int | None:
        """Tell the client about the new status in their own zone. Returns the client's chat id."""
        try:
            client = self._repository.get_client(appointment.client_id)
            service = self._repository.get_service(appointment.service_id)
        except NotFoundError:
            self._logger.exception(
                "Cannot notify client", extra={"appointment_id": appointment.id, "reason": "missing data"}
            )
            return None

        zone = ZoneInfo(client.timezone or self._default_timezone)
        local = appointment.booking_instant.astimezone(zone)
        text = self._reply.text(client.chat_id, key, service.name, format_day(local), format_hhmm(local), zone.key)
        self._reply.notify(client.chat_id, text)
        return client.chat_id

