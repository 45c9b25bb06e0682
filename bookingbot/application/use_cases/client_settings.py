from __future__ import annotations

import logging
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from bookingbot.application.ports.booking_repository import BookingRepositoryPort
from bookingbot.application.ports.clock import ClockPort
from bookingbot.application.use_cases.send_reply import SendReplyUseCase
from bookingbot.application.utils import commands
from bookingbot.application.utils.callback_data import build_callback
from bookingbot.application.utils.date_parser import format_day, format_hhmm
from bookingbot.application.utils.keyboards import options_keyboard, with_back
from bookingbot.domain.entities.appointment import AppointmentStatus
from bookingbot.domain.entities.conversation_state import ConversationStep
from bookingbot.domain.entities.inbound_event import InboundEvent
from bookingbot.domain.exceptions import ValidationError


class ClientSettingsUseCase:
    def __init__(
        self,
        repository: BookingRepositoryPort,
        reply: SendReplyUseCase,
        clock: ClockPort,
        default_timezone: str,
        supported_timezones: list[str],
    ) -> None:
        self._repository = repository
        self._reply = reply
        self._clock = clock
        self._default_timezone = default_timezone
        self._supported_timezones = supported_timezones
        self._logger = logging.getLogger(__name__)

    def view_bookings(self, event: InboundEvent, data: str = "", step: ConversationStep | None = None) -> None:
        """Upcoming confirmed appointments, shown in the client's own zone."""
        chat_id = event.chat_id
        client = self._repository.get_or_create_client(chat_id, event.sender_name)
        appointments = self._repository.list_client_appointments(
            client.id, self._clock.now_utc(), AppointmentStatus.CONFIRMED
        )
        if not appointments:
            self._reply.reply(chat_id, "NoUpcomingBookings")
            return

        zone = ZoneInfo(client.timezone or self._default_timezone)
        lines = [self._reply.text(chat_id, "UpcomingBookings", zone.key)]
        for appointment in appointments:
            service = self._repository.get_service(appointment.service_id)
            local = appointment.booking_instant.astimezone(zone)
            lines.append(
                self._reply.text(chat_id, "BookingLine", format_day(local), format_hhmm(local), service.name)
            )
        self._reply.execute(chat_id, "\n".join(lines))

    def change_timezone(self, event: InboundEvent, data: str = "", step: ConversationStep | None = None) -> None:
        chat_id = event.chat_id
        client = self._repository.get_or_create_client(chat_id, event.sender_name)
        current = client.timezone or self._default_timezone
        options = [(tz, build_callback(commands.SET_TIMEZONE, tz)) for tz in self._supported_timezones]
        self._reply.show(
            chat_id,
            self._reply.text(chat_id, "ChooseTimezone", current),
            with_back(options_keyboard(options), self._reply.text(chat_id, "Back")),
            event.message_id,
        )

    def set_timezone(self, event: InboundEvent, data: str, step: ConversationStep | None = None) -> None:
        zone = data.strip()
        try:
            ZoneInfo(zone)
        except (ZoneInfoNotFoundError, ValueError) as e:
            self._logger.info("Unknown timezone", extra={"chat_id": event.chat_id, "reason": zone})
            raise ValidationError(f"Unknown timezone: {zone!r}") from e

        client = self._repository.get_or_create_client(event.chat_id, event.sender_name)
        self._repository.set_client_timezone(client.id, zone)
        self._reply.reply(event.chat_id, "TimezoneUpdated", zone)

    def change_language(self, event: InboundEvent, data: str = "", step: ConversationStep | None = None) -> None:
        chat_id = event.chat_id
        options = [
            (self._reply.translator.get(lang, "LanguageName"), build_callback(commands.SET_LANGUAGE, lang))
            for lang in self._reply.translator.languages()
        ]
        self._reply.show(
            chat_id,
            self._reply.text(chat_id, "ChooseLanguage"),
            with_back(options_keyboard(options), self._reply.text(chat_id, "Back")),
            event.message_id,
        )

    def set_language(self, event: InboundEvent, data: str, step: ConversationStep | None = None) -> None:
        language = data.strip().upper()
        if language not in self._reply.translator.languages():
            raise ValidationError(f"Unsupported language: {data!r}")
        self._repository.set_language(event.chat_id, language)
        self._logger.info("Language changed", extra={"chat_id": event.chat_id, "reason": language})
        self._reply.reply(event.chat_id, "LanguageUpdated")

    def join_tenant(self, event: InboundEvent, token: str) -> bool:
        """Follow an invite link. Returns False when the token names no tenant."""
        chat_id = event.chat_id
        tenant = self._repository.find_tenant_by_invite_token(token)
        if tenant is None:
            self._logger.info("Unknown invite token", extra={"chat_id": chat_id, "reason": token})
            self._reply.reply(chat_id, "InvalidInvite")
            return False
        self._repository.get_or_create_client(chat_id, event.sender_name)
        if self._repository.invite_client(chat_id, tenant.id):
            self._logger.info("Client joined tenant", extra={"chat_id": chat_id, "reason": f"tenant={tenant.id}"})
        self._reply.reply(chat_id, "JoinedTenant", tenant.name)
        return True
