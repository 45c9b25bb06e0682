from __future__ import annotations

import logging
from datetime import timedelta
from decimal import Decimal, InvalidOperation

from bookingbot.application.exceptions import AccessDeniedError, SessionExpiredError
from bookingbot.application.ports.booking_repository import BookingRepositoryPort
from bookingbot.application.ports.conversation_store import ConversationStorePort
from bookingbot.application.ports.message_platform import MessagePlatformPort
from bookingbot.application.use_cases.send_reply import SendReplyUseCase
from bookingbot.application.utils import commands
from bookingbot.application.utils.callback_data import build_callback, parse_int
from bookingbot.application.utils.keyboards import options_keyboard, with_back
from bookingbot.domain.entities.conversation_state import (
    AwaitingLocation,
    AwaitingServiceName,
    AwaitingServicePrice,
    ConversationStep,
    SelectingServiceCurrency,
    SelectingServiceDuration,
)
from bookingbot.domain.entities.inbound_event import InboundEvent
from bookingbot.domain.entities.tenant import Tenant
from bookingbot.domain.exceptions import ValidationError
from bookingbot.domain.intervals import MINUTES_PER_DAY, duration_minutes

MAX_SERVICE_NAME = 64
CENTS = Decimal("0.01")
INVITE_LINK = "https://t.me/{username}?start={token}"


class TenantProfileUseCase:
    """Owner-side flows: the service catalogue, the venue location and the client invite link."""

    def __init__(
        self,
        repository: BookingRepositoryPort,
        store: ConversationStorePort,
        reply: SendReplyUseCase,
        platform: MessagePlatformPort,
        supported_currencies: list[str],
        duration_options: list[int],
    ) -> None:
        self._repository = repository
        self._store = store
        self._reply = reply
        self._platform = platform
        self._supported_currencies = supported_currencies
        self._duration_options = duration_options
        self._logger = logging.getLogger(__name__)

    def _owner_tenant(self, chat_id: int) -> Tenant:
        tenant = self._repository.find_tenant_by_owner(chat_id)
        if tenant is None:
            raise AccessDeniedError(f"Chat {chat_id} owns no tenant")
        return tenant

    # Services

    def list_services(self, event: InboundEvent, data: str = "", step: ConversationStep | None = None) -> None:
        chat_id = event.chat_id
        tenant = self._owner_tenant(chat_id)
        services = self._repository.list_services(tenant.id)
        if services:
            lines = [self._reply.text(chat_id, "ServiceList", tenant.name)]
            lines += [
                "• "
                + self._reply.text(
                    chat_id, "ServiceOption", s.name, s.price_label, duration_minutes(s.duration)
                )
                for s in services
            ]
            text = "\n".join(lines)
        else:
            text = self._reply.text(chat_id, "NoServicesYet", tenant.name)
        rows = options_keyboard([(self._reply.text(chat_id, "AddService"), commands.ADD_SERVICE)])
        self._reply.show(chat_id, text, with_back(rows, self._reply.text(chat_id, "Back")), event.message_id)

    def add_service(self, event: InboundEvent, data: str = "", step: ConversationStep | None = None) -> None:
        self._owner_tenant(event.chat_id)
        self._store.set_step(event.chat_id, AwaitingServiceName())
        self._reply.reply(event.chat_id, "EnterServiceName", MAX_SERVICE_NAME)

    def on_service_name_text(self, event: InboundEvent, step: AwaitingServiceName) -> None:
        chat_id = event.chat_id
        name = " ".join((event.payload or "").split())
        if not name or len(name) > MAX_SERVICE_NAME:
            self._reply.reply(chat_id, "InvalidServiceName", MAX_SERVICE_NAME)
            return
        self._owner_tenant(chat_id)
        self._store.set_step(chat_id, SelectingServiceCurrency(name=name))
        options = [(c, build_callback(commands.SERVICE_CURRENCY, c)) for c in self._supported_currencies]
        self._reply.show(
            chat_id,
            self._reply.text(chat_id, "ChooseCurrency", name),
            options_keyboard(options, columns=3),
        )

    def choose_currency(self, event: InboundEvent, data: str, step: ConversationStep | None = None) -> None:
        if not isinstance(step, SelectingServiceCurrency):
            raise SessionExpiredError(f"No service name in {step.step_name}")
        currency = data.strip().upper()
        if currency not in self._supported_currencies:
            raise ValidationError(f"Unsupported currency: {data!r}")
        self._owner_tenant(event.chat_id)
        self._store.set_step(event.chat_id, AwaitingServicePrice(currency=currency, name=step.name))
        self._reply.reply(event.chat_id, "EnterServicePrice", currency)

    def on_service_price_text(self, event: InboundEvent, step: AwaitingServicePrice) -> None:
        chat_id = event.chat_id
        price = parse_price(event.payload)
        if price is None:
            self._reply.reply(chat_id, "InvalidPrice")
            return
        self._owner_tenant(chat_id)
        self._store.set_step(
            chat_id,
            SelectingServiceDuration(price_cents=int(price * 100), currency=step.currency, name=step.name),
        )
        options = [
            (self._reply.text(chat_id, "DurationOption", m), build_callback(commands.SERVICE_DURATION, m))
            for m in self._duration_options
        ]
        self._reply.show(chat_id, self._reply.text(chat_id, "ChooseDuration"), options_keyboard(options, columns=3))

    def choose_duration(self, event: InboundEvent, data: str, step: ConversationStep | None = None) -> None:
        if not isinstance(step, SelectingServiceDuration):
            raise SessionExpiredError(f"No service price in {step.step_name}")
        minutes = parse_int(data)
        if minutes not in self._duration_options:
            raise ValidationError(f"Unsupported duration: {minutes}")
        self._save_service(event, step, minutes)

    def on_service_duration_text(self, event: InboundEvent, step: SelectingServiceDuration) -> None:
        text = (event.payload or "").strip()
        minutes = int(text) if text.isdecimal() else 0
        if not 0 < minutes < MINUTES_PER_DAY:
            self._reply.reply(event.chat_id, "InvalidDuration")
            return
        self._save_service(event, step, minutes)

    def _save_service(self, event: InboundEvent, step: SelectingServiceDuration, minutes: int) -> None:
        chat_id = event.chat_id
        tenant = self._owner_tenant(chat_id)
        employee = self._repository.get_employee_for_tenant(tenant.id)
        service = self._repository.create_service(
            employee.id,
            step.name,
            timedelta(minutes=minutes),
            Decimal(step.price_cents) / 100,
            step.currency,
        )
        self._store.clear(chat_id)
        self._logger.info(
            "Service added", extra={"chat_id": chat_id, "reason": f"tenant={tenant.id} service={service.id}"}
        )
        self._reply.reply(chat_id, "ServiceAdded", service.name, service.price_label, minutes)

    # Location

    def add_location(self, event: InboundEvent, data: str = "", step: ConversationStep | None = None) -> None:
        self._owner_tenant(event.chat_id)
        self._store.set_step(event.chat_id, AwaitingLocation())
        self._reply.reply(event.chat_id, "SendLocation")

    def on_location(self, event: InboundEvent, step: AwaitingLocation) -> None:
        chat_id = event.chat_id
        point = event.location or parse_coordinates(event.payload)
        if point is None:
            self._reply.reply(chat_id, "InvalidLocation")
            return
        tenant = self._owner_tenant(chat_id)
        latitude, longitude = point
        self._repository.set_tenant_location(tenant.id, latitude, longitude)
        self._store.clear(chat_id)
        self._logger.info(
            "Location saved", extra={"chat_id": chat_id, "reason": f"tenant={tenant.id} {latitude},{longitude}"}
        )
        self._reply.reply(chat_id, "LocationSaved", tenant.name)

    # Invite link

    def get_client_link(self, event: InboundEvent, data: str = "", step: ConversationStep | None = None) -> None:
        chat_id = event.chat_id
        tenant = self._owner_tenant(chat_id)
        token = self._repository.ensure_invite_token(tenant.id)
        link = INVITE_LINK.format(username=self._platform.get_bot_username(), token=token)
        self._reply.reply(chat_id, "ClientLink", tenant.name, link)


def parse_price(text: str | None) -> Decimal | None:
    """Non-negative amount with at most two decimals; a decimal comma is accepted."""
    try:
        price = Decimal((text or "").strip().replace(",", "."))
        if not price.is_finite() or price < 0 or price != price.quantize(CENTS):
            return None
    except InvalidOperation:
        return None
    return price


def parse_coordinates(text: str | None) -> tuple[float, float] | None:
    parts = (text or "").replace(";", ",").split(",")
    if len(parts) != 2:
        return None
    try:
        latitude, longitude = (float(p) for p in parts)
    except ValueError:
        return None
    if not (-90 <= latitude <= 90 and -180 <= longitude <= 180):
        return None
    return latitude, longitude
