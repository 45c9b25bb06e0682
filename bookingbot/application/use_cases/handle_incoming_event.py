from __future__ import annotations

import logging
from typing import Callable

from bookingbot.application.exceptions import AccessDeniedError, SessionExpiredError, StateDecodeError
from bookingbot.application.ports.conversation_store import ConversationStorePort
from bookingbot.application.use_cases.appointment_lifecycle import AppointmentLifecycleUseCase
from bookingbot.application.use_cases.client_booking import ClientBookingUseCase
from bookingbot.application.use_cases.client_settings import ClientSettingsUseCase
from bookingbot.application.use_cases.send_reply import SendReplyUseCase
from bookingbot.application.use_cases.tenant_profile import TenantProfileUseCase
from bookingbot.application.use_cases.work_schedule import WorkScheduleUseCase
from bookingbot.application.utils import commands
from bookingbot.application.utils.callback_data import parse_int, split_command_data
from bookingbot.application.utils.keyboards import options_keyboard
from bookingbot.application.utils.session_locks import SessionLocks
from bookingbot.domain.entities.button import IGNORE
from bookingbot.domain.entities.conversation_state import (
    AwaitingBreakEnd,
    AwaitingBreakStart,
    AwaitingLocation,
    AwaitingServiceName,
    AwaitingServicePrice,
    AwaitingWorkEnd,
    AwaitingWorkStart,
    ConversationStep,
    Idle,
    SelectingServiceDuration,
)
from bookingbot.domain.entities.inbound_event import EventKind, InboundEvent
from bookingbot.domain.exceptions import ConflictError, InvalidTransitionError, NotFoundError, ValidationError

START_COMMANDS = {"/start", "/menu"}
START_PREFIXES = ("/start ", "/start=")
CANCEL_COMMAND = "/cancel"

CallbackHandler = Callable[[InboundEvent, str, ConversationStep], None]
TextHandler = Callable[[InboundEvent, ConversationStep], None]


class HandleIncomingEventUseCase:
    """
    Entry point for every inbound event.

    Events of one chat are handled one at a time. Text messages are routed by
    the step name of the stored conversation state, button presses by the
    command part of their callback data. Every handler resolves fully: errors
    become a localized message and never escape to the caller.
    """

    def __init__(
        self,
        store: ConversationStorePort,
        reply: SendReplyUseCase,
        client_booking: ClientBookingUseCase,
        work_schedule: WorkScheduleUseCase,
        client_settings: ClientSettingsUseCase,
        lifecycle: AppointmentLifecycleUseCase,
        tenant_profile: TenantProfileUseCase,
        locks: SessionLocks | None = None,
    ) -> None:
        self._store = store
        self._reply = reply
        self._client_booking = client_booking
        self._work_schedule = work_schedule
        self._client_settings = client_settings
        self._lifecycle = lifecycle
        self._tenant_profile = tenant_profile
        self._locks = locks or SessionLocks()
        self._logger = logging.getLogger(__name__)

        self._text_handlers: dict[str, TextHandler] = {
            AwaitingWorkStart.step_name: work_schedule.on_work_start_text,
            AwaitingWorkEnd.step_name: work_schedule.on_work_end_text,
            AwaitingBreakStart.step_name: work_schedule.on_break_start_text,
            AwaitingBreakEnd.step_name: work_schedule.on_break_end_text,
            AwaitingServiceName.step_name: tenant_profile.on_service_name_text,
            AwaitingServicePrice.step_name: tenant_profile.on_service_price_text,
            SelectingServiceDuration.step_name: tenant_profile.on_service_duration_text,
            AwaitingLocation.step_name: tenant_profile.on_location,
        }
        self._callback_handlers: dict[str, CallbackHandler] = {
            commands.BOOK_APPOINTMENT: lambda event, data, step: client_booking.start(event),
            commands.CHOOSE_TENANT: client_booking.choose_tenant,
            commands.CHOOSE_SERVICE: client_booking.choose_service,
            commands.CHOOSE_THIS_MONTH: client_booking.choose_this_month,
            commands.CHOOSE_PREV_MONTH: client_booking.choose_prev_month,
            commands.CHOOSE_NEXT_MONTH: client_booking.choose_next_month,
            commands.CHOOSE_DATE: client_booking.choose_date,
            commands.CHOOSE_TIME: client_booking.choose_time,
            commands.BACK_TO_CALENDAR: client_booking.back_to_calendar,
            commands.BACK_TO_SERVICES: client_booking.back_to_services,
            commands.VIEW_BOOKINGS: client_settings.view_bookings,
            commands.CHANGE_TIMEZONE: client_settings.change_timezone,
            commands.SET_TIMEZONE: client_settings.set_timezone,
            commands.CHANGE_LANGUAGE: client_settings.change_language,
            commands.SET_LANGUAGE: client_settings.set_language,
            commands.SETUP_WORK_DAYS: work_schedule.setup_work_days,
            commands.TOGGLE_WORK_DAY: work_schedule.toggle_work_day,
            commands.CHANGE_WORK_TIME: work_schedule.change_work_time,
            commands.SELECT_WORK_TIME_DAY: work_schedule.select_work_time_day,
            commands.CHANGE_WORK_TIMEZONE: work_schedule.change_work_timezone,
            commands.SET_WORK_TIMEZONE: work_schedule.set_work_timezone,
            commands.MANAGE_BREAKS: work_schedule.manage_breaks,
            commands.SELECT_BREAK_DAY: work_schedule.select_break_day,
            commands.ADD_BREAK: work_schedule.add_break,
            commands.REMOVE_BREAK: work_schedule.remove_break,
            commands.REMOVE_BREAK_CONFIRM: work_schedule.confirm_remove_break,
            commands.LIST_SERVICES: tenant_profile.list_services,
            commands.ADD_SERVICE: tenant_profile.add_service,
            commands.SERVICE_CURRENCY: tenant_profile.choose_currency,
            commands.SERVICE_DURATION: tenant_profile.choose_duration,
            commands.ADD_LOCATION: tenant_profile.add_location,
            commands.GET_CLIENT_LINK: tenant_profile.get_client_link,
            commands.CONFIRM_BOOKING: self._confirm_from_button,
            commands.REJECT_BOOKING: self._reject_from_button,
        }

    # Entry points

    def on_message(self, chat_id: int, text: str, sender_name: str | None = None) -> None:
        self.handle(InboundEvent(kind=EventKind.MESSAGE, chat_id=chat_id, payload=text, sender_name=sender_name))

    def on_callback(
        self, chat_id: int, payload: str, message_id: int | None = None, sender_name: str | None = None
    ) -> None:
        self.handle(
            InboundEvent(
                kind=EventKind.CALLBACK,
                chat_id=chat_id,
                payload=payload,
                sender_name=sender_name,
                message_id=message_id,
            )
        )

    def confirm_appointment(self, appointment_id: int, actor_chat_id: int) -> None:
        with self._locks.hold(actor_chat_id):
            self._guard(actor_chat_id, lambda: self._transition(self._lifecycle.confirm, appointment_id, actor_chat_id))

    def reject_appointment(self, appointment_id: int, actor_chat_id: int) -> None:
        with self._locks.hold(actor_chat_id):
            self._guard(actor_chat_id, lambda: self._transition(self._lifecycle.reject, appointment_id, actor_chat_id))

    def handle(self, event: InboundEvent) -> None:
        with self._locks.hold(event.chat_id):
            if event.kind is EventKind.CALLBACK:
                self._guard(event.chat_id, lambda: self._handle_callback(event))
            else:
                self._guard(event.chat_id, lambda: self._handle_message(event))

    # Routing

    def _handle_message(self, event: InboundEvent) -> None:
        chat_id = event.chat_id
        text = (event.payload or "").strip()
        if text in START_COMMANDS:
            self._store.clear(chat_id)
            self._main_menu(event)
            return
        if text.startswith(START_PREFIXES):
            self._store.clear(chat_id)
            if self._client_settings.join_tenant(event, text[len("/start") + 1 :].strip()):
                self._main_menu(event)
            return
        if text == CANCEL_COMMAND:
            self._cancel(event)
            return

        step = self._store.get_step(chat_id)
        handler = self._text_handlers.get(step.step_name)
        if handler is not None:
            self._logger.info("Text input", extra={"chat_id": chat_id, "step": step.step_name})
            handler(event, step)
        elif isinstance(step, Idle):
            self._main_menu(event)
        else:
            self._reply.reply(chat_id, "UseButtons")

    def _handle_callback(self, event: InboundEvent) -> None:
        chat_id = event.chat_id
        command, data = split_command_data(event.payload)
        if command == IGNORE:
            return
        if command == commands.CANCEL:
            self._cancel(event)
            return
        if command == commands.MAIN_MENU:
            self._store.clear(chat_id)
            self._main_menu(event)
            return

        handler = self._callback_handlers.get(command)
        if handler is None:
            self._logger.warning("Unknown callback command", extra={"chat_id": chat_id, "command": command})
            raise ValidationError(f"Unknown command: {command!r}")

        step = self._store.get_step(chat_id)
        self._logger.info("Callback", extra={"chat_id": chat_id, "command": command, "step": step.step_name})
        handler(event, data, step)

    def _guard(self, chat_id: int, action: Callable[[], None]) -> None:
        try:
            action()
        except (SessionExpiredError, StateDecodeError, NotFoundError) as e:
            self._logger.info("Session expired", extra={"chat_id": chat_id, "reason": str(e)})
            self._store.clear(chat_id)
            self._notify(chat_id, "SessionExpired")
        except ValidationError as e:
            self._logger.info("Invalid input", extra={"chat_id": chat_id, "reason": str(e)})
            self._notify(chat_id, "InvalidInput")
        except AccessDeniedError as e:
            self._logger.warning("Access denied", extra={"chat_id": chat_id, "reason": str(e)})
            self._notify(chat_id, "AccessDenied")
        except InvalidTransitionError as e:
            self._logger.info("Invalid transition", extra={"chat_id": chat_id, "appointment_id": e.appointment_id})
            self._notify(chat_id, "AppointmentAlreadyProcessed", e.appointment_id, e.current)
        except ConflictError as e:
            self._logger.info("Conflict", extra={"chat_id": chat_id, "reason": str(e)})
            self._notify(chat_id, "Conflict")
        except Exception as e:
            self._logger.exception("Event handling failed", extra={"chat_id": chat_id, "reason": str(e)})
            self._notify(chat_id, "GenericError")

    def _notify(self, chat_id: int, key: str, *args: object) -> None:
        try:
            text = self._reply.text(chat_id, key, *args)
        except Exception:
            self._logger.exception("Cannot build error message", extra={"chat_id": chat_id, "reason": key})
            return
        self._reply.notify(chat_id, text)

    # Shared steps

    def _main_menu(self, event: InboundEvent) -> None:
        chat_id = event.chat_id
        text = self._reply.text
        options = [
            (text(chat_id, "MenuBook"), commands.BOOK_APPOINTMENT),
            (text(chat_id, "MenuMyBookings"), commands.VIEW_BOOKINGS),
            (text(chat_id, "MenuTimezone"), commands.CHANGE_TIMEZONE),
            (text(chat_id, "MenuLanguage"), commands.CHANGE_LANGUAGE),
        ]
        if self._work_schedule.is_owner(chat_id):
            options += [
                (text(chat_id, "MenuWorkDays"), commands.SETUP_WORK_DAYS),
                (text(chat_id, "MenuWorkTime"), commands.CHANGE_WORK_TIME),
                (text(chat_id, "MenuWorkTimezone"), commands.CHANGE_WORK_TIMEZONE),
                (text(chat_id, "MenuBreaks"), commands.MANAGE_BREAKS),
                (text(chat_id, "MenuServices"), commands.LIST_SERVICES),
                (text(chat_id, "MenuLocation"), commands.ADD_LOCATION),
                (text(chat_id, "MenuClientLink"), commands.GET_CLIENT_LINK),
            ]
        greeting = text(chat_id, "MainMenu", event.sender_name or "")
        self._reply.show(chat_id, greeting, options_keyboard(options, columns=2), event.message_id)

    def _cancel(self, event: InboundEvent) -> None:
        self._store.clear(event.chat_id)
        self._logger.info("Conversation cancelled", extra={"chat_id": event.chat_id})
        self._reply.reply(event.chat_id, "Cancelled")

    def _confirm_from_button(self, event: InboundEvent, data: str, step: ConversationStep) -> None:
        self._transition(self._lifecycle.confirm, parse_int(data), event.chat_id)

    def _reject_from_button(self, event: InboundEvent, data: str, step: ConversationStep) -> None:
        self._transition(self._lifecycle.reject, parse_int(data), event.chat_id)

    def _transition(self, transition: Callable[[int, int], object], appointment_id: int, actor_chat_id: int) -> None:
        try:
            transition(appointment_id, actor_chat_id)
        except NotFoundError as e:
            self._logger.info(
                "Appointment not found", extra={"appointment_id": appointment_id, "reason": str(e)}
            )
            self._reply.reply(actor_chat_id, "AppointmentNotFound", appointment_id)
