from __future__ import annotations

import logging
from datetime import date, datetime, time, timedelta, timezone
from zoneinfo import ZoneInfo

from bookingbot.application.exceptions import SessionExpiredError
from bookingbot.application.ports.booking_repository import BookingRepositoryPort
from bookingbot.application.ports.clock import ClockPort
from bookingbot.application.ports.conversation_store import ConversationStorePort
from bookingbot.application.use_cases.send_reply import SendReplyUseCase
from bookingbot.application.utils import commands
from bookingbot.application.utils.availability import compute_slots, is_slot_available
from bookingbot.application.utils.calendar_view import add_months, build_month, is_month_bookable, local_today
from bookingbot.application.utils.callback_data import build_callback, parse_int
from bookingbot.application.utils.date_parser import format_day, format_hhmm, format_month, parse_iso_date
from bookingbot.application.utils.keyboards import month_keyboard, options_keyboard, time_slots_keyboard, with_back
from bookingbot.domain.entities.appointment import Appointment, BookedSpan
from bookingbot.domain.entities.button import Button
from bookingbot.domain.entities.conversation_state import (
    ConversationStep,
    SelectingDate,
    SelectingService,
    SelectingTenant,
    SelectingTime,
)
from bookingbot.domain.entities.inbound_event import InboundEvent
from bookingbot.domain.entities.schedule import WeeklySchedule, WorkInterval
from bookingbot.domain.entities.service import Service
from bookingbot.domain.exceptions import SlotUnavailableError, ValidationError
from bookingbot.domain.intervals import MINUTES_PER_DAY, duration_minutes, from_minutes, local_day_bounds_utc, local_to_utc


class ClientBookingUseCase:
    """Tenant -> service -> date -> time, ending in a pending appointment."""

    def __init__(
        self,
        repository: BookingRepositoryPort,
        store: ConversationStorePort,
        reply: SendReplyUseCase,
        clock: ClockPort,
        granularity: timedelta,
        default_timezone: str,
    ) -> None:
        self._repository = repository
        self._store = store
        self._reply = reply
        self._clock = clock
        self._granularity = granularity
        self._default_timezone = default_timezone
        self._logger = logging.getLogger(__name__)

    # Tenant

    def start(self, event: InboundEvent) -> None:
        chat_id = event.chat_id
        tenants = self._repository.list_tenants_for_client(chat_id)
        if not tenants:
            self._reply.reply(chat_id, "NoTenantsAvailable")
            return

        self._store.set_step(chat_id, SelectingTenant())
        rows = options_keyboard([(t.name, build_callback(commands.CHOOSE_TENANT, t.id)) for t in tenants])
        self._reply.show(
            chat_id,
            self._reply.text(chat_id, "ChooseTenant"),
            with_back(rows, self._reply.text(chat_id, "Back")),
            event.message_id,
        )
        self._logger.info("Tenant selection shown", extra={"chat_id": chat_id, "step": SelectingTenant.step_name})

    def choose_tenant(self, event: InboundEvent, data: str, step: ConversationStep) -> None:
        _expect(step, SelectingTenant, SelectingService)
        tenant_id = parse_int(data)
        if all(t.id != tenant_id for t in self._repository.list_tenants_for_client(event.chat_id)):
            raise SessionExpiredError(f"Tenant {tenant_id} is not available to chat {event.chat_id}")
        self._show_services(event, tenant_id)

    def back_to_services(self, event: InboundEvent, data: str, step: ConversationStep) -> None:
        if not isinstance(step, (SelectingDate, SelectingTime)):
            raise SessionExpiredError(f"No service chosen in {step.step_name}")
        service = self._repository.get_service(step.service_id)
        employee = self._repository.get_employee(service.employee_id)
        self._show_services(event, employee.tenant_id)

    def _show_services(self, event: InboundEvent, tenant_id: int) -> None:
        chat_id = event.chat_id
        tenant = self._repository.get_tenant(tenant_id)
        services = self._repository.list_services(tenant.id)
        if not services:
            self._reply.reply(chat_id, "NoServicesAvailable", tenant.name)
            return

        self._store.set_step(chat_id, SelectingService(tenant_id=tenant.id))
        options = [(self._service_label(chat_id, s), build_callback(commands.CHOOSE_SERVICE, s.id)) for s in services]
        self._reply.show(
            chat_id,
            self._reply.text(chat_id, "ChooseService", tenant.name),
            with_back(options_keyboard(options), self._reply.text(chat_id, "Back"), commands.BOOK_APPOINTMENT),
            event.message_id,
        )

    def _service_label(self, chat_id: int, service: Service) -> str:
        return self._reply.text(
            chat_id, "ServiceOption", service.name, service.price_label, duration_minutes(service.duration)
        )

    # Date

    def choose_service(self, event: InboundEvent, data: str, step: ConversationStep) -> None:
        _expect(step, SelectingService)
        service = self._repository.get_service(parse_int(data))
        employee = self._repository.get_employee(service.employee_id)
        if employee.tenant_id != step.tenant_id:
            raise SessionExpiredError(f"Service {service.id} does not belong to tenant {step.tenant_id}")

        self._store.set_step(event.chat_id, SelectingDate(service_id=service.id))
        self._logger.info(
            "Service chosen",
            extra={"chat_id": event.chat_id, "step": SelectingDate.step_name, "reason": f"service={service.id}"},
        )
        self._show_calendar(event, service, month=None)

    def choose_this_month(self, event: InboundEvent, data: str, step: ConversationStep) -> None:
        self._navigate(event, data, step, 0)

    def choose_prev_month(self, event: InboundEvent, data: str, step: ConversationStep) -> None:
        self._navigate(event, data, step, -1)

    def choose_next_month(self, event: InboundEvent, data: str, step: ConversationStep) -> None:
        self._navigate(event, data, step, 1)

    def _navigate(self, event: InboundEvent, data: str, step: ConversationStep, offset: int) -> None:
        _expect(step, SelectingDate)
        month = parse_iso_date(data)
        if month is None:
            raise ValidationError(f"Malformed month: {data!r}")
        service = self._repository.get_service(step.service_id)
        self._show_calendar(event, service, month=add_months(month, offset))

    def back_to_calendar(self, event: InboundEvent, data: str, step: ConversationStep) -> None:
        if not isinstance(step, (SelectingDate, SelectingTime)):
            raise SessionExpiredError(f"No calendar to return to from {step.step_name}")
        service = self._repository.get_service(step.service_id)
        self._store.set_step(event.chat_id, SelectingDate(service_id=service.id))
        month = step.day.replace(day=1) if isinstance(step, SelectingTime) else None
        self._show_calendar(event, service, month)

    def _show_calendar(self, event: InboundEvent, service: Service, month: date | None) -> None:
        chat_id = event.chat_id
        schedule = self._repository.get_schedule(service.employee_id)
        now = self._clock.now_utc()
        zone = self._schedule_zone(schedule)
        if month is None:
            month = local_today(now, zone).replace(day=1)

        view = build_month(
            schedule,
            self._month_bookings(service.employee_id, month),
            month,
            now,
            service.duration,
            self._granularity,
            reference_timezone=zone,
        )
        if view.out_of_range:
            self._logger.info("Month out of range", extra={"chat_id": chat_id, "reason": month.isoformat()})
            self._reply.reply(chat_id, "MonthOutOfRange")
            return

        language = self._reply.language_of(chat_id)
        text = self._reply.text(chat_id, "ChooseDate", service.name, format_month(view.month))
        self._reply.show(chat_id, text, month_keyboard(view, self._reply.translator, language), event.message_id)

    def _month_bookings(self, employee_id: int, month: date) -> list[BookedSpan]:
        # One day of margin on both sides covers any zone offset.
        start = datetime.combine(month - timedelta(days=1), time.min, tzinfo=timezone.utc)
        end = datetime.combine(add_months(month, 1) + timedelta(days=1), time.min, tzinfo=timezone.utc)
        return self._repository.list_blocking_spans(employee_id, start, end)

    def choose_date(self, event: InboundEvent, data: str, step: ConversationStep) -> None:
        _expect(step, SelectingDate)
        day = parse_iso_date(data)
        if day is None:
            raise ValidationError(f"Malformed date: {data!r}")
        service = self._repository.get_service(step.service_id)
        schedule = self._repository.get_schedule(service.employee_id)
        if not is_month_bookable(day, local_today(self._clock.now_utc(), self._schedule_zone(schedule))):
            self._reply.reply(event.chat_id, "MonthOutOfRange")
            return
        work_interval = schedule.for_day(day.weekday())
        if work_interval is None:
            self._reply.reply(event.chat_id, "NotWorkingOnDay", format_day(day))
            return
        self._offer_times(event, service, work_interval, day, empty_key="NoAvailableTimes")

    def _offer_times(
        self, event: InboundEvent, service: Service, work_interval: WorkInterval, day: date, empty_key: str
    ) -> bool:
        chat_id = event.chat_id
        slots = compute_slots(
            work_interval,
            day,
            self._day_bookings(service.employee_id, work_interval, day),
            service.duration,
            self._granularity,
            self._clock.now_utc(),
        )
        if not slots:
            self._reply.reply(chat_id, empty_key, format_day(day))
            return False

        self._store.set_step(
            chat_id, SelectingTime(service_id=service.id, day=day, timezone=work_interval.timezone)
        )
        self._logger.info(
            "Time slots offered",
            extra={"chat_id": chat_id, "step": SelectingTime.step_name, "reason": f"{day} slots={len(slots)}"},
        )
        text = self._reply.text(chat_id, "ChooseTime", service.name, format_day(day), work_interval.timezone)
        keyboard = time_slots_keyboard(slots, self._reply.translator, self._reply.language_of(chat_id))
        self._reply.show(chat_id, text, keyboard, event.message_id)
        return True

    def _day_bookings(self, employee_id: int, work_interval: WorkInterval, day: date) -> list[BookedSpan]:
        start, end = local_day_bounds_utc(day, ZoneInfo(work_interval.timezone))
        return self._repository.list_blocking_spans(employee_id, start, end)

    # Time

    def choose_time(self, event: InboundEvent, data: str, step: ConversationStep) -> None:
        _expect(step, SelectingTime)
        minutes = parse_int(data)
        if not 0 <= minutes < MINUTES_PER_DAY:
            raise ValidationError(f"Minutes out of range: {minutes}")

        chat_id = event.chat_id
        service = self._repository.get_service(step.service_id)
        work_interval = self._repository.get_schedule(service.employee_id).for_day(step.day.weekday())
        if work_interval is None or work_interval.timezone != step.timezone:
            self._slot_conflict(event, service, work_interval, step.day)
            return

        start = from_minutes(minutes)
        available = is_slot_available(
            work_interval,
            step.day,
            start,
            self._day_bookings(service.employee_id, work_interval, step.day),
            service.duration,
            self._granularity,
            self._clock.now_utc(),
        )
        if not available:
            self._slot_conflict(event, service, work_interval, step.day)
            return

        instant = local_to_utc(step.day, minutes, ZoneInfo(step.timezone))
        client = self._repository.get_or_create_client(chat_id, event.sender_name)
        try:
            appointment = self._repository.create_appointment(service, client.id, instant)
        except SlotUnavailableError:
            self._slot_conflict(event, service, work_interval, step.day)
            return

        self._store.clear(chat_id)
        self._logger.info(
            "Appointment created",
            extra={"chat_id": chat_id, "appointment_id": appointment.id, "reason": instant.isoformat()},
        )
        self._reply.remove(chat_id, event.message_id)

        client_zone = ZoneInfo(client.timezone or self._default_timezone)
        local = instant.astimezone(client_zone)
        text = self._reply.text(
            chat_id, "BookingCreated", service.name, format_day(local), format_hhmm(local), client_zone.key
        )
        self._reply.notify(chat_id, text)
        self._notify_owner(appointment, service, client.name, work_interval)

    def _slot_conflict(
        self, event: InboundEvent, service: Service, work_interval: WorkInterval | None, day: date
    ) -> None:
        chat_id = event.chat_id
        self._logger.info("Selected time no longer available", extra={"chat_id": chat_id, "reason": str(day)})
        self._reply.reply(chat_id, "SlotNoLongerAvailable")
        if work_interval is not None and self._offer_times(
            event, service, work_interval, day, empty_key="NoAvailableTimes"
        ):
            return
        self._store.set_step(chat_id, SelectingDate(service_id=service.id))
        self._show_calendar(event, service, day.replace(day=1))

    def _notify_owner(
        self, appointment: Appointment, service: Service, client_name: str, work_interval: WorkInterval
    ) -> None:
        employee = self._repository.get_employee(appointment.employee_id)
        tenant = self._repository.get_tenant(employee.tenant_id)
        if tenant.owner_chat_id is None:
            return
        owner = tenant.owner_chat_id
        local = appointment.booking_instant.astimezone(ZoneInfo(work_interval.timezone))
        buttons = [
            [
                Button(self._reply.text(owner, "Confirm"), build_callback(commands.CONFIRM_BOOKING, appointment.id)),
                Button(self._reply.text(owner, "Reject"), build_callback(commands.REJECT_BOOKING, appointment.id)),
            ]
        ]
        text = self._reply.text(
            owner, "NewBookingRequest", client_name, service.name, format_day(local), format_hhmm(local)
        )
        self._reply.notify(owner, text, buttons)

    def _schedule_zone(self, schedule: WeeklySchedule) -> str:
        days = schedule.working_days()
        if days:
            return schedule.intervals[days[0]].timezone
        return self._default_timezone


def _expect(step: ConversationStep, *step_types: type) -> None:
    if not isinstance(step, step_types):
        raise SessionExpiredError(f"Unexpected action in step {step.step_name}")
