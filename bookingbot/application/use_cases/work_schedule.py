from __future__ import annotations

import logging
from datetime import time
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from bookingbot.application.exceptions import AccessDeniedError
from bookingbot.application.ports.booking_repository import BookingRepositoryPort
from bookingbot.application.ports.conversation_store import ConversationStorePort
from bookingbot.application.use_cases.send_reply import SendReplyUseCase
from bookingbot.application.utils import commands
from bookingbot.application.utils.callback_data import build_callback, parse_int, parse_int_params
from bookingbot.application.utils.date_parser import format_hhmm, parse_hhmm
from bookingbot.application.utils.keyboards import options_keyboard, with_back
from bookingbot.domain.entities.button import Button
from bookingbot.domain.entities.conversation_state import (
    AwaitingBreakEnd,
    AwaitingBreakStart,
    AwaitingWorkEnd,
    AwaitingWorkStart,
    ConversationStep,
)
from bookingbot.domain.entities.inbound_event import InboundEvent
from bookingbot.domain.entities.schedule import WeeklySchedule, WorkInterval
from bookingbot.domain.entities.tenant import Employee
from bookingbot.domain.exceptions import BreakOverlapError, InvalidIntervalError, NotFoundError, ValidationError

WORKING_MARK = "✅"
DAY_OFF_MARK = "❌"


class WorkScheduleUseCase:
    """Owner-side flows: work days, work hours, work-time zone and breaks."""

    def __init__(
        self,
        repository: BookingRepositoryPort,
        store: ConversationStorePort,
        reply: SendReplyUseCase,
        default_timezone: str,
        supported_timezones: list[str],
        default_start: time,
        default_end: time,
    ) -> None:
        self._repository = repository
        self._store = store
        self._reply = reply
        self._default_timezone = default_timezone
        self._supported_timezones = supported_timezones
        self._default_start = default_start
        self._default_end = default_end
        self._logger = logging.getLogger(__name__)

    def is_owner(self, chat_id: int) -> bool:
        return self._repository.find_tenant_by_owner(chat_id) is not None

    def _owner_employee(self, chat_id: int) -> Employee:
        tenant = self._repository.find_tenant_by_owner(chat_id)
        if tenant is None:
            raise AccessDeniedError(f"Chat {chat_id} owns no tenant")
        return self._repository.get_employee_for_tenant(tenant.id)

    def _owned_interval(self, chat_id: int, employee_id: int, day_of_week: int) -> WorkInterval:
        employee = self._owner_employee(chat_id)
        if employee.id != employee_id:
            raise AccessDeniedError(f"Chat {chat_id} cannot edit employee {employee_id}")
        interval = self._repository.get_schedule(employee_id).for_day(day_of_week)
        if interval is None:
            raise NotFoundError("Work interval", f"{employee_id}/{day_of_week}")
        return interval

    def _day_name(self, chat_id: int, day_of_week: int) -> str:
        return self._reply.text(chat_id, f"Weekday{day_of_week}")

    def _schedule_zone(self, schedule: WeeklySchedule) -> str:
        days = schedule.working_days()
        if days:
            return schedule.intervals[days[0]].timezone
        return self._default_timezone

    # Work days

    def setup_work_days(self, event: InboundEvent, data: str = "", step: ConversationStep | None = None) -> None:
        chat_id = event.chat_id
        employee = self._owner_employee(chat_id)
        schedule = self._repository.get_schedule(employee.id)
        options = []
        for day_of_week in range(7):
            mark = WORKING_MARK if schedule.for_day(day_of_week) else DAY_OFF_MARK
            options.append(
                (
                    f"{mark} {self._day_name(chat_id, day_of_week)}",
                    build_callback(commands.TOGGLE_WORK_DAY, day_of_week),
                )
            )
        self._reply.show(
            chat_id,
            self._reply.text(chat_id, "ChooseWorkDays"),
            with_back(options_keyboard(options), self._reply.text(chat_id, "Back")),
            event.message_id,
        )

    def toggle_work_day(self, event: InboundEvent, data: str, step: ConversationStep | None = None) -> None:
        day_of_week = parse_int(data)
        if not 0 <= day_of_week <= 6:
            raise ValidationError(f"Invalid day of week: {day_of_week}")
        employee = self._owner_employee(event.chat_id)
        schedule = self._repository.get_schedule(employee.id)

        if schedule.for_day(day_of_week) is not None:
            self._repository.delete_work_interval(employee.id, day_of_week)
            action = "off"
        else:
            self._repository.save_work_interval(
                WorkInterval(
                    employee_id=employee.id,
                    day_of_week=day_of_week,
                    start=self._default_start,
                    end=self._default_end,
                    timezone=self._schedule_zone(schedule),
                )
            )
            action = "on"
        self._logger.info(
            "Work day toggled", extra={"chat_id": event.chat_id, "reason": f"day={day_of_week} {action}"}
        )
        self.setup_work_days(event)

    def _working_days_menu(self, event: InboundEvent, command: str, title_key: str) -> None:
        chat_id = event.chat_id
        employee = self._owner_employee(chat_id)
        schedule = self._repository.get_schedule(employee.id)
        if not schedule.working_days():
            self._reply.reply(chat_id, "NoWorkingDays")
            return
        options = []
        for day_of_week in schedule.working_days():
            interval = schedule.intervals[day_of_week]
            label = f"{self._day_name(chat_id, day_of_week)} {format_hhmm(interval.start)}-{format_hhmm(interval.end)}"
            options.append((label, build_callback(command, employee.id, day_of_week)))
        self._reply.show(
            chat_id,
            self._reply.text(chat_id, title_key),
            with_back(options_keyboard(options), self._reply.text(chat_id, "Back")),
            event.message_id,
        )

    # Work hours

    def change_work_time(self, event: InboundEvent, data: str = "", step: ConversationStep | None = None) -> None:
        self._working_days_menu(event, commands.SELECT_WORK_TIME_DAY, "ChooseDayForWorkTime")

    def select_work_time_day(self, event: InboundEvent, data: str, step: ConversationStep | None = None) -> None:
        employee_id, day_of_week = parse_int_params(data, 2)
        interval = self._owned_interval(event.chat_id, employee_id, day_of_week)
        self._store.set_step(event.chat_id, AwaitingWorkStart(employee_id=employee_id, day_of_week=day_of_week))
        self._reply.reply(
            event.chat_id,
            "EnterWorkStart",
            self._day_name(event.chat_id, day_of_week),
            format_hhmm(interval.start),
            format_hhmm(interval.end),
        )

    def on_work_start_text(self, event: InboundEvent, step: AwaitingWorkStart) -> None:
        start = parse_hhmm(event.payload)
        if start is None:
            self._reply.reply(event.chat_id, "InvalidTimeFormat")
            return
        self._owned_interval(event.chat_id, step.employee_id, step.day_of_week)
        self._store.set_step(
            event.chat_id,
            AwaitingWorkEnd(employee_id=step.employee_id, day_of_week=step.day_of_week, start=start),
        )
        self._reply.reply(event.chat_id, "EnterWorkEnd", format_hhmm(start))

    def on_work_end_text(self, event: InboundEvent, step: AwaitingWorkEnd) -> None:
        chat_id = event.chat_id
        end = parse_hhmm(event.payload)
        if end is None:
            self._reply.reply(chat_id, "InvalidTimeFormat")
            return
        if end <= step.start:
            self._reply.reply(chat_id, "EndMustBeAfterStart", format_hhmm(step.start))
            return

        interval = self._owned_interval(chat_id, step.employee_id, step.day_of_week)
        try:
            updated = interval.with_hours(step.start, end)
        except InvalidIntervalError:
            self._reply.reply(chat_id, "BreaksOutsideHours", format_hhmm(step.start), format_hhmm(end))
            return

        self._repository.save_work_interval(updated)
        self._store.clear(chat_id)
        self._logger.info(
            "Work time updated",
            extra={"chat_id": chat_id, "reason": f"day={step.day_of_week} {step.start}-{end}"},
        )
        self._reply.reply(
            chat_id,
            "WorkTimeUpdated",
            self._day_name(chat_id, step.day_of_week),
            format_hhmm(step.start),
            format_hhmm(end),
        )

    # Work-time zone

    def change_work_timezone(self, event: InboundEvent, data: str = "", step: ConversationStep | None = None) -> None:
        chat_id = event.chat_id
        employee = self._owner_employee(chat_id)
        current = self._schedule_zone(self._repository.get_schedule(employee.id))
        options = [(tz, build_callback(commands.SET_WORK_TIMEZONE, tz)) for tz in self._supported_timezones]
        self._reply.show(
            chat_id,
            self._reply.text(chat_id, "ChooseWorkTimezone", current),
            with_back(options_keyboard(options), self._reply.text(chat_id, "Back")),
            event.message_id,
        )

    def set_work_timezone(self, event: InboundEvent, data: str, step: ConversationStep | None = None) -> None:
        chat_id = event.chat_id
        zone = data.strip()
        if zone not in self._supported_timezones:
            raise ValidationError(f"Unsupported timezone: {zone!r}")
        try:
            ZoneInfo(zone)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValidationError(f"Unknown timezone: {zone!r}") from e

        employee = self._owner_employee(chat_id)
        schedule = self._repository.get_schedule(employee.id)
        if not schedule.working_days():
            self._reply.reply(chat_id, "NoWorkingDays")
            return
        for interval in schedule.intervals.values():
            self._repository.save_work_interval(interval.with_timezone(zone))
        self._logger.info("Work timezone updated", extra={"chat_id": chat_id, "reason": zone})
        self._reply.reply(chat_id, "WorkTimezoneUpdated", zone)

    # Breaks

    def manage_breaks(self, event: InboundEvent, data: str = "", step: ConversationStep | None = None) -> None:
        self._working_days_menu(event, commands.SELECT_BREAK_DAY, "ChooseDayForBreaks")

    def select_break_day(self, event: InboundEvent, data: str, step: ConversationStep | None = None) -> None:
        employee_id, day_of_week = parse_int_params(data, 2)
        self._show_breaks(event, employee_id, day_of_week)

    def _show_breaks(self, event: InboundEvent, employee_id: int, day_of_week: int) -> None:
        chat_id = event.chat_id
        interval = self._owned_interval(chat_id, employee_id, day_of_week)
        rows = [
            [
                Button(
                    f"🗑 {format_hhmm(b.start)}-{format_hhmm(b.end)}",
                    build_callback(commands.REMOVE_BREAK, employee_id, day_of_week, b.id),
                )
            ]
            for b in interval.breaks
        ]
        rows.append(
            [
                Button(
                    self._reply.text(chat_id, "AddBreak"),
                    build_callback(commands.ADD_BREAK, employee_id, day_of_week),
                )
            ]
        )
        key = "BreaksOfDay" if interval.breaks else "NoBreaksOfDay"
        self._reply.show(
            chat_id,
            self._reply.text(chat_id, key, self._day_name(chat_id, day_of_week)),
            with_back(rows, self._reply.text(chat_id, "Back"), commands.MANAGE_BREAKS),
            event.message_id,
        )

    def add_break(self, event: InboundEvent, data: str, step: ConversationStep | None = None) -> None:
        employee_id, day_of_week = parse_int_params(data, 2)
        interval = self._owned_interval(event.chat_id, employee_id, day_of_week)
        self._store.set_step(event.chat_id, AwaitingBreakStart(employee_id=employee_id, day_of_week=day_of_week))
        self._reply.reply(
            event.chat_id, "EnterBreakStart", format_hhmm(interval.start), format_hhmm(interval.end)
        )

    def on_break_start_text(self, event: InboundEvent, step: AwaitingBreakStart) -> None:
        chat_id = event.chat_id
        start = parse_hhmm(event.payload)
        if start is None:
            self._reply.reply(chat_id, "InvalidTimeFormat")
            return
        interval = self._owned_interval(chat_id, step.employee_id, step.day_of_week)
        if not interval.start <= start < interval.end:
            self._reply.reply(chat_id, "BreakOutsideHours", format_hhmm(interval.start), format_hhmm(interval.end))
            return
        self._store.set_step(
            chat_id, AwaitingBreakEnd(employee_id=step.employee_id, day_of_week=step.day_of_week, start=start)
        )
        self._reply.reply(chat_id, "EnterBreakEnd", format_hhmm(start))

    def on_break_end_text(self, event: InboundEvent, step: AwaitingBreakEnd) -> None:
        chat_id = event.chat_id
        end = parse_hhmm(event.payload)
        if end is None:
            self._reply.reply(chat_id, "InvalidTimeFormat")
            return
        if end <= step.start:
            self._reply.reply(chat_id, "EndMustBeAfterStart", format_hhmm(step.start))
            return
        interval = self._owned_interval(chat_id, step.employee_id, step.day_of_week)
        if end > interval.end:
            self._reply.reply(chat_id, "BreakOutsideHours", format_hhmm(interval.start), format_hhmm(interval.end))
            return

        try:
            brk = self._repository.add_break(step.employee_id, step.day_of_week, step.start, end)
        except BreakOverlapError:
            self._reply.reply(chat_id, "BreakOverlaps", format_hhmm(step.start), format_hhmm(end))
            return

        self._store.clear(chat_id)
        self._logger.info(
            "Break added", extra={"chat_id": chat_id, "reason": f"day={step.day_of_week} id={brk.id} {brk.start}-{brk.end}"}
        )
        self._reply.reply(chat_id, "BreakAdded", format_hhmm(brk.start), format_hhmm(brk.end))
        self._show_breaks(event, step.employee_id, step.day_of_week)

    def remove_break(self, event: InboundEvent, data: str, step: ConversationStep | None = None) -> None:
        employee_id, day_of_week, break_id = parse_int_params(data, 3)
        interval = self._owned_interval(event.chat_id, employee_id, day_of_week)
        brk = next((b for b in interval.breaks if b.id == break_id), None)
        if brk is None:
            raise NotFoundError("Break", break_id)
        chat_id = event.chat_id
        buttons = [
            [
                Button(
                    self._reply.text(chat_id, "Yes"),
                    build_callback(commands.REMOVE_BREAK_CONFIRM, employee_id, day_of_week, break_id),
                ),
                Button(
                    self._reply.text(chat_id, "No"),
                    build_callback(commands.SELECT_BREAK_DAY, employee_id, day_of_week),
                ),
            ]
        ]
        self._reply.show(
            chat_id,
            self._reply.text(chat_id, "ConfirmRemoveBreak", format_hhmm(brk.start), format_hhmm(brk.end)),
            buttons,
            event.message_id,
        )

    def confirm_remove_break(self, event: InboundEvent, data: str, step: ConversationStep | None = None) -> None:
        employee_id, day_of_week, break_id = parse_int_params(data, 3)
        self._owned_interval(event.chat_id, employee_id, day_of_week)
        self._repository.remove_break(employee_id, day_of_week, break_id)
        self._logger.info(
            "Break removed", extra={"chat_id": event.chat_id, "reason": f"day={day_of_week} id={break_id}"}
        )
        self._reply.reply(event.chat_id, "BreakRemoved")
        self._show_breaks(event, employee_id, day_of_week)
