from __future__ import annotations

from datetime import time
from typing import Sequence

from bookingbot.application.ports.translator import TranslatorPort
from bookingbot.application.utils import commands
from bookingbot.application.utils.callback_data import build_callback
from bookingbot.application.utils.calendar_view import CalendarDay, DayStatus, MonthView
from bookingbot.application.utils.date_parser import format_hhmm, format_month
from bookingbot.domain.entities.button import Button, Keyboard
from bookingbot.domain.intervals import to_minutes

DAYS_IN_WEEK = 7
SLOTS_PER_ROW = 4

BLANK = " "
DAY_OFF_MARK = "🚫"
FULLY_BOOKED_MARK = "⚫"
TODAY_MARK = "🔵"
PREV_MARK = "⬅️"
NEXT_MARK = "➡️"


def month_keyboard(view: MonthView, translator: TranslatorPort, language: str | None) -> Keyboard:
    """Monday-first month grid, a navigation row and a way back to the services."""
    rows: Keyboard = [
        [Button(translator.get(language, f"WeekdayShort{i}")) for i in range(DAYS_IN_WEEK)]
    ]

    cells = [Button(BLANK) for _ in range(view.leading_blanks)]
    cells.extend(_day_button(day) for day in view.days)
    while len(cells) % DAYS_IN_WEEK:
        cells.append(Button(BLANK))
    rows.extend(chunk(cells, DAYS_IN_WEEK))

    month_iso = view.month.isoformat()
    rows.append(
        [
            Button(PREV_MARK, build_callback(commands.CHOOSE_PREV_MONTH, month_iso))
            if view.can_go_back
            else Button(BLANK),
            Button(
                format_month(view.month),
                build_callback(commands.CHOOSE_THIS_MONTH, view.today.replace(day=1).isoformat()),
            ),
            Button(NEXT_MARK, build_callback(commands.CHOOSE_NEXT_MONTH, month_iso))
            if view.can_go_forward
            else Button(BLANK),
        ]
    )
    rows.append([Button(translator.get(language, "Back"), commands.BACK_TO_SERVICES)])
    return rows


def _day_button(cell: CalendarDay) -> Button:
    label = str(cell.day.day)
    callback = None
    if cell.status is DayStatus.NOT_WORKING:
        label = DAY_OFF_MARK
    elif cell.status is DayStatus.FULLY_BOOKED:
        label = FULLY_BOOKED_MARK
    elif cell.status is DayStatus.AVAILABLE:
        callback = build_callback(commands.CHOOSE_DATE, cell.day.isoformat())
    if cell.is_today:
        label = TODAY_MARK + label
    return Button(label, callback) if callback else Button(label)


def time_slots_keyboard(slots: Sequence[time], translator: TranslatorPort, language: str | None) -> Keyboard:
    # Buttons carry minutes since midnight; the date stays in the conversation state.
    buttons = [
        Button(format_hhmm(slot), build_callback(commands.CHOOSE_TIME, to_minutes(slot))) for slot in slots
    ]
    rows = chunk(buttons, SLOTS_PER_ROW)
    rows.append([Button(translator.get(language, "Back"), commands.BACK_TO_CALENDAR)])
    return rows


def options_keyboard(options: Sequence[tuple[str, str]], columns: int = 1) -> Keyboard:
    return chunk([Button(text, callback) for text, callback in options], columns)


def with_back(rows: Keyboard, text: str, callback: str = commands.MAIN_MENU) -> Keyboard:
    return rows + [[Button(text, callback)]]


def chunk(buttons: Sequence[Button], size: int) -> Keyboard:
    return [list(buttons[i : i + size]) for i in range(0, len(buttons), size)]
