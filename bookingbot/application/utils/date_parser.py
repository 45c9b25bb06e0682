from __future__ import annotations

import re
from datetime import date, datetime, time

_HHMM_RE = re.compile(r"^\s*(\d{1,2}):(\d{2})\s*$")


def parse_hhmm(text: str) -> time | None:
    """Parse a typed `H:MM` / `HH:MM` time of day, None when it is not one."""
    match = _HHMM_RE.match(text or "")
    if not match:
        return None
    hour, minute = int(match.group(1)), int(match.group(2))
    if hour > 23 or minute > 59:
        return None
    return time(hour=hour, minute=minute)


def parse_iso_date(text: str) -> date | None:
    try:
        return date.fromisoformat((text or "").strip())
    except ValueError:
        return None


def format_hhmm(value: time | datetime) -> str:
    return value.strftime("%H:%M")


def format_day(value: date | datetime) -> str:
    # Numeric so it reads the same in every language.
    return value.strftime("%d.%m.%Y")


def format_month(value: date) -> str:
    return value.strftime("%m.%Y")
