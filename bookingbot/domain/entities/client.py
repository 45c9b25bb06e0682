from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Client:
    id: int
    chat_id: int
    name: str
    timezone: str | None = None  # IANA zone id, falls back to settings.DEFAULT_TIMEZONE
