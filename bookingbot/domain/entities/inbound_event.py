from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class EventKind(str, Enum):
    MESSAGE = "message"
    CALLBACK = "callback"


@dataclass(frozen=True)
class InboundEvent:
    kind: EventKind
    chat_id: int
    payload: str  # message text or callback data
    sender_name: str | None = None
    message_id: int | None = None  # message that carried the pressed button
    update_id: int | None = None
    location: tuple[float, float] | None = None  # shared map point (latitude, longitude)
