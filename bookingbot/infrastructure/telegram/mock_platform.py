from __future__ import annotations

import itertools
import logging
from dataclasses import dataclass

from bookingbot.application.ports.message_platform import MessagePlatformPort
from bookingbot.domain.entities.button import Keyboard


@dataclass(frozen=True)
class OutboundRecord:
    action: str  # send / edit / delete / location
    chat_id: int
    message_id: int | None = None
    text: str | None = None
    buttons: Keyboard | None = None
    location: tuple[float, float] | None = None

    def callbacks(self) -> list[str]:
        return [b.callback_data for row in self.buttons or [] for b in row]


class MockTelegramPlatform(MessagePlatformPort):
    """Logs instead of sending and keeps every outbound action in `outbox`."""

    def __init__(self, username: str = "mock_booking_bot") -> None:
        self._logger = logging.getLogger(__name__)
        self.username = username
        self._ids = itertools.count(1)
        self.outbox: list[OutboundRecord] = []

    def send_message(self, chat_id: int, text: str, buttons: Keyboard | None = None) -> int:
        message_id = next(self._ids)
        self.outbox.append(OutboundRecord("send", chat_id, message_id, text, buttons))
        self._logger.info("Mock send to Telegram", extra={"chat_id": chat_id, "reason": text})
        return message_id

    def edit_message(self, chat_id: int, message_id: int, text: str, buttons: Keyboard | None = None) -> None:
        self.outbox.append(OutboundRecord("edit", chat_id, message_id, text, buttons))
        self._logger.info("Mock edit on Telegram", extra={"chat_id": chat_id, "reason": text})

    def delete_message(self, chat_id: int, message_id: int) -> None:
        self.outbox.append(OutboundRecord("delete", chat_id, message_id))

    def send_location(self, chat_id: int, latitude: float, longitude: float) -> None:
        self.outbox.append(OutboundRecord("location", chat_id, location=(latitude, longitude)))

    def get_bot_username(self) -> str:
        return self.username

    def for_chat(self, chat_id: int) -> list[OutboundRecord]:
        return [r for r in self.outbox if r.chat_id == chat_id]

    def last_for(self, chat_id: int) -> OutboundRecord | None:
        records = [r for r in self.for_chat(chat_id) if r.action in ("send", "edit")]
        return records[-1] if records else None
