from __future__ import annotations

from typing import Any

from bookingbot.application.ports.message_platform import MessagePlatformPort
from bookingbot.domain.entities.button import Keyboard
from bookingbot.infrastructure.telegram.telegram_client import TelegramClient


def to_reply_markup(buttons: Keyboard | None) -> dict[str, Any] | None:
    if not buttons:
        return None
    return {
        "inline_keyboard": [
            [{"text": b.text, "callback_data": b.callback_data} for b in row] for row in buttons
        ]
    }


class TelegramPlatform(MessagePlatformPort):
    def __init__(self, client: TelegramClient) -> None:
        self._client = client
        self._username: str | None = None

    def send_message(self, chat_id: int, text: str, buttons: Keyboard | None = None) -> int:
        payload: dict[str, Any] = {"chat_id": chat_id, "text": text}
        markup = to_reply_markup(buttons)
        if markup:
            payload["reply_markup"] = markup
        result = self._client.call("sendMessage", payload)
        return int(result["message_id"])

    def edit_message(self, chat_id: int, message_id: int, text: str, buttons: Keyboard | None = None) -> None:
        payload: dict[str, Any] = {"chat_id": chat_id, "message_id": message_id, "text": text}
        markup = to_reply_markup(buttons)
        if markup:
            payload["reply_markup"] = markup
        self._client.call("editMessageText", payload)

    def delete_message(self, chat_id: int, message_id: int) -> None:
        self._client.call("deleteMessage", {"chat_id": chat_id, "message_id": message_id})

    def send_location(self, chat_id: int, latitude: float, longitude: float) -> None:
        self._client.call("sendLocation", {"chat_id": chat_id, "latitude": latitude, "longitude": longitude})

    def get_bot_username(self) -> str:
        if self._username is None:
            self._username = str(self._client.call("getMe", {})["username"])
        return self._username
