from __future__ import annotations

import logging

from bookingbot.application.exceptions import DeliveryError
from bookingbot.application.ports.booking_repository import BookingRepositoryPort
from bookingbot.application.ports.message_platform import MessagePlatformPort
from bookingbot.application.ports.translator import TranslatorPort
from bookingbot.domain.entities.button import Keyboard


class SendReplyUseCase:
    def __init__(
        self,
        platform: MessagePlatformPort,
        translator: TranslatorPort,
        repository: BookingRepositoryPort,
        enabled: bool = True,
    ) -> None:
        self._platform = platform
        self._translator = translator
        self._repository = repository
        self._enabled = enabled
        self._logger = logging.getLogger(__name__)

    @property
    def translator(self) -> TranslatorPort:
        return self._translator

    def language_of(self, chat_id: int) -> str | None:
        return self._repository.get_language(chat_id)

    def text(self, chat_id: int, key: str, *args: object) -> str:
        return self._translator.get(self.language_of(chat_id), key, *args)

    def execute(self, chat_id: int, text: str, buttons: Keyboard | None = None) -> int | None:
        """Send a message. Returns the message id, or None if sending is disabled."""
        if not self._enabled:
            self._logger.info("WOULD_SEND_REPLY", extra={"chat_id": chat_id, "reason": text})
            return None
        return self._platform.send_message(chat_id, text, buttons)

    def reply(self, chat_id: int, key: str, *args: object, buttons: Keyboard | None = None) -> int | None:
        return self.execute(chat_id, self.text(chat_id, key, *args), buttons)

    def show(self, chat_id: int, text: str, buttons: Keyboard | None = None, message_id: int | None = None) -> None:
        """Replace the content of `message_id` when given, send a new message otherwise."""
        if message_id is None or not self._enabled:
            self.execute(chat_id, text, buttons)
            return
        try:
            self._platform.edit_message(chat_id, message_id, text, buttons)
        except DeliveryError:
            # Old or unchanged messages cannot be edited
            self._logger.info("Edit failed, sending instead", extra={"chat_id": chat_id})
            self.execute(chat_id, text, buttons)

    def remove(self, chat_id: int, message_id: int | None) -> None:
        if message_id is None or not self._enabled:
            return
        try:
            self._platform.delete_message(chat_id, message_id)
        except DeliveryError as e:
            self._logger.info("Delete failed", extra={"chat_id": chat_id, "reason": str(e)})

    def notify(self, chat_id: int, text: str, buttons: Keyboard | None = None) -> bool:
        """Best-effort send: delivery failures are logged and reported as False."""
        try:
            return self.execute(chat_id, text, buttons) is not None
        except DeliveryError:
            self._logger.exception("Notification failed", extra={"chat_id": chat_id})
            return False

    def notify_location(self, chat_id: int, latitude: float, longitude: float) -> bool:
        if not self._enabled:
            self._logger.info("WOULD_SEND_LOCATION", extra={"chat_id": chat_id})
            return False
        try:
            self._platform.send_location(chat_id, latitude, longitude)
            return True
        except DeliveryError:
            self._logger.exception("Location push failed", extra={"chat_id": chat_id})
            return False
