from abc import ABC, abstractmethod

from bookingbot.domain.entities.button import Keyboard


class MessagePlatformPort(ABC):
    @abstractmethod
    def send_message(self, chat_id: int, text: str, buttons: Keyboard | None = None) -> int:
        """Send a message and return its platform message id."""
        raise NotImplementedError

    @abstractmethod
    def edit_message(self, chat_id: int, message_id: int, text: str, buttons: Keyboard | None = None) -> None:
        raise NotImplementedError

    @abstractmethod
    def delete_message(self, chat_id: int, message_id: int) -> None:
        raise NotImplementedError

    @abstractmethod
    def send_location(self, chat_id: int, latitude: float, longitude: float) -> None:
        raise NotImplementedError

    @abstractmethod
    def get_bot_username(self) -> str:
        """Public @username of the bot, used to build `t.me` deep links."""
        raise NotImplementedError
