from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from bookingbot.domain.entities.inbound_event import EventKind, InboundEvent


class TelegramUser(BaseModel):
    id: int
    first_name: str | None = None
    last_name: str | None = None
    username: str | None = None

    @property
    def display_name(self) -> str | None:
        parts = [p for p in (self.first_name, self.last_name) if p]
        if parts:
            return " ".join(parts)
        return self.username


class TelegramChat(BaseModel):
    id: int


class TelegramLocation(BaseModel):
    latitude: float
    longitude: float


class TelegramMessage(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    message_id: int
    chat: TelegramChat
    sender: TelegramUser | None = Field(default=None, alias="from")
    text: str | None = None
    location: TelegramLocation | None = None


class TelegramCallbackQuery(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    sender: TelegramUser = Field(alias="from")
    message: TelegramMessage | None = None
    data: str | None = None


class TelegramUpdateDTO(BaseModel):
    update_id: int
    message: TelegramMessage | None = None
    callback_query: TelegramCallbackQuery | None = None

    def extract_event(self) -> InboundEvent | None:
        """Text messages, shared locations and button presses; every other update kind is ignored."""
        if self.callback_query is not None:
            query = self.callback_query
            if not query.data:
                return None
            chat_id = query.message.chat.id if query.message else query.sender.id
            return InboundEvent(
                kind=EventKind.CALLBACK,
                chat_id=chat_id,
                payload=query.data,
                sender_name=query.sender.display_name,
                message_id=query.message.message_id if query.message else None,
                update_id=self.update_id,
            )

        if self.message is not None and self.message.text:
            message = self.message
            return InboundEvent(
                kind=EventKind.MESSAGE,
                chat_id=message.chat.id,
                payload=message.text,
                sender_name=message.sender.display_name if message.sender else None,
                update_id=self.update_id,
            )

        if self.message is not None and self.message.location is not None:
            message = self.message
            return InboundEvent(
                kind=EventKind.MESSAGE,
                chat_id=message.chat.id,
                payload="",
                sender_name=message.sender.display_name if message.sender else None,
                update_id=self.update_id,
                location=(message.location.latitude, message.location.longitude),
            )

        return None
