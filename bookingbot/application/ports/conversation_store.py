from abc import ABC, abstractmethod

from bookingbot.domain.entities.conversation_state import ConversationStep


class ConversationStorePort(ABC):
    @abstractmethod
    def get_step(self, chat_id: int) -> ConversationStep:
        """
        Current step of a chat session.

        Missing or expired entries read back as `Idle`. A stored value that no
        longer decodes raises `StateDecodeError`.
        """
        raise NotImplementedError

    @abstractmethod
    def set_step(self, chat_id: int, step: ConversationStep) -> None:
        raise NotImplementedError

    @abstractmethod
    def clear(self, chat_id: int) -> None:
        raise NotImplementedError
