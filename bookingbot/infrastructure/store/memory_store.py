from __future__ import annotations

import threading
from datetime import datetime, timedelta

from bookingbot.application.ports.clock import ClockPort
from bookingbot.application.ports.conversation_store import ConversationStorePort
from bookingbot.application.utils.state_codec import decode_step, encode_step
from bookingbot.domain.entities.conversation_state import ConversationStep, Idle


class MemoryConversationStore(ConversationStorePort):
    def __init__(self, clock: ClockPort, ttl: timedelta | None = None) -> None:
        self._clock = clock
        self._ttl = ttl
        self._states: dict[int, tuple[str, datetime]] = {}
        self._lock = threading.Lock()

    def get_step(self, chat_id: int) -> ConversationStep:
        with self._lock:
            entry = self._states.get(chat_id)
            if entry is None:
                return Idle()
            raw, updated_at = entry
            if self._expired(updated_at):
                del self._states[chat_id]
                return Idle()
        return decode_step(raw)

    def set_step(self, chat_id: int, step: ConversationStep) -> None:
        raw = encode_step(step)
        with self._lock:
            if not raw:
                self._states.pop(chat_id, None)
                return
            self._states[chat_id] = (raw, self._clock.now_utc())

    def clear(self, chat_id: int) -> None:
        with self._lock:
            self._states.pop(chat_id, None)

    def _expired(self, updated_at: datetime) -> bool:
        return self._ttl is not None and self._clock.now_utc() - updated_at > self._ttl
