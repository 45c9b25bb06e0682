from __future__ import annotations

import json
import logging
import threading
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any

from bookingbot.application.ports.clock import ClockPort
from bookingbot.application.ports.conversation_store import ConversationStorePort
from bookingbot.application.utils.state_codec import decode_step, encode_step
from bookingbot.domain.entities.conversation_state import ConversationStep, Idle


class JsonConversationStore(ConversationStorePort):
    """One JSON file per chat holding the encoded step and when it was written."""

    def __init__(self, clock: ClockPort, data_dir: str = "./data/sessions", ttl: timedelta | None = None) -> None:
        self._clock = clock
        self._ttl = ttl
        self._data_dir = Path(data_dir)
        self._data_dir.mkdir(parents=True, exist_ok=True)
        self._locks: dict[int, threading.Lock] = {}
        self._lock_lock = threading.Lock()  # Lock for managing locks dict
        self._logger = logging.getLogger(__name__)

    def _get_lock(self, chat_id: int) -> threading.Lock:
        """Get or create a lock for a chat_id."""
        with self._lock_lock:
            if chat_id not in self._locks:
                self._locks[chat_id] = threading.Lock()
            return self._locks[chat_id]

    def _get_file_path(self, chat_id: int) -> Path:
        return self._data_dir / f"{chat_id}.json"

    def _load(self, chat_id: int) -> dict[str, Any] | None:
        file_path = self._get_file_path(chat_id)
        if not file_path.exists():
            return None
        try:
            with open(file_path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (json.JSONDecodeError, IOError) as e:
            # Corrupted file: the session simply starts over
            self._logger.warning("Unreadable session file", extra={"chat_id": chat_id, "reason": str(e)})
            return None
        if not isinstance(data, dict):
            return None
        return data

    def _save(self, chat_id: int, data: dict[str, Any]) -> None:
        """Save session data to JSON file atomically."""
        file_path = self._get_file_path(chat_id)
        temp_path = file_path.with_suffix(".json.tmp")
        try:
            with open(temp_path, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, ensure_ascii=False)
            temp_path.replace(file_path)
        except Exception:
            if temp_path.exists():
                temp_path.unlink(missing_ok=True)
            raise

    def _delete(self, chat_id: int) -> None:
        self._get_file_path(chat_id).unlink(missing_ok=True)

    def get_step(self, chat_id: int) -> ConversationStep:
        with self._get_lock(chat_id):
            data = self._load(chat_id)
            if not data or not data.get("state"):
                return Idle()
            updated_at = _parse_timestamp(data.get("updated_at"))
            if updated_at is None or self._expired(updated_at):
                self._delete(chat_id)
                return Idle()
            raw = str(data["state"])
        return decode_step(raw)

    def set_step(self, chat_id: int, step: ConversationStep) -> None:
        raw = encode_step(step)
        with self._get_lock(chat_id):
            if not raw:
                self._delete(chat_id)
                return
            self._save(
                chat_id,
                {
                    "chat_id": chat_id,
                    "state": raw,
                    "updated_at": self._clock.now_utc().isoformat(),
                    "version": 1,
                },
            )

    def clear(self, chat_id: int) -> None:
        with self._get_lock(chat_id):
            self._delete(chat_id)

    def _expired(self, updated_at: datetime) -> bool:
        return self._ttl is not None and self._clock.now_utc() - updated_at > self._ttl


def _parse_timestamp(value: Any) -> datetime | None:
    if not value:
        return None
    try:
        return datetime.fromisoformat(str(value))
    except ValueError:
        return None
