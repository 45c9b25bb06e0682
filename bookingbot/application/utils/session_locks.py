from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Iterator


class SessionLocks:
    """One lock per chat, so events of the same session are handled one at a time."""

    def __init__(self) -> None:
        self._locks: dict[int, threading.Lock] = {}
        self._lock_lock = threading.Lock()  # guards the locks dict

    def _get_lock(self, chat_id: int) -> threading.Lock:
        with self._lock_lock:
            if chat_id not in self._locks:
                self._locks[chat_id] = threading.Lock()
            return self._locks[chat_id]

    @contextmanager
    def hold(self, chat_id: int) -> Iterator[None]:
        lock = self._get_lock(chat_id)
        with lock:
            yield
