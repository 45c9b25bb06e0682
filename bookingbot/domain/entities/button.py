from __future__ import annotations

from dataclasses import dataclass

IGNORE = "ignore"


@dataclass(frozen=True)
class Button:
    text: str
    callback_data: str = IGNORE


Keyboard = list[list[Button]]
