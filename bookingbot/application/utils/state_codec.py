"""
Conversation step <-> stored string.

The stored form is `<StepName>_<param1>_<param2>...`. Parameters are
positional; the last one absorbs any further underscores so IANA zone ids
like `America/Argentina/Buenos_Aires` survive the round trip. An empty
string is the idle session.
"""

from __future__ import annotations

import dataclasses
from datetime import date, time
from functools import lru_cache
from typing import Any, Callable, get_type_hints

from bookingbot.application.exceptions import StateDecodeError
from bookingbot.domain.entities.conversation_state import STEP_TYPES, ConversationStep, Idle

SEPARATOR = "_"

_STEPS_BY_NAME: dict[str, type] = {step.step_name: step for step in STEP_TYPES}


def _format_time(value: time) -> str:
    return value.strftime("%H:%M")


def _parse_time(raw: str) -> time:
    return time.fromisoformat(raw)


_ENCODERS: dict[type, Callable[[Any], str]] = {
    int: str,
    str: str,
    date: date.isoformat,
    time: _format_time,
}

_DECODERS: dict[type, Callable[[str], Any]] = {
    int: int,
    str: str,
    date: date.fromisoformat,
    time: _parse_time,
}


@lru_cache(maxsize=None)
def _params(step_type: type) -> tuple[tuple[str, type], ...]:
    hints = get_type_hints(step_type)
    return tuple((f.name, hints[f.name]) for f in dataclasses.fields(step_type))


def encode_step(step: ConversationStep) -> str:
    if isinstance(step, Idle):
        return ""
    parts = [step.step_name]
    for name, kind in _params(type(step)):
        value = getattr(step, name)
        parts.append(_ENCODERS[kind](value))
    return SEPARATOR.join(parts)


def decode_step(raw: str | None) -> ConversationStep:
    if not raw:
        return Idle()

    name, _, rest = raw.partition(SEPARATOR)
    step_type = _STEPS_BY_NAME.get(name)
    if step_type is None:
        raise StateDecodeError(f"Unknown conversation step: {name!r}")

    params = _params(step_type)
    if not params:
        if rest:
            raise StateDecodeError(f"Step {name} takes no parameters, got {rest!r}")
        return step_type()

    tokens = rest.split(SEPARATOR, len(params) - 1) if rest else []
    if len(tokens) != len(params):
        raise StateDecodeError(f"Step {name} expects {len(params)} parameters, got {raw!r}")

    values: dict[str, Any] = {}
    for (param, kind), token in zip(params, tokens):
        try:
            values[param] = _DECODERS[kind](token)
        except ValueError as e:
            raise StateDecodeError(f"Bad {param} in {raw!r}: {e}") from e
    return step_type(**values)

