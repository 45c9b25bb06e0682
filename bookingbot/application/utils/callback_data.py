from __future__ import annotations

from bookingbot.domain.exceptions import ValidationError

COMMAND_SEPARATOR = ":"
PARAM_SEPARATOR = "_"


def split_command_data(raw: str) -> tuple[str, str]:
    """Split `command:payload` on the first colon. A bare command has empty data."""
    command, _, data = (raw or "").partition(COMMAND_SEPARATOR)
    return command.strip(), data


def build_callback(command: str, *params: object) -> str:
    if not params:
        return command
    return command + COMMAND_SEPARATOR + PARAM_SEPARATOR.join(str(p) for p in params)


def parse_int_params(data: str, count: int) -> tuple[int, ...]:
    parts = data.split(PARAM_SEPARATOR) if data else []
    if len(parts) != count:
        raise ValidationError(f"Expected {count} numeric parameters, got {data!r}")
    try:
        return tuple(int(p) for p in parts)
    except ValueError as e:
        raise ValidationError(f"Malformed callback parameters: {data!r}") from e


def parse_int(data: str) -> int:
    return parse_int_params(data, 1)[0]
