class BookingError(Exception):
    """Base class for errors raised by the scheduling core."""
    pass


class ValidationError(BookingError):
    """Raised when input cannot be parsed or an entity would be malformed."""
    pass


class InvalidIntervalError(ValidationError):
    """Raised when an interval has start >= end or a break leaves its work interval."""
    pass


class NotFoundError(BookingError):
    """Raised when a referenced tenant, employee, service, appointment or schedule is missing."""

    def __init__(self, entity: str, key: object) -> None:
        super().__init__(f"{entity} not found: {key}")
        self.entity = entity
        self.key = key


class ConflictError(BookingError):
    """Raised when a write would collide with existing data."""
    pass


class BreakOverlapError(ConflictError):
    pass


class SlotUnavailableError(ConflictError):
    """Raised when the requested start time is taken or no longer offerable."""
    pass


class InvalidTransitionError(BookingError):
    def __init__(self, appointment_id: int, current: str, target: str) -> None:
        super().__init__(f"Appointment {appointment_id}: cannot move from {current} to {target}")
        self.appointment_id = appointment_id
        self.current = current
        self.target = target
