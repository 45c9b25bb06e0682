from bookingbot.domain.exceptions import BookingError, ValidationError


class StateDecodeError(ValidationError):
    """Raised when a stored conversation string does not match any known step."""
    pass


class DeliveryError(RuntimeError):
    """Raised when the messaging gateway fails (timeouts, network errors, API rejections)."""
    pass


class SessionExpiredError(BookingError):
    """Raised when an event does not fit the chat's current step (stale button, expired session)."""
    pass


class AccessDeniedError(BookingError):
    """Raised when a chat acts on a schedule or appointment it does not own."""
    pass
