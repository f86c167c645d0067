"""Domain-specific exceptions for booking services."""


class BookingServiceError(Exception):
    """Base exception for booking services."""
    pass


class BookingNotFoundError(BookingServiceError):
    """Raised when a booking does not exist."""
    pass


class AccessTokenInvalidError(BookingServiceError):
    """Raised when a booking access token matches no booking."""
    pass


class AccessTokenExpiredError(BookingServiceError):
    """Raised when a booking access token is past its expiry."""
    pass


class BookingStateError(BookingServiceError):
    """Raised when an operation is not allowed in the booking's current state."""
    pass


class InvalidStatusTransitionError(BookingStateError):
    """Raised when a status change is not an allowed transition."""
    pass


class RoomAssignmentError(BookingServiceError):
    """Raised when a room cannot be assigned to a booking."""
    pass


class RoomCapacityError(RoomAssignmentError):
    """Raised when the target room has no space for the booking's guests."""
    pass
