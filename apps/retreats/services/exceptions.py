"""Domain-specific exceptions for retreat services."""


class RetreatServiceError(Exception):
    """Base exception for retreat services."""
    pass


class RetreatNotFoundError(RetreatServiceError):
    """Raised when a retreat does not exist or is in the trash."""
    pass


class RoomNotFoundError(RetreatServiceError):
    """Raised when a room does not exist for the given retreat."""
    pass


class RoomUnavailableError(RetreatServiceError):
    """Raised when a room has not enough spots left."""
    pass
