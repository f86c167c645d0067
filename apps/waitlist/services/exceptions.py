"""Domain-specific exceptions for waitlist services."""


class WaitlistServiceError(Exception):
    """Base exception for waitlist services."""
    pass


class WaitlistNotFoundError(WaitlistServiceError):
    """Raised when a retreat, room or response token matches nothing."""
    pass


class WaitlistStateError(WaitlistServiceError):
    """Raised when an entry or retreat is in the wrong state for the operation."""
    pass


class OfferExpiredError(WaitlistServiceError):
    """Raised when a spot offer is answered after its deadline."""
    pass
