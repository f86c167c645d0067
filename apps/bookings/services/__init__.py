"""Services for bookings business logic."""

from .exceptions import (
    BookingServiceError,
    BookingNotFoundError,
    AccessTokenInvalidError,
    AccessTokenExpiredError,
    BookingStateError,
    InvalidStatusTransitionError,
    RoomAssignmentError,
    RoomCapacityError,
)
from .identifiers import (
    generate_booking_number,
    generate_access_token,
    access_token_expiry,
    create_booking,
)
from .audit import record_status_change
from .access import get_booking_by_access_token
from .lifecycle import (
    ALLOWED_TRANSITIONS,
    cancel_booking,
    restore_booking,
    change_booking_status,
    assign_room,
)

__all__ = [
    # Exceptions
    'BookingServiceError',
    'BookingNotFoundError',
    'AccessTokenInvalidError',
    'AccessTokenExpiredError',
    'BookingStateError',
    'InvalidStatusTransitionError',
    'RoomAssignmentError',
    'RoomCapacityError',
    # Identifiers
    'generate_booking_number',
    'generate_access_token',
    'access_token_expiry',
    'create_booking',
    # Audit & access
    'record_status_change',
    'get_booking_by_access_token',
    # Lifecycle
    'ALLOWED_TRANSITIONS',
    'cancel_booking',
    'restore_booking',
    'change_booking_status',
    'assign_room',
]
