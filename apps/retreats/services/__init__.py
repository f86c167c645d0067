"""Services for retreats business logic."""

from .exceptions import (
    RetreatServiceError,
    RetreatNotFoundError,
    RoomNotFoundError,
    RoomUnavailableError,
)
from .inventory import (
    try_decrement_availability,
    increment_availability,
    sync_availability_status,
)
from .retreat_management import (
    get_public_retreat,
    unique_copy_slug,
    duplicate_retreat,
    reorder_gallery,
)
from .occupancy import get_room_occupancy, count_active_guests
from .calendar import months_between

__all__ = [
    # Exceptions
    'RetreatServiceError',
    'RetreatNotFoundError',
    'RoomNotFoundError',
    'RoomUnavailableError',
    # Inventory
    'try_decrement_availability',
    'increment_availability',
    'sync_availability_status',
    # Management
    'get_public_retreat',
    'unique_copy_slug',
    'duplicate_retreat',
    'reorder_gallery',
    # Occupancy
    'get_room_occupancy',
    'count_active_guests',
    # Calendar
    'months_between',
]
