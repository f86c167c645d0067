"""Services for waitlist business logic."""

from .exceptions import (
    WaitlistServiceError,
    WaitlistNotFoundError,
    WaitlistStateError,
    OfferExpiredError,
)
from .queue import (
    OFFER_HOURS,
    ACCEPT,
    DECLINE,
    JoinResult,
    Offer,
    QueuePosition,
    join_waitlist,
    get_position,
    notify_entry,
    booking_url,
    get_offer,
    respond_to_offer,
    expire_notifications,
)

__all__ = [
    # Exceptions
    'WaitlistServiceError',
    'WaitlistNotFoundError',
    'WaitlistStateError',
    'OfferExpiredError',
    # Queue
    'OFFER_HOURS',
    'ACCEPT',
    'DECLINE',
    'JoinResult',
    'Offer',
    'QueuePosition',
    'join_waitlist',
    'get_position',
    'notify_entry',
    'booking_url',
    'get_offer',
    'respond_to_offer',
    'expire_notifications',
]
