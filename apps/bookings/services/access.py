"""Customer access to a booking through its emailed link."""

from django.utils import timezone

from ..models import Booking
from .exceptions import AccessTokenInvalidError, AccessTokenExpiredError


def get_booking_by_access_token(*, token: str) -> Booking:
    """
    Resolve a my-booking link.

    Raises:
        AccessTokenInvalidError: If no booking has this token
        AccessTokenExpiredError: If the token is past its expiry
    """
    if not token:
        raise AccessTokenInvalidError("Access token required")

    booking = (
        Booking.objects
        .select_related('retreat', 'room')
        .filter(access_token=token)
        .first()
    )
    if booking is None:
        raise AccessTokenInvalidError("Invalid or expired link")

    if booking.access_token_expires_at and booking.access_token_expires_at < timezone.now():
        raise AccessTokenExpiredError("This link has expired")

    return booking
