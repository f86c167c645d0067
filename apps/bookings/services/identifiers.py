"""Booking numbers and customer access tokens."""

import secrets
from datetime import datetime, time, timedelta

from django.db import IntegrityError, transaction
from django.utils import timezone

from ..models import Booking

BOOKING_NUMBER_PREFIX = 'RSR'
ACCESS_TOKEN_GRACE_DAYS = 30
MAX_NUMBER_ATTEMPTS = 5


def generate_booking_number(now=None) -> str:
    """
    Next ``RSR-YYMM-NNNN`` number for the current month.

    The sequence restarts every month and continues after the highest
    number already issued in it.
    """
    now = now or timezone.now()
    prefix = f"{BOOKING_NUMBER_PREFIX}-{now:%y%m}-"
    last = (
        Booking.objects
        .filter(booking_number__startswith=prefix)
        .order_by('-booking_number')
        .values_list('booking_number', flat=True)
        .first()
    )
    sequence = int(last.rsplit('-', 1)[1]) + 1 if last else 1
    return f"{prefix}{sequence:04d}"


def generate_access_token() -> str:
    """64 hex characters."""
    return secrets.token_hex(32)


def access_token_expiry(check_out_date=None):
    """Links stay valid 30 days after check-out, or one year without a check-out date."""
    if check_out_date is None:
        return timezone.now() + timedelta(days=365)
    end_of_stay = timezone.make_aware(datetime.combine(check_out_date, time.min))
    return end_of_stay + timedelta(days=ACCESS_TOKEN_GRACE_DAYS)


def create_booking(**fields) -> Booking:
    """
    Insert a booking with a fresh number and access token.

    Two concurrent checkouts can compute the same number; the unique
    constraint rejects one and it retries with the next number.
    """
    fields.setdefault('access_token', generate_access_token())
    fields.setdefault('access_token_expires_at', access_token_expiry(fields.get('check_out_date')))

    for attempt in range(MAX_NUMBER_ATTEMPTS):
        try:
            with transaction.atomic():
                return Booking.objects.create(booking_number=generate_booking_number(), **fields)
        except IntegrityError:
            if attempt == MAX_NUMBER_ATTEMPTS - 1:
                raise
    raise IntegrityError("Could not allocate a booking number")
