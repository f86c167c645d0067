"""Audit rows for booking changes."""

from typing import Optional

from ..models import Booking, BookingStatusChange


def record_status_change(
    *,
    booking: Booking,
    action: str,
    old_status: str = '',
    old_payment_status: str = '',
    actor=None,
    reason: str = '',
    metadata: Optional[dict] = None,
) -> BookingStatusChange:
    """Store who changed what on a booking. ``actor`` is None for system jobs."""
    is_user = actor is not None and getattr(actor, 'is_authenticated', False)
    return BookingStatusChange.objects.create(
        booking=booking,
        action=action,
        old_status=old_status or booking.status,
        new_status=booking.status,
        old_payment_status=old_payment_status or booking.payment_status,
        new_payment_status=booking.payment_status,
        changed_by=actor if is_user else None,
        changed_by_email=actor.email if is_user else 'system',
        reason=reason or '',
        metadata=metadata or {},
    )
