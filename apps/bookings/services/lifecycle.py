"""
Admin booking lifecycle: cancel, restore, status changes and room moves.

Each operation writes a ``BookingStatusChange`` row.
"""

import logging
from datetime import timedelta
from typing import Optional

from django.db import transaction
from django.utils import timezone

from apps.notifications.services import send_booking_cancellation
from apps.payments.models import PaymentSchedule
from apps.promotions.services import release_promo_code
from apps.retreats.models import RetreatRoom
from apps.retreats.services import try_decrement_availability, increment_availability
from ..models import Booking, BookingStatusChange
from .audit import record_status_change
from .exceptions import (
    BookingStateError,
    InvalidStatusTransitionError,
    RoomAssignmentError,
    RoomCapacityError,
)

logger = logging.getLogger(__name__)

RESTORE_PAYMENT_WINDOW_DAYS = 14

ALLOWED_TRANSITIONS = {
    Booking.Status.PENDING: {Booking.Status.CONFIRMED, Booking.Status.CANCELLED},
    Booking.Status.CONFIRMED: {Booking.Status.COMPLETED, Booking.Status.CANCELLED},
    Booking.Status.CANCELLED: set(),
    Booking.Status.COMPLETED: set(),
}


def _lock(booking: Booking) -> Booking:
    return Booking.objects.select_for_update().select_related('retreat', 'room').get(id=booking.id)


@transaction.atomic
def cancel_booking(
    *,
    booking: Booking,
    reason: str = '',
    send_email: bool = True,
    actor=None,
    action: str = BookingStatusChange.Action.CANCELLATION,
) -> Booking:
    """
    Cancel a booking and release what it holds.

    Open installments are cancelled, the room spots go back to inventory
    and the promo code use is returned.

    Raises:
        BookingStateError: If the booking is already cancelled
    """
    booking = _lock(booking)
    if booking.status == Booking.Status.CANCELLED:
        raise BookingStateError("Booking is already cancelled")

    old_status, old_payment_status = booking.status, booking.payment_status

    open_statuses = [PaymentSchedule.Status.PENDING, PaymentSchedule.Status.PROCESSING]
    if action == BookingStatusChange.Action.AUTO_CANCELLATION:
        # The missed deadline belongs to the failed installment itself.
        open_statuses.append(PaymentSchedule.Status.FAILED)
    cancelled_schedules = (
        PaymentSchedule.objects
        .filter(booking=booking, status__in=open_statuses)
        .update(status=PaymentSchedule.Status.CANCELLED, next_retry_at=None)
    )

    booking.status = Booking.Status.CANCELLED
    booking.cancelled_at = timezone.now()
    booking.cancellation_reason = reason
    booking.append_note(f"Cancelled: {reason}" if reason else "Cancelled")
    booking.save(update_fields=['status', 'cancelled_at', 'cancellation_reason', 'internal_notes', 'updated_at'])

    if booking.room_id:
        increment_availability(room_id=booking.room_id, count=booking.guests_count)
    release_promo_code(booking=booking)

    record_status_change(
        booking=booking,
        action=action,
        old_status=old_status,
        old_payment_status=old_payment_status,
        actor=actor,
        reason=reason,
        metadata={'cancelled_schedules': cancelled_schedules, 'email_sent': send_email},
    )
    logger.info("Booking %s cancelled (%s schedules cancelled)", booking.booking_number, cancelled_schedules)

    if send_email:
        transaction.on_commit(lambda: send_booking_cancellation(booking, reason=reason))
    return booking


@transaction.atomic
def restore_booking(*, booking: Booking, actor=None, new_due_date=None, reason: str = '') -> Booking:
    """
    Bring a cancelled booking back to pending.

    The room must still have space for the guests. Cancelled and failed
    installments are re-opened with a fresh due date.

    Raises:
        BookingStateError: If the booking is not cancelled
        RoomCapacityError: If the room no longer has space
    """
    booking = _lock(booking)
    if booking.status != Booking.Status.CANCELLED:
        raise BookingStateError("Only cancelled bookings can be restored")

    if booking.room_id and not try_decrement_availability(room_id=booking.room_id, count=booking.guests_count):
        raise RoomCapacityError("The room no longer has enough space for this booking")

    old_status = booking.status
    now = timezone.now()
    due_date = new_due_date or (now + timedelta(days=RESTORE_PAYMENT_WINDOW_DAYS)).date()

    reopened = (
        PaymentSchedule.objects
        .filter(booking=booking, status__in=[PaymentSchedule.Status.CANCELLED, PaymentSchedule.Status.FAILED])
        .update(
            status=PaymentSchedule.Status.PENDING,
            attempts=0,
            due_date=due_date,
            failure_reason='',
            failed_at=None,
            payment_deadline=None,
            reminder_stage='',
            next_retry_at=None,
        )
    )

    booking.status = Booking.Status.PENDING
    booking.cancelled_at = None
    booking.restored_at = now
    booking.restored_by = actor if actor is not None and actor.is_authenticated else None
    booking.append_note(f"Restored: {reason}" if reason else "Restored")
    booking.save(update_fields=['status', 'cancelled_at', 'restored_at', 'restored_by', 'internal_notes', 'updated_at'])

    record_status_change(
        booking=booking,
        action=BookingStatusChange.Action.RESTORE,
        old_status=old_status,
        actor=actor,
        reason=reason,
        metadata={'reopened_schedules': reopened, 'due_date': due_date.isoformat()},
    )
    logger.info("Booking %s restored", booking.booking_number)
    return booking


@transaction.atomic
def change_booking_status(*, booking: Booking, new_status: str, actor=None, reason: str = '') -> Booking:
    """
    Move a booking along pending -> confirmed -> completed.

    Raises:
        InvalidStatusTransitionError: For transitions outside the allowed graph
        BookingStateError: When confirming a booking with no payment
    """
    booking = _lock(booking)
    if new_status == booking.status:
        raise InvalidStatusTransitionError(f"Booking is already {booking.status}")
    if new_status == Booking.Status.CANCELLED:
        raise InvalidStatusTransitionError("Use the /cancel endpoint to cancel bookings")
    if new_status not in ALLOWED_TRANSITIONS.get(booking.status, set()):
        raise InvalidStatusTransitionError(f"Cannot change status from {booking.status} to {new_status}")
    if new_status == Booking.Status.CONFIRMED and booking.payment_status == Booking.PaymentStatus.UNPAID:
        raise BookingStateError("Cannot confirm a booking without payment")

    old_status = booking.status
    booking.status = new_status
    booking.save(update_fields=['status', 'updated_at'])

    record_status_change(
        booking=booking,
        action=BookingStatusChange.Action.STATUS_CHANGE,
        old_status=old_status,
        actor=actor,
        reason=reason,
    )
    logger.info("Booking %s: %s -> %s", booking.booking_number, old_status, new_status)
    return booking


@transaction.atomic
def assign_room(*, booking: Booking, room_id: Optional[str], actor=None) -> Booking:
    """
    Move a booking to another room of the same retreat, or unassign it.

    The new room is reserved first so a full room never loses the old
    assignment.

    Raises:
        RoomAssignmentError: For cancelled bookings, unknown rooms or no-op moves
        RoomCapacityError: If the target room has no space
    """
    booking = _lock(booking)
    if booking.status == Booking.Status.CANCELLED:
        raise RoomAssignmentError("Cannot change the room of a cancelled booking")

    old_room_id = booking.room_id
    if str(old_room_id or '') == str(room_id or ''):
        raise RoomAssignmentError("Booking is already in this room")

    new_room = None
    if room_id:
        new_room = RetreatRoom.objects.filter(id=room_id, retreat_id=booking.retreat_id).first()
        if new_room is None:
            raise RoomAssignmentError("Room not found for this retreat")
        if booking.guests_count > new_room.capacity:
            raise RoomAssignmentError("Room capacity is smaller than the number of guests")
        if not try_decrement_availability(room_id=new_room.id, count=booking.guests_count):
            raise RoomCapacityError("Room does not have enough availability")

    booking.room = new_room
    booking.save(update_fields=['room', 'updated_at'])

    if old_room_id:
        increment_availability(room_id=old_room_id, count=booking.guests_count)

    record_status_change(
        booking=booking,
        action=BookingStatusChange.Action.ROOM_CHANGE,
        actor=actor,
        metadata={
            'old_room_id': str(old_room_id) if old_room_id else None,
            'new_room_id': str(new_room.id) if new_room else None,
        },
    )
    logger.info("Booking %s moved from room %s to %s", booking.booking_number, old_room_id, room_id)
    return booking
