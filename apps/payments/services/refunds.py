"""Admin refunds and cancellation of unpaid installments."""

import logging
from decimal import Decimal
from typing import Optional

from django.db import transaction

from apps.bookings.models import BookingStatusChange
from apps.bookings.services import record_status_change
from apps.notifications.services import send_refund_confirmation
from apps.retreats.services import increment_availability
from ..models import Payment, PaymentSchedule
from . import gateway
from .exceptions import RefundError
from .status import apply_refund_state

logger = logging.getLogger(__name__)


def refund_payment(*, payment_id, amount: Optional[Decimal] = None, reason: str = '', actor=None) -> Payment:
    """
    Refund a succeeded payment, fully or in part.

    Partial amounts are capped at what is left to refund on that payment.

    Raises:
        RefundError: For unknown, unpaid or already refunded payments
        PaymentGatewayError: If Stripe rejects the refund
    """
    payment = (
        Payment.objects
        .select_related('booking', 'booking__retreat', 'booking__room')
        .filter(id=payment_id, amount__gt=0)
        .first()
    )
    if payment is None:
        raise RefundError("Payment not found")
    if payment.status != Payment.Status.SUCCEEDED:
        raise RefundError("Only succeeded payments can be refunded")
    if not payment.stripe_payment_intent_id:
        raise RefundError("Payment has no Stripe payment intent")

    already = -sum(
        (p.amount for p in Payment.objects.filter(
            stripe_payment_intent_id=payment.stripe_payment_intent_id,
            payment_type=Payment.PaymentType.REFUND,
        )),
        Decimal('0'),
    )
    refundable = payment.amount - already
    if refundable <= 0:
        raise RefundError("Payment has already been fully refunded")

    refund_amount = refundable if amount is None else min(Decimal(amount), refundable)
    if refund_amount <= 0:
        raise RefundError("Refund amount must be positive")

    booking = payment.booking
    refund = gateway.create_refund(
        payment_intent_id=payment.stripe_payment_intent_id,
        amount=None if refund_amount == refundable and already == 0 else refund_amount,
        metadata={'booking_id': str(booking.id), 'payment_id': str(payment.id), 'reason': reason},
    )

    with transaction.atomic():
        old_payment_status = booking.payment_status
        refund_row = Payment.objects.create(
            booking=booking,
            payment_schedule=payment.payment_schedule,
            stripe_payment_intent_id=payment.stripe_payment_intent_id,
            stripe_refund_id=refund['id'],
            amount=-refund_amount,
            currency=payment.currency,
            payment_type=Payment.PaymentType.REFUND,
            status=Payment.Status.REFUNDED,
            metadata={'reason': reason, 'refunded_payment': str(payment.id)},
        )
        is_full = apply_refund_state(booking)
        if is_full and booking.room_id:
            increment_availability(room_id=booking.room_id, count=booking.guests_count)
        record_status_change(
            booking=booking,
            action=BookingStatusChange.Action.REFUND,
            old_payment_status=old_payment_status,
            actor=actor,
            reason=reason,
            metadata={'payment_id': str(payment.id), 'amount': str(refund_amount), 'refund_id': refund['id']},
        )

    send_refund_confirmation(booking, amount=refund_amount, is_full_refund=is_full)
    logger.info("Refunded %s EUR of payment %s (%s)", refund_amount, payment.id, booking.booking_number)
    return refund_row


def cancel_schedule(*, schedule_id, actor=None, reason: str = '') -> PaymentSchedule:
    """
    Cancel an unpaid installment.

    Raises:
        RefundError: If the installment is unknown, paid or already cancelled
    """
    schedule = PaymentSchedule.objects.select_related('booking').filter(id=schedule_id).first()
    if schedule is None:
        raise RefundError("Payment schedule not found")
    if schedule.status == PaymentSchedule.Status.PAID:
        raise RefundError("Cannot cancel a paid installment. Use refund instead.")
    if schedule.status == PaymentSchedule.Status.CANCELLED:
        raise RefundError("Payment schedule is already cancelled")

    schedule.status = PaymentSchedule.Status.CANCELLED
    schedule.next_retry_at = None
    schedule.save(update_fields=['status', 'next_retry_at', 'updated_at'])
    record_status_change(
        booking=schedule.booking,
        action=BookingStatusChange.Action.STATUS_CHANGE,
        actor=actor,
        reason=reason or f"Installment {schedule.payment_number} cancelled",
        metadata={'schedule_id': str(schedule.id)},
    )
    logger.info("Cancelled installment %s of booking %s", schedule.payment_number, schedule.booking_id)
    return schedule
