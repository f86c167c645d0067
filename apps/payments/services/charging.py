"""
Off-session charges of saved cards.

Used by the daily payment job and by admins retrying an installment. A
failed charge is retried after 24 hours until ``max_attempts`` is reached;
the first failure also opens a 14-day payment deadline after which the
booking is cancelled.
"""

import logging
from dataclasses import dataclass
from datetime import timedelta
from typing import Optional

from django.db import transaction
from django.utils import timezone

from apps.bookings.models import BookingStatusChange
from apps.bookings.services import record_status_change
from apps.notifications.services import (
    send_payment_confirmation,
    send_payment_failed,
    notify_admin_payment_failed,
    notify_admin_payment_received,
)
from ..models import Payment, PaymentSchedule
from . import gateway
from .exceptions import PaymentGatewayError
from .status import refresh_payment_state

logger = logging.getLogger(__name__)

RETRY_DELAY = timedelta(hours=24)
PAYMENT_DEADLINE = timedelta(days=14)
NO_PAYMENT_METHOD = "No payment method on file"


@dataclass
class ChargeOutcome:
    succeeded: bool
    payment: Optional[Payment] = None
    error: str = ''
    exhausted: bool = False


def _open_deadline(schedule: PaymentSchedule, now):
    if schedule.failed_at is None:
        schedule.failed_at = now
        schedule.payment_deadline = now + PAYMENT_DEADLINE
        schedule.reminder_stage = PaymentSchedule.ReminderStage.INITIAL


def mark_missing_payment_method(schedule: PaymentSchedule) -> None:
    """Fail an installment that cannot be charged because no card was saved."""
    now = timezone.now()
    schedule.status = PaymentSchedule.Status.FAILED
    schedule.failure_reason = NO_PAYMENT_METHOD
    schedule.last_attempt_at = now
    _open_deadline(schedule, now)
    schedule.save()

    booking = schedule.booking
    send_payment_failed(booking, schedule, reason=NO_PAYMENT_METHOD)
    notify_admin_payment_failed(booking, schedule, reason=NO_PAYMENT_METHOD)


def record_charge_failure(schedule: PaymentSchedule, reason: str) -> bool:
    """
    Count a failed attempt and schedule the retry.

    Returns:
        True when no retries remain
    """
    now = timezone.now()
    first_failure = schedule.failed_at is None
    schedule.attempts += 1
    schedule.last_attempt_at = now
    schedule.failure_reason = reason
    exhausted = schedule.attempts >= schedule.max_attempts

    if exhausted:
        schedule.status = PaymentSchedule.Status.FAILED
        schedule.next_retry_at = None
    else:
        schedule.status = PaymentSchedule.Status.PENDING
        schedule.next_retry_at = now + RETRY_DELAY
    _open_deadline(schedule, now)
    schedule.save()

    if first_failure or exhausted:
        send_payment_failed(schedule.booking, schedule, reason=reason)
        notify_admin_payment_failed(schedule.booking, schedule, reason=reason)
    return exhausted


def charge_schedule(*, schedule: PaymentSchedule, idempotency_key: str, actor=None) -> ChargeOutcome:
    """
    Charge one installment to the booking's saved card.

    The caller has checked that the booking has a customer and a payment
    method.
    """
    booking = schedule.booking
    schedule.status = PaymentSchedule.Status.PROCESSING
    schedule.last_attempt_at = timezone.now()
    schedule.save(update_fields=['status', 'last_attempt_at', 'updated_at'])

    try:
        intent = gateway.charge_off_session(
            amount=schedule.amount,
            customer_id=booking.stripe_customer_id,
            payment_method_id=booking.stripe_payment_method_id,
            description=f"{booking.booking_number} - {schedule.description or f'Payment {schedule.payment_number}'}",
            metadata={
                'booking_id': booking.id,
                'booking_number': booking.booking_number,
                'payment_schedule_id': schedule.id,
                'payment_number': schedule.payment_number,
                'off_session': 'true',
            },
            idempotency_key=idempotency_key,
        )
    except PaymentGatewayError as e:
        exhausted = record_charge_failure(schedule, str(e))
        return ChargeOutcome(succeeded=False, error=str(e), exhausted=exhausted)

    if intent.get('status') != 'succeeded':
        reason = '3D Secure authentication required' if intent.get('status') == 'requires_action' else (
            f"Payment status: {intent.get('status')}"
        )
        schedule.stripe_payment_intent_id = intent['id']
        exhausted = record_charge_failure(schedule, reason)
        return ChargeOutcome(succeeded=False, error=reason, exhausted=exhausted)

    with transaction.atomic():
        old_payment_status = booking.payment_status
        schedule.status = PaymentSchedule.Status.PAID
        schedule.paid_at = timezone.now()
        schedule.stripe_payment_intent_id = intent['id']
        schedule.clear_failure()
        schedule.save()

        payment = Payment.objects.create(
            booking=booking,
            payment_schedule=schedule,
            stripe_payment_intent_id=intent['id'],
            stripe_customer_id=booking.stripe_customer_id,
            amount=schedule.amount,
            payment_type=Payment.PaymentType.BALANCE,
            status=Payment.Status.SUCCEEDED,
            payment_method='card',
            metadata={'idempotency_key': idempotency_key},
        )
        refresh_payment_state(booking)
        record_status_change(
            booking=booking,
            action=BookingStatusChange.Action.PAYMENT_RECEIVED,
            old_payment_status=old_payment_status,
            actor=actor,
            metadata={'schedule_id': str(schedule.id), 'payment_intent': intent['id'], 'off_session': True},
        )

    next_schedule = (
        PaymentSchedule.objects
        .filter(booking=booking, status=PaymentSchedule.Status.PENDING)
        .order_by('payment_number')
        .first()
    )
    send_payment_confirmation(booking, amount=schedule.amount, payment=payment, next_schedule=next_schedule)
    notify_admin_payment_received(booking, amount=schedule.amount)
    logger.info("Charged installment %s of %s (%s EUR)", schedule.payment_number, booking.booking_number, schedule.amount)
    return ChargeOutcome(succeeded=True, payment=payment)
