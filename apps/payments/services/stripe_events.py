"""
Stripe webhook event handlers.

Stripe retries deliveries, so every handler is idempotent: checkout
completion claims the pending Payment row with a conditional UPDATE keyed
on the event id, and early payments skip installments already paid.
Emails are sent after the database work and never fail the webhook.
"""

import logging
from decimal import Decimal

from django.db import transaction
from django.utils import timezone

from apps.bookings.models import Booking, BookingStatusChange
from apps.bookings.services import record_status_change
from apps.content.services import get_setting_value
from apps.newsletter.services import upsert_from_booking
from apps.notifications.services import (
    send_booking_confirmation,
    send_payment_confirmation,
    send_payment_failed,
    send_refund_confirmation,
    notify_admin_new_booking,
    notify_admin_payment_received,
    notify_admin_payment_failed,
)
from apps.retreats.services import try_decrement_availability, increment_availability
from ..models import Payment, PaymentSchedule
from . import gateway
from .exceptions import PaymentGatewayError
from .status import refresh_payment_state, apply_refund_state

logger = logging.getLogger(__name__)

EARLY_PAYMENT = 'early_payment'


def dispatch_event(event) -> str:
    """
    Route a verified Stripe event to its handler.

    Returns:
        A short outcome string for logging and the response body
    """
    event_type = event['type']
    obj = event['data']['object']
    handlers = {
        'checkout.session.completed': lambda: handle_checkout_completed(obj, event_id=event['id']),
        'payment_intent.succeeded': lambda: handle_payment_succeeded(obj),
        'payment_intent.payment_failed': lambda: handle_payment_failed(obj),
        'charge.refunded': lambda: handle_charge_refunded(obj),
    }
    handler = handlers.get(event_type)
    if handler is None:
        logger.debug("Ignoring Stripe event %s", event_type)
        return 'ignored'
    return handler()


def _metadata(obj) -> dict:
    return dict(obj.get('metadata') or {})


def _next_open_schedule(booking):
    return (
        PaymentSchedule.objects
        .filter(booking=booking, status=PaymentSchedule.Status.PENDING)
        .order_by('payment_number')
        .first()
    )


def handle_checkout_completed(session, *, event_id: str) -> str:
    metadata = _metadata(session)
    if metadata.get('type') == EARLY_PAYMENT and metadata.get('payment_schedule_id'):
        return handle_early_payment(session, event_id=event_id)

    booking_id = metadata.get('booking_id')
    if not booking_id:
        logger.error("Checkout session %s has no booking_id", session.get('id'))
        return 'missing_booking'

    payment_intent_id = session.get('payment_intent') or ''
    customer_id = session.get('customer') or ''

    claimed = (
        Payment.objects
        .filter(stripe_checkout_session_id=session['id'], stripe_webhook_event_id__isnull=True)
        .update(
            stripe_payment_intent_id=payment_intent_id,
            stripe_customer_id=customer_id,
            stripe_webhook_event_id=event_id,
            status=Payment.Status.SUCCEEDED,
            payment_method='card',
            updated_at=timezone.now(),
        )
    )
    if not claimed:
        logger.info("Event %s already processed for session %s", event_id, session['id'])
        return 'duplicate'

    booking = Booking.objects.select_related('retreat', 'room').filter(id=booking_id).first()
    if booking is None:
        logger.error("Booking %s from session %s not found", booking_id, session['id'])
        return 'missing_booking'

    payment_method_id = ''
    if customer_id and payment_intent_id:
        try:
            intent = gateway.retrieve_payment_intent(payment_intent_id)
            payment_method_id = intent.get('payment_method') or ''
        except PaymentGatewayError:
            logger.exception("Could not read payment method for %s", booking.booking_number)

    payment_number = int(metadata.get('payment_number') or 1)
    is_first_payment = payment_number == 1
    auto_confirm = bool(get_setting_value('booking', 'autoConfirm', False))

    with transaction.atomic():
        booking = Booking.objects.select_for_update().select_related('retreat', 'room').get(id=booking.id)
        old_status, old_payment_status = booking.status, booking.payment_status

        if customer_id:
            booking.stripe_customer_id = customer_id
        if payment_method_id:
            booking.stripe_payment_method_id = payment_method_id

        PaymentSchedule.objects.filter(booking=booking, payment_number=payment_number).update(
            status=PaymentSchedule.Status.PAID,
            stripe_payment_intent_id=payment_intent_id,
            paid_at=timezone.now(),
        )
        refresh_payment_state(booking, save=False)
        if booking.status == Booking.Status.PENDING and auto_confirm:
            booking.status = Booking.Status.CONFIRMED
        booking.save()

        if is_first_payment and booking.room_id:
            if not try_decrement_availability(room_id=booking.room_id, count=booking.guests_count):
                logger.warning("Room %s was full when %s was paid", booking.room_id, booking.booking_number)

        record_status_change(
            booking=booking,
            action=BookingStatusChange.Action.PAYMENT_RECEIVED,
            old_status=old_status,
            old_payment_status=old_payment_status,
            metadata={'event_id': event_id, 'session_id': session['id'], 'payment_number': payment_number},
        )

    payment = Payment.objects.filter(stripe_webhook_event_id=event_id).first()
    amount = payment.amount if payment else gateway.from_cents(session.get('amount_total'))

    if is_first_payment:
        send_booking_confirmation(booking)
        notify_admin_new_booking(booking)
        if booking.newsletter_opt_in:
            upsert_from_booking(booking)
    else:
        send_payment_confirmation(booking, amount=amount, payment=payment, next_schedule=_next_open_schedule(booking))
        notify_admin_payment_received(booking, amount=amount)

    logger.info(
        "Booking %s paid installment %s via checkout (%s)",
        booking.booking_number, payment_number, booking.payment_status,
    )
    return 'processed'


def handle_early_payment(session, *, event_id: str) -> str:
    """Customer paid an installment ahead of the automatic charge."""
    metadata = _metadata(session)
    schedule = (
        PaymentSchedule.objects
        .select_related('booking', 'booking__retreat', 'booking__room')
        .filter(id=metadata['payment_schedule_id'])
        .first()
    )
    if schedule is None:
        logger.error("Early payment for unknown schedule %s", metadata['payment_schedule_id'])
        return 'missing_schedule'

    payment_intent_id = session.get('payment_intent') or ''
    with transaction.atomic():
        updated = (
            PaymentSchedule.objects
            .filter(id=schedule.id, status__in=PaymentSchedule.UNPAID_STATUSES)
            .update(
                status=PaymentSchedule.Status.PAID,
                paid_at=timezone.now(),
                stripe_payment_intent_id=payment_intent_id,
                failure_reason='',
                failed_at=None,
                payment_deadline=None,
                reminder_stage='',
                next_retry_at=None,
            )
        )
        if not updated:
            logger.info("Schedule %s already paid, skipping early payment", schedule.id)
            return 'duplicate'

        booking = Booking.objects.select_for_update().select_related('retreat', 'room').get(id=schedule.booking_id)
        old_payment_status = booking.payment_status
        payment = Payment.objects.create(
            booking=booking,
            payment_schedule=schedule,
            stripe_payment_intent_id=payment_intent_id,
            stripe_checkout_session_id=session['id'],
            stripe_customer_id=session.get('customer') or '',
            stripe_webhook_event_id=event_id,
            amount=schedule.amount,
            payment_type=Payment.PaymentType.DEPOSIT if schedule.payment_number == 1 else Payment.PaymentType.BALANCE,
            status=Payment.Status.SUCCEEDED,
            payment_method='card',
        )
        refresh_payment_state(booking)
        record_status_change(
            booking=booking,
            action=BookingStatusChange.Action.PAYMENT_RECEIVED,
            old_payment_status=old_payment_status,
            metadata={'event_id': event_id, 'schedule_id': str(schedule.id), 'early_payment': True},
        )

    send_payment_confirmation(booking, amount=schedule.amount, payment=payment, next_schedule=_next_open_schedule(booking))
    notify_admin_payment_received(booking, amount=schedule.amount)
    logger.info("Early payment of installment %s for %s", schedule.payment_number, booking.booking_number)
    return 'processed'


def handle_payment_succeeded(intent) -> str:
    intent_id = intent['id']
    Payment.objects.filter(stripe_payment_intent_id=intent_id, amount__gt=0).update(status=Payment.Status.SUCCEEDED)
    updated = (
        PaymentSchedule.objects
        .filter(stripe_payment_intent_id=intent_id)
        .exclude(status=PaymentSchedule.Status.PAID)
        .update(status=PaymentSchedule.Status.PAID, paid_at=timezone.now())
    )
    if updated:
        schedule = PaymentSchedule.objects.select_related('booking').filter(stripe_payment_intent_id=intent_id).first()
        refresh_payment_state(schedule.booking)
    return 'processed'


def handle_payment_failed(intent) -> str:
    intent_id = intent['id']
    error = intent.get('last_payment_error') or {}
    reason = error.get('message') or 'Payment failed'

    Payment.objects.filter(stripe_payment_intent_id=intent_id).update(
        status=Payment.Status.FAILED, failure_reason=reason,
    )
    PaymentSchedule.objects.filter(stripe_payment_intent_id=intent_id).exclude(
        status=PaymentSchedule.Status.PAID,
    ).update(
        status=PaymentSchedule.Status.FAILED,
        failure_reason=reason,
        last_attempt_at=timezone.now(),
    )

    schedule = (
        PaymentSchedule.objects
        .select_related('booking', 'booking__retreat', 'booking__room')
        .filter(stripe_payment_intent_id=intent_id)
        .first()
    )
    if schedule is None:
        logger.warning("Payment intent %s failed with no matching installment", intent_id)
        return 'processed'

    send_payment_failed(schedule.booking, schedule, reason=reason)
    notify_admin_payment_failed(schedule.booking, schedule, reason=reason)
    logger.info("Payment intent %s failed for %s: %s", intent_id, schedule.booking.booking_number, reason)
    return 'processed'


def handle_charge_refunded(charge) -> str:
    intent_id = charge.get('payment_intent')
    original = (
        Payment.objects
        .select_related('booking', 'booking__retreat', 'booking__room')
        .filter(stripe_payment_intent_id=intent_id, amount__gt=0)
        .first()
    )
    if original is None:
        logger.error("Original payment not found for refund of %s", intent_id)
        return 'missing_payment'

    refund_ids = [r.get('id') for r in ((charge.get('refunds') or {}).get('data') or []) if r.get('id')]
    if refund_ids and Payment.objects.filter(stripe_refund_id__in=refund_ids).exists():
        logger.info("Refund for %s already recorded", intent_id)
        return 'duplicate'

    booking = original.booking
    refunded_total = gateway.from_cents(charge.get('amount_refunded'))
    already_refunded = -sum(
        (p.amount for p in Payment.objects.filter(
            stripe_payment_intent_id=intent_id, payment_type=Payment.PaymentType.REFUND,
        )),
        Decimal('0'),
    )
    amount = refunded_total - already_refunded
    if amount <= 0:
        return 'duplicate'

    with transaction.atomic():
        old_payment_status = booking.payment_status
        Payment.objects.create(
            booking=booking,
            stripe_payment_intent_id=intent_id,
            stripe_refund_id=refund_ids[0] if refund_ids else '',
            amount=-amount,
            currency=(charge.get('currency') or 'eur').upper(),
            payment_type=Payment.PaymentType.REFUND,
            status=Payment.Status.REFUNDED,
        )
        is_full = apply_refund_state(booking)
        if is_full and booking.room_id:
            increment_availability(room_id=booking.room_id, count=booking.guests_count)
        record_status_change(
            booking=booking,
            action=BookingStatusChange.Action.REFUND,
            old_payment_status=old_payment_status,
            metadata={'payment_intent': intent_id, 'amount': str(amount), 'source': 'stripe'},
        )

    send_refund_confirmation(booking, amount=amount, is_full_refund=is_full)
    logger.info("Refund of %s EUR recorded for %s", amount, booking.booking_number)
    return 'processed'
