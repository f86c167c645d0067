"""Customer pay-now links, the billing portal and admin payment actions."""

import logging
from typing import Optional

from django.conf import settings
from django.utils import timezone

from apps.bookings.models import Booking
from apps.bookings.services import (
    AccessTokenExpiredError,
    AccessTokenInvalidError,
    get_booking_by_access_token,
)
from ..models import PaymentSchedule
from . import gateway
from .charging import NO_PAYMENT_METHOD, ChargeOutcome, charge_schedule
from .exceptions import ScheduleNotPayableError

logger = logging.getLogger(__name__)

PAYABLE_STATUSES = (
    PaymentSchedule.Status.PENDING,
    PaymentSchedule.Status.PROCESSING,
    PaymentSchedule.Status.FAILED,
)


def _early_payment_session(*, booking: Booking, schedule: PaymentSchedule, success_url: str, cancel_url: str):
    retreat = booking.retreat
    session = gateway.create_checkout_session(
        amount=schedule.amount,
        product_name=f"{retreat.destination} Retreat - Payment {schedule.payment_number}",
        description=f"{booking.room.name} | {booking.booking_number}" if booking.room_id else booking.booking_number,
        metadata={
            'booking_id': booking.id,
            'payment_schedule_id': schedule.id,
            'type': 'early_payment',
            'payment_number': schedule.payment_number,
        },
        success_url=success_url,
        cancel_url=cancel_url,
        customer_id=booking.stripe_customer_id or None,
        customer_email=booking.email,
    )
    return session


def create_early_payment_session(*, schedule_id, token: str) -> str:
    """
    Checkout URL for paying one installment from a reminder email.

    Raises:
        ScheduleNotPayableError: ``code`` names the reason for the redirect
    """
    try:
        booking = get_booking_by_access_token(token=token)
    except AccessTokenInvalidError as e:
        raise ScheduleNotPayableError(str(e), code='invalid_token') from e
    except AccessTokenExpiredError as e:
        raise ScheduleNotPayableError(str(e), code='token_expired') from e

    if booking.status == Booking.Status.CANCELLED:
        raise ScheduleNotPayableError("Booking is cancelled", code='booking_cancelled')

    schedule = PaymentSchedule.objects.filter(id=schedule_id, booking=booking).first()
    if schedule is None:
        raise ScheduleNotPayableError("Payment schedule not found", code='schedule_not_found')
    if schedule.status == PaymentSchedule.Status.PAID:
        raise ScheduleNotPayableError("This payment has already been paid", code='already_paid')
    if schedule.status not in PAYABLE_STATUSES:
        raise ScheduleNotPayableError("This payment cannot be paid", code='invalid_status')
    if schedule.amount <= 0:
        raise ScheduleNotPayableError("Invalid payment amount", code='invalid_amount')

    portal = f"{settings.SITE_URL}/my-booking?token={token}"
    session = _early_payment_session(
        booking=booking,
        schedule=schedule,
        success_url=f"{portal}&payment=success",
        cancel_url=portal,
    )
    PaymentSchedule.objects.filter(id=schedule.id).update(
        status=PaymentSchedule.Status.PROCESSING, updated_at=timezone.now(),
    )
    logger.info("Early payment session for %s installment %s", booking.booking_number, schedule.payment_number)
    return session.url


def create_payment_link(*, booking: Booking, schedule_id=None) -> dict:
    """
    Admin: checkout link for a specific or the next open installment.

    Raises:
        ScheduleNotPayableError: For closed bookings or nothing left to pay
    """
    if booking.status in (Booking.Status.CANCELLED, Booking.Status.COMPLETED):
        raise ScheduleNotPayableError(f"Cannot create payment link for {booking.status} booking")

    schedules = PaymentSchedule.objects.filter(booking=booking)
    if schedule_id:
        schedule = schedules.filter(id=schedule_id).first()
        if schedule is None:
            raise ScheduleNotPayableError("Payment schedule not found", code='schedule_not_found')
        if schedule.status == PaymentSchedule.Status.PAID:
            raise ScheduleNotPayableError("This payment has already been paid", code='already_paid')
    else:
        schedule = (
            schedules
            .filter(status__in=[PaymentSchedule.Status.PENDING, PaymentSchedule.Status.FAILED])
            .order_by('payment_number')
            .first()
        )
        if schedule is None:
            raise ScheduleNotPayableError("No pending payments found for this booking", code='nothing_due')

    portal = f"{settings.SITE_URL}/my-booking?token={booking.access_token}"
    session = _early_payment_session(
        booking=booking,
        schedule=schedule,
        success_url=f"{portal}&payment=success",
        cancel_url=portal,
    )
    logger.info("Admin payment link for %s installment %s", booking.booking_number, schedule.payment_number)
    return {
        'url': session.url,
        'sessionId': session.id,
        'scheduleId': str(schedule.id),
        'paymentNumber': schedule.payment_number,
        'amount': str(schedule.amount),
    }


def retry_payment(*, booking: Booking, schedule_id, force: bool = False, actor=None) -> ChargeOutcome:
    """
    Admin: charge an installment now.

    Raises:
        ScheduleNotPayableError: If the installment cannot be charged
    """
    schedule = PaymentSchedule.objects.select_related('booking', 'booking__retreat', 'booking__room').filter(
        id=schedule_id, booking=booking,
    ).first()
    if schedule is None:
        raise ScheduleNotPayableError("Payment schedule not found", code='schedule_not_found')
    if schedule.status == PaymentSchedule.Status.PAID:
        raise ScheduleNotPayableError("This payment has already been paid", code='already_paid')
    if schedule.status == PaymentSchedule.Status.CANCELLED:
        raise ScheduleNotPayableError("Cannot retry cancelled payment. Restore the booking first.")
    if not force and schedule.attempts >= schedule.max_attempts:
        raise ScheduleNotPayableError("Maximum retry attempts reached", code='max_attempts')
    if not (booking.stripe_customer_id and booking.stripe_payment_method_id):
        raise ScheduleNotPayableError(NO_PAYMENT_METHOD, code='no_payment_method')

    key = f"admin-retry-{schedule.id}-{schedule.attempts}-{int(timezone.now().timestamp())}"
    return charge_schedule(schedule=schedule, idempotency_key=key, actor=actor)


def create_customer_portal_url(*, token: str) -> Optional[str]:
    """
    Stripe billing portal for the booking behind ``token``.

    Returns:
        The portal URL, or None when the booking has no Stripe customer
    """
    booking = get_booking_by_access_token(token=token)
    if not booking.stripe_customer_id:
        return None
    return gateway.create_portal_session(
        customer_id=booking.stripe_customer_id,
        return_url=f"{settings.SITE_URL}/my-booking?token={token}",
    )
