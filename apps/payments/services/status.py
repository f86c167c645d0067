"""Booking payment status derived from installments and payments."""

from decimal import Decimal

from django.db.models import Sum

from apps.bookings.models import Booking
from ..models import Payment, PaymentSchedule


def refresh_payment_state(booking: Booking, *, save: bool = True) -> Booking:
    """
    Recompute ``payment_status`` and ``balance_due`` after a payment.

    Bookings without installments were paid in full at checkout. Otherwise
    the booking is paid once no open installment remains, has a deposit
    after the first installment and is partially paid after more.
    """
    schedules = PaymentSchedule.objects.filter(booking=booking).exclude(status=PaymentSchedule.Status.CANCELLED)

    if not schedules.exists():
        booking.payment_status = Booking.PaymentStatus.PAID
        booking.balance_due = Decimal('0.00')
    else:
        open_schedules = schedules.exclude(status=PaymentSchedule.Status.PAID)
        paid_count = schedules.filter(status=PaymentSchedule.Status.PAID).count()
        booking.balance_due = open_schedules.aggregate(total=Sum('amount'))['total'] or Decimal('0.00')

        if not open_schedules.exists():
            booking.payment_status = Booking.PaymentStatus.PAID
        elif paid_count == 0:
            booking.payment_status = Booking.PaymentStatus.UNPAID
        elif paid_count == 1:
            booking.payment_status = Booking.PaymentStatus.DEPOSIT
        else:
            booking.payment_status = Booking.PaymentStatus.PARTIAL

    if save:
        booking.save(update_fields=['payment_status', 'balance_due', 'updated_at'])
    return booking


def refund_totals(booking: Booking):
    """(amount paid, amount refunded) across the booking's Stripe payments."""
    paid = (
        Payment.objects
        .filter(booking=booking, status=Payment.Status.SUCCEEDED, amount__gt=0)
        .aggregate(total=Sum('amount'))['total'] or Decimal('0.00')
    )
    refunded = (
        Payment.objects
        .filter(booking=booking, payment_type=Payment.PaymentType.REFUND)
        .aggregate(total=Sum('amount'))['total'] or Decimal('0.00')
    )
    return paid, -refunded


def apply_refund_state(booking: Booking) -> bool:
    """
    Set refunded or partial_refund from the recorded refunds.

    Returns:
        True when everything paid has been refunded
    """
    paid, refunded = refund_totals(booking)
    is_full = refunded >= paid
    booking.payment_status = Booking.PaymentStatus.REFUNDED if is_full else Booking.PaymentStatus.PARTIAL_REFUND
    booking.save(update_fields=['payment_status', 'updated_at'])
    return is_full
