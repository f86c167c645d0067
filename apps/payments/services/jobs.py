"""
Daily payment jobs: charging due installments and sending reminders.

Both run from cron through ``/api/cron/...`` and as management commands.
"""

import logging
from datetime import date, timedelta
from typing import Optional

from django.db.models import Q
from django.utils import timezone

from apps.bookings.models import Booking, BookingStatusChange
from apps.bookings.services import BookingStateError, cancel_booking
from apps.notifications.services import (
    send_payment_reminder,
    send_payment_deadline_reminder,
    send_pre_retreat_reminder,
)
from ..models import PaymentSchedule
from .charging import charge_schedule, mark_missing_payment_method

logger = logging.getLogger(__name__)

AUTO_CANCEL_REASON = "Payment deadline exceeded - auto-cancelled"
PRE_RETREAT_DAYS = 42

URGENCY_BY_DAYS = {0: 'today', 1: 'tomorrow', 3: 'days', 7: 'week'}
DEADLINE_STAGES = {3: PaymentSchedule.ReminderStage.THREE_DAYS, 1: PaymentSchedule.ReminderStage.ONE_DAY}


def reminder_urgency(days_until_due: int) -> Optional[str]:
    if days_until_due < 0:
        return 'overdue'
    return URGENCY_BY_DAYS.get(days_until_due)


def auto_cancel_overdue_bookings(*, now=None, dry_run: bool = False) -> dict:
    """Cancel bookings whose failed installment passed its payment deadline."""
    now = now or timezone.now()
    booking_ids = (
        PaymentSchedule.objects
        .filter(
            status=PaymentSchedule.Status.FAILED,
            payment_deadline__isnull=False,
            payment_deadline__lte=now,
        )
        .exclude(booking__status=Booking.Status.CANCELLED)
        .values_list('booking_id', flat=True)
        .distinct()
    )

    cancelled, errors = 0, []
    for booking in Booking.objects.filter(id__in=list(booking_ids)).select_related('retreat', 'room'):
        if dry_run:
            logger.info("[dry-run] Would auto-cancel %s", booking.booking_number)
            cancelled += 1
            continue
        try:
            cancel_booking(
                booking=booking,
                reason=AUTO_CANCEL_REASON,
                action=BookingStatusChange.Action.AUTO_CANCELLATION,
            )
            cancelled += 1
            logger.info("Auto-cancelled %s after missed payment deadline", booking.booking_number)
        except BookingStateError as e:
            errors.append(f"{booking.booking_number}: {e}")
    return {'cancelled': cancelled, 'errors': errors}


def process_payments(*, now=None, dry_run: bool = False) -> dict:
    """
    Charge installments that are due and cancel bookings past their deadline.

    Returns:
        Counts of processed, succeeded, failed, skipped and cancelled
        installments plus error messages
    """
    now = now or timezone.now()
    today = timezone.localdate(now)
    logger.info("Processing scheduled payments for %s%s", today, ' (dry run)' if dry_run else '')

    cancellation = auto_cancel_overdue_bookings(now=now, dry_run=dry_run)
    results = {
        'processed': 0,
        'succeeded': 0,
        'failed': 0,
        'skipped': 0,
        'cancelled': cancellation['cancelled'],
        'errors': list(cancellation['errors']),
    }

    due = (
        PaymentSchedule.objects
        .select_related('booking', 'booking__retreat', 'booking__room')
        .filter(status=PaymentSchedule.Status.PENDING, due_date__lte=today, payment_number__gt=1)
        .filter(Q(next_retry_at__isnull=True) | Q(next_retry_at__lte=now))
        .exclude(booking__status=Booking.Status.CANCELLED)
        .order_by('due_date', 'payment_number')
    )

    for schedule in due:
        results['processed'] += 1
        booking = schedule.booking

        if not (booking.stripe_customer_id and booking.stripe_payment_method_id):
            results['skipped'] += 1
            if not dry_run:
                mark_missing_payment_method(schedule)
            logger.info("No saved card for %s installment %s", booking.booking_number, schedule.payment_number)
            continue

        if dry_run:
            logger.info("[dry-run] Would charge %s EUR for %s", schedule.amount, booking.booking_number)
            continue

        outcome = charge_schedule(
            schedule=schedule,
            idempotency_key=f"cron-payment-{schedule.id}-{schedule.due_date.isoformat()}",
        )
        if outcome.succeeded:
            results['succeeded'] += 1
        else:
            results['failed'] += 1
            results['errors'].append(f"{booking.booking_number}: {outcome.error}")

    logger.info(
        "Payments processed: %(processed)s, succeeded: %(succeeded)s, failed: %(failed)s, "
        "skipped: %(skipped)s, cancelled: %(cancelled)s", results,
    )
    return results


def send_reminders(*, today: Optional[date] = None, dry_run: bool = False) -> dict:
    """Payment, deadline and pre-retreat reminders for today."""
    today = today or timezone.localdate()
    now = timezone.now()
    results = {
        'paymentReminders': {'sent': 0, 'errors': 0},
        'deadlineReminders': {'sent': 0, 'errors': 0},
        'preRetreatReminders': {'sent': 0, 'errors': 0},
    }

    upcoming = (
        PaymentSchedule.objects
        .select_related('booking', 'booking__retreat', 'booking__room')
        .filter(status=PaymentSchedule.Status.PENDING, payment_number__gt=1)
        .exclude(booking__status=Booking.Status.CANCELLED)
    )
    for schedule in upcoming:
        days = (schedule.due_date - today).days
        urgency = reminder_urgency(days)
        if urgency is None:
            continue
        if schedule.last_reminder_sent_at and timezone.localdate(schedule.last_reminder_sent_at) == today:
            continue
        if dry_run:
            results['paymentReminders']['sent'] += 1
            continue
        if send_payment_reminder(schedule.booking, schedule, urgency=urgency, days_until_due=days):
            PaymentSchedule.objects.filter(id=schedule.id).update(last_reminder_sent_at=now)
            results['paymentReminders']['sent'] += 1
        else:
            results['paymentReminders']['errors'] += 1

    failed = (
        PaymentSchedule.objects
        .select_related('booking', 'booking__retreat', 'booking__room')
        .filter(status=PaymentSchedule.Status.FAILED, payment_deadline__isnull=False)
        .exclude(booking__status=Booking.Status.CANCELLED)
    )
    for schedule in failed:
        days_left = (timezone.localdate(schedule.payment_deadline) - today).days
        stage = DEADLINE_STAGES.get(days_left)
        if stage is None or schedule.reminder_stage == stage:
            continue
        if dry_run:
            results['deadlineReminders']['sent'] += 1
            continue
        if send_payment_deadline_reminder(schedule.booking, schedule, days_left=days_left):
            PaymentSchedule.objects.filter(id=schedule.id).update(reminder_stage=stage, last_reminder_sent_at=now)
            results['deadlineReminders']['sent'] += 1
        else:
            results['deadlineReminders']['errors'] += 1

    retreat_day = today + timedelta(days=PRE_RETREAT_DAYS)
    travellers = Booking.objects.select_related('retreat', 'room').filter(
        status=Booking.Status.CONFIRMED,
        retreat__start_date=retreat_day,
    )
    for booking in travellers:
        if dry_run:
            results['preRetreatReminders']['sent'] += 1
            continue
        if send_pre_retreat_reminder(booking):
            results['preRetreatReminders']['sent'] += 1
        else:
            results['preRetreatReminders']['errors'] += 1

    logger.info("Reminders sent: %s", results)
    return results
