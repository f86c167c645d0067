"""Post-retreat feedback requests."""

import logging
from datetime import date, timedelta
from typing import Optional

from django.utils import timezone

from apps.bookings.models import Booking
from apps.content.services import build_feedback_url
from apps.notifications.services import send_feedback_request

logger = logging.getLogger(__name__)

DAYS_AFTER_RETREAT = 2


def send_followups(*, today: Optional[date] = None, dry_run: bool = False) -> dict:
    """
    Ask guests for feedback two days after their retreat ended.

    Only confirmed, fully paid bookings without feedback are contacted. A
    retreat is picked up on exactly one day, so each guest gets one email.

    Returns:
        Dict with eligible, sent, failed and message
    """
    today = today or timezone.localdate()
    ended_on = today - timedelta(days=DAYS_AFTER_RETREAT)

    bookings = (
        Booking.objects.select_related('retreat', 'room')
        .filter(
            status=Booking.Status.CONFIRMED,
            payment_status=Booking.PaymentStatus.PAID,
            retreat__end_date=ended_on,
            feedback__isnull=True,
        )
    )

    eligible = sent = failed = 0
    for booking in bookings:
        eligible += 1
        if dry_run:
            continue
        if send_feedback_request(booking, feedback_url=build_feedback_url(booking.id)):
            sent += 1
        else:
            failed += 1

    logger.info("Follow-ups for retreats ended %s: %s sent, %s failed", ended_on, sent, failed)
    return {
        'eligible': eligible,
        'sent': sent,
        'failed': failed,
        'message': f"Sent {sent} follow-up emails",
    }
