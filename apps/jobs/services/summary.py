"""Weekly activity report for the site admins."""

import logging
from datetime import timedelta

from django.db.models import Count, Q, Sum
from django.utils import timezone

from apps.bookings.models import Booking
from apps.content.models import RetreatFeedback
from apps.content.services import get_admin_email, get_setting_value
from apps.notifications.services import send_weekly_summary
from apps.payments.models import Payment, PaymentSchedule
from apps.retreats.models import Retreat
from apps.waitlist.models import WaitlistEntry

logger = logging.getLogger(__name__)

PERIOD_DAYS = 7
UPCOMING_DAYS = 30


def build_weekly_summary(*, now=None) -> dict:
    """Activity over the last seven days plus retreats starting within 30 days."""
    now = now or timezone.now()
    since = now - timedelta(days=PERIOD_DAYS)

    payments = Payment.objects.filter(status=Payment.Status.SUCCEEDED, created_at__gte=since)
    revenue = payments.aggregate(total=Sum('amount'))['total'] or 0
    responded = WaitlistEntry.objects.filter(responded_at__gte=since)

    stats = {
        'newBookings': Booking.objects.filter(created_at__gte=since).exclude(status=Booking.Status.CANCELLED).count(),
        'paymentsReceived': payments.count(),
        'totalRevenue': revenue,
        'paymentsFailed': PaymentSchedule.objects.filter(
            status=PaymentSchedule.Status.FAILED, updated_at__gte=since,
        ).count(),
        'waitlistJoins': WaitlistEntry.objects.filter(created_at__gte=since).count(),
        'waitlistAccepted': responded.filter(status=WaitlistEntry.Status.ACCEPTED).count(),
        'waitlistDeclined': responded.filter(status=WaitlistEntry.Status.DECLINED).count(),
        'feedbackReceived': RetreatFeedback.objects.filter(created_at__gte=since).count(),
    }

    today = now.date()
    retreats = (
        Retreat.objects.alive()
        .filter(is_published=True, start_date__gte=today, start_date__lte=today + timedelta(days=UPCOMING_DAYS))
        .annotate(
            bookings_count=Count('bookings', filter=~Q(bookings__status=Booking.Status.CANCELLED), distinct=True),
            spots_remaining=Sum('rooms__available'),
        )
        .order_by('start_date')
    )
    upcoming = [
        {
            'id': str(retreat.id),
            'title': retreat.display_name,
            'startDate': retreat.start_date,
            'bookingsCount': retreat.bookings_count,
            'spotsRemaining': retreat.spots_remaining or 0,
        }
        for retreat in retreats
    ]

    return {
        'period': {'start': since, 'end': now},
        'stats': stats,
        'upcomingRetreats': upcoming,
    }


def weekly_summary(*, now=None, dry_run: bool = False) -> dict:
    """
    Build the weekly report and email it to the general admin address.

    Nothing is sent when weekly reports are switched off in the
    notification settings.

    Returns:
        Dict with sent (bool), recipient and summary
    """
    summary = build_weekly_summary(now=now)
    recipient = get_admin_email('general')

    if not get_setting_value('notifications', 'weeklyReports', True):
        logger.info("Weekly reports disabled, summary not sent")
        return {'sent': False, 'recipient': recipient, 'reason': 'disabled', 'summary': summary}
    if dry_run:
        return {'sent': False, 'recipient': recipient, 'reason': 'dry_run', 'summary': summary}

    sent = send_weekly_summary(to=recipient, summary=summary)
    logger.info("Weekly summary %s to %s", 'sent' if sent else 'NOT sent', recipient)
    return {'sent': sent, 'recipient': recipient, 'summary': summary}
