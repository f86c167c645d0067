import csv
import io
from datetime import timedelta

from django.db.models import Count, Q
from django.utils import timezone

from ..models import Campaign, CampaignRecipient, Subscriber

EXPORT_COLUMNS = ['email', 'first_name', 'language', 'status', 'source', 'tags', 'confirmed_at', 'created_at']


def _percent(part: int, whole: int) -> float:
    return round(part / whole * 100, 1) if whole else 0.0


def newsletter_stats(*, now=None) -> dict:
    """Subscriber, campaign and 30-day delivery numbers for the dashboard."""
    now = now or timezone.now()
    status_counts = dict(
        Subscriber.objects.values_list('status').annotate(n=Count('id')).values_list('status', 'n')
    )
    total = sum(status_counts.values())
    by_language = dict(
        Subscriber.objects.filter(status=Subscriber.Status.ACTIVE)
        .values_list('language').annotate(n=Count('id')).values_list('language', 'n')
    )
    by_source = dict(
        Subscriber.objects.values_list('source').annotate(n=Count('id')).values_list('source', 'n')
    )

    campaigns = Campaign.objects.aggregate(
        total=Count('id'),
        draft=Count('id', filter=Q(status=Campaign.Status.DRAFT)),
        sent=Count('id', filter=Q(status=Campaign.Status.SENT)),
        scheduled=Count('id', filter=Q(status=Campaign.Status.SCHEDULED)),
    )

    recent = CampaignRecipient.objects.filter(sent_at__gte=now - timedelta(days=30))
    delivered_statuses = [
        CampaignRecipient.Status.DELIVERED,
        CampaignRecipient.Status.OPENED,
        CampaignRecipient.Status.CLICKED,
    ]
    performance = recent.aggregate(
        sent=Count('id'),
        delivered=Count('id', filter=Q(status__in=delivered_statuses)),
        opened=Count('id', filter=Q(opened_at__isnull=False)),
        clicked=Count('id', filter=Q(clicked_at__isnull=False)),
        bounced=Count('id', filter=Q(status=CampaignRecipient.Status.BOUNCED)),
    )

    new_last_week = Subscriber.objects.filter(created_at__gte=now - timedelta(days=7)).count()
    previous_total = total - new_last_week

    return {
        'subscribers': {
            'total': total,
            'active': status_counts.get(Subscriber.Status.ACTIVE, 0),
            'pending': status_counts.get(Subscriber.Status.PENDING, 0),
            'unsubscribed': status_counts.get(Subscriber.Status.UNSUBSCRIBED, 0),
            'bounced': status_counts.get(Subscriber.Status.BOUNCED, 0),
            'byLanguage': by_language,
            'bySource': by_source,
        },
        'campaigns': campaigns,
        'emailPerformance': {
            **performance,
            'deliveryRate': _percent(performance['delivered'], performance['sent']),
            'openRate': _percent(performance['opened'], performance['delivered']),
            'clickRate': _percent(performance['clicked'], performance['opened']),
            'period': '30 days',
        },
        'growth': {
            'newSubscribersLast7Days': new_last_week,
            'growthRate': _percent(new_last_week, previous_total),
        },
    }


def export_subscribers_csv(queryset) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer)
    writer.writerow(EXPORT_COLUMNS)
    for subscriber in queryset:
        writer.writerow([
            subscriber.email,
            subscriber.first_name,
            subscriber.language,
            subscriber.status,
            subscriber.source,
            ';'.join(subscriber.tags or []),
            subscriber.confirmed_at.isoformat() if subscriber.confirmed_at else '',
            subscriber.created_at.isoformat(),
        ])
    return buffer.getvalue()
