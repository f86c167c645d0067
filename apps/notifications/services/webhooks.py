"""
Resend delivery webhooks.

Signatures use the ``t=<unix>,v1=<base64 hmac>`` header format, where the
HMAC-SHA256 covers ``"<t>.<raw body>"``. Events older than five minutes
are rejected to stop replays.
"""

import base64
import hashlib
import hmac
import logging
import time

from django.db import transaction
from django.db.models import F
from django.utils import timezone

from apps.newsletter.models import CampaignRecipient, EmailEvent, Subscriber
from ..models import EmailLog
from .exceptions import WebhookSignatureError

logger = logging.getLogger(__name__)

MAX_WEBHOOK_AGE_SECONDS = 300

EVENT_STATUS = {
    'email.sent': CampaignRecipient.Status.SENT,
    'email.delivered': CampaignRecipient.Status.DELIVERED,
    'email.opened': CampaignRecipient.Status.OPENED,
    'email.clicked': CampaignRecipient.Status.CLICKED,
    'email.bounced': CampaignRecipient.Status.BOUNCED,
    # Complaints are handled like bounces for list hygiene
    'email.complained': CampaignRecipient.Status.BOUNCED,
}

EVENT_TIMESTAMP_FIELD = {
    'email.sent': 'sent_at',
    'email.delivered': 'delivered_at',
    'email.opened': 'opened_at',
    'email.clicked': 'clicked_at',
    'email.bounced': 'bounced_at',
    'email.complained': 'bounced_at',
}

STATUS_ORDER = ['pending', 'sent', 'delivered', 'opened', 'clicked', 'bounced', 'failed']


def compute_signature(secret: str, timestamp: str, body: bytes) -> str:
    signed = f"{timestamp}.".encode() + body
    digest = hmac.new(secret.encode(), signed, hashlib.sha256).digest()
    return base64.b64encode(digest).decode()


def verify_signature(*, body: bytes, header: str, secret: str, now: float = None) -> None:
    """
    Raises:
        WebhookSignatureError: If the header is missing, stale or does not match
    """
    if not header or not secret:
        raise WebhookSignatureError("Missing signature or secret")

    parts = dict(part.split('=', 1) for part in header.split(',') if '=' in part)
    timestamp, signature = parts.get('t'), parts.get('v1')
    if not timestamp or not signature:
        raise WebhookSignatureError("Invalid signature format")

    try:
        sent_at = int(timestamp)
    except ValueError as e:
        raise WebhookSignatureError("Invalid timestamp") from e

    now = time.time() if now is None else now
    if abs(now - sent_at) > MAX_WEBHOOK_AGE_SECONDS:
        raise WebhookSignatureError("Timestamp outside tolerance")

    expected = compute_signature(secret, timestamp, body)
    if not hmac.compare_digest(expected, signature):
        raise WebhookSignatureError("Signature mismatch")


@transaction.atomic
def process_resend_event(event: dict) -> None:
    """Record a delivery event and update the campaign recipient and email log it refers to."""
    event_type = event.get('type', '')
    data = event.get('data') or {}
    email_id = data.get('email_id', '')
    recipients = data.get('to') or []
    recipient_email = (recipients[0] if recipients else '').lower()
    now = timezone.now()

    logger.info("Resend event %s for %s", event_type, email_id)

    recipient = CampaignRecipient.objects.filter(resend_email_id=email_id).first() if email_id else None
    EmailEvent.objects.create(
        resend_email_id=email_id,
        event_type=event_type,
        recipient_email=recipient_email,
        campaign_id=recipient.campaign_id if recipient else None,
        payload={
            'subject': data.get('subject'),
            'from': data.get('from'),
            'created_at': event.get('created_at'),
            'click': data.get('click'),
            'bounce': data.get('bounce'),
        },
    )

    status = EVENT_STATUS.get(event_type)
    if recipient is not None and status is not None:
        current = STATUS_ORDER.index(recipient.status) if recipient.status in STATUS_ORDER else 0
        if STATUS_ORDER.index(status) > current or status == CampaignRecipient.Status.BOUNCED:
            recipient.status = status
            fields = ['status']
            timestamp_field = EVENT_TIMESTAMP_FIELD.get(event_type)
            if timestamp_field:
                setattr(recipient, timestamp_field, now)
                fields.append(timestamp_field)
            recipient.save(update_fields=fields)

    if event_type in ('email.bounced', 'email.complained') and recipient_email:
        Subscriber.objects.filter(email=recipient_email).update(status=Subscriber.Status.BOUNCED, updated_at=now)
        logger.info("Marked %s as bounced", recipient_email)

    if email_id:
        _update_email_log(email_id, event_type, data, now)


def _update_email_log(email_id: str, event_type: str, data: dict, now) -> None:
    logs = EmailLog.objects.filter(resend_email_id=email_id)
    if event_type == 'email.delivered':
        logs.update(status=EmailLog.Status.DELIVERED, delivered_at=now)
    elif event_type == 'email.bounced':
        bounce = data.get('bounce') or {}
        logs.update(
            status=EmailLog.Status.BOUNCED,
            bounced_at=now,
            bounce_reason=bounce.get('message') or 'Unknown bounce reason',
        )
    elif event_type == 'email.complained':
        logs.update(status=EmailLog.Status.COMPLAINED, complained_at=now)
    elif event_type == 'email.opened':
        logs.filter(opened_at__isnull=True).update(opened_at=now)
        logs.update(open_count=F('open_count') + 1)
    elif event_type == 'email.clicked':
        logs.filter(clicked_at__isnull=True).update(clicked_at=now)
        logs.update(click_count=F('click_count') + 1)
