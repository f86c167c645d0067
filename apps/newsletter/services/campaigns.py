"""Campaign delivery to targeted subscribers in small rate-limited batches."""

import logging
import re
import time
from datetime import datetime

from django.conf import settings
from django.db import transaction
from django.utils import timezone
from django.utils.html import escape

from apps.notifications.services import EmailDeliveryError, send_email
from ..models import Campaign, CampaignRecipient, Subscriber
from .exceptions import CampaignStateError, NoRecipientsError

logger = logging.getLogger(__name__)

BATCH_SIZE = 10
BATCH_DELAY_SECONDS = 1
PLACEHOLDER_RE = re.compile(r'\{\{\s*(\w+)\s*\}\}')
SENDABLE_STATUSES = (Campaign.Status.DRAFT, Campaign.Status.SCHEDULED)


def target_subscribers(campaign: Campaign):
    statuses = [Subscriber.Status.ACTIVE]
    if campaign.target_status == Campaign.TargetStatus.ALL:
        statuses.append(Subscriber.Status.PENDING)
    subscribers = Subscriber.objects.filter(status__in=statuses)
    if campaign.target_languages:
        subscribers = subscribers.filter(language__in=campaign.target_languages)
    return subscribers


def personalize(content: str, *, first_name: str, email: str, unsubscribe_token: str) -> str:
    """Fill ``{{ first_name }}``, ``{{ email }}``, ``{{ unsubscribe_link }}`` and ``{{ current_year }}``.

    The camelCase spellings used by older templates are accepted too. Unknown
    placeholders are left as they are.
    """
    unsubscribe_link = f"{settings.SITE_URL}/api/newsletter/unsubscribe/?token={unsubscribe_token}"
    values = {
        'first_name': escape(first_name or 'Friend'),
        'email': escape(email),
        'unsubscribe_link': unsubscribe_link,
        'current_year': str(datetime.now().year),
    }
    values.update({
        'firstName': values['first_name'],
        'unsubscribeLink': unsubscribe_link,
        'currentYear': values['current_year'],
    })
    return PLACEHOLDER_RE.sub(lambda m: values.get(m.group(1), m.group(0)), content)


def _claim(campaign_id) -> Campaign:
    with transaction.atomic():
        campaign = Campaign.objects.select_for_update().get(pk=campaign_id)
        if campaign.status == Campaign.Status.SENT:
            raise CampaignStateError("Campaign already sent")
        if campaign.status == Campaign.Status.SENDING:
            raise CampaignStateError("Campaign is already being sent")
        if campaign.status not in SENDABLE_STATUSES:
            raise CampaignStateError("Campaign cannot be sent in its current state")
        campaign.status = Campaign.Status.SENDING
        campaign.save(update_fields=['status', 'updated_at'])
    return campaign


def _revert_to_draft(campaign: Campaign) -> None:
    Campaign.objects.filter(pk=campaign.pk).update(status=Campaign.Status.DRAFT, updated_at=timezone.now())


def _send_to(campaign: Campaign, subscriber: Subscriber) -> bool:
    language = subscriber.language or 'en'
    recipient, _ = CampaignRecipient.objects.get_or_create(
        campaign=campaign,
        email=subscriber.email,
        defaults={'subscriber': subscriber, 'language': language},
    )
    context = {
        'first_name': subscriber.first_name,
        'email': subscriber.email,
        'unsubscribe_token': subscriber.unsubscribe_token,
    }
    try:
        log = send_email(
            to=subscriber.email,
            subject=personalize(campaign.subject_for(language), **context),
            html=personalize(campaign.content_for(language), **context),
            email_type='newsletter-campaign',
            tags=[{'name': 'campaign_id', 'value': str(campaign.id)}],
            metadata={'campaign_id': str(campaign.id)},
        )
    except EmailDeliveryError as e:
        recipient.status = CampaignRecipient.Status.FAILED
        recipient.error_message = str(e)
        recipient.save(update_fields=['status', 'error_message'])
        return False

    recipient.status = CampaignRecipient.Status.SENT
    recipient.resend_email_id = log.resend_email_id
    recipient.sent_at = timezone.now()
    recipient.save(update_fields=['status', 'resend_email_id', 'sent_at'])
    return True


def send_campaign(*, campaign_id, batch_delay: float = BATCH_DELAY_SECONDS) -> dict:
    """
    Deliver a campaign to every matching subscriber.

    The campaign is claimed (draft or scheduled -> sending) under a row lock
    so two admins cannot send it twice. Each send is recorded as a
    CampaignRecipient; failures are counted, not raised.

    Returns:
        Stats dict: {total, sent, failed}

    Raises:
        Campaign.DoesNotExist: Unknown campaign
        CampaignStateError: Campaign is not a draft or scheduled
        NoRecipientsError: Targeting matches no subscriber (campaign back to draft)
    """
    campaign = _claim(campaign_id)

    subscribers = list(target_subscribers(campaign))
    if not subscribers:
        _revert_to_draft(campaign)
        raise NoRecipientsError("No subscribers match the targeting criteria")

    sent = failed = 0
    try:
        for start in range(0, len(subscribers), BATCH_SIZE):
            if start and batch_delay:
                time.sleep(batch_delay)
            for subscriber in subscribers[start:start + BATCH_SIZE]:
                if _send_to(campaign, subscriber):
                    sent += 1
                else:
                    failed += 1
    except Exception:
        logger.exception("Campaign %s aborted after %s sends", campaign.name, sent)
        _revert_to_draft(campaign)
        raise

    stats = {'total': len(subscribers), 'sent': sent, 'failed': failed}
    campaign.status = Campaign.Status.SENT
    campaign.sent_at = timezone.now()
    campaign.stats = stats
    campaign.save(update_fields=['status', 'sent_at', 'stats', 'updated_at'])

    logger.info("Campaign %s sent: %s delivered, %s failed", campaign.name, sent, failed)
    return stats


def send_test(*, campaign: Campaign, email: str, language: str = 'en') -> None:
    """
    Send a single preview of the campaign, marked ``[TEST]``.

    Raises:
        EmailDeliveryError: Provider rejected the message
    """
    context = {'first_name': 'Test', 'email': email, 'unsubscribe_token': 'test'}
    send_email(
        to=email,
        subject=f"[TEST] {personalize(campaign.subject_for(language), **context)}",
        html=personalize(campaign.content_for(language), **context),
        email_type='newsletter-test',
        metadata={'campaign_id': str(campaign.id)},
    )
