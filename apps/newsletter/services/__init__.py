"""Services for newsletter business logic."""

from .exceptions import (
    NewsletterServiceError,
    InvalidTokenError,
    ExpiredTokenError,
    CampaignStateError,
    NoRecipientsError,
)
from .subscriptions import (
    ALREADY_SUBSCRIBED,
    CONFIRMATION_SENT,
    ConfirmResult,
    UnsubscribeResult,
    subscribe,
    confirm_subscription,
    unsubscribe,
    unsubscribe_url,
    quiz_tags,
    submit_quiz,
    upsert_from_booking,
)
from .campaigns import target_subscribers, personalize, send_campaign, send_test
from .stats import newsletter_stats, export_subscribers_csv

__all__ = [
    # Exceptions
    'NewsletterServiceError',
    'InvalidTokenError',
    'ExpiredTokenError',
    'CampaignStateError',
    'NoRecipientsError',
    # Subscriptions
    'ALREADY_SUBSCRIBED',
    'CONFIRMATION_SENT',
    'ConfirmResult',
    'UnsubscribeResult',
    'subscribe',
    'confirm_subscription',
    'unsubscribe',
    'unsubscribe_url',
    'quiz_tags',
    'submit_quiz',
    'upsert_from_booking',
    # Campaigns
    'target_subscribers',
    'personalize',
    'send_campaign',
    'send_test',
    # Reporting
    'newsletter_stats',
    'export_subscribers_csv',
]
