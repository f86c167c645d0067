"""
Double opt-in subscriptions.

A subscriber starts pending and becomes active through an emailed
confirmation link valid for 24 hours. Buyers who opt in at checkout skip
the confirmation because their email was already verified by payment.
"""

import logging
from dataclasses import dataclass
from datetime import timedelta

from django.conf import settings
from django.db import transaction
from django.utils import timezone

from apps.notifications.services import send_newsletter_confirmation, send_newsletter_welcome
from ..models import Subscriber, SubscriberToken
from .exceptions import ExpiredTokenError, InvalidTokenError

logger = logging.getLogger(__name__)

CONFIRM_TOKEN_TTL = timedelta(hours=24)
TOKEN_LENGTH = 64

ALREADY_SUBSCRIBED = 'already_subscribed'
CONFIRMATION_SENT = 'confirmation_sent'

QUIZ_TAG_PREFIXES = {
    'experience': 'experience',
    'interest': 'interest',
    'travel_style': 'style',
    'destination': 'destination',
}


@dataclass
class ConfirmResult:
    subscriber: Subscriber
    already_confirmed: bool


@dataclass
class UnsubscribeResult:
    subscriber: Subscriber
    already_unsubscribed: bool


def unsubscribe_url(subscriber: Subscriber) -> str:
    return f"{settings.SITE_URL}/api/newsletter/unsubscribe/?token={subscriber.unsubscribe_token}"


def confirm_url(token: SubscriberToken) -> str:
    return f"{settings.SITE_URL}/api/newsletter/confirm/?token={token.token}"


def _issue_confirmation(subscriber: Subscriber) -> SubscriberToken:
    token = SubscriberToken.objects.create(
        subscriber=subscriber,
        expires_at=timezone.now() + CONFIRM_TOKEN_TTL,
    )
    transaction.on_commit(lambda: send_newsletter_confirmation(subscriber, confirm_url=confirm_url(token)))
    return token


@transaction.atomic
def subscribe(*, email: str, first_name: str = '', language: str = 'en', source: str = Subscriber.Source.WEBSITE) -> str:
    """
    Start a subscription, or restart one after an unsubscribe.

    Returns:
        ``already_subscribed`` or ``confirmation_sent``
    """
    email = email.strip().lower()
    subscriber = Subscriber.objects.select_for_update().filter(email=email).first()

    if subscriber is not None and subscriber.status == Subscriber.Status.ACTIVE:
        return ALREADY_SUBSCRIBED

    if subscriber is None:
        subscriber = Subscriber.objects.create(
            email=email,
            first_name=first_name,
            language=language,
            source=source,
            status=Subscriber.Status.PENDING,
        )
        logger.info("New newsletter subscriber %s (%s)", email, source)
    else:
        subscriber.status = Subscriber.Status.PENDING
        subscriber.unsubscribed_at = None
        subscriber.first_name = first_name or subscriber.first_name
        subscriber.language = language or subscriber.language
        subscriber.save()
        logger.info("Newsletter subscriber %s re-subscribing", email)

    _issue_confirmation(subscriber)
    return CONFIRMATION_SENT


@transaction.atomic
def confirm_subscription(*, token: str) -> ConfirmResult:
    """
    Activate the subscriber behind a confirmation link.

    Raises:
        InvalidTokenError: Unknown token
        ExpiredTokenError: Token older than 24 hours
    """
    record = SubscriberToken.objects.select_for_update().select_related('subscriber').filter(token=token).first()
    if record is None:
        raise InvalidTokenError("Invalid confirmation token")

    subscriber = record.subscriber
    if record.used_at is not None:
        return ConfirmResult(subscriber=subscriber, already_confirmed=True)
    if record.is_expired:
        raise ExpiredTokenError("Confirmation link has expired")

    now = timezone.now()
    record.used_at = now
    record.save(update_fields=['used_at'])

    subscriber.status = Subscriber.Status.ACTIVE
    subscriber.confirmed_at = now
    send_welcome = not subscriber.welcome_email_sent
    subscriber.welcome_email_sent = True
    subscriber.save()

    if send_welcome:
        transaction.on_commit(lambda: send_newsletter_welcome(subscriber, unsubscribe_url=unsubscribe_url(subscriber)))
    logger.info("Newsletter subscription confirmed for %s", subscriber.email)
    return ConfirmResult(subscriber=subscriber, already_confirmed=False)


def unsubscribe(*, token: str) -> UnsubscribeResult:
    """
    Unsubscribe through the link in every newsletter. Repeat calls are no-ops.

    Raises:
        InvalidTokenError: Malformed or unknown token
    """
    if not token or len(token) != TOKEN_LENGTH:
        raise InvalidTokenError("Invalid unsubscribe token")

    subscriber = Subscriber.objects.filter(unsubscribe_token=token).first()
    if subscriber is None:
        raise InvalidTokenError("Invalid unsubscribe token")

    if subscriber.status == Subscriber.Status.UNSUBSCRIBED:
        return UnsubscribeResult(subscriber=subscriber, already_unsubscribed=True)

    subscriber.status = Subscriber.Status.UNSUBSCRIBED
    subscriber.unsubscribed_at = timezone.now()
    subscriber.save(update_fields=['status', 'unsubscribed_at', 'updated_at'])
    logger.info("Newsletter unsubscribe for %s", subscriber.email)
    return UnsubscribeResult(subscriber=subscriber, already_unsubscribed=False)


def quiz_tags(responses: dict) -> list:
    return [
        f"{prefix}:{responses[key]}"
        for key, prefix in QUIZ_TAG_PREFIXES.items()
        if responses.get(key)
    ]


def submit_quiz(*, token: str, responses: dict) -> Subscriber:
    """
    Store the onboarding quiz and tag the subscriber.

    Raises:
        InvalidTokenError: Malformed or unknown token
    """
    if not token or len(token) != TOKEN_LENGTH:
        raise InvalidTokenError("Invalid or missing token")
    subscriber = Subscriber.objects.filter(unsubscribe_token=token).first()
    if subscriber is None:
        raise InvalidTokenError("Invalid token")

    subscriber.quiz_completed = True
    subscriber.quiz_responses = responses
    subscriber.tags = quiz_tags(responses)
    subscriber.save(update_fields=['quiz_completed', 'quiz_responses', 'tags', 'updated_at'])
    return subscriber


def upsert_from_booking(booking) -> Subscriber:
    """Active subscriber for a customer who opted in at checkout."""
    now = timezone.now()
    email = booking.email.strip().lower()
    subscriber = Subscriber.objects.filter(email=email).first()
    if subscriber is None:
        subscriber = Subscriber(email=email, source=Subscriber.Source.CHECKOUT)

    subscriber.first_name = booking.first_name or subscriber.first_name
    subscriber.language = booking.language or subscriber.language
    subscriber.status = Subscriber.Status.ACTIVE
    subscriber.confirmed_at = subscriber.confirmed_at or now
    subscriber.unsubscribed_at = None
    subscriber.last_booking = booking
    subscriber.last_booking_date = now
    subscriber.save()

    logger.info("Newsletter subscriber %s from booking %s", subscriber.email, booking.booking_number)
    return subscriber
