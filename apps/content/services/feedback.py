"""Signed feedback links and feedback submission."""

import hashlib
import hmac
import logging

from django.conf import settings
from django.db import IntegrityError, transaction

from apps.bookings.models import Booking
from ..models import RetreatFeedback
from .exceptions import InvalidFeedbackTokenError, FeedbackNotAllowedError

logger = logging.getLogger(__name__)


def _secret() -> bytes:
    secret = settings.FEEDBACK_TOKEN_SECRET or settings.CRON_SECRET
    if not secret:
        raise InvalidFeedbackTokenError("Feedback links are not configured")
    return secret.encode()


def generate_feedback_token(booking_id) -> str:
    """HMAC-SHA256 of the booking id, hex encoded."""
    return hmac.new(_secret(), str(booking_id).encode(), hashlib.sha256).hexdigest()


def verify_feedback_token(booking_id, token: str) -> bool:
    if not token:
        return False
    try:
        expected = generate_feedback_token(booking_id)
    except InvalidFeedbackTokenError:
        return False
    return hmac.compare_digest(expected, token)


def build_feedback_url(booking_id) -> str:
    return f"{settings.SITE_URL}/feedback?booking={booking_id}&token={generate_feedback_token(booking_id)}"


@transaction.atomic
def submit_feedback(*, booking_id, token: str, **answers) -> RetreatFeedback:
    """
    Store a guest's survey answers.

    Raises:
        InvalidFeedbackTokenError: If the link signature does not match
        FeedbackNotAllowedError: If the booking is unknown, cancelled or already reviewed
    """
    if not verify_feedback_token(booking_id, token):
        raise InvalidFeedbackTokenError("Invalid feedback link")

    booking = Booking.objects.select_related('retreat').filter(id=booking_id).first()
    if booking is None:
        raise FeedbackNotAllowedError("Booking not found")
    if booking.status == Booking.Status.CANCELLED:
        raise FeedbackNotAllowedError("Feedback is not available for cancelled bookings")

    try:
        with transaction.atomic():
            feedback = RetreatFeedback.objects.create(booking=booking, retreat=booking.retreat, **answers)
    except IntegrityError as e:
        raise FeedbackNotAllowedError("Feedback has already been submitted for this booking") from e

    logger.info("Feedback received for booking %s (%s/5)", booking.booking_number, feedback.overall_rating)
    return feedback
