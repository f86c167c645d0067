"""
Email delivery through Resend.

Every attempt, successful or not, is written to ``EmailLog`` so the admin
dashboard can show what a customer received.
"""

import logging
from typing import Optional

import resend
from resend.exceptions import ResendError
from django.conf import settings

from ..models import EmailLog
from .exceptions import EmailDeliveryError

logger = logging.getLogger(__name__)


def send_email(
    *,
    to: str,
    subject: str,
    html: str,
    email_type: str,
    text: Optional[str] = None,
    recipient_type: str = EmailLog.RecipientType.CUSTOMER,
    booking=None,
    payment=None,
    reply_to: Optional[str] = None,
    tags: Optional[list] = None,
    metadata: Optional[dict] = None,
) -> EmailLog:
    """
    Send one email and log it.

    Returns:
        The EmailLog row (status sent)

    Raises:
        EmailDeliveryError: If Resend is not configured or rejects the message
    """
    log = EmailLog(
        email_type=email_type,
        recipient_email=to,
        recipient_type=recipient_type,
        subject=subject[:255],
        booking=booking,
        payment=payment,
        metadata=metadata or {},
    )

    if not settings.RESEND_API_KEY:
        log.status = EmailLog.Status.FAILED
        log.error_message = 'RESEND_API_KEY is not configured'
        log.save()
        raise EmailDeliveryError(log.error_message)

    params = {
        'from': settings.FROM_EMAIL,
        'to': [to],
        'subject': subject,
        'html': html,
        'reply_to': reply_to or settings.REPLY_TO_EMAIL,
    }
    if text:
        params['text'] = text
    if tags:
        params['tags'] = tags

    resend.api_key = settings.RESEND_API_KEY
    try:
        response = resend.Emails.send(params)
    except ResendError as e:
        log.status = EmailLog.Status.FAILED
        log.error_message = str(e)
        log.save()
        logger.error("Resend rejected %s email to %s: %s", email_type, to, e)
        raise EmailDeliveryError(str(e)) from e

    log.resend_email_id = (response or {}).get('id', '')
    log.status = EmailLog.Status.SENT
    log.save()
    logger.info("Sent %s email to %s (%s)", email_type, to, log.resend_email_id)
    return log
