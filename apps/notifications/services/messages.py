"""
Typed email senders used by the booking, payment and waitlist flows.

These are side effects of a state change that has already been committed,
so delivery problems are logged and reported as ``False`` instead of
raised.
"""

import logging
from decimal import Decimal
from typing import Optional

from django.conf import settings

from apps.content.services import get_admin_email, admin_notification_enabled
from ..models import EmailLog
from .exceptions import EmailDeliveryError, TemplateNotFoundError
from .rendering import render_email
from .sender import send_email

logger = logging.getLogger(__name__)


def _deliver(
    slug: str,
    *,
    to: str,
    context: dict,
    language: str = 'en',
    recipient_type: str = EmailLog.RecipientType.CUSTOMER,
    booking=None,
    payment=None,
    reply_to: Optional[str] = None,
) -> bool:
    try:
        rendered = render_email(slug, context, language=language)
        send_email(
            to=to,
            subject=rendered.subject,
            html=rendered.html,
            text=rendered.text,
            email_type=slug,
            recipient_type=recipient_type,
            booking=booking,
            payment=payment,
            reply_to=reply_to,
        )
    except (EmailDeliveryError, TemplateNotFoundError):
        logger.exception("Could not send %s email to %s", slug, to)
        return False
    return True


def _notify_admin(slug: str, *, toggle: str, category: str, context: dict, booking=None, reply_to=None) -> bool:
    if not admin_notification_enabled(toggle):
        logger.debug("Admin notification %s disabled", slug)
        return False
    return _deliver(
        slug,
        to=get_admin_email(category),
        context=context,
        recipient_type=EmailLog.RecipientType.ADMIN,
        booking=booking,
        reply_to=reply_to,
    )


def my_booking_url(booking) -> str:
    return f"{settings.SITE_URL}/my-booking?token={booking.access_token}"


def pay_now_url(booking, schedule) -> str:
    return f"{settings.SITE_URL}/api/payments/{schedule.id}/checkout/?token={booking.access_token}"


def booking_context(booking, **extra) -> dict:
    retreat = booking.retreat
    return {
        'booking': booking,
        'retreat': retreat,
        'retreat_name': retreat.display_name,
        'room_name': booking.room.name if booking.room_id else '',
        'customer_name': booking.first_name,
        'my_booking_url': my_booking_url(booking),
        **extra,
    }


# =============================================================================
# Bookings & payments (customer)
# =============================================================================

def send_booking_confirmation(booking, schedules=None) -> bool:
    schedules = list(schedules if schedules is not None else booking.payment_schedules.all())
    return _deliver(
        'booking-confirmation',
        to=booking.email,
        language=booking.language,
        booking=booking,
        context=booking_context(booking, schedules=schedules),
    )


def send_payment_confirmation(booking, *, amount: Decimal, payment=None, next_schedule=None) -> bool:
    return _deliver(
        'payment-confirmation',
        to=booking.email,
        language=booking.language,
        booking=booking,
        payment=payment,
        context=booking_context(booking, amount=amount, next_schedule=next_schedule),
    )


def send_payment_reminder(booking, schedule, *, urgency: str, days_until_due: int) -> bool:
    return _deliver(
        'payment-reminder',
        to=booking.email,
        language=booking.language,
        booking=booking,
        context=booking_context(
            booking,
            schedule=schedule,
            urgency=urgency,
            days_until_due=days_until_due,
            pay_now_url=pay_now_url(booking, schedule),
        ),
    )


def send_payment_failed(booking, schedule, *, reason: str) -> bool:
    return _deliver(
        'payment-failed',
        to=booking.email,
        language=booking.language,
        booking=booking,
        context=booking_context(
            booking,
            schedule=schedule,
            reason=reason,
            deadline=schedule.payment_deadline,
            pay_now_url=pay_now_url(booking, schedule),
        ),
    )


def send_payment_deadline_reminder(booking, schedule, *, days_left: int) -> bool:
    return _deliver(
        'payment-deadline-reminder',
        to=booking.email,
        language=booking.language,
        booking=booking,
        context=booking_context(
            booking,
            schedule=schedule,
            days_left=days_left,
            deadline=schedule.payment_deadline,
            pay_now_url=pay_now_url(booking, schedule),
        ),
    )


def send_booking_cancellation(booking, *, reason: str = '') -> bool:
    return _deliver(
        'booking-cancellation',
        to=booking.email,
        language=booking.language,
        booking=booking,
        context=booking_context(booking, reason=reason),
    )


def send_pre_retreat_reminder(booking) -> bool:
    return _deliver(
        'pre-retreat-reminder',
        to=booking.email,
        language=booking.language,
        booking=booking,
        context=booking_context(booking),
    )


def send_refund_confirmation(booking, *, amount: Decimal, is_full_refund: bool) -> bool:
    return _deliver(
        'refund-confirmation',
        to=booking.email,
        language=booking.language,
        booking=booking,
        context=booking_context(booking, amount=amount, is_full_refund=is_full_refund),
    )


def send_feedback_request(booking, *, feedback_url: str) -> bool:
    return _deliver(
        'feedback-request',
        to=booking.email,
        language=booking.language,
        booking=booking,
        context=booking_context(booking, feedback_url=feedback_url),
    )


# =============================================================================
# Waitlist (customer)
# =============================================================================

def _waitlist_context(entry, **extra) -> dict:
    return {
        'entry': entry,
        'retreat': entry.retreat,
        'retreat_name': entry.retreat.display_name,
        'room_name': entry.room.name if entry.room_id else '',
        'customer_name': entry.first_name,
        **extra,
    }


def send_waitlist_confirmation(entry) -> bool:
    return _deliver('waitlist-confirmation', to=entry.email, context=_waitlist_context(entry))


def send_waitlist_spot_available(entry, *, accept_url, decline_url, price, deposit_percent, expires_at) -> bool:
    return _deliver(
        'waitlist-spot-available',
        to=entry.email,
        context=_waitlist_context(
            entry,
            accept_url=accept_url,
            decline_url=decline_url,
            price=price,
            deposit_percent=deposit_percent,
            expires_at=expires_at,
        ),
    )


def send_waitlist_accepted(entry, *, booking_url: str) -> bool:
    return _deliver('waitlist-accepted', to=entry.email, context=_waitlist_context(entry, booking_url=booking_url))


def send_waitlist_declined(entry) -> bool:
    return _deliver('waitlist-declined', to=entry.email, context=_waitlist_context(entry))


def send_waitlist_expired(entry) -> bool:
    return _deliver('waitlist-expired', to=entry.email, context=_waitlist_context(entry))


# =============================================================================
# Newsletter & contact (customer)
# =============================================================================

def send_newsletter_confirmation(subscriber, *, confirm_url: str) -> bool:
    return _deliver(
        'newsletter-confirm',
        to=subscriber.email,
        language=subscriber.language,
        context={'subscriber': subscriber, 'confirm_url': confirm_url},
    )


def send_newsletter_welcome(subscriber, *, unsubscribe_url: str) -> bool:
    return _deliver(
        'newsletter-welcome',
        to=subscriber.email,
        language=subscriber.language,
        context={'subscriber': subscriber, 'unsubscribe_url': unsubscribe_url},
    )


def send_contact_confirmation(*, name: str, email: str, subject: str, message: str) -> bool:
    return _deliver(
        'contact-confirmation',
        to=email,
        context={'name': name, 'subject': subject, 'message': message},
    )


# =============================================================================
# Admin notifications
# =============================================================================

def notify_admin_new_booking(booking) -> bool:
    return _notify_admin(
        'admin-new-booking',
        toggle='notifyOnNewBooking',
        category='bookings',
        booking=booking,
        context=booking_context(booking),
    )


def notify_admin_payment_received(booking, *, amount: Decimal) -> bool:
    return _notify_admin(
        'admin-payment-received',
        toggle='notifyOnPaymentReceived',
        category='payments',
        booking=booking,
        context=booking_context(booking, amount=amount),
    )


def notify_admin_payment_failed(booking, schedule, *, reason: str) -> bool:
    return _notify_admin(
        'admin-payment-failed',
        toggle='notifyOnPaymentFailed',
        category='payments',
        booking=booking,
        context=booking_context(booking, schedule=schedule, reason=reason),
    )


def notify_admin_waitlist_join(entry) -> bool:
    return _notify_admin(
        'admin-waitlist-join',
        toggle='notifyOnWaitlistJoin',
        category='waitlist',
        context=_waitlist_context(entry),
    )


def notify_admin_waitlist_response(entry, *, response: str) -> bool:
    return _notify_admin(
        'admin-waitlist-response',
        toggle='notifyOnWaitlistResponse',
        category='waitlist',
        context=_waitlist_context(entry, response=response),
    )


def notify_admin_support_request(*, name: str, email: str, subject: str, message: str) -> bool:
    return _notify_admin(
        'admin-support-request',
        toggle='notifyOnSupportRequest',
        category='support',
        reply_to=email,
        context={'name': name, 'email': email, 'subject': subject, 'message': message},
    )


def send_weekly_summary(*, to: str, summary: dict) -> bool:
    return _deliver(
        'admin-weekly-summary',
        to=to,
        recipient_type=EmailLog.RecipientType.ADMIN,
        context={**summary, 'period_start': summary['period']['start'], 'period_end': summary['period']['end']},
    )


def send_template_to_booking(booking, *, slug: str) -> EmailLog:
    """
    Send any template to a booking's customer on an admin's request.

    Unlike the typed senders this raises, so the admin sees what went wrong.

    Raises:
        TemplateNotFoundError: Unknown slug
        EmailDeliveryError: Provider rejected the message
    """
    rendered = render_email(slug, booking_context(booking), language=booking.language)
    return send_email(
        to=booking.email,
        subject=rendered.subject,
        html=rendered.html,
        text=rendered.text,
        email_type=slug,
        booking=booking,
        metadata={'sent_by_admin': True},
    )
