"""Services for notification business logic."""

from .exceptions import (
    NotificationServiceError,
    EmailDeliveryError,
    TemplateNotFoundError,
    WebhookSignatureError,
)
from .sender import send_email
from .rendering import (
    RenderedEmail,
    DEFAULT_SUBJECTS,
    render_email,
    render_preview,
    find_template,
)
from .messages import (
    my_booking_url,
    pay_now_url,
    send_booking_confirmation,
    send_payment_confirmation,
    send_payment_reminder,
    send_payment_failed,
    send_payment_deadline_reminder,
    send_booking_cancellation,
    send_pre_retreat_reminder,
    send_refund_confirmation,
    send_feedback_request,
    send_waitlist_confirmation,
    send_waitlist_spot_available,
    send_waitlist_accepted,
    send_waitlist_declined,
    send_waitlist_expired,
    send_newsletter_confirmation,
    send_newsletter_welcome,
    send_contact_confirmation,
    notify_admin_new_booking,
    notify_admin_payment_received,
    notify_admin_payment_failed,
    notify_admin_waitlist_join,
    notify_admin_waitlist_response,
    notify_admin_support_request,
    send_weekly_summary,
    send_template_to_booking,
)
from .webhooks import verify_signature, process_resend_event

__all__ = [
    # Exceptions
    'NotificationServiceError',
    'EmailDeliveryError',
    'TemplateNotFoundError',
    'WebhookSignatureError',
    # Delivery & rendering
    'send_email',
    'RenderedEmail',
    'DEFAULT_SUBJECTS',
    'render_email',
    'render_preview',
    'find_template',
    # Typed senders
    'my_booking_url',
    'pay_now_url',
    'send_booking_confirmation',
    'send_payment_confirmation',
    'send_payment_reminder',
    'send_payment_failed',
    'send_payment_deadline_reminder',
    'send_booking_cancellation',
    'send_pre_retreat_reminder',
    'send_refund_confirmation',
    'send_feedback_request',
    'send_waitlist_confirmation',
    'send_waitlist_spot_available',
    'send_waitlist_accepted',
    'send_waitlist_declined',
    'send_waitlist_expired',
    'send_newsletter_confirmation',
    'send_newsletter_welcome',
    'send_contact_confirmation',
    'notify_admin_new_booking',
    'notify_admin_payment_received',
    'notify_admin_payment_failed',
    'notify_admin_waitlist_join',
    'notify_admin_waitlist_response',
    'notify_admin_support_request',
    'send_weekly_summary',
    'send_template_to_booking',
    # Webhooks
    'verify_signature',
    'process_resend_event',
]
