"""
Email rendering.

Templates are looked up as an active ``EmailTemplate`` in the customer's
language, then in English, then as the bundled file
``notifications/emails/<slug>.html``. Bodies are always wrapped in the
shared layout.
"""

from dataclasses import dataclass
from datetime import date

from django.conf import settings
from django.template import Context, Template, TemplateDoesNotExist
from django.template.loader import render_to_string
from django.utils.html import strip_tags
from django.utils.safestring import mark_safe

from ..models import EmailTemplate
from .exceptions import TemplateNotFoundError


# Subjects of the bundled templates; stored templates carry their own.
DEFAULT_SUBJECTS = {
    'booking-confirmation': 'Your booking {{ booking.booking_number }} is confirmed',
    'payment-confirmation': 'Payment received for booking {{ booking.booking_number }}',
    'payment-reminder': '{% if urgency == "overdue" %}Overdue: {% endif %}Payment reminder for {{ retreat_name }}',
    'payment-failed': 'Action needed: your payment for {{ retreat_name }} failed',
    'payment-deadline-reminder': 'Only {{ days_left }} day{{ days_left|pluralize }} left to complete your payment',
    'booking-cancellation': 'Your booking {{ booking.booking_number }} has been cancelled',
    'pre-retreat-reminder': '6 weeks to go: get ready for {{ retreat_name }}',
    'refund-confirmation': 'Your refund of €{{ amount }} is on its way',
    'waitlist-confirmation': "You're on the waitlist for {{ retreat_name }}",
    'waitlist-spot-available': 'A spot opened up at {{ retreat_name }}',
    'waitlist-accepted': 'Complete your booking for {{ retreat_name }}',
    'waitlist-declined': "We've released your spot for {{ retreat_name }}",
    'waitlist-expired': 'Your offer for {{ retreat_name }} has expired',
    'newsletter-confirm': 'Please confirm your subscription',
    'newsletter-welcome': 'Welcome to the Rainbow Surf family',
    'feedback-request': 'How was {{ retreat_name }}?',
    'contact-confirmation': 'We received your message',
    'admin-new-booking': 'New booking {{ booking.booking_number }} ({{ retreat_name }})',
    'admin-payment-received': 'Payment received: €{{ amount }} for {{ booking.booking_number }}',
    'admin-payment-failed': 'Payment failed for {{ booking.booking_number }}',
    'admin-waitlist-join': 'Waitlist: {{ entry.full_name }} joined {{ retreat_name }}',
    'admin-waitlist-response': 'Waitlist: {{ entry.full_name }} {{ response }} the offer',
    'admin-support-request': 'Contact form: {{ subject }}',
    'admin-weekly-summary': 'Weekly summary {{ period_start|date:"M j" }} - {{ period_end|date:"M j" }}',
}


@dataclass
class RenderedEmail:
    subject: str
    html: str
    text: str


def base_context() -> dict:
    return {
        'site_url': settings.SITE_URL,
        'site_name': 'Rainbow Surf Retreats',
        'current_year': date.today().year,
    }


def find_template(slug: str, language: str = 'en'):
    """Active stored template in ``language``, falling back to English."""
    for lang in dict.fromkeys([language or 'en', 'en']):
        template = EmailTemplate.objects.filter(slug=slug, language=lang, is_active=True).first()
        if template is not None:
            return template
    return None


def _render_string(source: str, context: dict) -> str:
    return Template(source).render(Context(context))


def wrap_in_layout(body_html: str, context: dict) -> str:
    return render_to_string('notifications/emails/layout.html', {**context, 'body': mark_safe(body_html)})


def render_email(slug: str, context: dict, language: str = 'en') -> RenderedEmail:
    """
    Render subject, HTML and text for a template slug.

    Raises:
        TemplateNotFoundError: If the slug has neither a stored nor a bundled template
    """
    context = {**base_context(), **context}
    stored = find_template(slug, language)

    if stored is not None:
        subject = _render_string(stored.subject, context)
        body = _render_string(stored.html_content, context)
        text = _render_string(stored.text_content, context) if stored.text_content else ''
    else:
        try:
            body = render_to_string(f'notifications/emails/{slug}.html', context)
        except TemplateDoesNotExist as e:
            raise TemplateNotFoundError(f"No email template for {slug}") from e
        subject = _render_string(DEFAULT_SUBJECTS.get(slug, slug), context)
        text = ''

    html = wrap_in_layout(body, context)
    return RenderedEmail(
        subject=' '.join(subject.split()),
        html=html,
        text=text or strip_tags(body).strip(),
    )


def render_preview(*, subject: str, html_content: str, context: dict) -> RenderedEmail:
    """Render unsaved template content for the admin editor."""
    context = {**base_context(), **context}
    body = _render_string(html_content, context)
    return RenderedEmail(
        subject=_render_string(subject, context),
        html=wrap_in_layout(body, context),
        text=strip_tags(body).strip(),
    )
