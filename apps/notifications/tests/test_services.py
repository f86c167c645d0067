"""
Service tests for email rendering, delivery and Resend webhooks.
"""

import time

import pytest

from apps.content.services import update_setting
from apps.newsletter.models import Campaign, CampaignRecipient, EmailEvent, Subscriber
from apps.notifications.models import EmailLog, EmailTemplate
from apps.notifications.services import (
    render_email,
    render_preview,
    send_email,
    send_booking_confirmation,
    send_payment_reminder,
    notify_admin_new_booking,
    notify_admin_support_request,
    verify_signature,
    process_resend_event,
    EmailDeliveryError,
    TemplateNotFoundError,
    WebhookSignatureError,
)
from apps.notifications.services.webhooks import compute_signature


# ============================================================================
# RENDERING
# ============================================================================

@pytest.mark.django_db
class TestRenderEmail:

    def test_bundled_template(self, booking):
        rendered = render_email('booking-confirmation', {'booking': booking, 'retreat_name': 'Siargao'})

        assert rendered.subject == f'Your booking {booking.booking_number} is confirmed'
        assert booking.booking_number in rendered.html
        assert rendered.text

    def test_stored_template_in_language(self, db):
        EmailTemplate.objects.create(
            slug='contact-confirmation', language='de', name='Kontakt',
            subject='Danke {{ name }}', html_content='<p>Hallo {{ name }}</p>',
        )
        rendered = render_email('contact-confirmation', {'name': 'Lena'}, language='de')

        assert rendered.subject == 'Danke Lena'
        assert '<p>Hallo Lena</p>' in rendered.html
        assert rendered.text == 'Hallo Lena'

    def test_falls_back_to_english(self, db):
        EmailTemplate.objects.create(
            slug='contact-confirmation', language='en', name='Contact',
            subject='Thanks {{ name }}', html_content='<p>Hi</p>',
        )
        assert render_email('contact-confirmation', {'name': 'Lena'}, language='fr').subject == 'Thanks Lena'

    def test_inactive_template_ignored(self, db):
        EmailTemplate.objects.create(
            slug='contact-confirmation', language='en', name='Contact',
            subject='Stored', html_content='<p>Hi</p>', is_active=False,
        )
        assert render_email('contact-confirmation', {'name': 'Lena'}).subject == 'We received your message'

    def test_unknown_slug(self, db):
        with pytest.raises(TemplateNotFoundError):
            render_email('does-not-exist', {})

    def test_preview(self):
        rendered = render_preview(subject='Hi {{ name }}', html_content='<b>{{ name }}</b>', context={'name': 'Jo'})
        assert rendered.subject == 'Hi Jo'
        assert rendered.text == 'Jo'


# ============================================================================
# DELIVERY
# ============================================================================

@pytest.mark.django_db
class TestSendEmail:

    def test_sent_and_logged(self, mock_resend, booking):
        log = send_email(
            to='alex@example.com', subject='Hello', html='<p>Hi</p>',
            email_type='test', booking=booking, tags=[{'name': 'kind', 'value': 'test'}],
        )

        assert log.status == EmailLog.Status.SENT
        assert log.resend_email_id == 'email_test_123'
        params = mock_resend.call_args.args[0]
        assert params['to'] == ['alex@example.com']
        assert params['tags'] == [{'name': 'kind', 'value': 'test'}]

    def test_unconfigured_provider_logs_failure(self, db):
        with pytest.raises(EmailDeliveryError):
            send_email(to='alex@example.com', subject='Hello', html='<p>Hi</p>', email_type='test')

        log = EmailLog.objects.get()
        assert log.status == EmailLog.Status.FAILED
        assert 'RESEND_API_KEY' in log.error_message


@pytest.mark.django_db
class TestTypedSenders:

    def test_booking_confirmation(self, mock_resend, booking):
        assert send_booking_confirmation(booking) is True
        assert EmailLog.objects.get().email_type == 'booking-confirmation'

    def test_failure_returns_false(self, booking):
        assert send_booking_confirmation(booking) is False

    def test_reminder_links_to_pay_now(self, mock_resend, booking, schedules):
        _, balance = schedules
        send_payment_reminder(booking, balance, urgency='overdue', days_until_due=-2)

        params = mock_resend.call_args.args[0]
        assert params['subject'].startswith('Overdue:')
        assert f'/api/payments/{balance.id}/checkout/?token={booking.access_token}' in params['html']

    def test_admin_category_address(self, mock_resend, booking):
        update_setting(section='admin_notifications', values={'bookingsEmail': 'bookings@surf.test'})

        notify_admin_new_booking(booking)

        assert mock_resend.call_args.args[0]['to'] == ['bookings@surf.test']
        assert EmailLog.objects.get().recipient_type == EmailLog.RecipientType.ADMIN

    def test_admin_toggle_off(self, mock_resend, booking):
        update_setting(section='admin_notifications', values={'notifyOnNewBooking': False})

        assert notify_admin_new_booking(booking) is False
        mock_resend.assert_not_called()

    def test_support_request_reply_to_sender(self, mock_resend, db):
        notify_admin_support_request(name='Jo', email='jo@example.com', subject='Question', message='Hi')
        assert mock_resend.call_args.args[0]['reply_to'] == 'jo@example.com'


# ============================================================================
# RESEND WEBHOOKS
# ============================================================================

class TestVerifySignature:

    SECRET = 'resend-test-secret'

    def _header(self, body: bytes, timestamp: int, secret: str = SECRET) -> str:
        return f't={timestamp},v1={compute_signature(secret, str(timestamp), body)}'

    def test_valid(self):
        body = b'{"type": "email.sent"}'
        now = int(time.time())
        verify_signature(body=body, header=self._header(body, now), secret=self.SECRET, now=now)

    def test_stale(self):
        body = b'{}'
        now = int(time.time())
        with pytest.raises(WebhookSignatureError, match='tolerance'):
            verify_signature(body=body, header=self._header(body, now - 301), secret=self.SECRET, now=now)

    def test_tampered_body(self):
        now = int(time.time())
        header = self._header(b'{"a": 1}', now)
        with pytest.raises(WebhookSignatureError, match='mismatch'):
            verify_signature(body=b'{"a": 2}', header=header, secret=self.SECRET, now=now)

    @pytest.mark.parametrize('header', ['', 'v1=abc', 't=abc,v1=xyz'])
    def test_malformed(self, header):
        with pytest.raises(WebhookSignatureError):
            verify_signature(body=b'{}', header=header, secret=self.SECRET)


def _event(event_type, email_id='email_1', to='reader@example.com', **data):
    return {'type': event_type, 'created_at': '2026-05-01T10:00:00Z',
            'data': {'email_id': email_id, 'to': [to], 'subject': 'Spring', **data}}


@pytest.mark.django_db
class TestProcessResendEvent:

    @pytest.fixture
    def recipient(self, db):
        campaign = Campaign.objects.create(name='Spring', subject_en='Spring', content_en='<p>Hi</p>')
        return CampaignRecipient.objects.create(
            campaign=campaign, email='reader@example.com',
            status=CampaignRecipient.Status.SENT, resend_email_id='email_1',
        )

    def test_recipient_status_advances(self, recipient):
        process_resend_event(_event('email.opened'))

        recipient.refresh_from_db()
        assert recipient.status == CampaignRecipient.Status.OPENED
        assert recipient.opened_at is not None
        assert EmailEvent.objects.get().campaign_id == recipient.campaign_id

    def test_status_never_moves_back(self, recipient):
        process_resend_event(_event('email.clicked'))
        process_resend_event(_event('email.delivered'))

        recipient.refresh_from_db()
        assert recipient.status == CampaignRecipient.Status.CLICKED

    def test_bounce_marks_subscriber(self, recipient):
        subscriber = Subscriber.objects.create(email='reader@example.com', status=Subscriber.Status.ACTIVE)

        process_resend_event(_event('email.bounced', bounce={'message': 'Mailbox full'}))

        subscriber.refresh_from_db()
        recipient.refresh_from_db()
        assert subscriber.status == Subscriber.Status.BOUNCED
        assert recipient.status == CampaignRecipient.Status.BOUNCED

    def test_email_log_counters(self, db):
        log = EmailLog.objects.create(
            email_type='booking-confirmation', recipient_email='alex@example.com',
            subject='Hi', resend_email_id='email_9',
        )

        process_resend_event(_event('email.delivered', email_id='email_9'))
        process_resend_event(_event('email.opened', email_id='email_9'))
        process_resend_event(_event('email.opened', email_id='email_9'))

        log.refresh_from_db()
        assert log.status == EmailLog.Status.DELIVERED
        assert log.open_count == 2
        assert log.opened_at is not None

    def test_email_log_bounce_reason(self, db):
        log = EmailLog.objects.create(
            email_type='payment-reminder', recipient_email='x@example.com', subject='Hi', resend_email_id='email_5',
        )
        process_resend_event(_event('email.bounced', email_id='email_5', to='x@example.com'))

        log.refresh_from_db()
        assert log.status == EmailLog.Status.BOUNCED
        assert log.bounce_reason == 'Unknown bounce reason'
