"""
API tests for email templates, the email log and the Resend webhook.
"""

import json
import time

import pytest
from django.urls import reverse
from rest_framework import status

from apps.notifications.models import EmailLog, EmailTemplate
from apps.notifications.services.webhooks import compute_signature


def _signed_headers(body: str, secret: str = 'resend-test-secret') -> dict:
    timestamp = str(int(time.time()))
    signature = compute_signature(secret, timestamp, body.encode())
    return {'HTTP_SVIX_SIGNATURE': f't={timestamp},v1={signature}'}


@pytest.mark.django_db
class TestResendWebhook:

    def test_health_check(self, api_client):
        response = api_client.get(reverse('notifications:resend-webhook'))
        assert response.data == {'status': 'ok', 'service': 'resend-webhook'}

    def test_rejects_unsigned(self, api_client):
        response = api_client.post(
            reverse('notifications:resend-webhook'), '{"type": "email.sent"}', content_type='application/json',
        )
        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_accepts_signed(self, api_client):
        EmailLog.objects.create(
            email_type='test', recipient_email='a@example.com', subject='Hi', resend_email_id='email_77',
        )
        body = json.dumps({'type': 'email.delivered', 'data': {'email_id': 'email_77', 'to': ['a@example.com']}})

        response = api_client.post(
            reverse('notifications:resend-webhook'), body,
            content_type='application/json', **_signed_headers(body),
        )

        assert response.status_code == status.HTTP_200_OK
        assert EmailLog.objects.get().status == EmailLog.Status.DELIVERED

    def test_invalid_json(self, api_client):
        body = 'not json'
        response = api_client.post(
            reverse('notifications:resend-webhook'), body, content_type='application/json', **_signed_headers(body),
        )
        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_not_configured(self, api_client, settings):
        settings.RESEND_WEBHOOK_SECRET = ''
        response = api_client.post(reverse('notifications:resend-webhook'), '{}', content_type='application/json')
        assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR


@pytest.mark.django_db
class TestEmailTemplates:

    def test_requires_admin(self, user_client):
        response = user_client.get(reverse('notifications:template-list'))
        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_create_and_filter(self, admin_client):
        response = admin_client.post(
            reverse('notifications:template-list'),
            {
                'slug': 'payment-reminder', 'language': 'nl', 'name': 'Herinnering',
                'subject': 'Betaling', 'html_content': '<p>Hoi</p>', 'category': 'payment',
            },
            format='json',
        )
        assert response.status_code == status.HTTP_201_CREATED

        response = admin_client.get(reverse('notifications:template-list'), {'language': 'nl'})
        assert len(response.data) == 1

    def test_preview(self, admin_client):
        response = admin_client.post(
            reverse('notifications:template-preview'),
            {'subject': 'Hi {{ customer_name }}', 'html_content': '<p>{{ customer_name }}</p>',
             'sample_data': {'customer_name': 'Alex'}},
            format='json',
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.data['subject'] == 'Hi Alex'
        assert EmailTemplate.objects.count() == 0


@pytest.mark.django_db
class TestEmailLog:

    def test_send_template_to_booking(self, admin_client, booking, mock_resend):
        response = admin_client.post(
            reverse('notifications:log-send'),
            {'bookingId': str(booking.id), 'templateSlug': 'pre-retreat-reminder'},
            format='json',
        )

        assert response.status_code == status.HTTP_201_CREATED
        log = EmailLog.objects.get()
        assert log.metadata == {'sent_by_admin': True}
        assert log.booking == booking

    def test_unknown_template(self, admin_client, booking):
        response = admin_client.post(
            reverse('notifications:log-send'),
            {'bookingId': str(booking.id), 'templateSlug': 'nope'},
            format='json',
        )
        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_provider_failure(self, admin_client, booking):
        response = admin_client.post(
            reverse('notifications:log-send'),
            {'bookingId': str(booking.id), 'templateSlug': 'pre-retreat-reminder'},
            format='json',
        )
        assert response.status_code == status.HTTP_502_BAD_GATEWAY

    def test_filter_by_status(self, admin_client, db):
        EmailLog.objects.create(email_type='a', recipient_email='a@x.com', subject='A', status=EmailLog.Status.FAILED)
        EmailLog.objects.create(email_type='b', recipient_email='b@x.com', subject='B')

        response = admin_client.get(reverse('notifications:log-list'), {'status': 'failed'})
        assert response.data['count'] == 1
