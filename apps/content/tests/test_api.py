import pytest
from django.core.files.uploadedfile import SimpleUploadedFile
from django.urls import reverse

from apps.content.models import PolicySection, RetreatFeedback
from apps.content.services import generate_feedback_token


@pytest.mark.django_db
class TestSettingsAPI:

    def test_public_settings_hide_admin_sections(self, api_client):
        response = api_client.get(reverse('content:settings'))

        assert response.status_code == 200
        assert set(response.data) == {'general', 'email', 'booking'}

    def test_admin_settings_require_admin(self, api_client, user_client):
        assert api_client.get(reverse('content:admin-settings')).status_code == 401
        assert user_client.get(reverse('content:admin-settings')).status_code == 403

    def test_admin_reads_every_section(self, admin_client):
        response = admin_client.get(reverse('content:admin-settings'))
        assert 'admin_notifications' in response.data

    def test_patch_section(self, admin_client):
        response = admin_client.patch(
            reverse('content:admin-settings'),
            {'section': 'payment', 'values': {'depositPercentage': 20}},
            format='json',
        )

        assert response.status_code == 200
        assert response.data['payment']['depositPercentage'] == 20
        assert response.data['payment']['currency'] == 'EUR'

    def test_patch_validates_values(self, admin_client):
        response = admin_client.patch(
            reverse('content:admin-settings'),
            {'section': 'admin_notifications', 'values': {'bookingsEmail': 'not-an-email'}},
            format='json',
        )
        assert response.status_code == 400
        assert 'bookingsEmail' in response.data

    def test_patch_unknown_section(self, admin_client):
        payload = {'section': 'billing', 'values': {}}
        response = admin_client.patch(reverse('content:admin-settings'), payload, format='json')
        assert response.status_code == 400


class TestPoliciesAPI:

    def test_public_list_in_language(self, api_client, policy_sections):
        response = api_client.get(reverse('content:policies'), {'language': 'de'})

        assert response.status_code == 200
        assert [s['title'] for s in response.data] == ['Buchung', 'Cancellation']

    def test_unsupported_language_falls_back_to_english(self, api_client, policy_sections):
        response = api_client.get(reverse('content:policies'), {'language': 'xx'})
        assert [s['title'] for s in response.data] == ['Booking', 'Cancellation']

    def test_admin_post_upserts(self, admin_client, policy_sections):
        payload = {'section_key': 'booking', 'language': 'de', 'title': 'Buchungen', 'content': []}

        response = admin_client.post(reverse('content:admin-policy-list'), payload, format='json')

        assert response.status_code == 200
        assert PolicySection.objects.get(section_key='booking', language='de').title == 'Buchungen'

        payload['language'] = 'fr'
        payload['title'] = 'Réservation'
        assert admin_client.post(reverse('content:admin-policy-list'), payload, format='json').status_code == 201

    def test_admin_rejects_unsupported_language(self, admin_client, db):
        payload = {'section_key': 'booking', 'language': 'it', 'title': 'Prenotazione'}
        assert admin_client.post(reverse('content:admin-policy-list'), payload, format='json').status_code == 400


@pytest.mark.django_db
class TestContactAPI:

    payload = {
        'name': 'Casey',
        'email': 'casey@example.com',
        'subject': 'Board rental',
        'message': 'Can I rent a longboard for the week?',
    }

    def test_sends_confirmation_and_support_notice(
        self, api_client, mock_resend, django_capture_on_commit_callbacks,
    ):
        with django_capture_on_commit_callbacks(execute=True):
            response = api_client.post(reverse('content:contact'), self.payload, format='json')

        assert response.status_code == 200
        assert response.data['success'] is True
        recipients = [call.args[0]['to'] for call in mock_resend.call_args_list]
        assert ['casey@example.com'] in recipients
        support_call = next(c for c in mock_resend.call_args_list if c.args[0]['to'] != ['casey@example.com'])
        assert support_call.args[0]['reply_to'] == 'casey@example.com'

    def test_short_message_rejected(self, api_client):
        response = api_client.post(reverse('content:contact'), {**self.payload, 'message': 'hi'}, format='json')
        assert response.status_code == 400
        assert 'message' in response.data


@pytest.mark.django_db
class TestFeedbackAPI:

    def _payload(self, booking, **overrides):
        return {
            'bookingId': str(booking.id),
            'token': generate_feedback_token(booking.id),
            'overallRating': 5,
            'surfingRating': 4,
            'testimonial': 'Unforgettable',
            'allowTestimonialUse': True,
            **overrides,
        }

    def test_check_link(self, api_client, booking):
        response = api_client.get(
            reverse('content:feedback'),
            {'booking': str(booking.id), 'token': generate_feedback_token(booking.id)},
        )
        assert response.data == {'valid': True, 'submitted': False}

    def test_check_bad_link(self, api_client, booking):
        response = api_client.get(reverse('content:feedback'), {'booking': str(booking.id), 'token': 'nope'})
        assert response.data == {'valid': False, 'submitted': False}

    def test_submit(self, api_client, booking):
        response = api_client.post(reverse('content:feedback'), self._payload(booking), format='json')

        assert response.status_code == 201
        feedback = RetreatFeedback.objects.get(booking=booking)
        assert feedback.surfing_rating == 4
        assert feedback.allow_testimonial_use is True

    def test_submit_twice(self, api_client, booking):
        api_client.post(reverse('content:feedback'), self._payload(booking), format='json')
        response = api_client.post(reverse('content:feedback'), self._payload(booking), format='json')
        assert response.status_code == 400

    def test_bad_token_forbidden(self, api_client, booking):
        payload = self._payload(booking, token='0' * 64)
        response = api_client.post(reverse('content:feedback'), payload, format='json')
        assert response.status_code == 403

    def test_rating_out_of_range(self, api_client, booking):
        payload = self._payload(booking, overallRating=6)
        response = api_client.post(reverse('content:feedback'), payload, format='json')
        assert response.status_code == 400

    def test_admin_testimonial_filter(self, api_client, admin_client, booking):
        api_client.post(reverse('content:feedback'), self._payload(booking), format='json')

        response = admin_client.get(reverse('content:admin-feedback-list'), {'testimonial': 'true'})

        assert response.status_code == 200
        assert response.data['count'] == 1
        assert response.data['results'][0]['booking_number'] == booking.booking_number


@pytest.mark.django_db
class TestUploadAPI:

    def test_admin_upload(self, admin_client, settings, tmp_path):
        settings.MEDIA_ROOT = str(tmp_path)
        upload = SimpleUploadedFile('sunset.webp', b'RIFF', content_type='image/webp')

        response = admin_client.post(
            reverse('content:upload'), {'file': upload, 'folder': 'gallery'}, format='multipart',
        )

        assert response.status_code == 201
        assert response.data['path'].startswith('uploads/gallery/')
        assert response.data['url'].startswith('http://testserver/')

    def test_rejects_non_image(self, admin_client, settings, tmp_path):
        settings.MEDIA_ROOT = str(tmp_path)
        upload = SimpleUploadedFile('run.sh', b'echo', content_type='text/x-sh')

        response = admin_client.post(reverse('content:upload'), {'file': upload}, format='multipart')
        assert response.status_code == 400

    def test_requires_admin(self, user_client):
        upload = SimpleUploadedFile('sunset.png', b'png', content_type='image/png')
        assert user_client.post(reverse('content:upload'), {'file': upload}, format='multipart').status_code == 403
