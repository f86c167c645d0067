"""
Service tests for newsletter subscriptions and campaigns.

Covers:
- Double opt-in subscribe and confirm
- Unsubscribe and quiz tagging
- Opt-in from checkout
- Campaign personalization, targeting and delivery
- Dashboard stats and CSV export
"""

from datetime import timedelta

import pytest
from django.utils import timezone

from apps.newsletter.models import Campaign, CampaignRecipient, Subscriber, SubscriberToken
from apps.newsletter.services import (
    ALREADY_SUBSCRIBED,
    CONFIRMATION_SENT,
    subscribe,
    confirm_subscription,
    unsubscribe,
    submit_quiz,
    quiz_tags,
    upsert_from_booking,
    personalize,
    target_subscribers,
    send_campaign,
    send_test,
    newsletter_stats,
    export_subscribers_csv,
    InvalidTokenError,
    ExpiredTokenError,
    CampaignStateError,
    NoRecipientsError,
)
from apps.notifications.services import EmailDeliveryError


# ============================================================================
# SUBSCRIPTIONS
# ============================================================================

@pytest.mark.django_db
class TestSubscribe:

    def test_new_subscriber_is_pending(self, django_capture_on_commit_callbacks):
        with django_capture_on_commit_callbacks() as callbacks:
            outcome = subscribe(email=' New@Example.com ', first_name='Nia', language='de')

        subscriber = Subscriber.objects.get()
        assert outcome == CONFIRMATION_SENT
        assert subscriber.email == 'new@example.com'
        assert subscriber.status == Subscriber.Status.PENDING
        assert subscriber.tokens.count() == 1
        assert len(callbacks) == 1

    def test_active_subscriber(self, subscriber):
        assert subscribe(email='READER@example.com') == ALREADY_SUBSCRIBED
        assert SubscriberToken.objects.count() == 0

    def test_resubscribe_after_unsubscribe(self, subscriber):
        subscriber.status = Subscriber.Status.UNSUBSCRIBED
        subscriber.unsubscribed_at = timezone.now()
        subscriber.save()

        assert subscribe(email=subscriber.email) == CONFIRMATION_SENT
        subscriber.refresh_from_db()
        assert subscriber.status == Subscriber.Status.PENDING
        assert subscriber.unsubscribed_at is None
        assert subscriber.first_name == 'Robin'


@pytest.mark.django_db
class TestConfirm:

    @pytest.fixture
    def pending_token(self, db):
        subscribe(email='pending@example.com')
        return SubscriberToken.objects.get()

    def test_confirm(self, pending_token, django_capture_on_commit_callbacks):
        with django_capture_on_commit_callbacks() as callbacks:
            result = confirm_subscription(token=pending_token.token)

        subscriber = result.subscriber
        assert result.already_confirmed is False
        assert subscriber.status == Subscriber.Status.ACTIVE
        assert subscriber.confirmed_at is not None
        assert subscriber.welcome_email_sent is True
        assert len(callbacks) == 1

    def test_second_click_is_harmless(self, pending_token):
        confirm_subscription(token=pending_token.token)
        assert confirm_subscription(token=pending_token.token).already_confirmed is True

    def test_expired_token(self, pending_token):
        pending_token.expires_at = timezone.now() - timedelta(minutes=1)
        pending_token.save()

        with pytest.raises(ExpiredTokenError):
            confirm_subscription(token=pending_token.token)
        assert Subscriber.objects.get().status == Subscriber.Status.PENDING

    def test_unknown_token(self, db):
        with pytest.raises(InvalidTokenError):
            confirm_subscription(token='0' * 64)


@pytest.mark.django_db
class TestUnsubscribeAndQuiz:

    def test_unsubscribe_twice(self, subscriber):
        first = unsubscribe(token=subscriber.unsubscribe_token)
        second = unsubscribe(token=subscriber.unsubscribe_token)

        subscriber.refresh_from_db()
        assert first.already_unsubscribed is False
        assert second.already_unsubscribed is True
        assert subscriber.status == Subscriber.Status.UNSUBSCRIBED

    @pytest.mark.parametrize('token', ['', 'short', 'x' * 64])
    def test_bad_unsubscribe_token(self, db, token):
        with pytest.raises(InvalidTokenError):
            unsubscribe(token=token)

    def test_quiz_tags(self):
        tags = quiz_tags({'experience': 'beginner', 'travel_style': 'solo', 'interest': ''})
        assert tags == ['experience:beginner', 'style:solo']

    def test_submit_quiz(self, subscriber):
        submit_quiz(token=subscriber.unsubscribe_token, responses={'destination': 'portugal'})

        subscriber.refresh_from_db()
        assert subscriber.quiz_completed is True
        assert subscriber.tags == ['destination:portugal']

    def test_upsert_from_booking(self, booking):
        subscriber = upsert_from_booking(booking)

        assert subscriber.status == Subscriber.Status.ACTIVE
        assert subscriber.source == Subscriber.Source.CHECKOUT
        assert subscriber.last_booking == booking

    def test_upsert_reactivates(self, booking):
        Subscriber.objects.create(email=booking.email, status=Subscriber.Status.UNSUBSCRIBED)
        subscriber = upsert_from_booking(booking)
        assert subscriber.status == Subscriber.Status.ACTIVE
        assert subscriber.unsubscribed_at is None


# ============================================================================
# CAMPAIGNS
# ============================================================================

class TestPersonalize:

    def test_fills_placeholders(self, settings):
        settings.SITE_URL = 'https://surf.test'
        html = personalize(
            'Hi {{ first_name }} / {{firstName}} ({{ email }}) {{ unsubscribe_link }} {{ unknown }}',
            first_name='<Ana>', email='ana@example.com', unsubscribe_token='tok',
        )
        assert 'Hi &lt;Ana&gt; / &lt;Ana&gt;' in html
        assert 'https://surf.test/api/newsletter/unsubscribe/?token=tok' in html
        assert '{{ unknown }}' in html

    def test_missing_name(self):
        assert personalize('Hi {{ first_name }}', first_name='', email='a@b.c', unsubscribe_token='t') == 'Hi Friend'


@pytest.mark.django_db
class TestCampaignDelivery:

    def test_targeting(self, campaign, subscriber):
        Subscriber.objects.create(email='pending@example.com', status=Subscriber.Status.PENDING)
        Subscriber.objects.create(email='de@example.com', language='de', status=Subscriber.Status.ACTIVE)

        assert target_subscribers(campaign).count() == 2
        campaign.target_status = Campaign.TargetStatus.ALL
        assert target_subscribers(campaign).count() == 3
        campaign.target_languages = ['de']
        assert list(target_subscribers(campaign).values_list('email', flat=True)) == ['de@example.com']

    def test_send_in_batches(self, campaign, mock_resend):
        for i in range(12):
            Subscriber.objects.create(
                email=f'reader{i}@example.com',
                first_name=f'Reader{i}',
                language='de' if i == 0 else 'en',
                status=Subscriber.Status.ACTIVE,
            )

        stats = send_campaign(campaign_id=campaign.id, batch_delay=0)

        campaign.refresh_from_db()
        assert stats == {'total': 12, 'sent': 12, 'failed': 0}
        assert campaign.status == Campaign.Status.SENT
        assert campaign.sent_at is not None
        assert CampaignRecipient.objects.filter(status=CampaignRecipient.Status.SENT).count() == 12
        assert CampaignRecipient.objects.first().resend_email_id == 'email_test_123'

        subjects = {call.args[0]['subject'] for call in mock_resend.call_args_list}
        assert 'Hallo Reader0' in subjects
        assert 'Hello Reader1' in subjects

    def test_failures_are_counted(self, campaign, subscriber):
        stats = send_campaign(campaign_id=campaign.id, batch_delay=0)

        assert stats == {'total': 1, 'sent': 0, 'failed': 1}
        assert CampaignRecipient.objects.get().status == CampaignRecipient.Status.FAILED

    def test_cannot_send_twice(self, campaign, subscriber, mock_resend):
        send_campaign(campaign_id=campaign.id, batch_delay=0)
        with pytest.raises(CampaignStateError, match='already sent'):
            send_campaign(campaign_id=campaign.id, batch_delay=0)

    @pytest.mark.parametrize('status', [Campaign.Status.CANCELLED, Campaign.Status.SENDING])
    def test_only_drafts_and_scheduled_can_be_sent(self, campaign, subscriber, mock_resend, status):
        campaign.status = status
        campaign.save()

        with pytest.raises(CampaignStateError):
            send_campaign(campaign_id=campaign.id, batch_delay=0)

        campaign.refresh_from_db()
        assert campaign.status == status
        assert not mock_resend.called
        assert not CampaignRecipient.objects.exists()

    def test_scheduled_campaign_is_sent(self, campaign, subscriber, mock_resend):
        campaign.status = Campaign.Status.SCHEDULED
        campaign.save()

        assert send_campaign(campaign_id=campaign.id, batch_delay=0)['sent'] == 1

    def test_no_recipients_reverts_to_draft(self, campaign):
        with pytest.raises(NoRecipientsError):
            send_campaign(campaign_id=campaign.id, batch_delay=0)
        campaign.refresh_from_db()
        assert campaign.status == Campaign.Status.DRAFT

    def test_send_test(self, campaign, mock_resend):
        send_test(campaign=campaign, email='admin@example.com')

        params = mock_resend.call_args.args[0]
        assert params['subject'] == '[TEST] Hello Test'
        assert params['to'] == ['admin@example.com']

    def test_send_test_without_provider(self, campaign):
        with pytest.raises(EmailDeliveryError):
            send_test(campaign=campaign, email='admin@example.com')


# ============================================================================
# REPORTING
# ============================================================================

@pytest.mark.django_db
class TestStats:

    def test_counts(self, subscriber, campaign):
        Subscriber.objects.create(email='p@example.com', status=Subscriber.Status.PENDING)
        stats = newsletter_stats()

        assert stats['subscribers']['total'] == 2
        assert stats['subscribers']['active'] == 1
        assert stats['subscribers']['pending'] == 1
        assert stats['campaigns']['draft'] == 1
        assert stats['emailPerformance']['deliveryRate'] == 0.0
        assert stats['growth']['newSubscribersLast7Days'] == 2

    def test_export(self, subscriber):
        subscriber.tags = ['experience:beginner', 'style:solo']
        subscriber.save()

        lines = export_subscribers_csv(Subscriber.objects.all()).strip().splitlines()
        assert lines[0] == 'email,first_name,language,status,source,tags,confirmed_at,created_at'
        assert lines[1].startswith('reader@example.com,Robin,en,active,website,experience:beginner;style:solo')
