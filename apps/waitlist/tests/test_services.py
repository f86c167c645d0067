"""
Service tests for the waitlist queue.

Covers joining and rejoining, live positions, spot offers, responses and
the expiry sweep.
"""

from datetime import timedelta
from unittest.mock import patch

import pytest
from django.utils import timezone

from apps.waitlist.models import WaitlistEntry
from apps.waitlist.services import (
    ACCEPT,
    DECLINE,
    join_waitlist,
    get_position,
    notify_entry,
    respond_to_offer,
    expire_notifications,
    WaitlistNotFoundError,
    WaitlistStateError,
    OfferExpiredError,
)


def _join(retreat, email='kim@example.com', **extra):
    return join_waitlist(retreat_id=retreat.id, email=email, first_name='Kim', last_name='Park', **extra)


# ============================================================================
# JOINING
# ============================================================================

@pytest.mark.django_db
class TestJoin:

    def test_positions_follow_join_order(self, retreat, django_capture_on_commit_callbacks):
        with django_capture_on_commit_callbacks() as callbacks:
            first = _join(retreat, email='One@Example.com')
            second = _join(retreat, email='two@example.com')

        assert first.created is True
        assert first.entry.email == 'one@example.com'
        assert (first.entry.position, second.entry.position) == (1, 2)
        assert len(callbacks) == 2

    def test_joining_twice_keeps_place(self, retreat):
        _join(retreat)
        again = _join(retreat, email='KIM@example.com')

        assert again.created is False
        assert again.rejoined is False
        assert again.entry.position == 1
        assert 'already on the waitlist' in again.message

    def test_declined_entry_rejoins_with_old_position(self, retreat, entry):
        entry.status = WaitlistEntry.Status.DECLINED
        entry.response_token = 'b' * 64
        entry.save()

        result = _join(retreat, email=entry.email)

        assert result.rejoined is True
        assert result.entry.position == 1
        assert result.entry.status == WaitlistEntry.Status.WAITING
        assert result.entry.response_token is None

    def test_booked_entry_cannot_rejoin(self, retreat, entry):
        entry.status = WaitlistEntry.Status.BOOKED
        entry.save()
        with pytest.raises(WaitlistStateError):
            _join(retreat, email=entry.email)

    def test_available_room_is_rejected(self, retreat, room):
        with pytest.raises(WaitlistStateError, match='still available'):
            _join(retreat, room_id=room.id)

    def test_sold_out_room_accepted(self, retreat, sold_out_room):
        result = _join(retreat, room_id=sold_out_room.id)
        assert result.entry.room == sold_out_room

    def test_unpublished_retreat(self, retreat):
        retreat.is_published = False
        retreat.save()
        with pytest.raises(WaitlistStateError):
            _join(retreat)

    def test_started_retreat(self, retreat):
        retreat.start_date = timezone.localdate()
        retreat.save()
        with pytest.raises(WaitlistStateError, match='already started'):
            _join(retreat)

    def test_unknown_retreat(self, db):
        with pytest.raises(WaitlistNotFoundError):
            join_waitlist(
                retreat_id='00000000-0000-0000-0000-000000000000',
                email='kim@example.com', first_name='Kim', last_name='Park',
            )


@pytest.mark.django_db
class TestPosition:

    def test_moves_up_when_others_leave(self, retreat):
        first = _join(retreat, email='one@example.com').entry
        _join(retreat, email='two@example.com')
        assert get_position(retreat_id=retreat.id, email='two@example.com').position == 2

        first.status = WaitlistEntry.Status.DECLINED
        first.save()

        assert get_position(retreat_id=retreat.id, email='two@example.com').position == 1
        assert get_position(retreat_id=retreat.id, email='one@example.com').position == 0

    def test_not_on_waitlist(self, retreat):
        with pytest.raises(WaitlistNotFoundError):
            get_position(retreat_id=retreat.id, email='nobody@example.com')


# ============================================================================
# OFFERS
# ============================================================================

@pytest.mark.django_db
class TestNotify:

    def test_offer(self, entry, mock_resend):
        offer = notify_entry(entry_id=entry.id)

        entry.refresh_from_db()
        assert entry.status == WaitlistEntry.Status.NOTIFIED
        assert len(entry.response_token) == 64
        assert entry.notification_expires_at - entry.notified_at == timedelta(hours=72)
        assert offer.deposit_percent == 10
        assert offer.room_name == 'Beach Hut'
        assert str(offer.deposit_amount) == '90.00'
        assert f'token={entry.response_token}&action=accept' in offer.accept_url
        mock_resend.assert_called_once()

    def test_late_offer_asks_half(self, entry, retreat, mock_resend):
        retreat.start_date = timezone.localdate() + timedelta(days=30)
        retreat.save()

        assert notify_entry(entry_id=entry.id).deposit_percent == 50

    def test_open_offer_cannot_be_renotified(self, notified_entry):
        with pytest.raises(WaitlistStateError, match='still active'):
            notify_entry(entry_id=notified_entry.id)

    def test_failed_email_withdraws_offer(self, entry):
        with pytest.raises(WaitlistStateError, match='Failed to send'):
            notify_entry(entry_id=entry.id)

        entry.refresh_from_db()
        assert entry.status == WaitlistEntry.Status.WAITING
        assert entry.response_token is None


@pytest.mark.django_db
class TestRespond:

    def test_accept(self, notified_entry):
        url = respond_to_offer(token=notified_entry.response_token, action=ACCEPT)

        notified_entry.refresh_from_db()
        assert notified_entry.status == WaitlistEntry.Status.ACCEPTED
        assert notified_entry.responded_at is not None
        assert url.startswith('https://surf.test/booking?slug=siargao-surf-retreat')
        assert f'waitlist={notified_entry.id}' in url

    def test_decline(self, notified_entry):
        assert respond_to_offer(token=notified_entry.response_token, action=DECLINE) is None
        notified_entry.refresh_from_db()
        assert notified_entry.status == WaitlistEntry.Status.DECLINED

    def test_second_response_rejected(self, notified_entry):
        respond_to_offer(token=notified_entry.response_token, action=DECLINE)
        with pytest.raises(WaitlistStateError, match='already declined'):
            respond_to_offer(token=notified_entry.response_token, action=ACCEPT)

    def test_expired_offer(self, notified_entry):
        notified_entry.notification_expires_at = timezone.now() - timedelta(minutes=1)
        notified_entry.save()

        with pytest.raises(OfferExpiredError):
            respond_to_offer(token=notified_entry.response_token, action=ACCEPT)
        notified_entry.refresh_from_db()
        assert notified_entry.status == WaitlistEntry.Status.EXPIRED

    def test_unknown_token(self, db):
        with pytest.raises(WaitlistNotFoundError):
            respond_to_offer(token='f' * 64, action=ACCEPT)


@pytest.mark.django_db
class TestExpireNotifications:

    @patch('apps.waitlist.services.queue.send_waitlist_expired', return_value=True)
    def test_expires_stale_offers(self, mock_send, notified_entry):
        later = timezone.now() + timedelta(hours=73)

        results = expire_notifications(now=later)

        notified_entry.refresh_from_db()
        assert results == {'expired': 1, 'emailErrors': 0, 'total': 1}
        assert notified_entry.status == WaitlistEntry.Status.EXPIRED
        mock_send.assert_called_once()

    def test_open_offers_untouched(self, notified_entry):
        assert expire_notifications()['expired'] == 0

    def test_dry_run(self, notified_entry):
        results = expire_notifications(now=timezone.now() + timedelta(days=4), dry_run=True)

        notified_entry.refresh_from_db()
        assert results['expired'] == 1
        assert notified_entry.status == WaitlistEntry.Status.NOTIFIED

    def test_email_errors_counted(self, notified_entry):
        results = expire_notifications(now=timezone.now() + timedelta(days=4))
        assert results['emailErrors'] == 1
