from datetime import timedelta

import pytest
from django.utils import timezone

from apps.waitlist.models import WaitlistEntry


@pytest.fixture
def entry(retreat, sold_out_room):
    """First person waiting for the sold-out hut."""
    return WaitlistEntry.objects.create(
        retreat=retreat,
        room=sold_out_room,
        first_name='Sam',
        last_name='Lee',
        email='sam@example.com',
        position=1,
    )


@pytest.fixture
def notified_entry(entry):
    entry.status = WaitlistEntry.Status.NOTIFIED
    entry.notified_at = timezone.now()
    entry.notification_expires_at = timezone.now() + timedelta(hours=72)
    entry.response_token = 'a' * 64
    entry.save()
    return entry
