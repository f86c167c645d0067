import pytest

from apps.newsletter.models import Campaign, Subscriber


@pytest.fixture
def subscriber(db):
    return Subscriber.objects.create(
        email='reader@example.com',
        first_name='Robin',
        status=Subscriber.Status.ACTIVE,
    )


@pytest.fixture
def campaign(db):
    return Campaign.objects.create(
        name='Spring issue',
        subject_en='Hello {{ first_name }}',
        subject_de='Hallo {{ first_name }}',
        content_en='<p>Hi {{ first_name }}</p><a href="{{ unsubscribe_link }}">Unsubscribe</a>',
    )
