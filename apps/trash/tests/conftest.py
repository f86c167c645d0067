from datetime import timedelta

import pytest
from django.utils import timezone

from apps.blog.models import BlogPost
from apps.retreats.models import Retreat


def _trash(obj, *, days_ago, user=None):
    obj.soft_delete(user)
    type(obj).objects.filter(pk=obj.pk).update(deleted_at=timezone.now() - timedelta(days=days_ago))
    obj.refresh_from_db()
    return obj


@pytest.fixture
def trashed_retreat(db, admin_user):
    start = timezone.localdate() + timedelta(days=200)
    retreat = Retreat.objects.create(
        slug='old-bali-retreat',
        destination='Bali',
        title='Bali Retreat 2024',
        start_date=start,
        end_date=start + timedelta(days=7),
    )
    return _trash(retreat, days_ago=5, user=admin_user)


@pytest.fixture
def trashed_post(db):
    post = BlogPost.objects.create(slug='outdated-guide', title='Outdated packing guide')
    return _trash(post, days_ago=1)


@pytest.fixture
def expired_post(db):
    post = BlogPost.objects.create(slug='ancient-news', title='Ancient news')
    return _trash(post, days_ago=45)
