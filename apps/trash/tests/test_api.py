import uuid

import pytest
from django.urls import reverse

from apps.blog.models import BlogPost
from apps.retreats.models import Retreat


@pytest.fixture
def url():
    return reverse('trash:trash')


@pytest.mark.django_db
def test_requires_admin(user_client, url):
    assert user_client.get(url).status_code == 403


def test_list(admin_client, url, trashed_retreat, trashed_post):
    response = admin_client.get(url)

    assert response.status_code == 200
    assert response.data['total'] == 2
    assert response.data['items'][0]['slug'] == 'outdated-guide'


def test_list_unknown_type(admin_client, url, trashed_post):
    assert admin_client.get(url, {'type': 'room'}).status_code == 400


def test_restore(admin_client, url, trashed_retreat):
    response = admin_client.post(url, {'type': 'retreat', 'id': str(trashed_retreat.id)}, format='json')

    assert response.status_code == 200
    assert Retreat.objects.alive().filter(pk=trashed_retreat.pk).exists()


def test_restore_missing(admin_client, url, db):
    response = admin_client.post(url, {'type': 'blog_post', 'id': str(uuid.uuid4())}, format='json')
    assert response.status_code == 404


def test_restore_invalid_type(admin_client, url, trashed_post):
    response = admin_client.post(url, {'type': 'room', 'id': str(trashed_post.id)}, format='json')
    assert response.status_code == 400


def test_delete_permanently(admin_client, url, trashed_post):
    response = admin_client.delete(url, {'type': 'blog_post', 'id': str(trashed_post.id)}, format='json')

    assert response.status_code == 204
    assert not BlogPost.objects.filter(pk=trashed_post.pk).exists()


def test_delete_retreat_with_bookings_conflicts(admin_client, url, booking):
    booking.retreat.soft_delete()

    response = admin_client.delete(url, {'type': 'retreat', 'id': str(booking.retreat.id)}, format='json')
    assert response.status_code == 409
