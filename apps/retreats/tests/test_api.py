import pytest
from django.urls import reverse
from rest_framework import status

from apps.retreats.models import Retreat, RetreatRoom, RetreatGalleryImage


# =============================================================================
# Public API
# =============================================================================

@pytest.mark.django_db
class TestPublicRetreats:
    """Tests for /api/retreats/"""

    def test_list_only_published(self, api_client, retreat):
        Retreat.objects.create(slug='draft', destination='Draft', location='Nowhere')
        url = reverse('retreats:retreat-list')
        response = api_client.get(url)

        assert response.status_code == status.HTTP_200_OK
        slugs = [r['slug'] for r in response.data['results']]
        assert slugs == [retreat.slug]

    def test_list_excludes_trashed(self, api_client, retreat):
        retreat.soft_delete()
        response = api_client.get(reverse('retreats:retreat-list'))

        assert response.data['count'] == 0

    def test_retrieve_by_slug(self, api_client, retreat, room):
        url = reverse('retreats:retreat-detail', args=[retreat.slug])
        response = api_client.get(url)

        assert response.status_code == status.HTTP_200_OK
        assert response.data['id'] == str(retreat.id)
        assert len(response.data['rooms']) == 1

    def test_retrieve_unknown(self, api_client, db):
        url = reverse('retreats:retreat-detail', args=['does-not-exist'])
        response = api_client.get(url)

        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_public_cannot_write(self, api_client, retreat):
        url = reverse('retreats:retreat-list')
        response = api_client.post(url, {'slug': 'x', 'destination': 'X', 'location': 'Y'})

        assert response.status_code in (status.HTTP_401_UNAUTHORIZED, status.HTTP_405_METHOD_NOT_ALLOWED)


# =============================================================================
# Admin API
# =============================================================================

@pytest.mark.django_db
class TestAdminRetreats:
    """Tests for /api/admin/retreats/"""

    def test_requires_admin(self, user_client):
        response = user_client.get(reverse('retreats:admin-retreat-list'))
        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_create_retreat(self, admin_client):
        url = reverse('retreats:admin-retreat-list')
        data = {
            'slug': 'bali-retreat',
            'destination': 'Bali',
            'location': 'Canggu, Bali',
            'start_date': '2027-05-01',
            'end_date': '2027-05-08',
        }
        response = admin_client.post(url, data, format='json')

        assert response.status_code == status.HTTP_201_CREATED
        assert Retreat.objects.filter(slug='bali-retreat').exists()

    def test_list_includes_unpublished(self, admin_client, retreat):
        Retreat.objects.create(slug='draft', destination='Draft', location='Nowhere')
        response = admin_client.get(reverse('retreats:admin-retreat-list'))

        assert response.data['count'] == 2

    def test_destroy_moves_to_trash(self, admin_client, retreat, admin_user):
        url = reverse('retreats:admin-retreat-detail', args=[retreat.id])
        response = admin_client.delete(url)

        assert response.status_code == status.HTTP_204_NO_CONTENT
        retreat.refresh_from_db()
        assert retreat.deleted_at is not None
        assert retreat.deleted_by == admin_user

    def test_duplicate(self, admin_client, retreat, room):
        url = reverse('retreats:admin-retreat-duplicate', args=[retreat.id])
        response = admin_client.post(url)

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data['slug'] == 'siargao-surf-retreat-copy'
        assert response.data['is_published'] is False

    def test_room_occupancy(self, admin_client, retreat, booking):
        url = reverse('retreats:admin-retreat-room-occupancy', args=[retreat.id])
        response = admin_client.get(url)

        assert response.status_code == status.HTTP_200_OK
        assert response.data['rooms'][0]['guests'][0]['bookingNumber'] == booking.booking_number


@pytest.mark.django_db
class TestAdminRooms:
    """Tests for /api/admin/retreats/<id>/rooms/"""

    def test_create_room_syncs_status(self, admin_client, retreat):
        url = reverse('retreats:admin-room-list', kwargs={'retreat_pk': retreat.id})
        data = {'name': 'Single', 'price': '950.00', 'capacity': 1, 'available': 1}
        response = admin_client.post(url, data, format='json')

        assert response.status_code == status.HTTP_201_CREATED
        retreat.refresh_from_db()
        assert retreat.availability_status == Retreat.AvailabilityStatus.FEW_SPOTS

    def test_delete_room(self, admin_client, retreat, room):
        url = reverse('retreats:admin-room-detail', kwargs={'retreat_pk': retreat.id, 'pk': room.id})
        response = admin_client.delete(url)

        assert response.status_code == status.HTTP_204_NO_CONTENT
        assert not RetreatRoom.objects.filter(id=room.id).exists()


@pytest.mark.django_db
class TestAdminGallery:

    def test_reorder(self, admin_client, retreat):
        first = RetreatGalleryImage.objects.create(retreat=retreat, image_url='https://img.test/a.jpg', sort_order=0)
        second = RetreatGalleryImage.objects.create(retreat=retreat, image_url='https://img.test/b.jpg', sort_order=1)
        url = reverse('retreats:admin-gallery-reorder', kwargs={'retreat_pk': retreat.id})

        response = admin_client.post(url, {'image_ids': [str(second.id), str(first.id)]}, format='json')

        assert response.status_code == status.HTTP_200_OK
        assert [img['id'] for img in response.data] == [str(second.id), str(first.id)]
