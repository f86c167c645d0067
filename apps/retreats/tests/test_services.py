from datetime import date
from decimal import Decimal

import pytest

from apps.bookings.models import Booking
from apps.retreats.models import Retreat, RetreatRoom, RetreatGalleryImage
from apps.retreats.services import (
    try_decrement_availability,
    increment_availability,
    sync_availability_status,
    get_public_retreat,
    duplicate_retreat,
    get_room_occupancy,
    count_active_guests,
    months_between,
    RetreatNotFoundError,
)
from apps.waitlist.models import WaitlistEntry


# =============================================================================
# Inventory
# =============================================================================

@pytest.mark.django_db
class TestInventory:

    def test_decrement_takes_spot(self, room):
        assert try_decrement_availability(room_id=room.id) is True
        room.refresh_from_db()
        assert room.available == 1
        assert room.is_sold_out is False

    def test_decrement_last_spot_sells_out(self, room):
        assert try_decrement_availability(room_id=room.id, count=2) is True
        room.refresh_from_db()
        room.retreat.refresh_from_db()
        assert room.available == 0
        assert room.is_sold_out is True
        assert room.retreat.availability_status == Retreat.AvailabilityStatus.SOLD_OUT

    def test_decrement_without_capacity_fails(self, room):
        assert try_decrement_availability(room_id=room.id, count=3) is False
        room.refresh_from_db()
        assert room.available == 2

    def test_increment_capped_at_capacity(self, room):
        increment_availability(room_id=room.id, count=5)
        room.refresh_from_db()
        assert room.available == room.capacity

    def test_increment_clears_sold_out(self, room):
        try_decrement_availability(room_id=room.id, count=2)
        increment_availability(room_id=room.id)
        room.refresh_from_db()
        assert room.available == 1
        assert room.is_sold_out is False

    def test_few_spots_status(self, retreat, room):
        status = sync_availability_status(retreat)
        assert status == Retreat.AvailabilityStatus.FEW_SPOTS

    def test_available_status(self, retreat, room):
        RetreatRoom.objects.create(retreat=retreat, name='Dorm', price=Decimal('600'), capacity=6, available=6)
        assert sync_availability_status(retreat) == Retreat.AvailabilityStatus.AVAILABLE

    def test_retreat_without_rooms_keeps_status(self, retreat):
        retreat.availability_status = Retreat.AvailabilityStatus.SOLD_OUT
        retreat.save()
        assert sync_availability_status(retreat) == Retreat.AvailabilityStatus.SOLD_OUT


# =============================================================================
# Management
# =============================================================================

@pytest.mark.django_db
class TestRetreatManagement:

    def test_public_lookup_by_slug_and_id(self, retreat):
        assert get_public_retreat(identifier=retreat.slug) == retreat
        assert get_public_retreat(identifier=str(retreat.id)) == retreat

    def test_public_lookup_hides_unpublished(self, retreat):
        retreat.is_published = False
        retreat.save()
        with pytest.raises(RetreatNotFoundError):
            get_public_retreat(identifier=retreat.slug)

    def test_public_lookup_hides_trashed(self, retreat):
        retreat.soft_delete()
        with pytest.raises(RetreatNotFoundError):
            get_public_retreat(identifier=retreat.slug)

    def test_duplicate_copies_rooms_and_gallery(self, retreat, room):
        RetreatRoom.objects.filter(id=room.id).update(available=0, is_sold_out=True)
        RetreatGalleryImage.objects.create(retreat=retreat, image_url='https://img.test/1.jpg', sort_order=3)

        copy = duplicate_retreat(retreat=retreat)

        assert copy.id != retreat.id
        assert copy.slug == 'siargao-surf-retreat-copy'
        assert copy.title == 'Siargao Surf Retreat (Copy)'
        assert copy.is_published is False
        copied_room = copy.rooms.get()
        assert copied_room.available == copied_room.capacity
        assert copied_room.is_sold_out is False
        assert copy.gallery.get().sort_order == 3
        assert retreat.rooms.count() == 1

    def test_duplicate_twice_gets_numbered_slug(self, retreat):
        duplicate_retreat(retreat=retreat)
        second = duplicate_retreat(retreat=retreat)
        assert second.slug == 'siargao-surf-retreat-copy-2'


# =============================================================================
# Occupancy
# =============================================================================

@pytest.mark.django_db
class TestOccupancy:

    def test_occupancy_groups_guests(self, retreat, room, booking):
        Booking.objects.filter(id=booking.id).update(guests_count=2)
        unassigned = Booking.objects.create(
            booking_number='RSR-0001-0099', retreat=retreat, first_name='Sam', last_name='Lee',
            email='sam@example.com',
        )
        Booking.objects.create(
            booking_number='RSR-0001-0100', retreat=retreat, room=room, first_name='Old', last_name='Guest',
            email='old@example.com', status=Booking.Status.CANCELLED,
        )
        WaitlistEntry.objects.create(
            retreat=retreat, first_name='Kim', last_name='Park', email='kim@example.com', position=1,
        )

        data = get_room_occupancy(retreat_id=retreat.id)

        assert data['rooms'][0]['occupied'] == 2
        assert len(data['rooms'][0]['guests']) == 1
        assert [g['id'] for g in data['unassigned']] == [str(unassigned.id)]
        assert data['summary']['waitlistCount'] == 1
        assert count_active_guests(retreat) == 3

    def test_occupancy_unknown_retreat(self, db):
        import uuid
        with pytest.raises(RetreatNotFoundError):
            get_room_occupancy(retreat_id=uuid.uuid4())


class TestMonthsBetween:

    @pytest.mark.parametrize('start,end,expected', [
        (date(2026, 1, 15), date(2026, 3, 14), 1),
        (date(2026, 1, 15), date(2026, 3, 15), 2),
        (date(2025, 11, 30), date(2026, 2, 28), 2),
        (date(2026, 5, 1), date(2026, 4, 1), -1),
    ])
    def test_months_between(self, start, end, expected):
        assert months_between(start, end) == expected
