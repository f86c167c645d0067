"""Room occupancy overview for the admin retreat page."""

from django.db.models import Sum

from apps.bookings.models import Booking
from apps.waitlist.models import WaitlistEntry

from ..models import Retreat
from .exceptions import RetreatNotFoundError


def _guest(booking: Booking) -> dict:
    return {
        'id': str(booking.id),
        'bookingNumber': booking.booking_number,
        'name': booking.full_name,
        'email': booking.email,
        'guestsCount': booking.guests_count,
        'status': booking.status,
        'paymentStatus': booking.payment_status,
    }


def get_room_occupancy(*, retreat_id) -> dict:
    """
    Rooms of a retreat with the guests assigned to them.

    Cancelled bookings are ignored. Bookings without a room are listed as
    unassigned, and waiting waitlist entries are returned in queue order.

    Raises:
        RetreatNotFoundError: If the retreat does not exist or is trashed
    """
    retreat = Retreat.objects.alive().filter(id=retreat_id).first()
    if retreat is None:
        raise RetreatNotFoundError("Retreat not found")

    bookings = (
        Booking.objects
        .filter(retreat=retreat)
        .exclude(status=Booking.Status.CANCELLED)
        .order_by('created_at')
    )

    rooms = []
    total_capacity = 0
    total_occupied = 0
    for room in retreat.rooms.all():
        room_bookings = [b for b in bookings if b.room_id == room.id]
        occupied = sum(b.guests_count for b in room_bookings)
        total_capacity += room.capacity
        total_occupied += occupied
        rooms.append({
            'id': str(room.id),
            'name': room.name,
            'capacity': room.capacity,
            'available': room.available,
            'isSoldOut': room.is_sold_out,
            'occupied': occupied,
            'guests': [_guest(b) for b in room_bookings],
        })

    unassigned = [_guest(b) for b in bookings if b.room_id is None]

    waitlist = (
        WaitlistEntry.objects
        .filter(retreat=retreat, status=WaitlistEntry.Status.WAITING)
        .select_related('room')
        .order_by('position')
    )
    waitlist_data = [
        {
            'id': str(entry.id),
            'name': entry.full_name,
            'email': entry.email,
            'guestsCount': entry.guests_count,
            'position': entry.position,
            'roomId': str(entry.room_id) if entry.room_id else None,
            'roomName': entry.room.name if entry.room else None,
        }
        for entry in waitlist
    ]

    return {
        'retreat': {'id': str(retreat.id), 'title': retreat.display_name, 'slug': retreat.slug},
        'rooms': rooms,
        'unassigned': unassigned,
        'waitlist': waitlist_data,
        'summary': {
            'totalCapacity': total_capacity,
            'totalOccupied': total_occupied,
            'unassignedCount': len(unassigned),
            'waitlistCount': len(waitlist_data),
        },
    }


def count_active_guests(retreat: Retreat) -> int:
    """Sum of guests over the retreat's non-cancelled bookings."""
    return (
        Booking.objects
        .filter(retreat=retreat)
        .exclude(status=Booking.Status.CANCELLED)
        .aggregate(total=Sum('guests_count'))['total'] or 0
    )
