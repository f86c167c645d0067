"""
Room inventory.

Availability changes are single conditional UPDATE statements, so two
concurrent checkouts can never both take the last spot of a room.
"""

import logging

from django.db import transaction
from django.db.models import F, Sum
from django.db.models.functions import Least

from ..models import Retreat, RetreatRoom

logger = logging.getLogger(__name__)

FEW_SPOTS_THRESHOLD = 3


@transaction.atomic
def try_decrement_availability(*, room_id, count: int = 1) -> bool:
    """
    Take ``count`` spots from a room if it still has them.

    Returns:
        True when the spots were taken, False when the room lacks capacity
    """
    updated = (
        RetreatRoom.objects
        .filter(id=room_id, available__gte=count)
        .update(available=F('available') - count)
    )
    if updated != 1:
        logger.info("Room %s has fewer than %s spots left", room_id, count)
        return False

    RetreatRoom.objects.filter(id=room_id, available__lte=0).update(is_sold_out=True)
    _sync_for_room(room_id)
    return True


@transaction.atomic
def increment_availability(*, room_id, count: int = 1) -> None:
    """Give ``count`` spots back to a room, never exceeding its capacity."""
    RetreatRoom.objects.filter(id=room_id).update(
        available=Least(F('available') + count, F('capacity'))
    )
    RetreatRoom.objects.filter(id=room_id, available__gt=0).update(is_sold_out=False)
    _sync_for_room(room_id)


def sync_availability_status(retreat: Retreat) -> str:
    """
    Derive the retreat badge from its rooms.

    sold_out when every room is sold out, few_spots when at most three spots
    remain in total, otherwise available. Retreats without rooms keep their
    manually set status.
    """
    rooms = retreat.rooms.all()
    if not rooms.exists():
        return retreat.availability_status

    if not rooms.filter(is_sold_out=False).exists():
        new_status = Retreat.AvailabilityStatus.SOLD_OUT
    else:
        total = rooms.filter(is_sold_out=False).aggregate(total=Sum('available'))['total'] or 0
        if total <= FEW_SPOTS_THRESHOLD:
            new_status = Retreat.AvailabilityStatus.FEW_SPOTS
        else:
            new_status = Retreat.AvailabilityStatus.AVAILABLE

    if new_status != retreat.availability_status:
        Retreat.objects.filter(id=retreat.id).update(availability_status=new_status)
        retreat.availability_status = new_status
    return new_status


def _sync_for_room(room_id):
    room = RetreatRoom.objects.select_related('retreat').filter(id=room_id).first()
    if room is not None:
        sync_availability_status(room.retreat)
