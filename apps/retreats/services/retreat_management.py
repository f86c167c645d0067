"""Retreat lifecycle operations used by the admin API."""

import logging
import uuid

from django.db import transaction

from ..models import Retreat, RetreatRoom, RetreatGalleryImage
from .exceptions import RetreatNotFoundError

logger = logging.getLogger(__name__)


def get_public_retreat(*, identifier) -> Retreat:
    """
    Fetch a published, non-deleted retreat by slug or id.

    Raises:
        RetreatNotFoundError: If no such retreat is visible to customers
    """
    queryset = Retreat.objects.alive().filter(is_published=True)
    try:
        lookup = {'id': uuid.UUID(str(identifier))}
    except ValueError:
        lookup = {'slug': str(identifier)}

    retreat = queryset.filter(**lookup).first()
    if retreat is None:
        raise RetreatNotFoundError("Retreat not found")
    return retreat


def unique_copy_slug(model, slug: str) -> str:
    """Return ``<slug>-copy``, or ``<slug>-copy-N`` when that is taken."""
    candidate = f"{slug}-copy"
    counter = 2
    while model.objects.filter(slug=candidate).exists():
        candidate = f"{slug}-copy-{counter}"
        counter += 1
    return candidate


@transaction.atomic
def duplicate_retreat(*, retreat: Retreat) -> Retreat:
    """
    Copy a retreat with its rooms and gallery as an unpublished draft.

    Rooms of the copy start with full availability.
    """
    rooms = list(retreat.rooms.all())
    images = list(retreat.gallery.all())
    source_id = retreat.id

    copy = Retreat.objects.get(id=source_id)
    copy.id = uuid.uuid4()
    copy._state.adding = True
    copy.slug = unique_copy_slug(Retreat, retreat.slug)
    copy.title = f"{retreat.title} (Copy)" if retreat.title else ''
    copy.destination = retreat.destination if retreat.title else f"{retreat.destination} (Copy)"
    copy.is_published = False
    copy.is_featured = False
    copy.availability_status = Retreat.AvailabilityStatus.AVAILABLE
    copy.deleted_at = None
    copy.deleted_by = None
    copy.save()

    RetreatRoom.objects.bulk_create([
        RetreatRoom(
            retreat=copy,
            name=room.name,
            description=room.description,
            image_url=room.image_url,
            price=room.price,
            deposit_price=room.deposit_price,
            capacity=room.capacity,
            available=room.capacity,
            is_sold_out=False,
            sort_order=room.sort_order,
            early_bird_enabled=room.early_bird_enabled,
            early_bird_price=room.early_bird_price,
            early_bird_deadline=room.early_bird_deadline,
        )
        for room in rooms
    ])
    RetreatGalleryImage.objects.bulk_create([
        RetreatGalleryImage(
            retreat=copy,
            image_url=image.image_url,
            caption=image.caption,
            sort_order=image.sort_order,
        )
        for image in images
    ])

    logger.info("Duplicated retreat %s as %s", source_id, copy.slug)
    return copy


@transaction.atomic
def reorder_gallery(*, retreat: Retreat, image_ids: list) -> None:
    """Set gallery ``sort_order`` to the position of each id in ``image_ids``."""
    for position, image_id in enumerate(image_ids):
        RetreatGalleryImage.objects.filter(retreat=retreat, id=image_id).update(sort_order=position)
