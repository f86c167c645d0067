"""
Listing, restoring and purging soft-deleted retreats and blog posts.

Items stay in the trash for ``settings.TRASH_RETENTION_DAYS`` days.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from django.conf import settings
from django.db import transaction
from django.utils import timezone

from apps.blog.models import BlogPost
from apps.retreats.models import Retreat
from .exceptions import UnknownItemTypeError, TrashItemNotFoundError, ItemInUseError

logger = logging.getLogger(__name__)

RETREAT = 'retreat'
BLOG_POST = 'blog_post'

TRASHABLE_MODELS = {
    RETREAT: Retreat,
    BLOG_POST: BlogPost,
}


@dataclass
class TrashItem:
    id: str
    type: str
    title: str
    slug: str
    deleted_at: datetime
    deleted_by: Optional[str]
    days_remaining: int


def days_remaining(deleted_at, now=None) -> int:
    now = now or timezone.now()
    return max(0, settings.TRASH_RETENTION_DAYS - (now - deleted_at).days)


def _model_for(item_type: str):
    try:
        return TRASHABLE_MODELS[item_type]
    except KeyError:
        raise UnknownItemTypeError(f"Unknown item type: {item_type}")


def _as_item(item_type: str, obj, now) -> TrashItem:
    title = obj.display_name if item_type == RETREAT else obj.title
    return TrashItem(
        id=str(obj.id),
        type=item_type,
        title=title,
        slug=obj.slug,
        deleted_at=obj.deleted_at,
        deleted_by=obj.deleted_by.email if obj.deleted_by_id else None,
        days_remaining=days_remaining(obj.deleted_at, now),
    )


def list_trash(*, item_type: Optional[str] = None, now=None) -> list:
    """Trashed items of one type (or all), newest deletion first."""
    now = now or timezone.now()
    types = [item_type] if item_type else list(TRASHABLE_MODELS)

    items = []
    for kind in types:
        model = _model_for(kind)
        for obj in model.objects.trashed().select_related('deleted_by'):
            items.append(_as_item(kind, obj, now))
    items.sort(key=lambda item: item.deleted_at, reverse=True)
    return items


def _get_trashed(item_type: str, item_id):
    model = _model_for(item_type)
    obj = model.objects.trashed().filter(pk=item_id).first()
    if obj is None:
        raise TrashItemNotFoundError("Item not found in trash")
    return obj


def restore_item(*, item_type: str, item_id):
    """
    Raises:
        UnknownItemTypeError: Unsupported type
        TrashItemNotFoundError: No trashed item with that id
    """
    obj = _get_trashed(item_type, item_id)
    obj.restore()
    logger.info("Restored %s %s from trash", item_type, item_id)
    return obj


def delete_permanently(*, item_type: str, item_id) -> None:
    """
    Raises:
        UnknownItemTypeError: Unsupported type
        TrashItemNotFoundError: No trashed item with that id
        ItemInUseError: Retreat still has bookings
    """
    obj = _get_trashed(item_type, item_id)
    if item_type == RETREAT and obj.bookings.exists():
        raise ItemInUseError("Retreat has bookings and cannot be deleted permanently")
    obj.delete()
    logger.info("Permanently deleted %s %s", item_type, item_id)


@transaction.atomic
def cleanup_trash(*, now=None, dry_run: bool = False) -> dict:
    """
    Permanently delete trashed retreats and blog posts past the retention
    period. Rooms and other retreat children go with their retreat.
    Retreats that still have bookings are kept and counted as skipped.

    Returns:
        Dict with deleted_retreats, deleted_blog_posts, skipped_retreats and message
    """
    now = now or timezone.now()
    cutoff = now - timedelta(days=settings.TRASH_RETENTION_DAYS)

    expired_retreats = Retreat.objects.filter(deleted_at__lt=cutoff)
    retreats = expired_retreats.filter(bookings__isnull=True)
    skipped = expired_retreats.filter(bookings__isnull=False).distinct().count()
    posts = BlogPost.objects.filter(deleted_at__lt=cutoff)
    retreat_count = retreats.count()
    post_count = posts.count()

    if not dry_run:
        retreats.delete()
        posts.delete()
        logger.info("Trash cleanup removed %s retreats and %s blog posts", retreat_count, post_count)
    if skipped:
        logger.warning("Trash cleanup kept %s retreats that still have bookings", skipped)

    return {
        'deleted_retreats': retreat_count,
        'deleted_blog_posts': post_count,
        'skipped_retreats': skipped,
        'message': f"Deleted {retreat_count} retreats and {post_count} blog posts older than "
                   f"{settings.TRASH_RETENTION_DAYS} days",
    }
