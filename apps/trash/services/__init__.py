"""Services for trash business logic."""

from .exceptions import (
    TrashServiceError,
    UnknownItemTypeError,
    TrashItemNotFoundError,
    ItemInUseError,
)
from .bin import (
    RETREAT,
    BLOG_POST,
    TRASHABLE_MODELS,
    TrashItem,
    days_remaining,
    list_trash,
    restore_item,
    delete_permanently,
    cleanup_trash,
)

__all__ = [
    'TrashServiceError',
    'UnknownItemTypeError',
    'TrashItemNotFoundError',
    'ItemInUseError',
    'RETREAT',
    'BLOG_POST',
    'TRASHABLE_MODELS',
    'TrashItem',
    'days_remaining',
    'list_trash',
    'restore_item',
    'delete_permanently',
    'cleanup_trash',
]
