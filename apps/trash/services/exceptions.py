"""Domain-specific exceptions for trash services."""


class TrashServiceError(Exception):
    """Base exception for trash services."""
    pass


class UnknownItemTypeError(TrashServiceError):
    """Raised for an item type that cannot be trashed."""
    pass


class TrashItemNotFoundError(TrashServiceError):
    """Raised when no trashed item matches the id."""
    pass


class ItemInUseError(TrashServiceError):
    """Raised when a trashed item is still referenced and cannot be deleted."""
    pass
