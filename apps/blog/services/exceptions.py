"""Domain-specific exceptions for blog services."""


class BlogServiceError(Exception):
    """Base exception for blog services."""
    pass


class BlogPostNotFoundError(BlogServiceError):
    """Raised when a post does not exist, is unpublished or is in the trash."""
    pass
