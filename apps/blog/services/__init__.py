"""Services for blog business logic."""

from .exceptions import BlogServiceError, BlogPostNotFoundError
from .posts import published_posts, view_post, duplicate_post, publish_scheduled_posts

__all__ = [
    'BlogServiceError',
    'BlogPostNotFoundError',
    'published_posts',
    'view_post',
    'duplicate_post',
    'publish_scheduled_posts',
]
