import logging
import uuid

from django.db import transaction
from django.db.models import F
from django.utils import timezone

from apps.retreats.services import unique_copy_slug
from ..models import BlogPost
from .exceptions import BlogPostNotFoundError

logger = logging.getLogger(__name__)


def published_posts():
    return BlogPost.objects.alive().filter(status=BlogPost.Status.PUBLISHED).select_related('category')


def view_post(*, slug: str) -> BlogPost:
    """
    Published post by slug, counting the view.

    Raises:
        BlogPostNotFoundError: No published post with that slug
    """
    post = published_posts().filter(slug=slug).first()
    if post is None:
        raise BlogPostNotFoundError("Post not found")

    BlogPost.objects.filter(pk=post.pk).update(views=F('views') + 1)
    post.refresh_from_db(fields=['views'])
    return post


@transaction.atomic
def duplicate_post(*, post: BlogPost, user=None) -> BlogPost:
    """Copy a post as a draft with a ``-copy`` slug and no views."""
    copy = BlogPost.objects.get(pk=post.pk)
    copy.id = uuid.uuid4()
    copy._state.adding = True
    copy.slug = unique_copy_slug(BlogPost, post.slug)
    copy.title = f"{post.title} (Copy)"
    copy.status = BlogPost.Status.DRAFT
    copy.published_at = None
    copy.scheduled_at = None
    copy.views = 0
    copy.is_featured = False
    copy.deleted_at = None
    copy.deleted_by = None
    if user is not None and user.is_authenticated:
        copy.author = user
    copy.save()
    logger.info("Duplicated blog post %s as %s", post.slug, copy.slug)
    return copy


def publish_scheduled_posts(*, now=None, dry_run: bool = False) -> dict:
    """
    Publish scheduled posts whose time has come.

    Returns:
        {published, failed, errors}
    """
    now = now or timezone.now()
    due = list(
        BlogPost.objects.alive()
        .filter(status=BlogPost.Status.SCHEDULED, scheduled_at__lte=now)
        .values_list('id', 'slug')
    )
    logger.info("Publishing %s scheduled blog posts", len(due))

    published = 0
    errors = []
    for post_id, slug in due:
        if dry_run:
            logger.info("[dry run] would publish %s", slug)
            published += 1
            continue
        updated = BlogPost.objects.filter(pk=post_id, status=BlogPost.Status.SCHEDULED).update(
            status=BlogPost.Status.PUBLISHED,
            published_at=now,
            updated_at=now,
        )
        if updated:
            published += 1
            logger.info("Published scheduled post %s", slug)
        else:
            errors.append(f"{slug}: status changed before publishing")

    return {'published': published, 'failed': len(errors), 'errors': errors}
