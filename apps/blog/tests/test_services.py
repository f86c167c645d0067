"""
Service tests for blog posts: views, duplication and scheduled publishing.
"""

from datetime import timedelta

import pytest
from django.core.management import call_command
from django.utils import timezone

from apps.blog.models import BlogPost
from apps.blog.services import (
    published_posts,
    view_post,
    duplicate_post,
    publish_scheduled_posts,
    BlogPostNotFoundError,
)


@pytest.mark.django_db
class TestPublishedPosts:

    def test_only_live_published(self, post, draft_post):
        trashed = BlogPost.objects.create(slug='old', title='Old', status=BlogPost.Status.PUBLISHED)
        trashed.soft_delete()

        assert list(published_posts()) == [post]

    def test_view_counts(self, post):
        assert view_post(slug='first-wave').views == 1
        assert view_post(slug='first-wave').views == 2

    def test_draft_not_viewable(self, draft_post):
        with pytest.raises(BlogPostNotFoundError):
            view_post(slug='draft-post')


@pytest.mark.django_db
class TestDuplicatePost:

    def test_copy_is_draft(self, post, admin_user):
        post.views = 40
        post.is_featured = True
        post.save()

        copy = duplicate_post(post=post, user=admin_user)

        assert copy.pk != post.pk
        assert copy.slug == 'first-wave-copy'
        assert copy.title == 'Catching your first wave (Copy)'
        assert copy.status == BlogPost.Status.DRAFT
        assert copy.published_at is None
        assert copy.views == 0
        assert copy.is_featured is False
        assert copy.author == admin_user
        assert copy.translations == post.translations

    def test_second_copy_gets_numbered_slug(self, post):
        duplicate_post(post=post)
        assert duplicate_post(post=post).slug == 'first-wave-copy-2'


@pytest.mark.django_db
class TestScheduledPublishing:

    @pytest.fixture
    def scheduled(self, category):
        return BlogPost.objects.create(
            slug='next-week', title='Coming soon', category=category,
            status=BlogPost.Status.SCHEDULED, scheduled_at=timezone.now() - timedelta(minutes=5),
        )

    def test_publishes_due_posts(self, scheduled):
        later = BlogPost.objects.create(
            slug='later', title='Later', status=BlogPost.Status.SCHEDULED,
            scheduled_at=timezone.now() + timedelta(days=2),
        )

        result = publish_scheduled_posts()

        scheduled.refresh_from_db()
        later.refresh_from_db()
        assert result == {'published': 1, 'failed': 0, 'errors': []}
        assert scheduled.status == BlogPost.Status.PUBLISHED
        assert scheduled.published_at is not None
        assert later.status == BlogPost.Status.SCHEDULED

    def test_dry_run(self, scheduled):
        assert publish_scheduled_posts(dry_run=True)['published'] == 1
        scheduled.refresh_from_db()
        assert scheduled.status == BlogPost.Status.SCHEDULED

    def test_command(self, scheduled, capsys):
        call_command('publish_scheduled_posts')
        assert 'Published 1 posts' in capsys.readouterr().out
