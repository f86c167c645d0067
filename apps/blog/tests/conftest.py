from datetime import timedelta

import pytest
from django.utils import timezone

from apps.blog.models import BlogCategory, BlogPost


@pytest.fixture
def category(db):
    return BlogCategory.objects.create(name='Surf Tips', slug='surf-tips')


@pytest.fixture
def post(category):
    """Published English post with a German translation."""
    return BlogPost.objects.create(
        slug='first-wave',
        title='Catching your first wave',
        excerpt='Pop-up basics',
        content='<p>Paddle, paddle, pop.</p>',
        category=category,
        status=BlogPost.Status.PUBLISHED,
        published_at=timezone.now() - timedelta(days=1),
        tags=['beginner', 'technique'],
        translations={'de': {'title': 'Deine erste Welle', 'content': '<p>Paddeln.</p>'}},
    )


@pytest.fixture
def draft_post(category):
    return BlogPost.objects.create(slug='draft-post', title='Work in progress', category=category)
