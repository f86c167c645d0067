"""
API tests for the public blog and blog admin.
"""

from datetime import timedelta

import pytest
from django.urls import reverse
from django.utils import timezone
from rest_framework import status

from apps.blog.models import BlogPost


@pytest.mark.django_db
class TestPublicBlog:

    def test_list_hides_content_and_drafts(self, api_client, post, draft_post):
        response = api_client.get(reverse('blog:post-list'))

        assert response.status_code == status.HTTP_200_OK
        assert response.data['count'] == 1
        assert 'content' not in response.data['results'][0]

    def test_filter_by_category(self, api_client, post):
        response = api_client.get(reverse('blog:post-list'), {'category': 'other'})
        assert response.data['count'] == 0
        response = api_client.get(reverse('blog:post-list'), {'category': 'surf-tips'})
        assert response.data['count'] == 1

    def test_retrieve_counts_view(self, api_client, post):
        response = api_client.get(reverse('blog:post-detail', args=['first-wave']))

        assert response.status_code == status.HTTP_200_OK
        assert response.data['views'] == 1
        assert response.data['available_languages'] == ['en', 'de']

    def test_retrieve_translation_falls_back(self, api_client, post):
        response = api_client.get(reverse('blog:post-detail', args=['first-wave']), {'language': 'de'})

        assert response.data['title'] == 'Deine erste Welle'
        assert response.data['excerpt'] == 'Pop-up basics'
        assert response.data['language'] == 'de'

    def test_draft_not_found(self, api_client, draft_post):
        response = api_client.get(reverse('blog:post-detail', args=['draft-post']))
        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_categories_count_published(self, api_client, post, draft_post):
        response = api_client.get(reverse('blog:category-list'))
        assert response.data[0]['post_count'] == 1


@pytest.mark.django_db
class TestBlogAdmin:

    def test_requires_admin(self, user_client):
        response = user_client.get(reverse('blog:admin-post-list'))
        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_create_sets_author(self, admin_client, admin_user, category):
        response = admin_client.post(
            reverse('blog:admin-post-list'),
            {'slug': 'new-post', 'title': 'New', 'category': str(category.id), 'status': 'published'},
            format='json',
        )

        assert response.status_code == status.HTTP_201_CREATED
        post = BlogPost.objects.get(slug='new-post')
        assert post.author == admin_user
        assert post.author_name == 'Retreat Admin'
        assert post.published_at is not None

    def test_scheduled_requires_time(self, admin_client):
        response = admin_client.post(
            reverse('blog:admin-post-list'), {'slug': 'soon', 'title': 'Soon', 'status': 'scheduled'}, format='json',
        )
        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert 'scheduled_at' in response.data

    def test_rejects_unknown_translation_language(self, admin_client):
        response = admin_client.post(
            reverse('blog:admin-post-list'),
            {'slug': 'x', 'title': 'X', 'translations': {'it': {'title': 'Ciao'}}},
            format='json',
        )
        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_destroy_moves_to_trash(self, admin_client, admin_user, post):
        response = admin_client.delete(reverse('blog:admin-post-detail', args=[post.id]))

        assert response.status_code == status.HTTP_204_NO_CONTENT
        post.refresh_from_db()
        assert post.deleted_at is not None
        assert post.deleted_by == admin_user

    def test_duplicate(self, admin_client, post):
        response = admin_client.post(reverse('blog:admin-post-duplicate', args=[post.id]))

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data['slug'] == 'first-wave-copy'
        assert response.data['status'] == 'draft'

    def test_schedule_via_patch(self, admin_client, draft_post):
        when = (timezone.now() + timedelta(days=1)).isoformat()
        response = admin_client.patch(
            reverse('blog:admin-post-detail', args=[draft_post.id]),
            {'status': 'scheduled', 'scheduled_at': when},
            format='json',
        )
        assert response.status_code == status.HTTP_200_OK
        assert response.data['status'] == 'scheduled'
