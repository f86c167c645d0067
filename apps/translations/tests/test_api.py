from types import SimpleNamespace

import pytest
from django.urls import reverse

from apps.blog.models import BlogPost
from .responses import chat_response, blog_answer


def _translate(client, payload):
    return client.post(reverse('translations:translate'), payload, format='json')


@pytest.mark.django_db
class TestTranslateAPI:

    def test_requires_admin(self, user_client):
        assert _translate(user_client, {'text': 'Hi', 'targetLang': 'de'}).status_code == 403

    def test_single_text(self, admin_client, deepl_translator):
        deepl_translator.translate_text.return_value = [SimpleNamespace(text='Hallo')]

        response = _translate(admin_client, {'text': 'Hello', 'targetLang': 'de'})

        assert response.status_code == 200
        assert response.data == {'translated': 'Hallo'}

    def test_batch(self, admin_client, deepl_translator):
        deepl_translator.translate_text.return_value = [SimpleNamespace(text='Hola'), SimpleNamespace(text='Adiós')]

        response = _translate(admin_client, {'texts': ['Hello', 'Bye'], 'targetLang': 'es'})
        assert response.data == {'translated': ['Hola', 'Adiós']}

    def test_requires_text(self, admin_client):
        assert _translate(admin_client, {'targetLang': 'de'}).status_code == 400

    def test_unsupported_language(self, admin_client):
        assert _translate(admin_client, {'text': 'Hi', 'targetLang': 'it'}).status_code == 400

    def test_not_configured(self, admin_client, settings):
        settings.DEEPL_AUTH_KEY = ''
        assert _translate(admin_client, {'text': 'Hi', 'targetLang': 'de'}).status_code == 500


@pytest.mark.django_db
class TestTranslateBlogAPI:

    def test_unsaved_post(self, admin_client, deepseek_post):
        deepseek_post.return_value = chat_response(blog_answer(title='Deine erste Welle'))

        response = admin_client.post(reverse('translations:translate-blog'), {
            'post': {'title': 'Your first wave', 'content': '<p>Paddle.</p>'},
            'targetLang': 'de',
        }, format='json')

        assert response.status_code == 200
        assert response.data['translation']['slug'] == 'deine-erste-welle'

    def test_stored_post_saves_translations(self, admin_client, deepseek_post):
        post = BlogPost.objects.create(
            slug='first-wave', title='Your first wave', content='<p>Paddle.</p>',
            translations={'de': {'title': 'Alt'}},
        )
        deepseek_post.return_value = chat_response(blog_answer(title='Translated title'))

        response = admin_client.post(
            reverse('translations:translate-blog'), {'postId': str(post.id), 'translateAll': True}, format='json',
        )

        assert response.status_code == 200
        post.refresh_from_db()
        assert set(post.translations) == {'de', 'es', 'fr', 'nl'}
        assert post.translations['de']['title'] == 'Translated title'

    def test_requires_target(self, admin_client):
        response = admin_client.post(
            reverse('translations:translate-blog'), {'post': {'title': 'T', 'content': 'C'}}, format='json',
        )
        assert response.status_code == 400

    def test_provider_failure(self, admin_client, deepseek_post):
        deepseek_post.return_value = chat_response('', status_code=500)

        response = admin_client.post(reverse('translations:translate-blog'), {
            'post': {'title': 'T', 'content': 'C'}, 'targetLang': 'fr',
        }, format='json')
        assert response.status_code == 502


@pytest.mark.django_db
class TestGenerateMetaAPI:

    def test_both(self, admin_client, deepseek_post):
        deepseek_post.side_effect = [chat_response('A description'), chat_response('A title')]

        response = admin_client.post(reverse('translations:generate-meta'), {
            'content': '<p>Article</p>', 'title': 'Article', 'type': 'both',
        }, format='json')

        assert response.status_code == 200
        assert response.data == {'meta_description': 'A description', 'meta_title': 'A title'}

    def test_nothing_to_generate(self, admin_client):
        response = admin_client.post(reverse('translations:generate-meta'), {'type': 'title'}, format='json')
        assert response.status_code == 400
