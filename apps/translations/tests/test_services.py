from types import SimpleNamespace

import deepl
import httpx
import pytest

from apps.translations.services import (
    translate_text,
    translate_texts,
    translate_blog_post,
    translate_blog_post_to_all,
    generate_meta_description,
    generate_meta_title,
    TranslatorNotConfiguredError,
    TranslationFailedError,
)
from .responses import chat_response, blog_answer

SOURCE_POST = {
    'title': 'Catching your first wave',
    'excerpt': 'Pop-up basics',
    'content': '<p>Paddle, paddle, pop.</p>',
}


class TestDeepL:

    def test_batch_keeps_order_and_maps_target_code(self, deepl_translator):
        deepl_translator.translate_text.return_value = [SimpleNamespace(text='Welle'), SimpleNamespace(text='Brett')]

        assert translate_texts(['Wave', 'Board'], 'de') == ['Welle', 'Brett']
        deepl_translator.translate_text.assert_called_once_with(['Wave', 'Board'], target_lang='DE')

    def test_english_uses_regional_code(self, deepl_translator):
        deepl_translator.translate_text.return_value = [SimpleNamespace(text='Wave')]

        assert translate_text('Welle', 'en') == 'Wave'
        assert deepl_translator.translate_text.call_args.kwargs['target_lang'] == 'EN-US'

    def test_empty_batch_skips_request(self, deepl_translator):
        assert translate_texts([], 'fr') == []
        deepl_translator.translate_text.assert_not_called()

    def test_provider_error(self, deepl_translator):
        deepl_translator.translate_text.side_effect = deepl.DeepLException('quota exceeded')

        with pytest.raises(TranslationFailedError, match='quota exceeded'):
            translate_text('Wave', 'es')

    def test_not_configured(self, settings):
        settings.DEEPL_AUTH_KEY = ''
        with pytest.raises(TranslatorNotConfiguredError):
            translate_text('Wave', 'nl')


class TestBlogTranslation:

    def test_parses_json_inside_prose(self, deepseek_post):
        deepseek_post.return_value = chat_response(blog_answer(
            title='Deine erste Welle',
            excerpt='Pop-up Grundlagen',
            content='<p>Paddeln.</p>',
            meta_title='Erste Welle',
            meta_description='Alles zum Pop-up',
        ))

        result = translate_blog_post(SOURCE_POST, 'de')

        assert result == {
            'title': 'Deine erste Welle',
            'slug': 'deine-erste-welle',
            'excerpt': 'Pop-up Grundlagen',
            'content': '<p>Paddeln.</p>',
            'meta_title': 'Erste Welle',
            'meta_description': 'Alles zum Pop-up',
        }
        request = deepseek_post.call_args.kwargs
        assert request['headers'] == {'Authorization': 'Bearer ds-test-key'}
        assert 'German' in request['json']['messages'][0]['content']

    def test_missing_fields_fall_back_to_source(self, deepseek_post):
        deepseek_post.return_value = chat_response(blog_answer(title='Tu primera ola'))

        result = translate_blog_post(SOURCE_POST, 'es')

        assert result['content'] == SOURCE_POST['content']
        assert result['excerpt'] == SOURCE_POST['excerpt']
        assert result['meta_title'] == 'Tu primera ola'

    def test_unparseable_answer(self, deepseek_post):
        deepseek_post.return_value = chat_response('Sorry, I cannot help with that.')

        with pytest.raises(TranslationFailedError, match='parse'):
            translate_blog_post(SOURCE_POST, 'fr')

    def test_http_error(self, deepseek_post):
        deepseek_post.return_value = chat_response('', status_code=503)

        with pytest.raises(TranslationFailedError, match='503'):
            translate_blog_post(SOURCE_POST, 'fr')

    def test_network_error(self, deepseek_post):
        deepseek_post.side_effect = httpx.ConnectError('connection refused')

        with pytest.raises(TranslationFailedError, match='unavailable'):
            translate_blog_post(SOURCE_POST, 'fr')

    def test_translate_to_all_other_languages(self, deepseek_post):
        deepseek_post.return_value = chat_response(blog_answer(title='Translated'))

        result = translate_blog_post_to_all(SOURCE_POST, 'en')

        assert set(result) == {'de', 'es', 'fr', 'nl'}
        assert deepseek_post.call_count == 4

    def test_not_configured(self, settings):
        settings.DEEPSEEK_API_KEY = ''
        with pytest.raises(TranslatorNotConfiguredError):
            translate_blog_post(SOURCE_POST, 'de')


class TestMetaGeneration:

    def test_description_is_truncated(self, deepseek_post):
        deepseek_post.return_value = chat_response('x' * 200)
        assert len(generate_meta_description('<p>Long article</p>')) == 160

    def test_title(self, deepseek_post):
        deepseek_post.return_value = chat_response('  Surf Camp Guide  ')

        assert generate_meta_title('A guide to surf camps', 'nl') == 'Surf Camp Guide'
        assert 'Dutch' in deepseek_post.call_args.kwargs['json']['messages'][0]['content']
