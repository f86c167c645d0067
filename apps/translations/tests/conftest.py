from unittest.mock import patch

import pytest


@pytest.fixture
def deepl_translator(settings):
    """Configured DeepL with the Translator class mocked out."""
    settings.DEEPL_AUTH_KEY = 'deepl-test-key'
    with patch('apps.translations.services.deepl_client.deepl.Translator') as translator_class:
        yield translator_class.return_value


@pytest.fixture
def deepseek_post(settings):
    """Configured DeepSeek with ``httpx.post`` mocked out."""
    settings.DEEPSEEK_API_KEY = 'ds-test-key'
    with patch('apps.translations.services.deepseek.httpx.post') as post:
        yield post
