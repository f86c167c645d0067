"""Plain text translation through DeepL."""

import logging

import deepl
from django.conf import settings

from .exceptions import TranslatorNotConfiguredError, TranslationFailedError

logger = logging.getLogger(__name__)

DEEPL_TARGET_CODES = {
    'en': 'EN-US',
    'de': 'DE',
    'es': 'ES',
    'fr': 'FR',
    'nl': 'NL',
}


def get_translator() -> deepl.Translator:
    if not settings.DEEPL_AUTH_KEY:
        raise TranslatorNotConfiguredError("DeepL API key not configured")
    return deepl.Translator(settings.DEEPL_AUTH_KEY)


def translate_texts(texts: list, target_lang: str) -> list:
    """
    Translate a batch of strings in one request, keeping their order.

    Raises:
        TranslatorNotConfiguredError: DEEPL_AUTH_KEY is empty
        TranslationFailedError: DeepL rejected the request
    """
    if not texts:
        return []
    translator = get_translator()
    try:
        results = translator.translate_text(texts, target_lang=DEEPL_TARGET_CODES[target_lang])
    except deepl.DeepLException as e:
        logger.error("DeepL translation to %s failed: %s", target_lang, e)
        raise TranslationFailedError(str(e)) from e
    return [result.text for result in results]


def translate_text(text: str, target_lang: str) -> str:
    return translate_texts([text], target_lang)[0]
