"""Services for translation business logic."""

from .exceptions import (
    TranslationServiceError,
    TranslatorNotConfiguredError,
    TranslationFailedError,
)
from .deepl_client import DEEPL_TARGET_CODES, translate_text, translate_texts
from .deepseek import (
    LANGUAGE_NAMES,
    translate_blog_post,
    translate_blog_post_to_all,
    generate_meta_description,
    generate_meta_title,
)

__all__ = [
    'TranslationServiceError',
    'TranslatorNotConfiguredError',
    'TranslationFailedError',
    'DEEPL_TARGET_CODES',
    'translate_text',
    'translate_texts',
    'LANGUAGE_NAMES',
    'translate_blog_post',
    'translate_blog_post_to_all',
    'generate_meta_description',
    'generate_meta_title',
]
