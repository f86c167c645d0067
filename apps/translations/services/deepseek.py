"""
Blog translation and SEO copy through the DeepSeek chat-completions API.

Blog posts are translated in a single call that answers with a JSON object,
so HTML in the body survives and the fields stay consistent with each other.
"""

import json
import logging
import re

import httpx
from django.conf import settings
from django.utils.text import slugify

from .exceptions import TranslatorNotConfiguredError, TranslationFailedError

logger = logging.getLogger(__name__)

LANGUAGE_NAMES = {
    'en': 'English',
    'de': 'German',
    'es': 'Spanish',
    'fr': 'French',
    'nl': 'Dutch',
}

META_TITLE_MAX = 60
META_DESCRIPTION_MAX = 160
REQUEST_TIMEOUT_SECONDS = 120

JSON_OBJECT_RE = re.compile(r'\{.*\}', re.DOTALL)

BLOG_SYSTEM_PROMPT = """You are a professional translator for a surf retreat website (LGBTQ+ focused).
Translate ALL the following content to {language}. Return in JSON format with these exact keys:
{{
  "title": "translated title",
  "excerpt": "translated excerpt",
  "content": "translated content (keep HTML formatting)",
  "meta_title": "translated SEO title (50-60 chars recommended)",
  "meta_description": "translated SEO description (150-160 chars recommended)"
}}

Rules:
- Maintain HTML tags and formatting in content
- Keep the translations natural and fluent
- Preserve the friendly, welcoming tone
- Keep "Rainbow Surf Retreats" unchanged"""

META_DESCRIPTION_PROMPT = """You are an SEO expert. Create a compelling meta description in {language} for search engine results.
Rules:
- Maximum 160 characters
- Include a call-to-action if appropriate
- Make it engaging and click-worthy
- Use natural language, avoid keyword stuffing
- Return ONLY the meta description, no quotes or explanations"""

META_TITLE_PROMPT = """You are an SEO expert. Create a compelling meta title in {language} for search engine results.
Rules:
- Maximum 60 characters
- Include the main topic
- Make it engaging
- Return ONLY the meta title, no quotes or explanations"""


def chat(messages: list, temperature: float = 0.3) -> str:
    """
    Send a chat-completions request and return the first answer.

    Raises:
        TranslatorNotConfiguredError: DEEPSEEK_API_KEY is empty
        TranslationFailedError: HTTP error or empty answer
    """
    if not settings.DEEPSEEK_API_KEY:
        raise TranslatorNotConfiguredError("DeepSeek API key not configured")

    try:
        response = httpx.post(
            settings.DEEPSEEK_API_URL,
            headers={'Authorization': f'Bearer {settings.DEEPSEEK_API_KEY}'},
            json={
                'model': settings.DEEPSEEK_MODEL,
                'messages': messages,
                'temperature': temperature,
                'max_tokens': 4096,
            },
            timeout=REQUEST_TIMEOUT_SECONDS,
        )
        response.raise_for_status()
    except httpx.HTTPStatusError as e:
        logger.error("DeepSeek returned %s: %s", e.response.status_code, e.response.text[:500])
        raise TranslationFailedError(f"DeepSeek API error: {e.response.status_code}") from e
    except httpx.HTTPError as e:
        logger.error("DeepSeek request failed: %s", e)
        raise TranslationFailedError("DeepSeek API unavailable") from e

    choices = response.json().get('choices') or []
    if not choices:
        raise TranslationFailedError("No response from DeepSeek API")
    return choices[0]['message']['content'].strip()


def translate_blog_post(post: dict, target_lang: str) -> dict:
    """
    Translate title, excerpt, content and meta fields of a post.

    Missing fields in the answer fall back to the source text. The slug is
    regenerated from the translated title.

    Raises:
        TranslatorNotConfiguredError, TranslationFailedError
    """
    title = post['title']
    excerpt = post.get('excerpt') or ''
    user_content = (
        f"Title: {title}\n\n"
        f"Excerpt: {excerpt or '(generate from content)'}\n\n"
        f"Content:\n{post['content']}\n\n"
        f"Meta Title: {post.get('meta_title') or title}\n\n"
        f"Meta Description: {post.get('meta_description') or excerpt or '(generate from content)'}"
    )
    answer = chat([
        {'role': 'system', 'content': BLOG_SYSTEM_PROMPT.format(language=LANGUAGE_NAMES[target_lang])},
        {'role': 'user', 'content': user_content},
    ])

    match = JSON_OBJECT_RE.search(answer)
    try:
        parsed = json.loads(match.group(0)) if match else None
    except ValueError:
        parsed = None
    if not isinstance(parsed, dict):
        logger.error("Unparseable blog translation: %s", answer[:500])
        raise TranslationFailedError("Failed to parse translation response")

    translated_title = parsed.get('title') or title
    return {
        'title': translated_title,
        'slug': slugify(translated_title),
        'excerpt': parsed.get('excerpt') or excerpt,
        'content': parsed.get('content') or post['content'],
        'meta_title': parsed.get('meta_title') or translated_title,
        'meta_description': parsed.get('meta_description') or parsed.get('excerpt') or '',
    }


def translate_blog_post_to_all(post: dict, source_lang: str = 'en') -> dict:
    return {
        lang: translate_blog_post(post, lang)
        for lang in settings.SUPPORTED_LANGUAGES
        if lang != source_lang
    }


def generate_meta_description(content: str, lang: str = 'en') -> str:
    answer = chat(
        [
            {'role': 'system', 'content': META_DESCRIPTION_PROMPT.format(language=LANGUAGE_NAMES[lang])},
            {'role': 'user', 'content': f"Create a meta description for this content:\n\n{content[:1000]}"},
        ],
        temperature=0.7,
    )
    return answer[:META_DESCRIPTION_MAX]


def generate_meta_title(title: str, lang: str = 'en') -> str:
    answer = chat(
        [
            {'role': 'system', 'content': META_TITLE_PROMPT.format(language=LANGUAGE_NAMES[lang])},
            {'role': 'user', 'content': f"Create a meta title based on: {title}"},
        ],
        temperature=0.7,
    )
    return answer[:META_TITLE_MAX]
