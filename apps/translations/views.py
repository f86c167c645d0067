import logging

from django.shortcuts import get_object_or_404
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView
from drf_spectacular.utils import extend_schema

from apps.accounts.permissions import IsSiteAdmin
from apps.blog.models import BlogPost
from .serializers import TranslateSerializer, TranslateBlogSerializer, GenerateMetaSerializer
from .services import (
    translate_text,
    translate_texts,
    translate_blog_post,
    translate_blog_post_to_all,
    generate_meta_description,
    generate_meta_title,
    TranslatorNotConfiguredError,
    TranslationFailedError,
)

logger = logging.getLogger(__name__)


def _provider_error(error):
    if isinstance(error, TranslatorNotConfiguredError):
        return Response({'error': str(error)}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)
    return Response({'error': str(error)}, status=status.HTTP_502_BAD_GATEWAY)


class TranslateView(APIView):
    """Translate one text or a batch of texts with DeepL."""

    permission_classes = [IsSiteAdmin]

    @extend_schema(request=TranslateSerializer)
    def post(self, request):
        serializer = TranslateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        try:
            if data.get('text'):
                translated = translate_text(data['text'], data['targetLang'])
            else:
                translated = translate_texts(data['texts'], data['targetLang'])
        except (TranslatorNotConfiguredError, TranslationFailedError) as e:
            return _provider_error(e)
        return Response({'translated': translated})


class TranslateBlogView(APIView):
    """
    Translate a blog post with DeepSeek.

    With ``postId`` the result is also stored in the post's translations.
    """

    permission_classes = [IsSiteAdmin]

    @extend_schema(request=TranslateBlogSerializer)
    def post(self, request):
        serializer = TranslateBlogSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        stored = None
        if data.get('postId'):
            stored = get_object_or_404(BlogPost.objects.alive(), pk=data['postId'])
            source = {
                'title': stored.title,
                'content': stored.content,
                'excerpt': stored.excerpt,
                'meta_title': stored.meta_title,
                'meta_description': stored.meta_description,
            }
            source_lang = stored.primary_language
        else:
            source = data['post']
            source_lang = data['sourceLang']

        try:
            if data['translateAll']:
                translations = translate_blog_post_to_all(source, source_lang)
            else:
                translations = {data['targetLang']: translate_blog_post(source, data['targetLang'])}
        except (TranslatorNotConfiguredError, TranslationFailedError) as e:
            return _provider_error(e)

        if stored is not None:
            stored.translations = {**stored.translations, **translations}
            stored.save(update_fields=['translations', 'updated_at'])
            logger.info("Saved %s translation(s) for blog post %s", len(translations), stored.slug)

        if data['translateAll']:
            return Response({'translations': translations})
        return Response({'translation': translations[data['targetLang']]})


class GenerateMetaView(APIView):
    """SEO meta title and/or description with DeepSeek."""

    permission_classes = [IsSiteAdmin]

    @extend_schema(request=GenerateMetaSerializer)
    def post(self, request):
        serializer = GenerateMetaSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        result = {}
        try:
            if data['type'] in ('description', 'both') and data['content']:
                result['meta_description'] = generate_meta_description(data['content'], data['lang'])
            if data['type'] in ('title', 'both') and data['title']:
                result['meta_title'] = generate_meta_title(data['title'], data['lang'])
        except (TranslatorNotConfiguredError, TranslationFailedError) as e:
            return _provider_error(e)

        if not result:
            return Response(
                {'error': 'Provide content for description or title for meta title'},
                status=status.HTTP_400_BAD_REQUEST,
            )
        return Response(result)
