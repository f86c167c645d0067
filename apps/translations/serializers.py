from django.conf import settings
from rest_framework import serializers


def _language_choices():
    return settings.SUPPORTED_LANGUAGES


class TranslateSerializer(serializers.Serializer):
    text = serializers.CharField(required=False, allow_blank=False, max_length=50000)
    texts = serializers.ListField(child=serializers.CharField(allow_blank=True), required=False, max_length=100)
    targetLang = serializers.ChoiceField(choices=_language_choices())

    def validate(self, attrs):
        if not attrs.get('text') and not attrs.get('texts'):
            raise serializers.ValidationError("Either text or texts must be provided")
        return attrs


class BlogPostInputSerializer(serializers.Serializer):
    title = serializers.CharField()
    content = serializers.CharField()
    slug = serializers.CharField(required=False, allow_blank=True)
    excerpt = serializers.CharField(required=False, allow_blank=True, default='')
    meta_title = serializers.CharField(required=False, allow_blank=True, default='')
    meta_description = serializers.CharField(required=False, allow_blank=True, default='')


class TranslateBlogSerializer(serializers.Serializer):
    """
    Either ``post`` (the editor's unsaved fields) or ``postId`` (a stored
    post, whose translations are saved back) must be given.
    """

    post = BlogPostInputSerializer(required=False)
    postId = serializers.UUIDField(required=False)
    targetLang = serializers.ChoiceField(choices=_language_choices(), required=False)
    translateAll = serializers.BooleanField(required=False, default=False)
    sourceLang = serializers.ChoiceField(choices=_language_choices(), required=False, default='en')

    def validate(self, attrs):
        if not attrs.get('post') and not attrs.get('postId'):
            raise serializers.ValidationError("Post must have title and content")
        if not attrs['translateAll'] and not attrs.get('targetLang'):
            raise serializers.ValidationError("Either targetLang or translateAll must be provided")
        return attrs


class GenerateMetaSerializer(serializers.Serializer):
    content = serializers.CharField(required=False, allow_blank=True, default='')
    title = serializers.CharField(required=False, allow_blank=True, default='')
    lang = serializers.ChoiceField(choices=_language_choices(), required=False, default='en')
    type = serializers.ChoiceField(choices=['description', 'title', 'both'], default='both')
