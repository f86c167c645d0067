from django.conf import settings
from django.utils import timezone
from rest_framework import serializers
from .models import BlogCategory, BlogPost


class BlogCategorySerializer(serializers.ModelSerializer):
    post_count = serializers.IntegerField(read_only=True, default=None)

    class Meta:
        model = BlogCategory
        fields = ['id', 'name', 'slug', 'description', 'color', 'post_count', 'created_at']
        read_only_fields = ['id', 'post_count', 'created_at']


class BlogPostSerializer(serializers.ModelSerializer):
    """Admin serializer for blog posts."""

    category_name = serializers.CharField(source='category.name', read_only=True, default=None)

    class Meta:
        model = BlogPost
        fields = [
            'id',
            'slug',
            'title',
            'excerpt',
            'content',
            'image_url',
            'category',
            'category_name',
            'author',
            'author_name',
            'status',
            'published_at',
            'scheduled_at',
            'views',
            'tags',
            'reading_time',
            'meta_title',
            'meta_description',
            'is_featured',
            'primary_language',
            'translations',
            'created_at',
            'updated_at',
        ]
        read_only_fields = ['id', 'author', 'views', 'created_at', 'updated_at']

    def validate_primary_language(self, value):
        if value not in settings.SUPPORTED_LANGUAGES:
            raise serializers.ValidationError('Unsupported language')
        return value

    def validate_translations(self, value):
        if not isinstance(value, dict):
            raise serializers.ValidationError('Translations must be an object keyed by language')
        unknown = set(value) - set(settings.SUPPORTED_LANGUAGES)
        if unknown:
            raise serializers.ValidationError(f"Unsupported languages: {', '.join(sorted(unknown))}")
        return value

    def validate(self, attrs):
        post_status = attrs.get('status', getattr(self.instance, 'status', BlogPost.Status.DRAFT))
        scheduled_at = attrs.get('scheduled_at', getattr(self.instance, 'scheduled_at', None))
        if post_status == BlogPost.Status.SCHEDULED and not scheduled_at:
            raise serializers.ValidationError({'scheduled_at': 'Required for scheduled posts'})
        if post_status == BlogPost.Status.PUBLISHED and not attrs.get('published_at') and not getattr(self.instance, 'published_at', None):
            attrs['published_at'] = timezone.now()
        return attrs


class BlogPostPublicSerializer(serializers.ModelSerializer):
    """Published post in the language requested through the ``language`` context key."""

    category = BlogCategorySerializer(read_only=True)
    available_languages = serializers.ListField(read_only=True)

    class Meta:
        model = BlogPost
        fields = [
            'id',
            'slug',
            'title',
            'excerpt',
            'content',
            'image_url',
            'category',
            'author_name',
            'published_at',
            'views',
            'tags',
            'reading_time',
            'meta_title',
            'meta_description',
            'is_featured',
            'primary_language',
            'available_languages',
        ]

    def to_representation(self, instance):
        data = super().to_representation(instance)
        language = self.context.get('language')
        if language:
            data.update(instance.localized(language))
            data['language'] = language
        return data


class BlogPostListSerializer(BlogPostPublicSerializer):
    class Meta(BlogPostPublicSerializer.Meta):
        fields = [f for f in BlogPostPublicSerializer.Meta.fields if f != 'content']

    def to_representation(self, instance):
        data = super().to_representation(instance)
        data.pop('content', None)
        return data
