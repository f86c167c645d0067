from django.conf import settings
from django.core.validators import RegexValidator
from django.db import models
import uuid

from apps.trash.models import SoftDeleteModel


slug_validator = RegexValidator(
    regex=r'^[a-z0-9]+(?:-[a-z0-9]+)*$',
    message='Slug must be lowercase letters, numbers and hyphens only',
)


class BlogCategory(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=100)
    slug = models.SlugField(max_length=100, unique=True, validators=[slug_validator])
    description = models.TextField(blank=True)
    color = models.CharField(max_length=20, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'blog_categories'
        ordering = ['name']
        verbose_name_plural = 'blog categories'

    def __str__(self):
        return self.name


class BlogPost(SoftDeleteModel):
    """Blog article with optional per-language translations."""

    class Status(models.TextChoices):
        DRAFT = 'draft', 'Draft'
        PUBLISHED = 'published', 'Published'
        SCHEDULED = 'scheduled', 'Scheduled'
        ARCHIVED = 'archived', 'Archived'

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    slug = models.SlugField(max_length=200, unique=True, validators=[slug_validator])
    title = models.CharField(max_length=255)
    excerpt = models.TextField(blank=True)
    content = models.TextField(blank=True)
    image_url = models.URLField(max_length=500, blank=True)
    category = models.ForeignKey(
        BlogCategory, on_delete=models.SET_NULL, null=True, blank=True, related_name='posts',
    )
    author = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='blog_posts',
    )
    author_name = models.CharField(max_length=100, blank=True)

    status = models.CharField(max_length=20, choices=Status.choices, default=Status.DRAFT, db_index=True)
    published_at = models.DateTimeField(null=True, blank=True)
    scheduled_at = models.DateTimeField(null=True, blank=True)
    views = models.PositiveIntegerField(default=0)
    tags = models.JSONField(default=list, blank=True)
    reading_time = models.PositiveSmallIntegerField(null=True, blank=True)

    meta_title = models.CharField(max_length=255, blank=True)
    meta_description = models.TextField(blank=True)
    is_featured = models.BooleanField(default=False)

    primary_language = models.CharField(max_length=2, default='en')
    # {"de": {"title": ..., "slug": ..., "excerpt": ..., "content": ..., "meta_title": ..., "meta_description": ...}}
    translations = models.JSONField(default=dict, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'blog_posts'
        ordering = ['-published_at', '-created_at']
        indexes = [
            models.Index(fields=['status', 'published_at']),
        ]

    def __str__(self):
        return self.title

    @property
    def available_languages(self):
        return [self.primary_language] + [lang for lang in self.translations if lang != self.primary_language]

    def localized(self, language: str) -> dict:
        """Title, excerpt, content and meta in ``language``, falling back to the original text."""
        base = {
            'title': self.title,
            'slug': self.slug,
            'excerpt': self.excerpt,
            'content': self.content,
            'meta_title': self.meta_title,
            'meta_description': self.meta_description,
        }
        if language == self.primary_language:
            return base
        translated = self.translations.get(language) or {}
        return {key: translated.get(key) or value for key, value in base.items()}
