from rest_framework import serializers
from django.conf import settings
from .models import EmailTemplate, EmailLog


class EmailTemplateSerializer(serializers.ModelSerializer):
    class Meta:
        model = EmailTemplate
        fields = [
            'id', 'slug', 'language', 'name', 'description',
            'subject', 'html_content', 'text_content', 'category',
            'available_variables', 'is_active',
            'created_at', 'updated_at',
        ]
        read_only_fields = ['id', 'created_at', 'updated_at']

    def validate_language(self, value):
        if value not in settings.SUPPORTED_LANGUAGES:
            raise serializers.ValidationError(f"Unsupported language: {value}")
        return value

    def validate(self, attrs):
        slug = attrs.get('slug', getattr(self.instance, 'slug', None))
        language = attrs.get('language', getattr(self.instance, 'language', 'en'))
        duplicates = EmailTemplate.objects.filter(slug=slug, language=language)
        if self.instance is not None:
            duplicates = duplicates.exclude(pk=self.instance.pk)
        if duplicates.exists():
            raise serializers.ValidationError("A template with this slug and language already exists")
        return attrs


class TemplatePreviewSerializer(serializers.Serializer):
    """Unsaved editor content rendered with sample data."""

    subject = serializers.CharField(max_length=255)
    html_content = serializers.CharField()
    sample_data = serializers.DictField(required=False, default=dict)


class EmailLogSerializer(serializers.ModelSerializer):
    booking_number = serializers.CharField(source='booking.booking_number', read_only=True, default=None)

    class Meta:
        model = EmailLog
        fields = [
            'id', 'email_type', 'recipient_email', 'recipient_type', 'subject',
            'booking', 'booking_number', 'payment', 'resend_email_id',
            'status', 'error_message',
            'delivered_at', 'opened_at', 'clicked_at', 'bounced_at', 'bounce_reason',
            'complained_at', 'open_count', 'click_count',
            'metadata', 'created_at',
        ]
        read_only_fields = fields


class SendEmailSerializer(serializers.Serializer):
    bookingId = serializers.UUIDField()
    templateSlug = serializers.SlugField(max_length=100)
