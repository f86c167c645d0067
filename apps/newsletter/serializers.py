from django.conf import settings
from rest_framework import serializers

from .models import Campaign, CampaignRecipient, Subscriber


class SubscriberSerializer(serializers.ModelSerializer):
    """Admin serializer for subscribers."""

    class Meta:
        model = Subscriber
        fields = [
            'id',
            'email',
            'first_name',
            'language',
            'source',
            'status',
            'confirmed_at',
            'unsubscribed_at',
            'quiz_completed',
            'quiz_responses',
            'tags',
            'metadata',
            'last_booking',
            'last_booking_date',
            'created_at',
            'updated_at',
        ]
        read_only_fields = [
            'id', 'confirmed_at', 'unsubscribed_at', 'quiz_completed', 'quiz_responses',
            'last_booking', 'last_booking_date', 'created_at', 'updated_at',
        ]
        extra_kwargs = {
            'source': {'default': Subscriber.Source.ADMIN},
            'status': {'default': Subscriber.Status.ACTIVE},
        }

    def validate_email(self, value):
        value = value.strip().lower()
        queryset = Subscriber.objects.filter(email=value)
        if self.instance is not None:
            queryset = queryset.exclude(id=self.instance.id)
        if queryset.exists():
            raise serializers.ValidationError('Subscriber already exists')
        return value


class SubscribeSerializer(serializers.Serializer):
    email = serializers.EmailField(max_length=255)
    firstName = serializers.CharField(max_length=100, required=False, allow_blank=True, default='')
    language = serializers.ChoiceField(choices=settings.SUPPORTED_LANGUAGES, required=False, default='en')
    source = serializers.ChoiceField(
        choices=[Subscriber.Source.WEBSITE, Subscriber.Source.POPUP, Subscriber.Source.QUIZ],
        required=False,
        default=Subscriber.Source.WEBSITE,
    )


class QuizSerializer(serializers.Serializer):
    token = serializers.CharField(max_length=64)
    responses = serializers.DictField(child=serializers.CharField(allow_blank=True))


class CampaignSerializer(serializers.ModelSerializer):
    recipient_count = serializers.IntegerField(read_only=True, default=None)

    class Meta:
        model = Campaign
        fields = [
            'id',
            'name',
            'subject_en', 'subject_de', 'subject_es', 'subject_fr', 'subject_nl',
            'content_en', 'content_de', 'content_es', 'content_fr', 'content_nl',
            'status',
            'target_languages',
            'target_status',
            'scheduled_at',
            'sent_at',
            'stats',
            'recipient_count',
            'created_at',
            'updated_at',
        ]
        read_only_fields = ['id', 'sent_at', 'stats', 'recipient_count', 'created_at', 'updated_at']

    def validate_status(self, value):
        if value in (Campaign.Status.SENDING, Campaign.Status.SENT):
            raise serializers.ValidationError('Use the send action to deliver a campaign')
        return value

    def validate_target_languages(self, value):
        unknown = set(value) - set(settings.SUPPORTED_LANGUAGES)
        if unknown:
            raise serializers.ValidationError(f"Unsupported languages: {', '.join(sorted(unknown))}")
        return value

    def validate(self, attrs):
        if self.instance is not None and self.instance.status in (Campaign.Status.SENDING, Campaign.Status.SENT):
            raise serializers.ValidationError('Sent campaigns cannot be edited')
        return attrs


class CampaignRecipientSerializer(serializers.ModelSerializer):
    class Meta:
        model = CampaignRecipient
        fields = [
            'id', 'email', 'language', 'status', 'error_message',
            'sent_at', 'delivered_at', 'opened_at', 'clicked_at', 'bounced_at',
        ]


class CampaignTestSerializer(serializers.Serializer):
    email = serializers.EmailField()
    language = serializers.ChoiceField(choices=settings.SUPPORTED_LANGUAGES, required=False, default='en')
