from django.conf import settings
from rest_framework import serializers
from .models import PolicySection, RetreatFeedback


# =============================================================================
# Site settings (one serializer per section)
# =============================================================================

class GeneralSettingsSerializer(serializers.Serializer):
    siteName = serializers.CharField(max_length=100, required=False)
    siteDescription = serializers.CharField(max_length=500, required=False, allow_blank=True)
    contactPhone = serializers.CharField(max_length=50, required=False, allow_blank=True)


class EmailSettingsSerializer(serializers.Serializer):
    contactEmail = serializers.EmailField(required=False)
    supportEmail = serializers.EmailField(required=False)


class PaymentSettingsSerializer(serializers.Serializer):
    currency = serializers.ChoiceField(choices=['EUR'], required=False)
    depositPercentage = serializers.IntegerField(min_value=0, max_value=100, required=False)
    stripeEnabled = serializers.BooleanField(required=False)


class BookingSettingsSerializer(serializers.Serializer):
    autoConfirm = serializers.BooleanField(required=False)
    requireDeposit = serializers.BooleanField(required=False)
    cancellationDays = serializers.IntegerField(min_value=0, max_value=365, required=False)
    maxParticipants = serializers.IntegerField(min_value=1, max_value=500, required=False)


class NotificationSettingsSerializer(serializers.Serializer):
    emailNotifications = serializers.BooleanField(required=False)
    bookingAlerts = serializers.BooleanField(required=False)
    paymentAlerts = serializers.BooleanField(required=False)
    marketingEmails = serializers.BooleanField(required=False)
    weeklyReports = serializers.BooleanField(required=False)


class AdminNotificationSettingsSerializer(serializers.Serializer):
    generalEmail = serializers.EmailField(required=False, allow_null=True)
    bookingsEmail = serializers.EmailField(required=False, allow_null=True)
    paymentsEmail = serializers.EmailField(required=False, allow_null=True)
    waitlistEmail = serializers.EmailField(required=False, allow_null=True)
    supportEmail = serializers.EmailField(required=False, allow_null=True)
    notifyOnNewBooking = serializers.BooleanField(required=False)
    notifyOnPaymentReceived = serializers.BooleanField(required=False)
    notifyOnPaymentFailed = serializers.BooleanField(required=False)
    notifyOnWaitlistJoin = serializers.BooleanField(required=False)
    notifyOnWaitlistResponse = serializers.BooleanField(required=False)
    notifyOnSupportRequest = serializers.BooleanField(required=False)


SECTION_SERIALIZERS = {
    'general': GeneralSettingsSerializer,
    'email': EmailSettingsSerializer,
    'payment': PaymentSettingsSerializer,
    'booking': BookingSettingsSerializer,
    'notifications': NotificationSettingsSerializer,
    'admin_notifications': AdminNotificationSettingsSerializer,
}


# =============================================================================
# Policies, contact, feedback
# =============================================================================

class PolicySectionSerializer(serializers.ModelSerializer):
    class Meta:
        model = PolicySection
        fields = [
            'id', 'section_key', 'language', 'title', 'content',
            'sort_order', 'is_active', 'created_at', 'updated_at',
        ]
        read_only_fields = ['id', 'created_at', 'updated_at']
        # Upserts are keyed on (section_key, language), so the model-level
        # unique validator must not reject them.
        validators = []

    def validate_language(self, value):
        if value not in settings.SUPPORTED_LANGUAGES:
            raise serializers.ValidationError(f"Unsupported language: {value}")
        return value


class ContactSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=100)
    email = serializers.EmailField()
    subject = serializers.CharField(max_length=200)
    message = serializers.CharField(max_length=5000)

    def validate_name(self, value):
        value = value.strip()
        if len(value) < 2:
            raise serializers.ValidationError("Name must be at least 2 characters")
        return value

    def validate_message(self, value):
        value = value.strip()
        if len(value) < 10:
            raise serializers.ValidationError("Message must be at least 10 characters")
        return value


class FeedbackSubmitSerializer(serializers.Serializer):
    bookingId = serializers.UUIDField()
    token = serializers.CharField(max_length=128)
    overallRating = serializers.IntegerField(min_value=1, max_value=5)
    surfingRating = serializers.IntegerField(min_value=1, max_value=5, required=False, allow_null=True)
    accommodationRating = serializers.IntegerField(min_value=1, max_value=5, required=False, allow_null=True)
    foodRating = serializers.IntegerField(min_value=1, max_value=5, required=False, allow_null=True)
    staffRating = serializers.IntegerField(min_value=1, max_value=5, required=False, allow_null=True)
    recommendScore = serializers.IntegerField(min_value=0, max_value=10, required=False, allow_null=True)
    highlights = serializers.CharField(required=False, allow_blank=True, default='')
    improvements = serializers.CharField(required=False, allow_blank=True, default='')
    testimonial = serializers.CharField(required=False, allow_blank=True, default='')
    allowTestimonialUse = serializers.BooleanField(required=False, default=False)

    ANSWER_FIELDS = {
        'overallRating': 'overall_rating',
        'surfingRating': 'surfing_rating',
        'accommodationRating': 'accommodation_rating',
        'foodRating': 'food_rating',
        'staffRating': 'staff_rating',
        'recommendScore': 'recommend_score',
        'highlights': 'highlights',
        'improvements': 'improvements',
        'testimonial': 'testimonial',
        'allowTestimonialUse': 'allow_testimonial_use',
    }

    def answers(self) -> dict:
        data = self.validated_data
        return {model_field: data[key] for key, model_field in self.ANSWER_FIELDS.items() if key in data}


class RetreatFeedbackSerializer(serializers.ModelSerializer):
    booking_number = serializers.CharField(source='booking.booking_number', read_only=True)
    customer_name = serializers.CharField(source='booking.full_name', read_only=True)
    retreat_name = serializers.CharField(source='retreat.display_name', read_only=True)

    class Meta:
        model = RetreatFeedback
        fields = [
            'id', 'booking', 'booking_number', 'customer_name', 'retreat', 'retreat_name',
            'overall_rating', 'surfing_rating', 'accommodation_rating', 'food_rating',
            'staff_rating', 'recommend_score',
            'highlights', 'improvements', 'testimonial', 'allow_testimonial_use',
            'created_at',
        ]
        read_only_fields = fields


class UploadSerializer(serializers.Serializer):
    file = serializers.FileField()
    folder = serializers.CharField(max_length=50, required=False, default='general')
