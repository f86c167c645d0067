from django.conf import settings
from django.utils import timezone
from rest_framework import serializers

from apps.bookings.models import Booking
from .models import Payment, PaymentSchedule
from .services import get_deadline_status


class PaymentScheduleSerializer(serializers.ModelSerializer):
    deadline_status = serializers.SerializerMethodField()

    class Meta:
        model = PaymentSchedule
        fields = [
            'id',
            'payment_number',
            'amount',
            'due_date',
            'description',
            'payment_type',
            'status',
            'paid_at',
            'attempts',
            'max_attempts',
            'next_retry_at',
            'failure_reason',
            'failed_at',
            'payment_deadline',
            'reminder_stage',
            'deadline_status',
        ]

    def get_deadline_status(self, obj) -> str:
        if obj.status in (PaymentSchedule.Status.PAID, PaymentSchedule.Status.CANCELLED):
            return obj.status
        return get_deadline_status(obj.due_date, timezone.localdate())


class AdminPaymentScheduleSerializer(PaymentScheduleSerializer):
    """Schedule row with the booking it belongs to, for the admin overview."""

    booking_id = serializers.UUIDField(source='booking.id', read_only=True)
    booking_number = serializers.CharField(source='booking.booking_number', read_only=True)
    customer_name = serializers.CharField(source='booking.full_name', read_only=True)
    customer_email = serializers.EmailField(source='booking.email', read_only=True)
    retreat_name = serializers.CharField(source='booking.retreat.display_name', read_only=True)
    has_payment_method = serializers.SerializerMethodField()

    class Meta(PaymentScheduleSerializer.Meta):
        fields = PaymentScheduleSerializer.Meta.fields + [
            'booking_id',
            'booking_number',
            'customer_name',
            'customer_email',
            'retreat_name',
            'has_payment_method',
            'stripe_payment_intent_id',
        ]

    def get_has_payment_method(self, obj) -> bool:
        return bool(obj.booking.stripe_customer_id and obj.booking.stripe_payment_method_id)


class PaymentSerializer(serializers.ModelSerializer):
    payment_number = serializers.IntegerField(source='payment_schedule.payment_number', read_only=True, default=None)

    class Meta:
        model = Payment
        fields = [
            'id',
            'payment_schedule',
            'payment_number',
            'amount',
            'currency',
            'payment_type',
            'status',
            'payment_method',
            'failure_reason',
            'stripe_payment_intent_id',
            'stripe_refund_id',
            'created_at',
        ]


class CheckoutSerializer(serializers.Serializer):
    """Booking form submitted by the customer."""

    retreatSlug = serializers.CharField(max_length=200, required=False, allow_blank=True)
    retreatId = serializers.UUIDField(required=False, allow_null=True)
    roomId = serializers.UUIDField(required=False, allow_null=True)
    promoCode = serializers.CharField(max_length=50, required=False, allow_blank=True, default='')
    paymentType = serializers.ChoiceField(choices=['deposit', 'full'], required=False, default='deposit')

    firstName = serializers.CharField(max_length=100)
    lastName = serializers.CharField(max_length=100)
    email = serializers.EmailField(max_length=255)
    phone = serializers.CharField(max_length=50, required=False, allow_blank=True, default='')
    billingAddress = serializers.CharField(max_length=255, required=False, allow_blank=True, default='')
    city = serializers.CharField(max_length=100, required=False, allow_blank=True, default='')
    postalCode = serializers.CharField(max_length=20, required=False, allow_blank=True, default='')
    country = serializers.CharField(max_length=2, min_length=2)
    guestsCount = serializers.IntegerField(min_value=1, max_value=20, required=False, default=1)

    customerType = serializers.ChoiceField(
        choices=Booking.CustomerType.choices, required=False, default=Booking.CustomerType.PRIVATE,
    )
    companyName = serializers.CharField(max_length=255, required=False, allow_blank=True, default='')
    vatId = serializers.CharField(max_length=20, required=False, allow_blank=True, default='')
    vatIdValid = serializers.BooleanField(required=False, default=False)

    language = serializers.ChoiceField(choices=settings.SUPPORTED_LANGUAGES, required=False, default='en')
    newsletterOptIn = serializers.BooleanField(required=False, default=False)
    specialRequests = serializers.CharField(max_length=2000, required=False, allow_blank=True, default='')

    def validate(self, attrs):
        if not attrs.get('retreatSlug') and not attrs.get('retreatId'):
            raise serializers.ValidationError('retreatSlug or retreatId is required')
        if attrs['customerType'] == Booking.CustomerType.BUSINESS and not attrs.get('companyName'):
            raise serializers.ValidationError({'companyName': 'Company name is required for business bookings'})
        return attrs

    def to_service_data(self) -> dict:
        data = self.validated_data
        return {
            'retreat_slug': data.get('retreatSlug'),
            'retreat_id': data.get('retreatId'),
            'room_id': data.get('roomId'),
            'promo_code': data['promoCode'],
            'payment_type': data['paymentType'],
            'first_name': data['firstName'],
            'last_name': data['lastName'],
            'email': data['email'],
            'phone': data['phone'],
            'billing_address': data['billingAddress'],
            'city': data['city'],
            'postal_code': data['postalCode'],
            'country': data['country'].upper(),
            'guests_count': data['guestsCount'],
            'customer_type': data['customerType'],
            'company_name': data['companyName'],
            'vat_id': data['vatId'],
            'vat_id_valid': data['vatIdValid'],
            'language': data['language'],
            'newsletter_opt_in': data['newsletterOptIn'],
            'special_requests': data['specialRequests'],
        }


class VatValidateSerializer(serializers.Serializer):
    vatId = serializers.CharField(max_length=20)
    country = serializers.CharField(max_length=2, min_length=2)


class CustomerPortalSerializer(serializers.Serializer):
    token = serializers.CharField(max_length=64)


class RefundRequestSerializer(serializers.Serializer):
    """Admin refund of a payment, or cancellation of an unpaid installment."""

    ACTION_REFUND = 'refund'
    ACTION_CANCEL = 'cancel'

    action = serializers.ChoiceField(choices=[ACTION_REFUND, ACTION_CANCEL], required=False, default=ACTION_REFUND)
    paymentId = serializers.UUIDField(required=False)
    scheduleId = serializers.UUIDField(required=False)
    amount = serializers.DecimalField(max_digits=10, decimal_places=2, required=False, allow_null=True, min_value=0)
    reason = serializers.CharField(max_length=500, required=False, allow_blank=True, default='')

    def validate(self, attrs):
        if attrs['action'] == self.ACTION_REFUND and not attrs.get('paymentId'):
            raise serializers.ValidationError({'paymentId': 'Required for refunds'})
        if attrs['action'] == self.ACTION_CANCEL and not attrs.get('scheduleId'):
            raise serializers.ValidationError({'scheduleId': 'Required to cancel an installment'})
        return attrs
