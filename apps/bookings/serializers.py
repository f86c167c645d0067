from rest_framework import serializers

from apps.payments.models import Payment
from apps.payments.serializers import PaymentScheduleSerializer, PaymentSerializer
from .models import Booking, BookingStatusChange


class BookingStatusChangeSerializer(serializers.ModelSerializer):
    class Meta:
        model = BookingStatusChange
        fields = [
            'id',
            'action',
            'old_status',
            'new_status',
            'old_payment_status',
            'new_payment_status',
            'changed_by_email',
            'reason',
            'metadata',
            'created_at',
        ]


class BookingListSerializer(serializers.ModelSerializer):
    """Compact booking row for the admin list."""

    retreat_name = serializers.CharField(source='retreat.display_name', read_only=True)
    room_name = serializers.CharField(source='room.name', read_only=True, default=None)
    customer_name = serializers.CharField(source='full_name', read_only=True)

    class Meta:
        model = Booking
        fields = [
            'id',
            'booking_number',
            'retreat',
            'retreat_name',
            'room',
            'room_name',
            'customer_name',
            'email',
            'guests_count',
            'total_amount',
            'balance_due',
            'status',
            'payment_status',
            'created_at',
        ]


class BookingDetailSerializer(serializers.ModelSerializer):
    """Full booking with installments, payments and audit trail."""

    retreat_name = serializers.CharField(source='retreat.display_name', read_only=True)
    room_name = serializers.CharField(source='room.name', read_only=True, default=None)
    payment_schedules = PaymentScheduleSerializer(many=True, read_only=True)
    payments = PaymentSerializer(many=True, read_only=True)
    status_changes = BookingStatusChangeSerializer(many=True, read_only=True)
    has_payment_method = serializers.SerializerMethodField()

    class Meta:
        model = Booking
        fields = [
            'id',
            'booking_number',
            'retreat',
            'retreat_name',
            'room',
            'room_name',
            'first_name',
            'last_name',
            'email',
            'phone',
            'billing_address',
            'city',
            'postal_code',
            'country',
            'customer_type',
            'company_name',
            'vat_id',
            'vat_id_valid',
            'guests_count',
            'check_in_date',
            'check_out_date',
            'subtotal',
            'vat_rate',
            'vat_amount',
            'total_amount',
            'deposit_amount',
            'balance_due',
            'discount_amount',
            'discount_code',
            'discount_source',
            'is_early_bird',
            'early_bird_discount',
            'status',
            'payment_status',
            'language',
            'newsletter_opt_in',
            'special_requests',
            'internal_notes',
            'cancelled_at',
            'cancellation_reason',
            'restored_at',
            'has_payment_method',
            'payment_schedules',
            'payments',
            'status_changes',
            'created_at',
            'updated_at',
        ]
        read_only_fields = [f for f in fields if f not in ('internal_notes', 'special_requests', 'phone')]

    def get_has_payment_method(self, obj) -> bool:
        return bool(obj.stripe_customer_id and obj.stripe_payment_method_id)


class MyBookingSerializer(serializers.ModelSerializer):
    """What a customer sees through their booking link."""

    retreat = serializers.SerializerMethodField()
    room_name = serializers.CharField(source='room.name', read_only=True, default=None)
    payment_schedules = PaymentScheduleSerializer(many=True, read_only=True)
    payments = serializers.SerializerMethodField()

    class Meta:
        model = Booking
        fields = [
            'id',
            'booking_number',
            'retreat',
            'room_name',
            'first_name',
            'last_name',
            'email',
            'guests_count',
            'check_in_date',
            'check_out_date',
            'subtotal',
            'vat_amount',
            'total_amount',
            'balance_due',
            'discount_amount',
            'status',
            'payment_status',
            'language',
            'payment_schedules',
            'payments',
            'created_at',
        ]

    def get_retreat(self, obj) -> dict:
        retreat = obj.retreat
        return {
            'slug': retreat.slug,
            'name': retreat.display_name,
            'location': retreat.location,
            'start_date': retreat.start_date,
            'end_date': retreat.end_date,
            'image_url': retreat.image_url,
        }

    def get_payments(self, obj) -> list:
        succeeded = obj.payments.filter(status=Payment.Status.SUCCEEDED).order_by('created_at')
        return PaymentSerializer(succeeded, many=True).data


class CancelBookingSerializer(serializers.Serializer):
    reason = serializers.CharField(max_length=1000, required=False, allow_blank=True, default='')
    sendEmail = serializers.BooleanField(required=False, default=True)


class RestoreBookingSerializer(serializers.Serializer):
    newDueDate = serializers.DateField(required=False, allow_null=True)
    reason = serializers.CharField(max_length=1000, required=False, allow_blank=True, default='')


class BookingStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Booking.Status.choices)
    reason = serializers.CharField(max_length=1000, required=False, allow_blank=True, default='')


class AssignRoomSerializer(serializers.Serializer):
    roomId = serializers.UUIDField(allow_null=True)


class PaymentLinkSerializer(serializers.Serializer):
    scheduleId = serializers.UUIDField(required=False, allow_null=True)


class RetryPaymentSerializer(serializers.Serializer):
    scheduleId = serializers.UUIDField()
    force = serializers.BooleanField(required=False, default=False)
