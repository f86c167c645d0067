from rest_framework import serializers
from .models import PromoCode, PromoCodeRedemption


class PromoCodeSerializer(serializers.ModelSerializer):
    """Admin serializer for promo codes."""

    created_by_email = serializers.EmailField(source='created_by.email', read_only=True, default=None)

    class Meta:
        model = PromoCode
        fields = [
            'id',
            'code',
            'description',
            'discount_type',
            'discount_value',
            'scope',
            'retreat',
            'room',
            'valid_from',
            'valid_until',
            'max_uses',
            'current_uses',
            'min_order_amount',
            'is_active',
            'created_by_email',
            'created_at',
            'updated_at',
        ]
        read_only_fields = ['id', 'current_uses', 'created_by_email', 'created_at', 'updated_at']

    def validate_code(self, value):
        value = value.strip().upper()
        queryset = PromoCode.objects.filter(code=value)
        if self.instance is not None:
            queryset = queryset.exclude(id=self.instance.id)
        if queryset.exists():
            raise serializers.ValidationError('A promo code with this code already exists')
        return value

    def validate(self, attrs):
        def current(field):
            return attrs.get(field, getattr(self.instance, field, None))

        if current('discount_type') == PromoCode.DiscountType.PERCENTAGE and current('discount_value') > 100:
            raise serializers.ValidationError({'discount_value': 'Percentage cannot exceed 100'})

        scope = current('scope') or PromoCode.Scope.GLOBAL
        if scope == PromoCode.Scope.RETREAT and not current('retreat'):
            raise serializers.ValidationError({'retreat': 'Required for retreat-scoped codes'})
        if scope == PromoCode.Scope.ROOM and not current('room'):
            raise serializers.ValidationError({'room': 'Required for room-scoped codes'})

        valid_from, valid_until = current('valid_from'), current('valid_until')
        if valid_from and valid_until and valid_until < valid_from:
            raise serializers.ValidationError({'valid_until': 'Must be on or after valid_from'})
        return attrs


class PromoCodeRedemptionSerializer(serializers.ModelSerializer):
    booking_number = serializers.CharField(source='booking.booking_number', read_only=True)

    class Meta:
        model = PromoCodeRedemption
        fields = ['id', 'booking', 'booking_number', 'original_amount', 'discount_applied', 'final_amount', 'redeemed_at']


class PromoCodeStatsSerializer(serializers.Serializer):
    total_redemptions = serializers.IntegerField()
    total_discount_given = serializers.DecimalField(max_digits=12, decimal_places=2)
    total_revenue = serializers.DecimalField(max_digits=12, decimal_places=2)
    average_discount = serializers.DecimalField(max_digits=12, decimal_places=2)


class PromoValidateInputSerializer(serializers.Serializer):
    """Public promo check from the booking form."""

    code = serializers.CharField(max_length=50)
    retreatId = serializers.UUIDField()
    roomId = serializers.UUIDField(required=False, allow_null=True)
    orderAmount = serializers.DecimalField(max_digits=10, decimal_places=2)
    retreatStartDate = serializers.DateField(required=False, allow_null=True)
    earlyBirdEnabled = serializers.BooleanField(required=False, default=False)
    earlyBirdDeadline = serializers.DateField(required=False, allow_null=True)

    def validate_orderAmount(self, value):
        if value <= 0:
            raise serializers.ValidationError('Order amount must be positive')
        return value
