from decimal import Decimal
from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models
import uuid


class PromoCode(models.Model):
    """Discount code entered at checkout."""

    class DiscountType(models.TextChoices):
        PERCENTAGE = 'percentage', 'Percentage'
        FIXED_AMOUNT = 'fixed_amount', 'Fixed amount'

    class Scope(models.TextChoices):
        GLOBAL = 'global', 'All retreats'
        RETREAT = 'retreat', 'Single retreat'
        ROOM = 'room', 'Single room'

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    code = models.CharField(max_length=50, unique=True)
    description = models.TextField(blank=True)

    discount_type = models.CharField(max_length=20, choices=DiscountType.choices)
    discount_value = models.DecimalField(
        max_digits=10, decimal_places=2,
        validators=[MinValueValidator(Decimal('0.01'))],
    )

    scope = models.CharField(max_length=20, choices=Scope.choices, default=Scope.GLOBAL)
    retreat = models.ForeignKey(
        'retreats.Retreat', on_delete=models.CASCADE, null=True, blank=True,
        related_name='promo_codes',
    )
    room = models.ForeignKey(
        'retreats.RetreatRoom', on_delete=models.CASCADE, null=True, blank=True,
        related_name='promo_codes',
    )

    valid_from = models.DateField(null=True, blank=True)
    valid_until = models.DateField(null=True, blank=True)
    max_uses = models.PositiveIntegerField(null=True, blank=True)
    current_uses = models.PositiveIntegerField(default=0)
    min_order_amount = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)

    is_active = models.BooleanField(default=True)
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True,
        related_name='promo_codes_created',
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'promo_codes'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['is_active']),
        ]

    def __str__(self):
        return self.code

    def save(self, *args, **kwargs):
        self.code = self.code.strip().upper()
        super().save(*args, **kwargs)


class PromoCodeRedemption(models.Model):
    """One use of a promo code by a booking."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    promo_code = models.ForeignKey(PromoCode, on_delete=models.CASCADE, related_name='redemptions')
    booking = models.ForeignKey('bookings.Booking', on_delete=models.CASCADE, related_name='promo_redemptions')
    original_amount = models.DecimalField(max_digits=10, decimal_places=2)
    discount_applied = models.DecimalField(max_digits=10, decimal_places=2)
    final_amount = models.DecimalField(max_digits=10, decimal_places=2)
    redeemed_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'promo_code_redemptions'
        ordering = ['-redeemed_at']
        constraints = [
            models.UniqueConstraint(fields=['promo_code', 'booking'], name='unique_promo_per_booking'),
        ]

    def __str__(self):
        return f"{self.promo_code.code} on {self.booking_id}"
