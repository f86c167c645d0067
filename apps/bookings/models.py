from decimal import Decimal
from django.conf import settings
from django.core.validators import MinValueValidator, MaxValueValidator
from django.db import models
from django.utils import timezone
import uuid


LANGUAGE_CHOICES = [
    ('en', 'English'),
    ('de', 'Deutsch'),
    ('es', 'Español'),
    ('fr', 'Français'),
    ('nl', 'Nederlands'),
]


class Booking(models.Model):
    """A customer's reservation of a room at a retreat."""

    class Status(models.TextChoices):
        PENDING = 'pending', 'Pending'
        CONFIRMED = 'confirmed', 'Confirmed'
        CANCELLED = 'cancelled', 'Cancelled'
        COMPLETED = 'completed', 'Completed'

    class PaymentStatus(models.TextChoices):
        UNPAID = 'unpaid', 'Unpaid'
        DEPOSIT = 'deposit', 'Deposit paid'
        PARTIAL = 'partial', 'Partially paid'
        PAID = 'paid', 'Paid in full'
        REFUNDED = 'refunded', 'Refunded'
        PARTIAL_REFUND = 'partial_refund', 'Partially refunded'

    class CustomerType(models.TextChoices):
        PRIVATE = 'private', 'Private'
        BUSINESS = 'business', 'Business'

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    booking_number = models.CharField(max_length=20, unique=True)

    retreat = models.ForeignKey('retreats.Retreat', on_delete=models.PROTECT, related_name='bookings')
    room = models.ForeignKey(
        'retreats.RetreatRoom', on_delete=models.SET_NULL, null=True, blank=True,
        related_name='bookings',
    )

    # Customer
    first_name = models.CharField(max_length=100)
    last_name = models.CharField(max_length=100)
    email = models.EmailField(max_length=255, db_index=True)
    phone = models.CharField(max_length=50, blank=True)
    billing_address = models.CharField(max_length=255, blank=True)
    city = models.CharField(max_length=100, blank=True)
    postal_code = models.CharField(max_length=20, blank=True)
    country = models.CharField(max_length=2, blank=True)
    customer_type = models.CharField(max_length=10, choices=CustomerType.choices, default=CustomerType.PRIVATE)
    company_name = models.CharField(max_length=255, blank=True)
    vat_id = models.CharField(max_length=20, blank=True)
    vat_id_valid = models.BooleanField(default=False)
    vat_id_validated_at = models.DateTimeField(null=True, blank=True)

    guests_count = models.PositiveSmallIntegerField(default=1, validators=[MinValueValidator(1), MaxValueValidator(20)])
    check_in_date = models.DateField(null=True, blank=True)
    check_out_date = models.DateField(null=True, blank=True)

    # Money (EUR)
    subtotal = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0.00'))
    vat_rate = models.DecimalField(max_digits=5, decimal_places=4, default=Decimal('0'))
    vat_amount = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0.00'))
    total_amount = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0.00'))
    deposit_amount = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0.00'))
    balance_due = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0.00'))
    discount_amount = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0.00'))
    discount_code = models.CharField(max_length=50, blank=True)
    discount_source = models.CharField(max_length=20, blank=True)
    is_early_bird = models.BooleanField(default=False)
    early_bird_discount = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0.00'))
    promo_code = models.ForeignKey(
        'promotions.PromoCode', on_delete=models.SET_NULL, null=True, blank=True,
        related_name='bookings',
    )

    status = models.CharField(max_length=20, choices=Status.choices, default=Status.PENDING, db_index=True)
    payment_status = models.CharField(
        max_length=20, choices=PaymentStatus.choices, default=PaymentStatus.UNPAID, db_index=True,
    )

    # Stripe
    stripe_customer_id = models.CharField(max_length=100, blank=True)
    stripe_payment_method_id = models.CharField(max_length=100, blank=True)

    # Customer self-service link
    access_token = models.CharField(max_length=64, unique=True, null=True, blank=True)
    access_token_expires_at = models.DateTimeField(null=True, blank=True)

    language = models.CharField(max_length=2, choices=LANGUAGE_CHOICES, default='en')
    newsletter_opt_in = models.BooleanField(default=False)
    special_requests = models.TextField(blank=True)
    internal_notes = models.TextField(blank=True)

    cancelled_at = models.DateTimeField(null=True, blank=True)
    cancellation_reason = models.TextField(blank=True)
    restored_at = models.DateTimeField(null=True, blank=True)
    restored_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='+',
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'bookings'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['retreat', 'status']),
            models.Index(fields=['created_at']),
        ]

    def __str__(self):
        return self.booking_number

    @property
    def full_name(self):
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def is_cancelled(self):
        return self.status == self.Status.CANCELLED

    def append_note(self, note: str):
        stamp = timezone.now().strftime('%Y-%m-%d %H:%M')
        line = f"[{stamp}] {note}"
        self.internal_notes = f"{self.internal_notes}\n{line}" if self.internal_notes else line


class BookingStatusChange(models.Model):
    """Audit trail of admin and system actions on a booking."""

    class Action(models.TextChoices):
        STATUS_CHANGE = 'status_change', 'Status change'
        CANCELLATION = 'cancellation', 'Cancellation'
        AUTO_CANCELLATION = 'auto_cancellation', 'Automatic cancellation'
        RESTORE = 'restore', 'Restore'
        ROOM_CHANGE = 'room_change', 'Room change'
        REFUND = 'refund', 'Refund'
        PAYMENT_RECEIVED = 'payment_received', 'Payment received'

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    booking = models.ForeignKey(Booking, on_delete=models.CASCADE, related_name='status_changes')
    action = models.CharField(max_length=30, choices=Action.choices)
    old_status = models.CharField(max_length=20, blank=True)
    new_status = models.CharField(max_length=20, blank=True)
    old_payment_status = models.CharField(max_length=20, blank=True)
    new_payment_status = models.CharField(max_length=20, blank=True)
    changed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='+',
    )
    changed_by_email = models.EmailField(max_length=255, blank=True)
    reason = models.TextField(blank=True)
    metadata = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'booking_status_changes'
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.booking_id}: {self.action}"
