from decimal import Decimal
from django.db import models
import uuid


class PaymentSchedule(models.Model):
    """One installment of a booking's payment plan."""

    class PaymentType(models.TextChoices):
        DEPOSIT = 'deposit', 'Deposit'
        SECOND = 'second', 'Second payment'
        BALANCE = 'balance', 'Balance'
        LATE_FIRST = 'late_first', 'First payment (late booking)'
        LATE_SECOND = 'late_second', 'Final payment (late booking)'
        FULL = 'full', 'Full payment'

    class Status(models.TextChoices):
        PENDING = 'pending', 'Pending'
        PROCESSING = 'processing', 'Processing'
        PAID = 'paid', 'Paid'
        FAILED = 'failed', 'Failed'
        CANCELLED = 'cancelled', 'Cancelled'

    class ReminderStage(models.TextChoices):
        INITIAL = 'initial', 'Failure notice sent'
        THREE_DAYS = '3_days', '3 days before deadline'
        ONE_DAY = '1_day', '1 day before deadline'

    UNPAID_STATUSES = (Status.PENDING, Status.PROCESSING, Status.FAILED)

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    booking = models.ForeignKey('bookings.Booking', on_delete=models.CASCADE, related_name='payment_schedules')
    payment_number = models.PositiveSmallIntegerField()
    amount = models.DecimalField(max_digits=10, decimal_places=2)
    due_date = models.DateField()
    description = models.CharField(max_length=100, blank=True)
    payment_type = models.CharField(max_length=20, choices=PaymentType.choices)
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.PENDING, db_index=True)

    stripe_payment_intent_id = models.CharField(max_length=100, blank=True, db_index=True)
    paid_at = models.DateTimeField(null=True, blank=True)

    # Off-session retries
    attempts = models.PositiveSmallIntegerField(default=0)
    max_attempts = models.PositiveSmallIntegerField(default=3)
    last_attempt_at = models.DateTimeField(null=True, blank=True)
    next_retry_at = models.DateTimeField(null=True, blank=True)
    failure_reason = models.TextField(blank=True)
    failed_at = models.DateTimeField(null=True, blank=True)
    payment_deadline = models.DateTimeField(null=True, blank=True)
    reminder_stage = models.CharField(max_length=20, choices=ReminderStage.choices, blank=True)
    last_reminder_sent_at = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'payment_schedules'
        ordering = ['booking', 'payment_number']
        constraints = [
            models.UniqueConstraint(fields=['booking', 'payment_number'], name='unique_installment_per_booking'),
        ]
        indexes = [
            models.Index(fields=['status', 'due_date']),
        ]

    def __str__(self):
        return f"{self.booking_id} #{self.payment_number} ({self.status})"

    def clear_failure(self):
        self.failure_reason = ''
        self.failed_at = None
        self.payment_deadline = None
        self.reminder_stage = ''
        self.next_retry_at = None


class Payment(models.Model):
    """Money movement recorded from Stripe. Refunds are stored with a negative amount."""

    class PaymentType(models.TextChoices):
        DEPOSIT = 'deposit', 'Deposit'
        BALANCE = 'balance', 'Balance'
        FULL = 'full', 'Full payment'
        REFUND = 'refund', 'Refund'

    class Status(models.TextChoices):
        PENDING = 'pending', 'Pending'
        SUCCEEDED = 'succeeded', 'Succeeded'
        FAILED = 'failed', 'Failed'
        REFUNDED = 'refunded', 'Refunded'

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    booking = models.ForeignKey('bookings.Booking', on_delete=models.CASCADE, related_name='payments')
    payment_schedule = models.ForeignKey(
        PaymentSchedule, on_delete=models.SET_NULL, null=True, blank=True, related_name='payments',
    )

    stripe_payment_intent_id = models.CharField(max_length=100, blank=True, db_index=True)
    stripe_checkout_session_id = models.CharField(max_length=255, blank=True, db_index=True)
    stripe_customer_id = models.CharField(max_length=100, blank=True)
    stripe_webhook_event_id = models.CharField(max_length=100, null=True, blank=True, unique=True)
    stripe_refund_id = models.CharField(max_length=100, blank=True)

    amount = models.DecimalField(max_digits=10, decimal_places=2)
    currency = models.CharField(max_length=3, default='EUR')
    payment_type = models.CharField(max_length=20, choices=PaymentType.choices)
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.PENDING, db_index=True)
    payment_method = models.CharField(max_length=50, blank=True)
    failure_reason = models.TextField(blank=True)
    metadata = models.JSONField(default=dict, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'payments'
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.payment_type} {self.amount} {self.currency} ({self.status})"

    @property
    def is_refund(self):
        return self.amount < Decimal('0')
