from django.db import models
import uuid


class EmailTemplate(models.Model):
    """Admin-editable email content, rendered with the Django template language."""

    class Category(models.TextChoices):
        BOOKING = 'booking', 'Booking'
        PAYMENT = 'payment', 'Payment'
        WAITLIST = 'waitlist', 'Waitlist'
        NEWSLETTER = 'newsletter', 'Newsletter'
        ADMIN = 'admin', 'Admin'
        GENERAL = 'general', 'General'

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    slug = models.SlugField(max_length=100)
    language = models.CharField(max_length=2, default='en')
    name = models.CharField(max_length=150)
    description = models.TextField(blank=True)
    subject = models.CharField(max_length=255)
    html_content = models.TextField()
    text_content = models.TextField(blank=True)
    category = models.CharField(max_length=20, choices=Category.choices, default=Category.GENERAL)
    available_variables = models.JSONField(default=list, blank=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'email_templates'
        ordering = ['category', 'slug', 'language']
        constraints = [
            models.UniqueConstraint(fields=['slug', 'language'], name='unique_email_template_language'),
        ]

    def __str__(self):
        return f"{self.slug} ({self.language})"


class EmailLog(models.Model):
    """Every transactional email sent, with delivery events reported by Resend."""

    class Status(models.TextChoices):
        SENT = 'sent', 'Sent'
        DELIVERED = 'delivered', 'Delivered'
        FAILED = 'failed', 'Failed'
        BOUNCED = 'bounced', 'Bounced'
        COMPLAINED = 'complained', 'Complained'

    class RecipientType(models.TextChoices):
        CUSTOMER = 'customer', 'Customer'
        ADMIN = 'admin', 'Admin'

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    email_type = models.CharField(max_length=50, db_index=True)
    recipient_email = models.EmailField(max_length=255, db_index=True)
    recipient_type = models.CharField(max_length=10, choices=RecipientType.choices, default=RecipientType.CUSTOMER)
    subject = models.CharField(max_length=255)
    booking = models.ForeignKey(
        'bookings.Booking', on_delete=models.SET_NULL, null=True, blank=True, related_name='email_logs',
    )
    payment = models.ForeignKey(
        'payments.Payment', on_delete=models.SET_NULL, null=True, blank=True, related_name='email_logs',
    )
    resend_email_id = models.CharField(max_length=100, blank=True, db_index=True)
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.SENT)
    error_message = models.TextField(blank=True)

    delivered_at = models.DateTimeField(null=True, blank=True)
    opened_at = models.DateTimeField(null=True, blank=True)
    clicked_at = models.DateTimeField(null=True, blank=True)
    bounced_at = models.DateTimeField(null=True, blank=True)
    bounce_reason = models.TextField(blank=True)
    complained_at = models.DateTimeField(null=True, blank=True)
    open_count = models.PositiveIntegerField(default=0)
    click_count = models.PositiveIntegerField(default=0)

    metadata = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'email_logs'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['created_at']),
        ]

    def __str__(self):
        return f"{self.email_type} to {self.recipient_email} ({self.status})"
