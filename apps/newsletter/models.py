from django.db import models
from django.utils import timezone
import secrets
import uuid


def generate_token():
    return secrets.token_hex(32)


class Subscriber(models.Model):
    """Newsletter subscriber with double opt-in."""

    class Status(models.TextChoices):
        PENDING = 'pending', 'Pending confirmation'
        ACTIVE = 'active', 'Active'
        UNSUBSCRIBED = 'unsubscribed', 'Unsubscribed'
        BOUNCED = 'bounced', 'Bounced'

    class Source(models.TextChoices):
        WEBSITE = 'website', 'Website'
        CHECKOUT = 'checkout', 'Checkout'
        POPUP = 'popup', 'Popup'
        QUIZ = 'quiz', 'Quiz'
        ADMIN = 'admin', 'Admin'

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    email = models.EmailField(max_length=255, unique=True)
    first_name = models.CharField(max_length=100, blank=True)
    language = models.CharField(max_length=2, default='en')
    source = models.CharField(max_length=20, choices=Source.choices, default=Source.WEBSITE)
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.PENDING, db_index=True)

    confirmed_at = models.DateTimeField(null=True, blank=True)
    unsubscribed_at = models.DateTimeField(null=True, blank=True)
    unsubscribe_token = models.CharField(max_length=64, unique=True, default=generate_token)
    welcome_email_sent = models.BooleanField(default=False)

    quiz_completed = models.BooleanField(default=False)
    quiz_responses = models.JSONField(default=dict, blank=True)
    tags = models.JSONField(default=list, blank=True)
    metadata = models.JSONField(default=dict, blank=True)

    last_booking = models.ForeignKey(
        'bookings.Booking', on_delete=models.SET_NULL, null=True, blank=True, related_name='+',
    )
    last_booking_date = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'newsletter_subscribers'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['status', 'language']),
        ]

    def __str__(self):
        return self.email

    def save(self, *args, **kwargs):
        self.email = self.email.strip().lower()
        super().save(*args, **kwargs)


class SubscriberToken(models.Model):
    """Single-use confirmation link token."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    subscriber = models.ForeignKey(Subscriber, on_delete=models.CASCADE, related_name='tokens')
    token = models.CharField(max_length=64, unique=True, default=generate_token)
    expires_at = models.DateTimeField()
    used_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'newsletter_tokens'
        ordering = ['-created_at']

    @property
    def is_expired(self):
        return self.expires_at < timezone.now()


class Campaign(models.Model):
    """Newsletter issue with per-language subject and body."""

    class Status(models.TextChoices):
        DRAFT = 'draft', 'Draft'
        SCHEDULED = 'scheduled', 'Scheduled'
        SENDING = 'sending', 'Sending'
        SENT = 'sent', 'Sent'
        CANCELLED = 'cancelled', 'Cancelled'

    class TargetStatus(models.TextChoices):
        ACTIVE = 'active', 'Active subscribers'
        ALL = 'all', 'Active and pending subscribers'

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=200)

    subject_en = models.CharField(max_length=255)
    subject_de = models.CharField(max_length=255, blank=True)
    subject_es = models.CharField(max_length=255, blank=True)
    subject_fr = models.CharField(max_length=255, blank=True)
    subject_nl = models.CharField(max_length=255, blank=True)
    content_en = models.TextField()
    content_de = models.TextField(blank=True)
    content_es = models.TextField(blank=True)
    content_fr = models.TextField(blank=True)
    content_nl = models.TextField(blank=True)

    status = models.CharField(max_length=20, choices=Status.choices, default=Status.DRAFT, db_index=True)
    target_languages = models.JSONField(default=list, blank=True)
    target_status = models.CharField(max_length=10, choices=TargetStatus.choices, default=TargetStatus.ACTIVE)
    scheduled_at = models.DateTimeField(null=True, blank=True)
    sent_at = models.DateTimeField(null=True, blank=True)
    stats = models.JSONField(default=dict, blank=True)

    created_by = models.ForeignKey(
        'accounts.User', on_delete=models.SET_NULL, null=True, blank=True, related_name='+',
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'newsletter_campaigns'
        ordering = ['-created_at']

    def __str__(self):
        return self.name

    def subject_for(self, language: str) -> str:
        return getattr(self, f'subject_{language}', '') or self.subject_en

    def content_for(self, language: str) -> str:
        return getattr(self, f'content_{language}', '') or self.content_en


class CampaignRecipient(models.Model):
    """Delivery record of a campaign to one subscriber."""

    class Status(models.TextChoices):
        PENDING = 'pending', 'Pending'
        SENT = 'sent', 'Sent'
        DELIVERED = 'delivered', 'Delivered'
        OPENED = 'opened', 'Opened'
        CLICKED = 'clicked', 'Clicked'
        BOUNCED = 'bounced', 'Bounced'
        FAILED = 'failed', 'Failed'

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    campaign = models.ForeignKey(Campaign, on_delete=models.CASCADE, related_name='recipients')
    subscriber = models.ForeignKey(Subscriber, on_delete=models.SET_NULL, null=True, blank=True, related_name='+')
    email = models.EmailField(max_length=255)
    language = models.CharField(max_length=2, default='en')
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.PENDING)
    resend_email_id = models.CharField(max_length=100, blank=True, db_index=True)
    error_message = models.TextField(blank=True)
    sent_at = models.DateTimeField(null=True, blank=True)
    delivered_at = models.DateTimeField(null=True, blank=True)
    opened_at = models.DateTimeField(null=True, blank=True)
    clicked_at = models.DateTimeField(null=True, blank=True)
    bounced_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'newsletter_campaign_recipients'
        ordering = ['created_at']
        constraints = [
            models.UniqueConstraint(fields=['campaign', 'email'], name='unique_campaign_recipient'),
        ]


class EmailEvent(models.Model):
    """Raw delivery event received from the Resend webhook."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    campaign = models.ForeignKey(Campaign, on_delete=models.SET_NULL, null=True, blank=True, related_name='events')
    resend_email_id = models.CharField(max_length=100, db_index=True)
    event_type = models.CharField(max_length=50)
    recipient_email = models.EmailField(max_length=255, blank=True)
    payload = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'email_events'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['event_type', 'created_at']),
        ]
