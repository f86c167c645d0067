from django.core.validators import MinValueValidator, MaxValueValidator
from django.db import models
from django.utils import timezone
import uuid


class WaitlistEntry(models.Model):
    """A person queued for a sold-out retreat or room."""

    class Status(models.TextChoices):
        WAITING = 'waiting', 'Waiting'
        NOTIFIED = 'notified', 'Notified'
        ACCEPTED = 'accepted', 'Accepted'
        DECLINED = 'declined', 'Declined'
        EXPIRED = 'expired', 'Expired'
        BOOKED = 'booked', 'Booked'

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    retreat = models.ForeignKey('retreats.Retreat', on_delete=models.CASCADE, related_name='waitlist_entries')
    room = models.ForeignKey(
        'retreats.RetreatRoom', on_delete=models.SET_NULL, null=True, blank=True, related_name='waitlist_entries',
    )

    first_name = models.CharField(max_length=100)
    last_name = models.CharField(max_length=100)
    email = models.EmailField(max_length=255)
    phone = models.CharField(max_length=50, blank=True)
    guests_count = models.PositiveSmallIntegerField(
        default=1, validators=[MinValueValidator(1), MaxValueValidator(10)],
    )
    notes = models.TextField(blank=True)

    status = models.CharField(max_length=20, choices=Status.choices, default=Status.WAITING, db_index=True)
    position = models.PositiveIntegerField()
    notified_at = models.DateTimeField(null=True, blank=True)
    notification_expires_at = models.DateTimeField(null=True, blank=True)
    responded_at = models.DateTimeField(null=True, blank=True)
    response_token = models.CharField(max_length=64, null=True, blank=True, unique=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'waitlist_entries'
        ordering = ['retreat', 'position']
        constraints = [
            models.UniqueConstraint(fields=['retreat', 'email'], name='unique_waitlist_email_per_retreat'),
        ]
        indexes = [
            models.Index(fields=['retreat', 'position']),
            models.Index(fields=['status', 'notification_expires_at']),
        ]

    def __str__(self):
        return f"{self.email} #{self.position} ({self.status})"

    def save(self, *args, **kwargs):
        self.email = self.email.strip().lower()
        super().save(*args, **kwargs)

    @property
    def full_name(self):
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def offer_expired(self):
        return self.notification_expires_at is not None and self.notification_expires_at < timezone.now()

    @property
    def is_queued(self):
        return self.status in (self.Status.WAITING, self.Status.NOTIFIED)
