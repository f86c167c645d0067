from django.conf import settings
from django.core.validators import MinValueValidator, MaxValueValidator
from django.db import models
import uuid


class SiteSetting(models.Model):
    """One section of site configuration stored as JSON (general, booking, ...)."""

    key = models.CharField(max_length=50, primary_key=True)
    value = models.JSONField(default=dict)
    updated_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='+',
    )
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'site_settings'
        ordering = ['key']

    def __str__(self):
        return self.key


class PolicySection(models.Model):
    """Translatable block of the terms and policies page."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    section_key = models.CharField(max_length=100)
    language = models.CharField(max_length=2, default='en')
    title = models.CharField(max_length=255)
    content = models.JSONField(default=list, blank=True)
    sort_order = models.PositiveIntegerField(default=0)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'policy_sections'
        ordering = ['sort_order', 'section_key']
        constraints = [
            models.UniqueConstraint(fields=['section_key', 'language'], name='unique_policy_section_language'),
        ]

    def __str__(self):
        return f"{self.section_key} ({self.language})"


class RetreatFeedback(models.Model):
    """Guest survey sent two days after a retreat ends."""

    RATING_VALIDATORS = [MinValueValidator(1), MaxValueValidator(5)]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    booking = models.OneToOneField('bookings.Booking', on_delete=models.CASCADE, related_name='feedback')
    retreat = models.ForeignKey('retreats.Retreat', on_delete=models.CASCADE, related_name='feedback')

    overall_rating = models.PositiveSmallIntegerField(validators=RATING_VALIDATORS)
    surfing_rating = models.PositiveSmallIntegerField(null=True, blank=True, validators=RATING_VALIDATORS)
    accommodation_rating = models.PositiveSmallIntegerField(null=True, blank=True, validators=RATING_VALIDATORS)
    food_rating = models.PositiveSmallIntegerField(null=True, blank=True, validators=RATING_VALIDATORS)
    staff_rating = models.PositiveSmallIntegerField(null=True, blank=True, validators=RATING_VALIDATORS)
    recommend_score = models.PositiveSmallIntegerField(
        null=True, blank=True, validators=[MinValueValidator(0), MaxValueValidator(10)],
    )

    highlights = models.TextField(blank=True)
    improvements = models.TextField(blank=True)
    testimonial = models.TextField(blank=True)
    allow_testimonial_use = models.BooleanField(default=False)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'retreat_feedback'
        ordering = ['-created_at']

    def __str__(self):
        return f"Feedback for {self.booking_id}: {self.overall_rating}/5"
