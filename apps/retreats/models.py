from django.core.validators import MinValueValidator, MaxValueValidator, RegexValidator
from django.db import models
from django.utils import timezone
import uuid

from apps.trash.models import SoftDeleteModel


slug_validator = RegexValidator(
    regex=r'^[a-z0-9]+(?:-[a-z0-9]+)*$',
    message='Slug must be lowercase letters, numbers and hyphens only',
)


class Retreat(SoftDeleteModel):
    """A multi-day surf camp at a destination, sold per room."""

    class Level(models.TextChoices):
        BEGINNERS = 'Beginners', 'Beginners'
        INTERMEDIATE = 'Intermediate', 'Intermediate'
        ADVANCED = 'Advanced', 'Advanced'
        ALL_LEVELS = 'All Levels', 'All Levels'

    class RetreatType(models.TextChoices):
        BUDGET = 'Budget', 'Budget'
        STANDARD = 'Standard', 'Standard'
        PREMIUM = 'Premium', 'Premium'

    class AvailabilityStatus(models.TextChoices):
        AVAILABLE = 'available', 'Available'
        FEW_SPOTS = 'few_spots', 'Few spots left'
        SOLD_OUT = 'sold_out', 'Sold out'

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    slug = models.SlugField(max_length=200, unique=True, validators=[slug_validator])
    destination = models.CharField(max_length=200)
    title = models.CharField(max_length=255, blank=True)
    location = models.CharField(max_length=255)
    tagline = models.CharField(max_length=255, blank=True)
    description = models.TextField(blank=True)
    level = models.CharField(max_length=20, choices=Level.choices, default=Level.ALL_LEVELS)
    retreat_type = models.CharField(max_length=20, choices=RetreatType.choices, default=RetreatType.STANDARD)
    duration = models.CharField(max_length=50, blank=True)
    participants = models.CharField(max_length=50, blank=True)
    food = models.CharField(max_length=100, blank=True)
    gear = models.CharField(max_length=100, blank=True)

    price = models.DecimalField(
        max_digits=10, decimal_places=2, null=True, blank=True,
        validators=[MinValueValidator(0)],
    )
    start_date = models.DateField(null=True, blank=True)
    end_date = models.DateField(null=True, blank=True)
    availability_status = models.CharField(
        max_length=20,
        choices=AvailabilityStatus.choices,
        default=AvailabilityStatus.AVAILABLE,
    )

    # Structured page content
    highlights = models.JSONField(default=list, blank=True)
    included = models.JSONField(default=list, blank=True)
    not_included = models.JSONField(default=list, blank=True)
    about_sections = models.JSONField(default=list, blank=True)
    important_info = models.JSONField(default=dict, blank=True)

    image_url = models.URLField(max_length=500, blank=True)
    latitude = models.DecimalField(
        max_digits=9, decimal_places=6, null=True, blank=True,
        validators=[MinValueValidator(-90), MaxValueValidator(90)],
    )
    longitude = models.DecimalField(
        max_digits=9, decimal_places=6, null=True, blank=True,
        validators=[MinValueValidator(-180), MaxValueValidator(180)],
    )

    # SEO
    meta_title = models.CharField(max_length=70, blank=True)
    meta_description = models.CharField(max_length=170, blank=True)

    is_published = models.BooleanField(default=False)
    is_featured = models.BooleanField(default=False)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'retreats'
        ordering = ['start_date', 'destination']
        indexes = [
            models.Index(fields=['is_published', 'start_date']),
            models.Index(fields=['deleted_at']),
        ]

    def __str__(self):
        return self.title or self.destination

    @property
    def display_name(self):
        return self.title or self.destination

    @property
    def has_started(self):
        return self.start_date is not None and self.start_date <= timezone.localdate()


class RetreatRoom(models.Model):
    """Room type of a retreat with its own price and inventory."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    retreat = models.ForeignKey(Retreat, on_delete=models.CASCADE, related_name='rooms')
    name = models.CharField(max_length=150)
    description = models.TextField(blank=True)
    image_url = models.URLField(max_length=500, blank=True)

    price = models.DecimalField(max_digits=10, decimal_places=2, validators=[MinValueValidator(0)])
    deposit_price = models.DecimalField(
        max_digits=10, decimal_places=2, null=True, blank=True,
        validators=[MinValueValidator(0)],
    )
    capacity = models.PositiveSmallIntegerField(
        default=2,
        validators=[MinValueValidator(1), MaxValueValidator(20)],
    )
    available = models.IntegerField(default=2, validators=[MinValueValidator(0)])
    is_sold_out = models.BooleanField(default=False)
    sort_order = models.PositiveIntegerField(default=0)

    early_bird_enabled = models.BooleanField(default=False)
    early_bird_price = models.DecimalField(
        max_digits=10, decimal_places=2, null=True, blank=True,
        validators=[MinValueValidator(0)],
    )
    early_bird_deadline = models.DateField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'retreat_rooms'
        ordering = ['sort_order', 'created_at']
        indexes = [
            models.Index(fields=['retreat', 'sort_order']),
        ]

    def __str__(self):
        return f"{self.retreat} - {self.name}"


class RetreatGalleryImage(models.Model):
    """Photo shown on the retreat page."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    retreat = models.ForeignKey(Retreat, on_delete=models.CASCADE, related_name='gallery')
    image_url = models.URLField(max_length=500)
    caption = models.CharField(max_length=255, blank=True)
    sort_order = models.PositiveIntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'retreat_gallery_images'
        ordering = ['sort_order', 'created_at']

    def __str__(self):
        return f"{self.retreat} image #{self.sort_order}"
