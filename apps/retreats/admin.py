from django.contrib import admin
from .models import Retreat, RetreatRoom, RetreatGalleryImage


class RetreatRoomInline(admin.TabularInline):
    model = RetreatRoom
    extra = 0
    fields = ['name', 'price', 'capacity', 'available', 'is_sold_out', 'early_bird_enabled', 'sort_order']


class RetreatGalleryInline(admin.TabularInline):
    model = RetreatGalleryImage
    extra = 0


@admin.register(Retreat)
class RetreatAdmin(admin.ModelAdmin):
    list_display = ['display_name', 'slug', 'start_date', 'end_date', 'availability_status', 'is_published', 'deleted_at']
    list_filter = ['is_published', 'is_featured', 'level', 'retreat_type', 'availability_status']
    search_fields = ['destination', 'title', 'slug', 'location']
    prepopulated_fields = {'slug': ('destination',)}
    inlines = [RetreatRoomInline, RetreatGalleryInline]
    readonly_fields = ['created_at', 'updated_at', 'deleted_at', 'deleted_by']
