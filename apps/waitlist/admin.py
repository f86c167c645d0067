from django.contrib import admin
from .models import WaitlistEntry


@admin.register(WaitlistEntry)
class WaitlistEntryAdmin(admin.ModelAdmin):
    list_display = ['email', 'retreat', 'room', 'position', 'status', 'notification_expires_at', 'created_at']
    list_filter = ['status', 'retreat']
    search_fields = ['email', 'first_name', 'last_name']
    readonly_fields = ['response_token', 'notified_at', 'responded_at', 'created_at', 'updated_at']
