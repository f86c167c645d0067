from django.contrib import admin
from .models import EmailTemplate, EmailLog


@admin.register(EmailTemplate)
class EmailTemplateAdmin(admin.ModelAdmin):
    list_display = ['slug', 'language', 'name', 'category', 'is_active', 'updated_at']
    list_filter = ['category', 'language', 'is_active']
    search_fields = ['slug', 'name', 'subject']


@admin.register(EmailLog)
class EmailLogAdmin(admin.ModelAdmin):
    list_display = ['email_type', 'recipient_email', 'recipient_type', 'status', 'open_count', 'created_at']
    list_filter = ['status', 'recipient_type', 'email_type']
    search_fields = ['recipient_email', 'subject', 'resend_email_id']
    readonly_fields = ['resend_email_id', 'created_at']
    raw_id_fields = ['booking', 'payment']
