from django.contrib import admin
from .models import Campaign, CampaignRecipient, EmailEvent, Subscriber


@admin.register(Subscriber)
class SubscriberAdmin(admin.ModelAdmin):
    list_display = ['email', 'first_name', 'language', 'source', 'status', 'confirmed_at', 'created_at']
    list_filter = ['status', 'language', 'source', 'quiz_completed']
    search_fields = ['email', 'first_name']
    readonly_fields = ['unsubscribe_token', 'confirmed_at', 'unsubscribed_at', 'created_at', 'updated_at']


class CampaignRecipientInline(admin.TabularInline):
    model = CampaignRecipient
    extra = 0
    fields = ['email', 'language', 'status', 'sent_at', 'opened_at', 'clicked_at']
    readonly_fields = fields
    can_delete = False


@admin.register(Campaign)
class CampaignAdmin(admin.ModelAdmin):
    list_display = ['name', 'status', 'target_status', 'sent_at', 'created_at']
    list_filter = ['status']
    search_fields = ['name', 'subject_en']
    readonly_fields = ['stats', 'sent_at', 'created_at', 'updated_at']
    inlines = [CampaignRecipientInline]


@admin.register(EmailEvent)
class EmailEventAdmin(admin.ModelAdmin):
    list_display = ['event_type', 'recipient_email', 'campaign', 'created_at']
    list_filter = ['event_type']
    search_fields = ['recipient_email', 'resend_email_id']
