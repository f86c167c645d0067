from django.contrib import admin
from .models import Payment, PaymentSchedule


@admin.register(PaymentSchedule)
class PaymentScheduleAdmin(admin.ModelAdmin):
    list_display = ['booking', 'payment_number', 'amount', 'due_date', 'status', 'attempts', 'payment_deadline']
    list_filter = ['status', 'payment_type', 'reminder_stage']
    search_fields = ['booking__booking_number', 'booking__email', 'stripe_payment_intent_id']
    readonly_fields = ['created_at', 'updated_at']
    raw_id_fields = ['booking']


@admin.register(Payment)
class PaymentAdmin(admin.ModelAdmin):
    list_display = ['booking', 'amount', 'currency', 'payment_type', 'status', 'created_at']
    list_filter = ['status', 'payment_type']
    search_fields = [
        'booking__booking_number',
        'stripe_payment_intent_id',
        'stripe_checkout_session_id',
        'stripe_refund_id',
    ]
    readonly_fields = ['stripe_webhook_event_id', 'metadata', 'created_at', 'updated_at']
    raw_id_fields = ['booking', 'payment_schedule']
