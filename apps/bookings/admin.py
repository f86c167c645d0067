from django.contrib import admin
from .models import Booking, BookingStatusChange


class BookingStatusChangeInline(admin.TabularInline):
    model = BookingStatusChange
    extra = 0
    fields = ['action', 'old_status', 'new_status', 'new_payment_status', 'changed_by_email', 'reason', 'created_at']
    readonly_fields = fields
    can_delete = False


@admin.register(Booking)
class BookingAdmin(admin.ModelAdmin):
    list_display = ['booking_number', 'retreat', 'room', 'email', 'total_amount', 'status', 'payment_status', 'created_at']
    list_filter = ['status', 'payment_status', 'customer_type', 'language']
    search_fields = ['booking_number', 'email', 'first_name', 'last_name']
    readonly_fields = ['booking_number', 'access_token', 'stripe_customer_id', 'stripe_payment_method_id', 'created_at', 'updated_at']
    raw_id_fields = ['retreat', 'room', 'promo_code', 'restored_by']
    inlines = [BookingStatusChangeInline]
