from django.contrib import admin
from .models import PromoCode, PromoCodeRedemption


class PromoCodeRedemptionInline(admin.TabularInline):
    model = PromoCodeRedemption
    extra = 0
    readonly_fields = ['booking', 'original_amount', 'discount_applied', 'final_amount', 'redeemed_at']
    can_delete = False


@admin.register(PromoCode)
class PromoCodeAdmin(admin.ModelAdmin):
    list_display = ['code', 'discount_type', 'discount_value', 'scope', 'current_uses', 'max_uses', 'valid_until', 'is_active']
    list_filter = ['is_active', 'discount_type', 'scope']
    search_fields = ['code', 'description']
    readonly_fields = ['current_uses', 'created_at', 'updated_at']
    inlines = [PromoCodeRedemptionInline]
