from django.contrib import admin
from .models import SiteSetting, PolicySection, RetreatFeedback


@admin.register(SiteSetting)
class SiteSettingAdmin(admin.ModelAdmin):
    list_display = ['key', 'updated_by', 'updated_at']
    readonly_fields = ['updated_at']


@admin.register(PolicySection)
class PolicySectionAdmin(admin.ModelAdmin):
    list_display = ['section_key', 'language', 'title', 'sort_order', 'is_active']
    list_filter = ['language', 'is_active']
    search_fields = ['section_key', 'title']


@admin.register(RetreatFeedback)
class RetreatFeedbackAdmin(admin.ModelAdmin):
    list_display = ['booking', 'retreat', 'overall_rating', 'recommend_score', 'allow_testimonial_use', 'created_at']
    list_filter = ['overall_rating', 'allow_testimonial_use']
    raw_id_fields = ['booking', 'retreat']
