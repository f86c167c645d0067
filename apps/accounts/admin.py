from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin
from django.utils.html import format_html

from .models import Role, User

ROLE_COLOURS = {
    Role.ADMIN: '#0E7C86',
    Role.USER: '#9AA5AD',
}


@admin.register(User)
class TeamAccountAdmin(BaseUserAdmin):
    list_display = ['email', 'display_name', 'role_badge', 'is_active', 'last_login']
    list_filter = ['role', 'is_active', 'is_staff']
    search_fields = ['email', 'display_name']
    ordering = ['email']
    readonly_fields = ['created_at', 'updated_at', 'last_login']
    filter_horizontal = []

    fieldsets = (
        (None, {'fields': ('email', 'display_name', 'password')}),
        ('Access', {'fields': ('role', 'is_active', 'is_staff', 'is_superuser')}),
        ('Activity', {'fields': ('created_at', 'updated_at', 'last_login'), 'classes': ('collapse',)}),
    )
    add_fieldsets = (
        (None, {
            'classes': ('wide',),
            'fields': ('email', 'display_name', 'role', 'password1', 'password2'),
        }),
    )

    @admin.display(description='Role', ordering='role')
    def role_badge(self, obj):
        return format_html(
            '<span style="background: {}; color: white; padding: 2px 8px; border-radius: 8px;">{}</span>',
            ROLE_COLOURS.get(obj.role, '#9AA5AD'),
            obj.get_role_display(),
        )
