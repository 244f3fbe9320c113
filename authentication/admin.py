"""
Admin configuration for ReportDesk users.

Role is shown but never editable: roles are fixed at account creation.
"""

from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin

from .models import User


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    list_display = ['identifier', 'display_name', 'role', 'is_active', 'created_at']
    list_filter = ['role', 'is_active', 'is_staff']
    search_fields = ['identifier', 'display_name']
    ordering = ['identifier']
    readonly_fields = ['id', 'role', 'created_at', 'updated_at', 'last_login']

    fieldsets = (
        (None, {'fields': ('id', 'identifier', 'password')}),
        ('Profile', {'fields': ('display_name', 'role')}),
        ('Status', {'fields': ('is_active', 'is_staff', 'is_superuser')}),
        ('Timestamps', {'fields': ('last_login', 'created_at', 'updated_at')}),
    )
    add_fieldsets = (
        (None, {
            'classes': ('wide',),
            'fields': ('identifier', 'password1', 'password2'),
        }),
    )
    filter_horizontal = ()
