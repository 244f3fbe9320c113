"""
Admin configuration for reports models.

Reports are read-only here: status, assignee and version only move through
the lifecycle engine so that every change lands in the history.
"""

from django.contrib import admin

from .models import Report, ReportStatusHistory


class ReportStatusHistoryInline(admin.TabularInline):
    model = ReportStatusHistory
    fk_name = 'report'
    extra = 0
    ordering = ['sequence']
    fields = ['sequence', 'from_status', 'to_status', 'changed_by', 'changed_at', 'reason']
    readonly_fields = fields
    can_delete = False

    def has_add_permission(self, request, obj=None):
        return False


# =============================================================================
# REPORT ADMIN (READ-ONLY)
# =============================================================================

@admin.register(Report)
class ReportAdmin(admin.ModelAdmin):
    """Admin for Report model."""

    list_display = ['title', 'status', 'category', 'owner', 'assigned_to', 'version', 'created_at']
    list_filter = ['status', 'category', 'created_at']
    search_fields = ['id', 'title', 'owner__identifier', 'assigned_to__identifier']
    ordering = ['-created_at']
    inlines = [ReportStatusHistoryInline]

    readonly_fields = [
        'id', 'owner', 'title', 'description', 'category', 'location',
        'status', 'assigned_to', 'assigned_at', 'closed_at', 'version',
        'created_at', 'updated_at',
    ]

    fieldsets = (
        ('Report Info', {'fields': ('id', 'title', 'category', 'location', 'description')}),
        ('Lifecycle', {'fields': ('status', 'version', 'assigned_to', 'assigned_at', 'closed_at')}),
        ('Owner', {'fields': ('owner',)}),
        ('Timestamps', {'fields': ('created_at', 'updated_at'), 'classes': ('collapse',)}),
    )

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(ReportStatusHistory)
class ReportStatusHistoryAdmin(admin.ModelAdmin):
    """Admin for ReportStatusHistory model."""

    list_display = ['report', 'sequence', 'from_status', 'to_status', 'changed_by', 'changed_at']
    list_filter = ['to_status', 'changed_at']
    search_fields = ['report__title', 'changed_by__identifier']
    readonly_fields = [
        'id', 'report', 'sequence', 'from_status', 'to_status',
        'changed_by', 'changed_at', 'reason', 'created_at', 'updated_at',
    ]

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
