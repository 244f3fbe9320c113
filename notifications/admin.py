"""
Admin configuration for notifications.

READ-ONLY admin interface for notifications.
Notifications should only be created via the NotificationService.
"""

from django.contrib import admin
from django.urls import reverse
from django.utils.html import format_html

from .models import Notification, NotificationType


@admin.register(Notification)
class NotificationAdmin(admin.ModelAdmin):
    """
    Admin for Notification model.

    READ-ONLY: Notifications are system-generated.
    """

    list_display = [
        'short_id',
        'recipient_display',
        'title_short',
        'notification_type_badge',
        'report_link',
        'delivery_badge',
        'is_read',
        'created_at',
    ]
    list_filter = [
        'notification_type',
        'is_read',
        'created_at',
    ]
    search_fields = [
        'id',
        'recipient__identifier',
        'title',
        'report__id',
    ]
    ordering = ['-created_at']
    date_hierarchy = 'created_at'

    readonly_fields = [
        'id',
        'recipient',
        'title',
        'message',
        'notification_type',
        'report',
        'payload',
        'delivered_at',
        'is_read',
        'read_at',
        'created_at',
        'updated_at',
    ]

    fieldsets = (
        ('Notification', {
            'fields': ('id', 'recipient', 'notification_type'),
        }),
        ('Content', {
            'fields': ('title', 'message', 'payload'),
        }),
        ('Context', {
            'fields': ('report',),
        }),
        ('Delivery', {
            'fields': ('delivered_at', 'is_read', 'read_at'),
        }),
        ('Timestamps', {
            'fields': ('created_at', 'updated_at'),
            'classes': ('collapse',),
        }),
    )

    # === Display helpers ===

    def short_id(self, obj):
        return str(obj.id)[:8] + '...'
    short_id.short_description = 'ID'
    short_id.admin_order_field = 'id'

    def recipient_display(self, obj):
        return obj.recipient.identifier if obj.recipient else '-'
    recipient_display.short_description = 'Recipient'
    recipient_display.admin_order_field = 'recipient__identifier'

    def title_short(self, obj):
        text = obj.title or ''
        return text[:40] + '...' if len(text) > 40 else text
    title_short.short_description = 'Title'

    def notification_type_badge(self, obj):
        colors = {
            NotificationType.REPORT_IN_REVIEW: '#3498db',
            NotificationType.REPORT_ESCALATED: '#e67e22',
            NotificationType.REPORT_RESOLVED: '#27ae60',
            NotificationType.REPORT_REJECTED: '#e74c3c',
            NotificationType.GENERAL: '#95a5a6',
        }
        color = colors.get(obj.notification_type, '#95a5a6')
        return format_html(
            '<span style="background-color: {}; color: white; padding: 2px 6px; '
            'border-radius: 3px; font-size: 10px;">{}</span>',
            color, obj.get_notification_type_display()
        )
    notification_type_badge.short_description = 'Type'

    def report_link(self, obj):
        if obj.report_id:
            url = reverse('admin:reports_report_change', args=[obj.report_id])
            return format_html('<a href="{}">Report: {}</a>', url, str(obj.report_id)[:8])
        return '-'
    report_link.short_description = 'Report'

    def delivery_badge(self, obj):
        if obj.is_delivered:
            return format_html('<span style="color: #27ae60;">Delivered</span>')
        return format_html('<span style="color: #e67e22; font-weight: bold;">Pending</span>')
    delivery_badge.short_description = 'Delivery'

    # === Permissions (READ-ONLY) ===

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return True  # Allow viewing

    def has_delete_permission(self, request, obj=None):
        return False
