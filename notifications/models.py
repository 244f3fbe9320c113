"""
Notification models for ReportDesk Backend.

Provides:
- Notification: one durable inbox record per recipient per report event
- Delivery tracking (delivered_at) and read tracking (read_at)

Design principles:
- No deletes allowed
- delivered_at is written at most once
- Linked to reports for context
"""

from django.db import models
from django.utils import timezone

from core.models import BaseModel
from reports.models import ReportStatus


class NotificationType:
    """Notification type constants, one per status a report can enter."""
    REPORT_IN_REVIEW = 'report_in_review'
    REPORT_ESCALATED = 'report_escalated'
    REPORT_RESOLVED = 'report_resolved'
    REPORT_REJECTED = 'report_rejected'
    GENERAL = 'general'

    CHOICES = [
        (REPORT_IN_REVIEW, 'Report In Review'),
        (REPORT_ESCALATED, 'Report Escalated'),
        (REPORT_RESOLVED, 'Report Resolved'),
        (REPORT_REJECTED, 'Report Rejected'),
        (GENERAL, 'General'),
    ]

    BY_TARGET_STATUS = {
        ReportStatus.IN_REVIEW: REPORT_IN_REVIEW,
        ReportStatus.ESCALATED: REPORT_ESCALATED,
        ReportStatus.RESOLVED: REPORT_RESOLVED,
        ReportStatus.REJECTED: REPORT_REJECTED,
    }

    @classmethod
    def for_status(cls, status):
        return cls.BY_TARGET_STATUS.get(status, cls.GENERAL)


class NotificationManager(models.Manager):
    """Custom manager for notifications - prevents deletes."""

    def get_queryset(self):
        return super().get_queryset().filter(is_deleted=False)

    def delete(self, *args, **kwargs):
        raise PermissionError("Notifications cannot be deleted.")


class Notification(BaseModel):
    """
    Inbox record for one recipient.

    Notifications are:
    - Linked to specific users (recipients)
    - Linked to the report whose transition produced them
    - Delivered at most once (delivered_at), read on explicit acknowledgment
    - Never deleted
    """

    recipient = models.ForeignKey(
        'authentication.User',
        on_delete=models.CASCADE,
        related_name='notifications',
        help_text="User who receives this notification"
    )

    report = models.ForeignKey(
        'reports.Report',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='notifications',
        help_text="Related report (if applicable)"
    )

    notification_type = models.CharField(
        max_length=30,
        choices=NotificationType.CHOICES,
        default=NotificationType.GENERAL,
        db_index=True,
    )

    title = models.CharField(
        max_length=200,
        help_text="Short notification title"
    )

    message = models.TextField(
        help_text="Notification message body"
    )

    payload = models.JSONField(
        default=dict,
        blank=True,
        help_text="Event data the notification was derived from"
    )

    delivered_at = models.DateTimeField(
        null=True,
        blank=True,
        db_index=True,
        help_text="When a live connection accepted the notification"
    )

    is_read = models.BooleanField(
        default=False,
        db_index=True,
        help_text="Whether the notification has been read"
    )

    read_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="When the notification was read"
    )

    objects = NotificationManager()
    all_objects = models.Manager()

    class Meta:
        db_table = 'notifications'
        verbose_name = 'Notification'
        verbose_name_plural = 'Notifications'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['recipient', 'delivered_at', 'created_at'], name='notif_recipient_pending_idx'),
            models.Index(fields=['recipient', 'is_read', '-created_at'], name='notif_recipient_unread_idx'),
            models.Index(fields=['recipient', '-created_at'], name='notif_recipient_created_idx'),
        ]

    def __str__(self):
        return f"[{self.recipient_id}] {self.title}"

    @property
    def is_delivered(self):
        return self.delivered_at is not None

    def mark_as_read(self):
        """Mark this notification as read."""
        if not self.is_read:
            self.is_read = True
            self.read_at = timezone.now()
            self.save(update_fields=['is_read', 'read_at', 'updated_at'])

    def delete(self, *args, **kwargs):
        raise PermissionError("Notifications cannot be deleted.")
