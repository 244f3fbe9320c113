"""
Shared model base for ReportDesk.

Every persisted entity gets:
- a UUID primary key, so report and notification ids are not guessable
- created/updated timestamps (created_at drives inbox ordering)
- soft delete, with `all_objects` as the escape hatch
"""

import uuid
from django.db import models
from django.utils import timezone


class SoftDeleteManager(models.Manager):
    """Manager that hides soft-deleted rows."""

    def get_queryset(self):
        return super().get_queryset().filter(is_deleted=False)


class BaseModel(models.Model):
    """
    Abstract base for reports, history rows, notifications and users.

    delete() only flags the row; nothing is physically removed through
    the ORM.
    """

    id = models.UUIDField(
        primary_key=True,
        default=uuid.uuid4,
        editable=False,
        help_text="Record identifier"
    )

    created_at = models.DateTimeField(
        default=timezone.now,
        editable=False,
        db_index=True,
        help_text="When the record was created"
    )

    updated_at = models.DateTimeField(
        auto_now=True,
        help_text="When the record was last written"
    )

    is_deleted = models.BooleanField(
        default=False,
        db_index=True,
        help_text="Hidden from the default manager when set"
    )

    deleted_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="When the record was soft-deleted"
    )

    objects = SoftDeleteManager()
    all_objects = models.Manager()

    class Meta:
        abstract = True
        ordering = ['-created_at']

    def soft_delete(self):
        self.is_deleted = True
        self.deleted_at = timezone.now()
        self.save(update_fields=['is_deleted', 'deleted_at', 'updated_at'])

    def delete(self, *args, **kwargs):
        self.soft_delete()
