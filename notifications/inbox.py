"""
Durable per-principal notification inbox.

Every operation is total apart from storage failures, which surface as
StorageError.
"""

import logging

from django.db import DatabaseError
from django.db.models import F, Value
from django.db.models.functions import Greatest
from django.utils import timezone

from core.exceptions import StorageError
from .models import Notification

logger = logging.getLogger('reportdesk.notifications')


class NotificationInbox:

    def enqueue(self, record):
        """
        Persist `record`, keyed by its id.

        Enqueueing a record that already exists returns the stored one and
        changes nothing.
        """
        try:
            stored, created = Notification.all_objects.get_or_create(
                id=record.id,
                defaults={
                    'recipient_id': record.recipient_id,
                    'report_id': record.report_id,
                    'notification_type': record.notification_type,
                    'title': record.title,
                    'message': record.message,
                    'payload': record.payload,
                },
            )
        except DatabaseError as exc:
            logger.error(f"Failed to enqueue notification {record.id}: {exc}")
            raise StorageError() from exc

        if not created:
            logger.debug(f"Notification {record.id} already enqueued")
        return stored

    def list_undelivered(self, principal_id):
        """Undelivered records for a principal, oldest first."""
        try:
            return list(
                Notification.objects.filter(
                    recipient_id=principal_id,
                    delivered_at__isnull=True,
                ).order_by('created_at', 'id')
            )
        except DatabaseError as exc:
            raise StorageError() from exc

    def is_delivered(self, notification_id):
        try:
            return Notification.objects.filter(
                id=notification_id,
                delivered_at__isnull=False,
            ).exists()
        except DatabaseError as exc:
            raise StorageError() from exc

    def mark_delivered(self, notification_id, timestamp=None):
        """
        Set delivered_at once.

        Returns True when this call set it. The stored value is never earlier
        than the record's created_at.
        """
        timestamp = timestamp or timezone.now()
        try:
            updated = Notification.objects.filter(
                id=notification_id,
                delivered_at__isnull=True,
            ).update(
                delivered_at=Greatest(Value(timestamp), F('created_at')),
                updated_at=timezone.now(),
            )
        except DatabaseError as exc:
            raise StorageError() from exc
        return bool(updated)

    def mark_read(self, notification_id, timestamp=None, recipient_id=None):
        """
        Mark a record read on explicit acknowledgment.

        Passing `recipient_id` restricts the update to that principal's own
        records. Returns True when a record was newly marked read.
        """
        timestamp = timestamp or timezone.now()
        queryset = Notification.objects.filter(id=notification_id, is_read=False)
        if recipient_id is not None:
            queryset = queryset.filter(recipient_id=recipient_id)

        try:
            updated = queryset.update(
                is_read=True,
                read_at=timestamp,
                updated_at=timezone.now(),
            )
        except DatabaseError as exc:
            raise StorageError() from exc
        return bool(updated)

    def unread_count(self, principal_id):
        try:
            return Notification.objects.filter(recipient_id=principal_id, is_read=False).count()
        except DatabaseError as exc:
            raise StorageError() from exc

    def mark_all_read(self, principal_id):
        try:
            return Notification.objects.filter(
                recipient_id=principal_id,
                is_read=False,
            ).update(
                is_read=True,
                read_at=timezone.now(),
                updated_at=timezone.now(),
            )
        except DatabaseError as exc:
            raise StorageError() from exc


notification_inbox = NotificationInbox()
