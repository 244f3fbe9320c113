"""
Notification service for ReportDesk Backend.

Central service for fanning lifecycle events out to recipients.
All notification creation should go through this service.

Usage:
    from notifications.services import NotificationService

    result = lifecycle_engine.request_transition(...)
    NotificationService.dispatch(result.event)

dispatch() runs after the transition has committed. For every recipient the
record is written to the inbox first and only then handed to the realtime
delivery channel, so a reconnect always sees at least what was pushed.
"""

import logging
import threading
from concurrent.futures import ThreadPoolExecutor

from django.conf import settings
from django.db import close_old_connections

from core.exceptions import StorageError
from realtime.delivery import delivery_channel
from .inbox import notification_inbox
from .router import NotificationRouter

logger = logging.getLogger('reportdesk.notifications')


class NotificationService:
    """
    Central service for routing, persisting and pushing notifications.

    All notification logic is centralized here to:
    - Keep enqueue-before-push ordering in one place
    - Keep pushes per recipient independent
    - Never let a delivery problem reach the request that caused it
    """

    router = NotificationRouter()
    inbox = notification_inbox
    channel = delivery_channel

    _executor = None
    _executor_lock = threading.Lock()

    @classmethod
    def _get_executor(cls):
        with cls._executor_lock:
            if cls._executor is None:
                cls._executor = ThreadPoolExecutor(
                    max_workers=settings.NOTIFICATIONS['PUSH_WORKERS'],
                    thread_name_prefix='notification-push',
                )
            return cls._executor

    @classmethod
    def shutdown_executor(cls, wait=True):
        with cls._executor_lock:
            executor, cls._executor = cls._executor, None
        if executor is not None:
            executor.shutdown(wait=wait)

    # =========================================================================
    # PUBLIC API
    # =========================================================================

    @classmethod
    def dispatch(cls, event):
        """
        Route `event`, persist one record per recipient, then push each.

        Returns the list of stored records.

        Raises:
            StorageError: an inbox write failed; records already stored
                          remain and are picked up on reconnect
        """
        routed = cls.router.route(event)
        records = cls.router.build_records(routed)

        stored = []
        for record in records:
            stored.append(cls.inbox.enqueue(record))

        for record in stored:
            cls._schedule_push(record)

        logger.info(
            f"Event {event.id} ({event.from_status}->{event.to_status}) on report "
            f"{event.report_id}: {len(stored)} notification(s)"
        )
        return stored

    @classmethod
    def dispatch_safely(cls, event):
        """
        dispatch() for callers that must not fail after a committed transition.
        """
        try:
            return cls.dispatch(event)
        except StorageError:
            logger.exception(
                f"Notification dispatch for event {event.id} on report {event.report_id} failed"
            )
            return []

    @classmethod
    def get_unread_count(cls, user):
        """Get count of unread notifications for a user."""
        return cls.inbox.unread_count(user.id)

    @classmethod
    def mark_all_read(cls, user):
        """Mark all notifications as read for a user."""
        return cls.inbox.mark_all_read(user.id)

    # =========================================================================
    # PUSH SCHEDULING
    # =========================================================================

    @classmethod
    def _schedule_push(cls, record):
        if not cls.channel.is_connected(record.recipient_id):
            logger.debug(f"Recipient {record.recipient_id} offline; {record.id} waits for catch-up")
            return

        if settings.NOTIFICATIONS['INLINE_PUSH']:
            cls.channel.push(record)
            return

        cls._get_executor().submit(cls._push_in_worker, record)

    @classmethod
    def _push_in_worker(cls, record):
        # Nothing collects the future, so every failure is logged here
        try:
            cls.channel.push(record)
        except StorageError:
            logger.exception(f"Could not record delivery of notification {record.id}")
        except Exception:
            logger.exception(f"Push of notification {record.id} failed unexpectedly")
        finally:
            close_old_connections()
