"""
Realtime delivery channel.

Keeps the process-local map of live connections (principal id -> handles)
and moves inbox records onto them:

- connect() registers a handle and drains the principal's undelivered
  records through it, oldest first
- push() sends a freshly enqueued record to every live handle of its
  recipient
- a record is marked delivered only after a handle accepted it; records
  nobody accepted stay undelivered until the next connect

The map lives for the whole process: it is created at import, filled and
emptied by connect/disconnect, and torn down by shutdown() when the ASGI
lifespan ends. This only works with a single backend process.
"""

import logging
import threading
from contextlib import contextmanager

from django.utils import timezone

from core.exceptions import DeliveryFailure
from notifications.inbox import notification_inbox

logger = logging.getLogger('reportdesk.realtime')

CONNECTION_STATUS_EVENT = 'connectionStatus'
NOTIFICATION_EVENT = 'notification'
DISCONNECT_EVENT = 'disconnect'


class TransportHandle:
    """
    One live client connection.

    send() must block until the transport accepted the frame and raise
    DeliveryFailure otherwise. close() ends the connection.
    """

    handle_id = None

    def send(self, event, data):
        raise NotImplementedError

    def close(self):
        raise NotImplementedError


def serialize_record(record):
    """Wire representation of a notification record."""
    return {
        'id': str(record.id),
        'type': record.notification_type,
        'title': record.title,
        'message': record.message,
        'report_id': str(record.report_id) if record.report_id else None,
        'payload': record.payload,
        'created_at': record.created_at.isoformat() if record.created_at else None,
        'is_read': record.is_read,
    }


class DeliveryChannel:

    def __init__(self, inbox=None):
        self.inbox = inbox or notification_inbox
        self._lock = threading.Lock()
        self._connections = {}
        # Serializes drain and push per principal so each principal sees
        # records in order. principal id -> [RLock, number of users]; an
        # entry lives while the principal is connected or the lock is in use.
        self._principal_locks = {}

    @contextmanager
    def _principal_lock(self, principal_id):
        with self._lock:
            entry = self._principal_locks.get(principal_id)
            if entry is None:
                entry = self._principal_locks[principal_id] = [threading.RLock(), 0]
            entry[1] += 1

        try:
            with entry[0]:
                yield
        finally:
            with self._lock:
                entry[1] -= 1
                self._discard_idle_lock(principal_id)

    def _discard_idle_lock(self, principal_id):
        # Caller holds self._lock
        entry = self._principal_locks.get(principal_id)
        if entry is not None and entry[1] == 0 and principal_id not in self._connections:
            del self._principal_locks[principal_id]

    def tracked_principals(self):
        """Principals that currently own a delivery lock."""
        with self._lock:
            return set(self._principal_locks)

    def handles_for(self, principal_id):
        with self._lock:
            return list(self._connections.get(principal_id, {}).values())

    def is_connected(self, principal_id):
        with self._lock:
            return bool(self._connections.get(principal_id))

    def connection_count(self):
        with self._lock:
            return sum(len(handles) for handles in self._connections.values())

    def connect(self, principal_id, handle):
        """
        Register `handle` and deliver everything the principal missed.

        Returns the number of records delivered during catch-up.
        """
        with self._principal_lock(principal_id):
            with self._lock:
                self._connections.setdefault(principal_id, {})[handle.handle_id] = handle

            logger.info(f"Principal {principal_id} connected (handle {handle.handle_id})")
            return self._drain(principal_id, handle)

    def _drain(self, principal_id, handle):
        delivered = 0
        for record in self.inbox.list_undelivered(principal_id):
            try:
                handle.send(NOTIFICATION_EVENT, serialize_record(record))
            except DeliveryFailure as exc:
                logger.warning(
                    f"Catch-up for {principal_id} stopped at {record.id}: {exc.message}"
                )
                break

            if self.inbox.mark_delivered(record.id, timezone.now()):
                delivered += 1

        if delivered:
            logger.info(f"Caught up {delivered} notification(s) for {principal_id}")
        return delivered

    def push(self, record):
        """
        Send `record` to every live handle of its recipient.

        Returns True when at least one handle accepted it. A record that was
        already delivered (e.g. by a concurrent catch-up) is not sent again.
        """
        principal_id = record.recipient_id

        if not self.is_connected(principal_id):
            return False

        with self._principal_lock(principal_id):
            if self.inbox.is_delivered(record.id):
                return True

            accepted = False
            for handle in self.handles_for(principal_id):
                try:
                    handle.send(NOTIFICATION_EVENT, serialize_record(record))
                    accepted = True
                except DeliveryFailure as exc:
                    logger.warning(
                        f"Push of {record.id} to {principal_id} via {handle.handle_id} failed: {exc.message}"
                    )

            if accepted:
                self.inbox.mark_delivered(record.id, timezone.now())
            return accepted

    def disconnect(self, principal_id, handle):
        with self._lock:
            handles = self._connections.get(principal_id)
            if handles is None:
                return
            handles.pop(handle.handle_id, None)
            if not handles:
                del self._connections[principal_id]
                self._discard_idle_lock(principal_id)

        logger.info(f"Principal {principal_id} disconnected (handle {handle.handle_id})")

    def shutdown(self):
        """Close every live handle and empty the map."""
        with self._lock:
            handles = [
                handle
                for principal_handles in self._connections.values()
                for handle in principal_handles.values()
            ]
            self._connections.clear()
            for principal_id in list(self._principal_locks):
                self._discard_idle_lock(principal_id)

        for handle in handles:
            try:
                handle.close()
            except DeliveryFailure as exc:
                logger.warning(f"Closing handle {handle.handle_id} failed: {exc.message}")

        logger.info(f"Delivery channel shut down; closed {len(handles)} connection(s)")


delivery_channel = DeliveryChannel()
