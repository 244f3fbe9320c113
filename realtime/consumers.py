"""
Websocket consumer for realtime notifications.

Endpoint: ws/notifications/?token=<jwt access token>

Server -> client frames:
    {"event": "connectionStatus", "data": {"connected": true}}
    {"event": "notification", "data": {...record...}}

Client -> server frames:
    {"event": "ack", "data": {"id": "<notification id>"}}   marks read
    {"event": "disconnect"}                                  closes the socket
"""

import asyncio
import concurrent.futures
import logging
import uuid

from channels.db import database_sync_to_async
from channels.generic.websocket import AsyncJsonWebsocketConsumer
from django.conf import settings

from core.exceptions import DeliveryFailure, StorageError
from notifications.inbox import notification_inbox
from .delivery import (
    CONNECTION_STATUS_EVENT,
    DISCONNECT_EVENT,
    TransportHandle,
    delivery_channel,
)

logger = logging.getLogger('reportdesk.realtime')

UNAUTHENTICATED_CLOSE_CODE = 4401


class ConsumerHandle(TransportHandle):
    """
    Transport handle backed by a websocket consumer.

    The delivery channel runs in worker threads; send() schedules the frame
    on the consumer's event loop and waits until the socket write finished.
    Must never be called from the event loop thread itself.
    """

    def __init__(self, consumer, loop, timeout):
        self.handle_id = uuid.uuid4().hex
        self.consumer = consumer
        self.loop = loop
        self.timeout = timeout
        self.closed = False
        self._pending = set()

    def send(self, event, data):
        if self.closed:
            raise DeliveryFailure('Connection is closed.')

        frame = self.consumer.send_json({'event': event, 'data': data})
        try:
            future = asyncio.run_coroutine_threadsafe(frame, self.loop)
        except RuntimeError as exc:
            # Event loop already closed
            frame.close()
            raise DeliveryFailure(f"Transport unavailable: {exc}") from exc

        self._pending.add(future)
        try:
            future.result(timeout=self.timeout)
        except concurrent.futures.TimeoutError as exc:
            future.cancel()
            raise DeliveryFailure(f"Send timed out after {self.timeout}s.") from exc
        except concurrent.futures.CancelledError as exc:
            raise DeliveryFailure('Send cancelled by disconnect.') from exc
        except Exception as exc:
            raise DeliveryFailure(f"Transport error: {exc}") from exc
        finally:
            self._pending.discard(future)

    def mark_closed(self):
        """Stop accepting sends and cancel the ones in flight."""
        self.closed = True
        for future in list(self._pending):
            future.cancel()

    def close(self):
        self.mark_closed()
        closing = self.consumer.close()
        try:
            asyncio.run_coroutine_threadsafe(closing, self.loop)
        except RuntimeError:
            closing.close()
            logger.debug(f"Event loop gone; handle {self.handle_id} closed locally only")


class NotificationConsumer(AsyncJsonWebsocketConsumer):

    handle = None
    principal = None

    async def connect(self):
        principal = self.scope.get('principal')
        if principal is None:
            logger.info('Rejected unauthenticated websocket')
            await self.close(code=UNAUTHENTICATED_CLOSE_CODE)
            return

        await self.accept()
        self.principal = principal
        self.handle = ConsumerHandle(
            self,
            asyncio.get_running_loop(),
            settings.NOTIFICATIONS['PUSH_TIMEOUT_SECONDS'],
        )

        logger.info(f"Client connected: {principal.id} (handle {self.handle.handle_id})")
        await self.send_json({'event': CONNECTION_STATUS_EVENT, 'data': {'connected': True}})

        try:
            await database_sync_to_async(delivery_channel.connect, thread_sensitive=False)(
                principal.id, self.handle
            )
        except StorageError:
            logger.exception(f"Catch-up for {principal.id} failed; records stay undelivered")

    async def disconnect(self, code):
        if self.handle is None:
            return

        self.handle.mark_closed()
        delivery_channel.disconnect(self.principal.id, self.handle)
        logger.info(f"Client disconnected: {self.principal.id} (code {code})")

    async def receive_json(self, content, **kwargs):
        event = content.get('event') if isinstance(content, dict) else None

        if event == DISCONNECT_EVENT:
            await self.close()
        elif event == 'ack':
            await self._acknowledge(content.get('data'))
        else:
            logger.debug(f"Ignoring websocket frame from {self.principal.id}: {event!r}")

    async def _acknowledge(self, data):
        if not isinstance(data, dict):
            logger.debug(f"Ignoring malformed ack from {self.principal.id}: {data!r}")
            return

        notification_id = data.get('id')
        try:
            notification_id = uuid.UUID(str(notification_id))
        except ValueError:
            return

        try:
            await database_sync_to_async(notification_inbox.mark_read)(
                notification_id,
                recipient_id=self.principal.id,
            )
        except StorageError:
            logger.exception(f"Could not mark {notification_id} read for {self.principal.id}")
