"""
ASGI lifespan handler.

Tears the process-scoped connection state down on server shutdown: every
live websocket is closed and the push worker pool is drained.
"""

import logging

from asgiref.sync import sync_to_async

from notifications.services import NotificationService
from .delivery import delivery_channel

logger = logging.getLogger('reportdesk.realtime')


async def _shutdown():
    await sync_to_async(delivery_channel.shutdown, thread_sensitive=False)()
    await sync_to_async(NotificationService.shutdown_executor, thread_sensitive=False)()


class LifespanApp:

    async def __call__(self, scope, receive, send):
        while True:
            message = await receive()

            if message['type'] == 'lifespan.startup':
                logger.info('Realtime delivery channel ready')
                await send({'type': 'lifespan.startup.complete'})

            elif message['type'] == 'lifespan.shutdown':
                await _shutdown()
                await send({'type': 'lifespan.shutdown.complete'})
                return
