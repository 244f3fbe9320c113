"""
JWT authentication for websocket connections.

Browsers cannot set an Authorization header on a websocket handshake, so
the access token travels in the `token` query parameter. The resolved
principal (or None) is stored in scope['principal'].
"""

import logging
from urllib.parse import parse_qs

from channels.db import database_sync_to_async
from channels.middleware import BaseMiddleware

from authentication.identity import resolve_token
from core.exceptions import Unauthenticated

security_logger = logging.getLogger('reportdesk.security')


@database_sync_to_async
def _resolve(raw_token):
    try:
        return resolve_token(raw_token)
    except Unauthenticated as exc:
        security_logger.info(f"Websocket authentication failed: {exc.message}")
        return None


class JWTAuthMiddleware(BaseMiddleware):

    async def __call__(self, scope, receive, send):
        scope = dict(scope)
        query = parse_qs(scope.get('query_string', b'').decode('latin-1'))
        raw_token = (query.get('token') or [''])[0]

        scope['principal'] = await _resolve(raw_token)
        return await super().__call__(scope, receive, send)
