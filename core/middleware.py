"""
Request logging middleware for ReportDesk Backend.

Automatically logs all API requests for security monitoring.
"""

import logging
import time

from django.utils import timezone

from .utils import get_client_ip

audit_logger = logging.getLogger('reportdesk.audit')


class RequestLoggingMiddleware:
    """
    Middleware to log all API requests for audit purposes.

    Captures method, path, principal, status code, duration and client IP.
    Report transitions are additionally recorded in the report history.
    """

    skip_prefixes = (
        '/static/',
        '/health/',
        '/favicon.ico',
    )

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        start_time = time.time()
        response = self.get_response(request)
        duration = time.time() - start_time

        if not request.path.startswith(self.skip_prefixes):
            self._log_request(request, response, duration)

        return response

    def _log_request(self, request, response, duration):
        user_id = 'anonymous'
        user_role = 'none'

        user = getattr(request, 'user', None)
        if user is not None and user.is_authenticated:
            user_id = str(user.id)
            user_role = user.role

        audit_logger.info(
            "%s %s status=%s user=%s role=%s ip=%s duration_ms=%s at=%s",
            request.method,
            request.path,
            response.status_code,
            user_id,
            user_role,
            get_client_ip(request),
            round(duration * 1000, 2),
            timezone.now().isoformat(),
        )
