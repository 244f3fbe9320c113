"""
Custom exception handling for ReportDesk Backend.

Provides the domain error taxonomy and a consistent error response format.
Never exposes internal details in error responses.
"""

import logging
from rest_framework.views import exception_handler
from rest_framework.response import Response
from rest_framework import status

from .utils import get_client_ip

security_logger = logging.getLogger('reportdesk.security')


class ReportDeskError(Exception):
    """Base exception class for ReportDesk domain errors."""

    default_code = 'ERROR'
    default_message = 'An error occurred.'
    default_status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message=None, code=None, status_code=None):
        self.message = message or self.default_message
        self.code = code or self.default_code
        self.status_code = status_code or self.default_status_code
        super().__init__(self.message)


class Unauthenticated(ReportDeskError):
    """Raised when a credential does not resolve to an active principal."""
    default_code = 'UNAUTHENTICATED'
    default_message = 'Authentication required.'
    default_status_code = status.HTTP_401_UNAUTHORIZED


class Forbidden(ReportDeskError):
    """Raised when the actor's role is not allowed on a transition edge."""
    default_code = 'FORBIDDEN'
    default_message = 'You do not have permission to perform this action.'
    default_status_code = status.HTTP_403_FORBIDDEN


class NotFound(ReportDeskError):
    default_code = 'NOT_FOUND'
    default_message = 'The requested resource was not found.'
    default_status_code = status.HTTP_404_NOT_FOUND


class InvalidTransition(ReportDeskError):
    """Raised when no edge exists from the report's current status."""
    default_code = 'INVALID_TRANSITION'
    default_message = 'This status change is not allowed from the current status.'
    default_status_code = status.HTTP_409_CONFLICT


class Conflict(ReportDeskError):
    """Raised when a concurrent transition won the race for the same report."""
    default_code = 'CONFLICT'
    default_message = 'The report was changed by another request. Reload and try again.'
    default_status_code = status.HTTP_409_CONFLICT


class StorageError(ReportDeskError):
    default_code = 'STORAGE_ERROR'
    default_message = 'Storage is temporarily unavailable.'
    default_status_code = status.HTTP_503_SERVICE_UNAVAILABLE


class DeliveryFailure(ReportDeskError):
    """
    Raised by a transport handle that did not accept a push.

    Non-fatal: the notification stays undelivered until the next catch-up.
    """
    default_code = 'DELIVERY_FAILURE'
    default_message = 'The realtime transport rejected the message.'
    default_status_code = status.HTTP_502_BAD_GATEWAY


# Code and client-facing message for errors raised by DRF itself
HTTP_ERRORS = {
    400: ('BAD_REQUEST', 'Invalid request. Please check your input.'),
    401: ('UNAUTHORIZED', 'Authentication required.'),
    403: ('FORBIDDEN', 'You do not have permission to perform this action.'),
    404: ('NOT_FOUND', 'The requested resource was not found.'),
    405: ('METHOD_NOT_ALLOWED', 'This method is not allowed.'),
    409: ('CONFLICT', 'Request conflicts with current state.'),
    429: ('RATE_LIMIT_EXCEEDED', 'Too many requests. Please try again later.'),
    503: ('SERVICE_UNAVAILABLE', 'Service temporarily unavailable.'),
}

SECURITY_STATUSES = (401, 403, 429)


def custom_exception_handler(exc, context):
    """
    Render every API error as

        {"success": false, "error": {"code": "...", "message": "..."}}

    Domain errors carry their own code and message. DRF errors are mapped
    through HTTP_ERRORS; internal details never reach the client.
    Denials and throttling are written to the security log.
    """
    request = context.get('request')
    view = context.get('view')

    if isinstance(exc, ReportDeskError):
        status_code, code, message = exc.status_code, exc.code, exc.message
        response = Response(status=status_code)
    else:
        response = exception_handler(exc, context)
        if response is None:
            return None
        status_code = response.status_code
        code, message = HTTP_ERRORS.get(status_code, ('UNKNOWN_ERROR', 'An error occurred.'))
        if status_code == 400:
            message = _validation_message(exc) or message

    if status_code in SECURITY_STATUSES:
        _log_security_event(exc, request, view, status_code)

    response.data = _error_body(code, message)
    return response


def _error_body(code, message):
    return {
        'success': False,
        'error': {
            'code': code,
            'message': message,
        },
    }


def _validation_message(exc):
    """First field error of a validation failure, if there is one."""
    detail = getattr(exc, 'detail', None)
    if isinstance(detail, str):
        return detail
    if isinstance(detail, dict):
        for field, errors in detail.items():
            if isinstance(errors, list) and errors:
                if field in ('detail', 'non_field_errors'):
                    return str(errors[0])
                return f"{field}: {errors[0]}"
    return None


def _log_security_event(exc, request, view, status_code):
    user = getattr(request, 'user', None)
    user_info = str(user.id) if user is not None and user.is_authenticated else 'anonymous'
    view_name = view.__class__.__name__ if view else 'unknown'

    security_logger.warning(
        f"Denied: status={status_code} user={user_info} "
        f"ip={get_client_ip(request)} view={view_name} exception={exc.__class__.__name__}"
    )
