"""
Custom JWT authentication backend for ReportDesk.

Extends SimpleJWT authentication with an account status check so that a
deactivated account cannot keep using tokens issued before deactivation.
"""

import logging

from rest_framework_simplejwt.authentication import JWTAuthentication
from rest_framework_simplejwt.exceptions import InvalidToken

from core.utils import get_client_ip

security_logger = logging.getLogger('reportdesk.security')


class ActiveUserJWTAuthentication(JWTAuthentication):
    """
    Bearer token authentication that only accepts active accounts.

    Every request must include:
    - Authorization: Bearer <token>
    """

    def authenticate(self, request):
        result = super().authenticate(request)

        if result is None:
            return None

        user, validated_token = result

        if not user.is_active or user.is_deleted:
            security_logger.warning(
                f"Inactive user attempted access: {user.id} from {get_client_ip(request)}"
            )
            raise InvalidToken({
                'detail': 'Your account is not active.',
                'code': 'account_inactive'
            })

        return (user, validated_token)

