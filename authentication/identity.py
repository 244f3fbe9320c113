"""
Identity & role context.

Resolves a credential (an authenticated request user or a raw JWT access
token) to exactly one Principal. Everything downstream consumes only the
principal's id and role and performs no further credential checks.
"""

import logging
from collections import namedtuple

from rest_framework_simplejwt.exceptions import TokenError
from rest_framework_simplejwt.settings import api_settings
from rest_framework_simplejwt.tokens import AccessToken

from core.exceptions import Unauthenticated
from .models import User

security_logger = logging.getLogger('reportdesk.security')


class Principal(namedtuple('Principal', ['id', 'role'])):
    """An authenticated actor with exactly one role."""

    __slots__ = ()

    @classmethod
    def from_user(cls, user):
        return cls(id=user.id, role=user.role)


def principal_from_user(user):
    """
    Resolve a request user to a Principal.

    Raises:
        Unauthenticated: anonymous or deactivated account
    """
    if user is None or not user.is_authenticated or not user.is_active:
        raise Unauthenticated()
    return Principal.from_user(user)


def resolve_token(raw_token):
    """
    Resolve a raw JWT access token to a Principal.

    Used by the websocket handshake, where no DRF authentication runs.

    Raises:
        Unauthenticated: missing, invalid or expired token, or unknown user
    """
    if not raw_token:
        raise Unauthenticated()

    try:
        token = AccessToken(raw_token)
    except TokenError as exc:
        security_logger.info(f"Rejected websocket token: {exc}")
        raise Unauthenticated('Invalid or expired token.') from exc

    user_id = token.get(api_settings.USER_ID_CLAIM)
    if user_id is None:
        raise Unauthenticated('Token carries no user.')

    try:
        user = User.objects.get(**{api_settings.USER_ID_FIELD: user_id})
    except User.DoesNotExist as exc:
        security_logger.warning(f"Token for unknown user: {user_id}")
        raise Unauthenticated() from exc

    return principal_from_user(user)
