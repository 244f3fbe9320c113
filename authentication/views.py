"""
Authentication views for ReportDesk Backend.

Provides REST API endpoints for:
- Registration (role `user`)
- Login (identifier/password)
- Token refresh
- Current user
- Superadmin account management (list users, create admins)
"""

import logging

from rest_framework import status, generics, views
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.throttling import ScopedRateThrottle
from rest_framework_simplejwt.views import TokenRefreshView

from .models import User
from .permissions import IsAuthenticated, IsSuperAdmin
from .serializers import (
    AdminCreateSerializer,
    LoginSerializer,
    RegistrationSerializer,
    UserSerializer,
)

auth_logger = logging.getLogger('reportdesk.auth')


class LoginThrottle(ScopedRateThrottle):
    """Rate limiting for login endpoints."""
    scope = 'login'


class RegisterView(views.APIView):
    """
    Register a reporting user.

    POST /api/v1/auth/register/
    {
        "identifier": "someone@example.com",
        "password": "...",
        "display_name": "optional"
    }
    """

    permission_classes = [AllowAny]
    throttle_classes = [LoginThrottle]

    def post(self, request):
        serializer = RegistrationSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = serializer.save()

        auth_logger.info(f"Registered user {user.id}")
        return Response(UserSerializer(user).data, status=status.HTTP_201_CREATED)


class LoginView(views.APIView):
    """
    Identifier/password login.

    POST /api/v1/auth/login/
    {
        "identifier": "someone@example.com",  // or "email" or "username"
        "password": "..."
    }

    Response:
    {
        "refresh": "jwt_refresh_token",
        "access": "jwt_access_token",
        "user": { ... }
    }
    """

    permission_classes = [AllowAny]
    throttle_classes = [LoginThrottle]

    def post(self, request):
        data = request.data.copy() if hasattr(request.data, 'copy') else dict(request.data)

        # Accept common aliases for the identifier
        if 'identifier' not in data:
            data['identifier'] = data.get('email') or data.get('username') or ''

        serializer = LoginSerializer(data=data, context={'request': request})
        serializer.is_valid(raise_exception=True)
        result = serializer.save()

        auth_logger.info(f"Login success for user {result['user']['id']}")
        return Response(result, status=status.HTTP_200_OK)


class CurrentUserView(views.APIView):
    """
    GET /api/v1/auth/me/
    """

    permission_classes = [IsAuthenticated]

    def get(self, request):
        return Response(UserSerializer(request.user).data)


class UserListView(generics.ListAPIView):
    """
    List accounts.

    GET /api/v1/superadmin/users/

    Query parameters:
    - role: Filter by role
    """

    permission_classes = [IsSuperAdmin]
    serializer_class = UserSerializer

    def get_queryset(self):
        queryset = User.objects.all()

        role = self.request.query_params.get('role')
        if role:
            queryset = queryset.filter(role=role)

        return queryset.order_by('identifier')


class AdminCreateView(views.APIView):
    """
    Create an admin account.

    POST /api/v1/superadmin/admins/
    """

    permission_classes = [IsSuperAdmin]

    def post(self, request):
        serializer = AdminCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        admin_user = serializer.save()

        auth_logger.info(f"Admin {admin_user.id} created by superadmin {request.user.id}")
        return Response(UserSerializer(admin_user).data, status=status.HTTP_201_CREATED)


__all__ = [
    'RegisterView',
    'LoginView',
    'TokenRefreshView',
    'CurrentUserView',
    'UserListView',
    'AdminCreateView',
]
