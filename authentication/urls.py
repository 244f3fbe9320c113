"""
URL configuration for ReportDesk Authentication API.

All authentication endpoints are under /api/v1/auth/
"""

from django.urls import path
from .views import (
    RegisterView,
    LoginView,
    TokenRefreshView,
    CurrentUserView,
)

app_name = 'authentication'

urlpatterns = [
    path('register/', RegisterView.as_view(), name='register'),
    path('login/', LoginView.as_view(), name='login'),

    # Token management
    path('token/refresh/', TokenRefreshView.as_view(), name='token-refresh'),

    # Current user
    path('me/', CurrentUserView.as_view(), name='current-user'),
]
