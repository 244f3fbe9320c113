"""
URL configuration for ReportDesk Backend.

API Structure:
- /api/v1/auth/           - Authentication endpoints
- /api/v1/reports/        - Report filing, listing and transitions
- /api/v1/admin/          - Admin queues
- /api/v1/superadmin/     - Escalation pool and account management
- /api/v1/notifications/  - Notification inbox
- /ws/notifications/      - Realtime delivery (ASGI websocket, see asgi.py)
- /admin/                 - Django admin (restricted)
"""

from django.contrib import admin
from django.http import JsonResponse
from django.urls import include, path

from reports.staff_urls import admin_urlpatterns, superadmin_urlpatterns


def health_check(request):
    """Health check endpoint for load balancers."""
    return JsonResponse({
        'status': 'healthy',
        'service': 'reportdesk-backend'
    })


def api_root(request):
    """API root endpoint with version info."""
    return JsonResponse({
        'name': 'ReportDesk API',
        'version': 'v1',
        'endpoints': {
            'auth': '/api/v1/auth/',
            'reports': '/api/v1/reports/',
            'admin': '/api/v1/admin/',
            'superadmin': '/api/v1/superadmin/',
            'notifications': '/api/v1/notifications/',
            'realtime': '/ws/notifications/',
        }
    })


urlpatterns = [
    # Health check (public)
    path('health/', health_check, name='health-check'),

    # API root
    path('api/v1/', api_root, name='api-root'),

    # Authentication endpoints
    path('api/v1/auth/', include('authentication.urls', namespace='auth')),

    # Report endpoints
    path('api/v1/reports/', include('reports.urls', namespace='reports')),

    # Staff endpoints
    path('api/v1/admin/', include(admin_urlpatterns, namespace='staff')),
    path('api/v1/superadmin/', include(superadmin_urlpatterns, namespace='superadmin')),

    # Notification endpoints
    path('api/v1/notifications/', include('notifications.urls', namespace='notifications')),

    # Django admin (restricted access)
    path('admin/', admin.site.urls),
]
