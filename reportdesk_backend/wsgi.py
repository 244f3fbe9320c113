"""
WSGI config for ReportDesk Backend.

HTTP only; websocket delivery needs the ASGI application.
"""

import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'reportdesk_backend.settings')

application = get_wsgi_application()
