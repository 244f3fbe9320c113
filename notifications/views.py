"""
Notification views for ReportDesk Backend.

Provides API endpoints for:
- List own notifications (cursor paginated, newest first)
- Get notification detail
- Acknowledge (mark read) a notification
- Mark all as read
- Get unread count
"""

from rest_framework import generics, views
from rest_framework.pagination import CursorPagination
from rest_framework.response import Response

from authentication.permissions import IsAuthenticated
from core.exceptions import NotFound
from .models import Notification
from .serializers import NotificationListSerializer, NotificationSerializer
from .services import NotificationService


class NotificationCursorPagination(CursorPagination):
    page_size = 20
    max_page_size = 100
    page_size_query_param = 'page_size'
    ordering = '-created_at'


class NotificationListView(generics.ListAPIView):
    """
    List notifications for the authenticated user.

    GET /api/v1/notifications/

    Query parameters:
    - is_read: Filter by read status (true/false)
    - type: Filter by notification type
    - cursor: Opaque cursor from the previous page

    Returns: Cursor-paginated list of notifications, newest first.
    """

    permission_classes = [IsAuthenticated]
    serializer_class = NotificationListSerializer
    pagination_class = NotificationCursorPagination
    filter_backends = []

    def get_queryset(self):
        user = self.request.user
        queryset = Notification.objects.filter(recipient=user)

        is_read = self.request.query_params.get('is_read')
        if is_read is not None:
            queryset = queryset.filter(is_read=is_read.lower() == 'true')

        notification_type = self.request.query_params.get('type')
        if notification_type:
            queryset = queryset.filter(notification_type=notification_type)

        return queryset


class NotificationDetailView(generics.RetrieveAPIView):
    """
    Get a single notification detail.

    GET /api/v1/notifications/{id}/

    User can only view their own notifications.
    """

    permission_classes = [IsAuthenticated]
    serializer_class = NotificationSerializer

    def get_queryset(self):
        return Notification.objects.filter(recipient=self.request.user)


class AcknowledgeNotificationView(views.APIView):
    """
    Acknowledge a notification (mark it read).

    POST /api/v1/notifications/{id}/ack/

    Acknowledging twice is harmless; the first read timestamp is kept.
    """

    permission_classes = [IsAuthenticated]

    def post(self, request, pk):
        NotificationService.inbox.mark_read(pk, recipient_id=request.user.id)

        try:
            notification = Notification.objects.get(id=pk, recipient=request.user)
        except Notification.DoesNotExist:
            raise NotFound('Notification not found.')

        return Response({
            'id': str(notification.id),
            'is_read': notification.is_read,
            'read_at': notification.read_at.isoformat() if notification.read_at else None,
        })


class MarkAllReadView(views.APIView):
    """
    Mark all notifications as read for the authenticated user.

    POST /api/v1/notifications/read-all/
    """

    permission_classes = [IsAuthenticated]

    def post(self, request):
        count = NotificationService.mark_all_read(request.user)

        return Response({
            'message': f'Marked {count} notifications as read.',
            'count': count,
        })


class UnreadCountView(views.APIView):
    """
    Get count of unread notifications.

    GET /api/v1/notifications/unread-count/
    """

    permission_classes = [IsAuthenticated]

    def get(self, request):
        count = NotificationService.get_unread_count(request.user)

        return Response({
            'unread_count': count,
        })
