"""
Report views for ReportDesk Backend.

Provides REST API endpoints for:
- Report creation (any authenticated principal)
- Report listing (own reports for users, everything for staff)
- Report detail with history
- Status transitions (admins/superadmins, gated by the lifecycle table)
- Admin queues and the superadmin escalation pool

Every transition is followed by notification dispatch; dispatch problems
are logged and never fail the request.
"""

from rest_framework import generics, status, views
from rest_framework.exceptions import ValidationError
from rest_framework.response import Response

from authentication.identity import principal_from_user
from authentication.permissions import (
    CanViewReport,
    IsAuthenticated,
    IsReportStaff,
    IsSuperAdmin,
)
from core.exceptions import NotFound
from notifications.services import NotificationService
from .lifecycle import lifecycle_engine
from .models import Report, ReportStatus
from .serializers import (
    ReportCreateSerializer,
    ReportDetailSerializer,
    ReportListSerializer,
    ReportTransitionSerializer,
)


class ReportListCreateView(generics.ListAPIView):
    """
    GET  /api/v1/reports/   list reports visible to the caller
    POST /api/v1/reports/   file a report

    POST body:
    {
        "title": "Broken streetlight",
        "description": "The light at the corner has been out for a week.",
        "category": "infrastructure",
        "location": "5th and Main"   (optional)
    }

    Query parameters (GET):
    - status: Filter by status
    - category: Filter by category
    """

    permission_classes = [IsAuthenticated]
    serializer_class = ReportListSerializer

    def get_queryset(self):
        user = self.request.user
        queryset = Report.objects.all()

        if not user.is_report_staff:
            queryset = queryset.filter(owner=user)

        status_filter = self.request.query_params.get('status')
        if status_filter:
            queryset = queryset.filter(status=status_filter)

        category_filter = self.request.query_params.get('category')
        if category_filter:
            queryset = queryset.filter(category=category_filter)

        return queryset.order_by('-created_at')

    def post(self, request):
        serializer = ReportCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            report = lifecycle_engine.create(
                principal_from_user(request.user),
                **serializer.validated_data
            )
        except ValueError as exc:
            raise ValidationError({"detail": str(exc)})

        return Response(
            ReportDetailSerializer(report).data,
            status=status.HTTP_201_CREATED
        )


class ReportDetailView(views.APIView):
    """
    GET /api/v1/reports/{report_id}/

    Owners see their own reports; staff see all.
    """

    permission_classes = [IsAuthenticated, CanViewReport]

    def get(self, request, report_id):
        try:
            report = Report.objects.get(id=report_id)
        except Report.DoesNotExist:
            raise NotFound('Report not found.')

        self.check_object_permissions(request, report)
        return Response(ReportDetailSerializer(report).data)


class ReportTransitionView(views.APIView):
    """
    Move a report to a new status.

    POST /api/v1/reports/{report_id}/transition/
    {
        "target_status": "in_review",   // or "targetStatus"
        "reason": "optional note"
    }

    Responses:
    - 200 updated report
    - 403 role not allowed on this edge
    - 404 unknown report
    - 409 no such edge from the current status, or lost a concurrent update
    """

    permission_classes = [IsAuthenticated]

    def post(self, request, report_id):
        serializer = ReportTransitionSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = lifecycle_engine.request_transition(
            report_id,
            principal_from_user(request.user),
            serializer.validated_data['target_status'],
            reason=serializer.validated_data['reason'],
        )

        NotificationService.dispatch_safely(result.event)

        return Response(ReportDetailSerializer(result.report).data)


# =============================================================================
# STAFF QUEUES
# =============================================================================

class AdminQueueView(generics.ListAPIView):
    """
    Submitted reports nobody has picked up yet.

    GET /api/v1/admin/reports/queue/
    """

    permission_classes = [IsReportStaff]
    serializer_class = ReportListSerializer

    def get_queryset(self):
        return Report.objects.filter(
            status=ReportStatus.SUBMITTED,
            assigned_to__isnull=True,
        ).order_by('created_at')


class AssignedReportListView(generics.ListAPIView):
    """
    Open reports assigned to the caller.

    GET /api/v1/admin/reports/assigned/
    """

    permission_classes = [IsReportStaff]
    serializer_class = ReportListSerializer

    def get_queryset(self):
        return Report.objects.filter(
            assigned_to=self.request.user,
            status__in=ReportStatus.OPEN_STATES,
        ).order_by('-updated_at')


class EscalatedReportListView(generics.ListAPIView):
    """
    The superadmin escalation pool.

    GET /api/v1/superadmin/reports/escalated/
    """

    permission_classes = [IsSuperAdmin]
    serializer_class = ReportListSerializer

    def get_queryset(self):
        return Report.objects.filter(
            status=ReportStatus.ESCALATED,
        ).order_by('updated_at')
