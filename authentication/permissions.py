"""
Custom permissions for ReportDesk Backend.

Route-level role gates:
- user: files reports, sees own reports and notifications
- admin: triage queue and assigned reports
- superadmin: escalation pool and admin account management

Which role may move a report along which edge is NOT decided here; that
lives in the single permission table of reports.lifecycle.
"""

from rest_framework import permissions


class IsAuthenticated(permissions.IsAuthenticated):
    """
    Extended IsAuthenticated that also checks account status.
    """

    def has_permission(self, request, view):
        if not super().has_permission(request, view):
            return False

        return request.user.is_active


class IsReportStaff(permissions.BasePermission):
    """
    Permission for admins and superadmins.
    """

    message = "This action requires admin access."

    def has_permission(self, request, view):
        if not request.user.is_authenticated or not request.user.is_active:
            return False

        return request.user.is_report_staff


class IsSuperAdmin(permissions.BasePermission):
    """
    Permission for superadmins only.

    Superadmins:
    - work the escalation pool
    - create admin accounts
    - see all accounts
    """

    message = "This action requires superadmin access."

    def has_permission(self, request, view):
        if not request.user.is_authenticated or not request.user.is_active:
            return False

        return request.user.is_superadmin


class CanViewReport(permissions.BasePermission):
    """
    Object-level permission for viewing a specific report.

    Rules:
    - Owners can view their own reports
    - Admins and superadmins can view all reports
    """

    message = "You do not have permission to view this report."

    def has_object_permission(self, request, view, obj):
        user = request.user

        if user.is_report_staff:
            return True

        return obj.owner_id == user.id
