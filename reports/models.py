"""
Report models for ReportDesk Backend.

Contains:
- Report: a complaint/incident filed by a user
- ReportStatusHistory: append-only record of every status change

Status changes go through reports.lifecycle only. The `version` column is
the optimistic concurrency token the engine compares on every commit.
"""

from django.db import models
from django.utils import timezone

from core.models import BaseModel


class ReportStatus:
    """Report lifecycle status constants."""

    SUBMITTED = 'submitted'
    IN_REVIEW = 'in_review'
    ESCALATED = 'escalated'
    RESOLVED = 'resolved'
    REJECTED = 'rejected'

    CHOICES = [
        (SUBMITTED, 'Submitted'),
        (IN_REVIEW, 'In Review'),
        (ESCALATED, 'Escalated'),
        (RESOLVED, 'Resolved'),
        (REJECTED, 'Rejected'),
    ]

    INITIAL = SUBMITTED

    # Terminal states (no further status changes)
    TERMINAL_STATES = [RESOLVED, REJECTED]

    # States still waiting on staff
    OPEN_STATES = [SUBMITTED, IN_REVIEW, ESCALATED]


class ReportCategory:
    """Report category constants."""
    GENERAL = 'general'
    PUBLIC_SAFETY = 'public_safety'
    INFRASTRUCTURE = 'infrastructure'
    ENVIRONMENTAL = 'environmental'
    SERVICE = 'service'
    HARASSMENT = 'harassment'
    OTHER = 'other'

    CHOICES = [
        (GENERAL, 'General'),
        (PUBLIC_SAFETY, 'Public Safety'),
        (INFRASTRUCTURE, 'Infrastructure'),
        (ENVIRONMENTAL, 'Environmental'),
        (SERVICE, 'Service Complaint'),
        (HARASSMENT, 'Harassment'),
        (OTHER, 'Other'),
    ]


class Report(BaseModel):
    """
    A complaint or incident filed by a principal.

    Created with status=submitted and an empty history. Never physically
    deleted: resolved and rejected reports are retained for audit.
    """

    owner = models.ForeignKey(
        'authentication.User',
        on_delete=models.PROTECT,
        related_name='reports',
        help_text="Principal who filed the report"
    )

    title = models.CharField(
        max_length=200,
        help_text="Short summary of the report"
    )

    description = models.TextField(
        help_text="Full description"
    )

    category = models.CharField(
        max_length=30,
        choices=ReportCategory.CHOICES,
        default=ReportCategory.GENERAL,
        db_index=True,
    )

    location = models.CharField(
        max_length=255,
        blank=True,
        help_text="Optional free-text location"
    )

    status = models.CharField(
        max_length=20,
        choices=ReportStatus.CHOICES,
        default=ReportStatus.INITIAL,
        db_index=True,
        editable=False,
        help_text="Current lifecycle status"
    )

    assigned_to = models.ForeignKey(
        'authentication.User',
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='assigned_reports',
        help_text="Admin or superadmin currently handling the report"
    )

    assigned_at = models.DateTimeField(
        null=True,
        blank=True,
    )

    closed_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="When the report reached a terminal status"
    )

    version = models.PositiveIntegerField(
        default=0,
        editable=False,
        help_text="Incremented on every committed transition"
    )

    class Meta:
        db_table = 'reports'
        verbose_name = 'Report'
        verbose_name_plural = 'Reports'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['owner', '-created_at'], name='reports_owner_created_idx'),
            models.Index(fields=['assigned_to', 'status'], name='reports_assignee_status_idx'),
        ]

    def __str__(self):
        return f"{self.title} ({self.status})"

    @property
    def is_terminal(self):
        return self.status in ReportStatus.TERMINAL_STATES

    def replay_status(self):
        """Rebuild the current status from the history, oldest first."""
        current = ReportStatus.INITIAL
        for entry in self.history.order_by('sequence'):
            if entry.from_status != current:
                raise ValueError(
                    f"History of report {self.pk} breaks at sequence {entry.sequence}"
                )
            current = entry.to_status
        return current


class ReportStatusHistory(BaseModel):
    """
    Track all status changes for a report.

    Append-only; `sequence` numbers the entries of one report 1, 2, 3...
    without gaps, so (report, sequence) is unique and entries replay in order.
    """

    report = models.ForeignKey(
        Report,
        on_delete=models.PROTECT,
        related_name='history'
    )

    sequence = models.PositiveIntegerField(
        help_text="Position in the report's history, starting at 1"
    )

    from_status = models.CharField(
        max_length=20,
        choices=ReportStatus.CHOICES,
    )

    to_status = models.CharField(
        max_length=20,
        choices=ReportStatus.CHOICES,
    )

    changed_by = models.ForeignKey(
        'authentication.User',
        on_delete=models.PROTECT,
        related_name='report_status_changes',
        help_text="Principal who performed the transition"
    )

    changed_at = models.DateTimeField(
        default=timezone.now,
    )

    reason = models.TextField(
        blank=True,
        help_text="Optional note attached to the transition"
    )

    class Meta:
        db_table = 'report_status_history'
        verbose_name = 'Report Status History'
        verbose_name_plural = 'Report Status Histories'
        ordering = ['report', 'sequence']
        constraints = [
            models.UniqueConstraint(
                fields=['report', 'sequence'],
                name='unique_report_history_sequence',
            ),
        ]

    def __str__(self):
        return f"{self.report_id} #{self.sequence}: {self.from_status} -> {self.to_status}"

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise PermissionError("Report history entries are append-only.")
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise PermissionError("Report history entries cannot be deleted.")
