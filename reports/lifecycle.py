"""
Report lifecycle engine.

Owns the report state machine and the role permission matrix. This table is
the only place that decides which role may move a report along which edge:

    submitted -> in_review   admin, superadmin   (assigns the actor)
    submitted -> rejected    admin, superadmin
    in_review -> escalated   admin               (hands off to superadmins)
    in_review -> resolved    admin, superadmin
    in_review -> rejected    admin, superadmin
    escalated -> resolved    superadmin
    escalated -> rejected    superadmin

resolved and rejected are terminal.

Commits are serialized per report with an optimistic version check: the
status update only applies if the version read is still current, and the
history append happens in the same database transaction.

Usage:
    from reports.lifecycle import lifecycle_engine

    report = lifecycle_engine.create(principal, title=..., description=...)
    result = lifecycle_engine.request_transition(report.id, principal, ReportStatus.IN_REVIEW)
    result.report, result.event
"""

import logging
from collections import namedtuple

from django.core.exceptions import ValidationError
from django.db import DatabaseError, transaction
from django.db.models import F
from django.utils import timezone

from authentication.models import UserRole
from core.exceptions import Conflict, Forbidden, InvalidTransition, NotFound, StorageError
from notifications.events import NotificationEvent
from .models import Report, ReportCategory, ReportStatus, ReportStatusHistory

logger = logging.getLogger('reportdesk.lifecycle')


TRANSITION_RULES = {
    (ReportStatus.SUBMITTED, ReportStatus.IN_REVIEW): frozenset([UserRole.ADMIN, UserRole.SUPERADMIN]),
    (ReportStatus.SUBMITTED, ReportStatus.REJECTED): frozenset([UserRole.ADMIN, UserRole.SUPERADMIN]),
    (ReportStatus.IN_REVIEW, ReportStatus.ESCALATED): frozenset([UserRole.ADMIN]),
    (ReportStatus.IN_REVIEW, ReportStatus.RESOLVED): frozenset([UserRole.ADMIN, UserRole.SUPERADMIN]),
    (ReportStatus.IN_REVIEW, ReportStatus.REJECTED): frozenset([UserRole.ADMIN, UserRole.SUPERADMIN]),
    (ReportStatus.ESCALATED, ReportStatus.RESOLVED): frozenset([UserRole.SUPERADMIN]),
    (ReportStatus.ESCALATED, ReportStatus.REJECTED): frozenset([UserRole.SUPERADMIN]),
}

# Edges that make the actor the report's assignee
SELF_ASSIGNING_TRANSITIONS = frozenset([
    (ReportStatus.SUBMITTED, ReportStatus.IN_REVIEW),
])

MAX_COMMIT_ATTEMPTS = 2


TransitionResult = namedtuple('TransitionResult', ['report', 'event'])


class _StaleVersion(Exception):
    """The report changed between read and commit."""


def allowed_targets(from_status):
    """Statuses reachable from `from_status`, in declaration order."""
    return [target for (source, target) in TRANSITION_RULES if source == from_status]


def allowed_roles(from_status, to_status):
    """Roles allowed on an edge; None when the edge does not exist."""
    return TRANSITION_RULES.get((from_status, to_status))


def check_transition(from_status, to_status, role):
    """
    Validate an edge for a role.

    Raises:
        InvalidTransition: no such edge (terminal and self transitions included)
        Forbidden: the edge exists but `role` may not take it
    """
    roles = allowed_roles(from_status, to_status)
    if roles is None:
        raise InvalidTransition(
            f"Cannot move a report from '{from_status}' to '{to_status}'."
        )
    if role not in roles:
        raise Forbidden(
            f"Role '{role}' may not move a report from '{from_status}' to '{to_status}'."
        )


class ReportLifecycleEngine:
    """
    Enforces the state machine over the report store.

    Actors are Principal values (id, role); the engine never looks at
    credentials.
    """

    def create(self, owner, title, description, category=ReportCategory.GENERAL, location=''):
        """
        File a new report for `owner`.

        Not a transition: no role check, no history entry, status=submitted.

        Raises:
            ValueError: missing title/description or unknown category
            StorageError: the database rejected the write
        """
        title = (title or '').strip()
        description = (description or '').strip()
        if not title:
            raise ValueError('title is required')
        if not description:
            raise ValueError('description is required')
        if category not in dict(ReportCategory.CHOICES):
            raise ValueError(f"unknown category: {category}")

        try:
            report = Report.objects.create(
                owner_id=owner.id,
                title=title,
                description=description,
                category=category,
                location=(location or '').strip(),
                status=ReportStatus.INITIAL,
            )
        except DatabaseError as exc:
            logger.error(f"Report creation failed for owner {owner.id}: {exc}")
            raise StorageError() from exc

        logger.info(f"Report {report.id} filed by {owner.id}")
        return report

    def request_transition(self, report_id, actor, target_status, reason=''):
        """
        Move a report to `target_status` on behalf of `actor`.

        Returns:
            TransitionResult(report, event) where event has no recipients yet

        Raises:
            NotFound, InvalidTransition, Forbidden, Conflict, StorageError
        """
        report = self._load(report_id)
        source_status = report.status

        for attempt in range(1, MAX_COMMIT_ATTEMPTS + 1):
            check_transition(report.status, target_status, actor.role)

            try:
                return self._commit(report, actor, target_status, reason)
            except _StaleVersion:
                logger.info(
                    f"Report {report_id} changed during transition "
                    f"{source_status}->{target_status} (attempt {attempt})"
                )

            report = self._load(report_id)
            if report.status != source_status:
                raise Conflict(
                    f"Report is now '{report.status}'; it was '{source_status}' when this change was requested."
                )

        raise Conflict()

    def _load(self, report_id):
        try:
            return Report.objects.get(pk=report_id)
        except (Report.DoesNotExist, ValueError, ValidationError) as exc:
            raise NotFound('Report not found.') from exc
        except DatabaseError as exc:
            raise StorageError() from exc

    def _commit(self, report, actor, target_status, reason):
        """
        Apply one transition atomically.

        The version-guarded update and the history append commit together or
        not at all; the event is only built once both are durable.
        """
        now = timezone.now()
        from_status = report.status
        edge = (from_status, target_status)

        changes = {
            'status': target_status,
            'version': F('version') + 1,
            'updated_at': now,
        }
        assigned_to_id = report.assigned_to_id
        if edge in SELF_ASSIGNING_TRANSITIONS:
            assigned_to_id = actor.id
            changes['assigned_to_id'] = actor.id
            changes['assigned_at'] = now
        if target_status in ReportStatus.TERMINAL_STATES:
            changes['closed_at'] = now

        try:
            with transaction.atomic():
                updated = Report.objects.filter(
                    pk=report.pk,
                    version=report.version,
                ).update(**changes)
                if not updated:
                    raise _StaleVersion()

                # The version guard holds the row, so counting is race free
                sequence = ReportStatusHistory.all_objects.filter(report_id=report.pk).count() + 1
                ReportStatusHistory.objects.create(
                    report_id=report.pk,
                    sequence=sequence,
                    from_status=from_status,
                    to_status=target_status,
                    changed_by_id=actor.id,
                    changed_at=now,
                    reason=reason or '',
                )

                committed = Report.objects.get(pk=report.pk)
        except DatabaseError as exc:
            logger.error(f"Transition {from_status}->{target_status} on {report.pk} failed: {exc}")
            raise StorageError() from exc

        logger.info(
            f"Report {report.pk} {from_status}->{target_status} by {actor.role} {actor.id}"
        )

        event = NotificationEvent(
            report_id=committed.pk,
            from_status=from_status,
            to_status=target_status,
            actor_id=actor.id,
            owner_id=committed.owner_id,
            assigned_to_id=assigned_to_id,
            timestamp=now,
            reason=reason or '',
        )
        return TransitionResult(committed, event)


lifecycle_engine = ReportLifecycleEngine()
