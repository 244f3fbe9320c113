"""
Notification router.

Turns a lifecycle event into its recipient set and one inbox record per
recipient. Recipient rules:

- the report owner, always
- the assignee, when there is one
- every active superadmin, when the report enters `escalated`
- never the actor, unless the actor is the only candidate left
"""

import logging
import uuid

from authentication.models import User, UserRole
from reports.models import ReportStatus
from .models import Notification, NotificationType

logger = logging.getLogger('reportdesk.notifications')


TITLES = {
    ReportStatus.IN_REVIEW: 'Report under review',
    ReportStatus.ESCALATED: 'Report escalated',
    ReportStatus.RESOLVED: 'Report resolved',
    ReportStatus.REJECTED: 'Report rejected',
}


class NotificationRouter:

    def superadmin_pool(self):
        """Ids of every active superadmin, ordered for determinism."""
        ids = User.objects.filter(
            role=UserRole.SUPERADMIN,
            is_active=True,
        ).values_list('id', flat=True)
        return sorted(ids, key=str)

    def recipients_for(self, event):
        candidates = [event.owner_id]

        if event.assigned_to_id is not None:
            candidates.append(event.assigned_to_id)

        if event.to_status == ReportStatus.ESCALATED:
            candidates.extend(self.superadmin_pool())

        ordered = []
        for principal_id in candidates:
            if principal_id not in ordered:
                ordered.append(principal_id)

        recipients = [principal_id for principal_id in ordered if principal_id != event.actor_id]
        if not recipients:
            # Actor is the only interested party, e.g. staff handling their own report
            recipients = [event.actor_id]

        return tuple(recipients)

    def route(self, event):
        """Return a copy of `event` with its recipients filled in."""
        routed = event.with_recipients(self.recipients_for(event))
        logger.debug(
            f"Event {event.id} on report {event.report_id} routed to {len(routed.recipients)} recipient(s)"
        )
        return routed

    def build_records(self, event):
        """
        One unsaved Notification per recipient.

        Record ids derive from (event id, recipient) so enqueueing the same
        record twice is a no-op.
        """
        if not event.recipients:
            event = self.route(event)

        title = TITLES.get(event.to_status, 'Report updated')
        message = self._message(event)
        payload = event.as_payload()

        return [
            Notification(
                id=uuid.uuid5(event.id, str(recipient_id)),
                recipient_id=recipient_id,
                report_id=event.report_id,
                notification_type=NotificationType.for_status(event.to_status),
                title=title,
                message=message,
                payload=payload,
            )
            for recipient_id in event.recipients
        ]

    def _message(self, event):
        from_label = dict(ReportStatus.CHOICES).get(event.from_status, event.from_status)
        to_label = dict(ReportStatus.CHOICES).get(event.to_status, event.to_status)
        message = f"Status changed from {from_label} to {to_label}."
        if event.reason:
            message += f"\n\nNote: {event.reason}"
        return message
