"""
Domain events emitted by the report lifecycle.

A NotificationEvent is a plain value: the lifecycle engine produces it with
no recipients, the router fills them in, and nothing keeps a reference back
to the engine.
"""

import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Optional, Tuple


@dataclass(frozen=True)
class NotificationEvent:
    report_id: uuid.UUID
    from_status: str
    to_status: str
    actor_id: uuid.UUID
    owner_id: uuid.UUID
    assigned_to_id: Optional[uuid.UUID]
    timestamp: datetime
    reason: str = ''
    recipients: Tuple[uuid.UUID, ...] = ()
    id: uuid.UUID = field(default_factory=uuid.uuid4)

    @property
    def transition(self):
        return (self.from_status, self.to_status)

    def with_recipients(self, recipients):
        return replace(self, recipients=tuple(recipients))

    def as_payload(self):
        """JSON-safe representation stored on every notification record."""
        return {
            'event_id': str(self.id),
            'report_id': str(self.report_id),
            'from_status': self.from_status,
            'to_status': self.to_status,
            'actor_id': str(self.actor_id),
            'timestamp': self.timestamp.isoformat(),
            'reason': self.reason,
        }
