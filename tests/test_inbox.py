"""Durable inbox behavior: idempotent enqueue, catch-up order, delivery and read marks."""

import uuid
from datetime import timedelta
from unittest import mock

import pytest
from django.db import DatabaseError
from django.utils import timezone

from core.exceptions import StorageError
from notifications.inbox import NotificationInbox
from notifications.models import Notification, NotificationType
from tests.factories import make_notification

pytestmark = pytest.mark.django_db


@pytest.fixture
def inbox():
    return NotificationInbox()


def _unsaved(recipient, **extra):
    fields = {
        'id': uuid.uuid4(),
        'recipient_id': recipient.id,
        'notification_type': NotificationType.REPORT_RESOLVED,
        'title': 'Report resolved',
        'message': 'Status changed from In Review to Resolved.',
        'payload': {'to_status': 'resolved'},
    }
    fields.update(extra)
    return Notification(**fields)


def test_enqueue_is_idempotent_on_id(inbox, owner):
    record = _unsaved(owner)

    first = inbox.enqueue(record)
    second = inbox.enqueue(_unsaved(owner, id=record.id, title='Changed'))

    assert first.pk == second.pk == record.id
    assert Notification.objects.filter(recipient=owner).count() == 1
    assert Notification.objects.get(pk=record.id).title == 'Report resolved'


def test_enqueue_keeps_delivery_state(inbox, owner):
    record = inbox.enqueue(_unsaved(owner))
    inbox.mark_delivered(record.id)

    inbox.enqueue(_unsaved(owner, id=record.id))

    assert inbox.is_delivered(record.id)
    assert inbox.list_undelivered(owner.id) == []


def test_list_undelivered_oldest_first(inbox, owner, other_user):
    now = timezone.now()
    newest = make_notification(owner, created_at=now)
    oldest = make_notification(owner, created_at=now - timedelta(minutes=10))
    middle = make_notification(owner, created_at=now - timedelta(minutes=5))
    delivered = make_notification(owner, created_at=now - timedelta(minutes=20))
    make_notification(other_user, created_at=now - timedelta(minutes=30))
    inbox.mark_delivered(delivered.id)

    pending = inbox.list_undelivered(owner.id)

    assert [record.id for record in pending] == [oldest.id, middle.id, newest.id]


def test_mark_delivered_only_once(inbox, owner):
    record = make_notification(owner)
    first_time = timezone.now() + timedelta(seconds=1)

    assert inbox.mark_delivered(record.id, first_time) is True
    assert inbox.mark_delivered(record.id, first_time + timedelta(minutes=1)) is False

    record.refresh_from_db()
    assert record.delivered_at == first_time


def test_mark_delivered_never_precedes_creation(inbox, owner):
    created = timezone.now()
    record = make_notification(owner, created_at=created)

    inbox.mark_delivered(record.id, created - timedelta(hours=1))

    record.refresh_from_db()
    assert record.delivered_at == created


def test_mark_read_restricted_to_recipient(inbox, owner, other_user):
    record = make_notification(owner)

    assert inbox.mark_read(record.id, recipient_id=other_user.id) is False
    record.refresh_from_db()
    assert record.is_read is False

    assert inbox.mark_read(record.id, recipient_id=owner.id) is True
    assert inbox.mark_read(record.id, recipient_id=owner.id) is False
    record.refresh_from_db()
    assert record.is_read is True
    assert record.read_at is not None


def test_mark_read_does_not_touch_delivery(inbox, owner):
    record = make_notification(owner)

    inbox.mark_read(record.id)

    assert not inbox.is_delivered(record.id)
    assert [r.id for r in inbox.list_undelivered(owner.id)] == [record.id]


def test_unread_count_and_mark_all_read(inbox, owner, other_user):
    make_notification(owner)
    make_notification(owner)
    make_notification(other_user)

    assert inbox.unread_count(owner.id) == 2
    assert inbox.mark_all_read(owner.id) == 2
    assert inbox.unread_count(owner.id) == 0
    assert inbox.unread_count(other_user.id) == 1


def test_storage_failures_surface_as_storage_error(inbox, owner):
    record = _unsaved(owner)

    with mock.patch.object(
        Notification.all_objects, 'get_or_create', side_effect=DatabaseError('down')
    ):
        with pytest.raises(StorageError):
            inbox.enqueue(record)

    with mock.patch.object(Notification.objects, 'filter', side_effect=DatabaseError('down')):
        with pytest.raises(StorageError):
            inbox.list_undelivered(owner.id)
        with pytest.raises(StorageError):
            inbox.unread_count(owner.id)


def test_notifications_cannot_be_deleted(owner):
    record = make_notification(owner)

    with pytest.raises(PermissionError):
        record.delete()
