"""HTTP surface: reports, transitions, inbox, staff queues and the end-to-end scenarios."""

from datetime import timedelta
from unittest import mock

import pytest
from django.urls import reverse
from django.utils import timezone

from core.exceptions import Conflict, StorageError
from notifications.inbox import notification_inbox
from notifications.models import Notification, NotificationType
from notifications.services import NotificationService
from realtime.delivery import delivery_channel
from reports.lifecycle import lifecycle_engine
from reports.models import Report, ReportStatus
from tests.factories import FakeHandle, client_for, make_notification, principal

pytestmark = pytest.mark.django_db


def _transition(user, report, target, **extra):
    return client_for(user).post(
        reverse('reports:transition', args=[report.id]),
        {'target_status': target, **extra},
        format='json',
    )


# =============================================================================
# REPORTS
# =============================================================================

def test_create_report(owner):
    response = client_for(owner).post(
        reverse('reports:list-create'),
        {
            'title': 'Graffiti on library wall',
            'description': 'Fresh graffiti on the east wall.',
            'category': 'environmental',
        },
        format='json',
    )

    assert response.status_code == 201
    assert response.data['status'] == ReportStatus.SUBMITTED
    assert response.data['history'] == []
    assert str(response.data['owner']) == str(owner.id)


def test_create_report_validation_error(owner):
    response = client_for(owner).post(
        reverse('reports:list-create'),
        {'title': '', 'description': 'no title'},
        format='json',
    )

    assert response.status_code == 400
    assert response.data['success'] is False
    assert response.data['error']['code'] == 'BAD_REQUEST'
    assert Report.objects.count() == 0


def test_create_report_requires_authentication(api_client):
    response = api_client.post(
        reverse('reports:list-create'),
        {'title': 't', 'description': 'd'},
        format='json',
    )

    assert response.status_code == 401


def test_status_cannot_be_set_on_create(owner):
    response = client_for(owner).post(
        reverse('reports:list-create'),
        {'title': 't', 'description': 'd', 'status': ReportStatus.RESOLVED},
        format='json',
    )

    assert response.status_code == 201
    assert response.data['status'] == ReportStatus.SUBMITTED


def test_users_list_only_their_reports(owner, other_user, admin, report):
    client_for(other_user).post(
        reverse('reports:list-create'),
        {'title': 'Noise', 'description': 'Loud music at night.'},
        format='json',
    )

    own = client_for(owner).get(reverse('reports:list-create'))
    staff = client_for(admin).get(reverse('reports:list-create'))

    assert [item['id'] for item in own.data['results']] == [str(report.id)]
    assert staff.data['count'] == 2


def test_report_detail_visibility(owner, other_user, admin, report):
    url = reverse('reports:detail', args=[report.id])

    assert client_for(owner).get(url).status_code == 200
    assert client_for(admin).get(url).status_code == 200
    assert client_for(other_user).get(url).status_code == 403


# =============================================================================
# TRANSITIONS
# =============================================================================

def test_transition_returns_updated_report(report, admin):
    response = _transition(admin, report, ReportStatus.IN_REVIEW, reason='On it')

    assert response.status_code == 200
    assert response.data['status'] == ReportStatus.IN_REVIEW
    assert str(response.data['assigned_to']) == str(admin.id)
    assert response.data['version'] == 1
    assert response.data['history'][0]['reason'] == 'On it'


def test_transition_accepts_camel_case_target(report, admin):
    response = client_for(admin).post(
        reverse('reports:transition', args=[report.id]),
        {'targetStatus': ReportStatus.REJECTED},
        format='json',
    )

    assert response.status_code == 200
    assert response.data['status'] == ReportStatus.REJECTED


def test_transition_forbidden_for_user(report, owner):
    response = _transition(owner, report, ReportStatus.IN_REVIEW)

    assert response.status_code == 403
    assert response.data['error']['code'] == 'FORBIDDEN'


def test_transition_unknown_report(admin):
    response = client_for(admin).post(
        reverse('reports:transition', args=['00000000-0000-0000-0000-000000000000']),
        {'target_status': ReportStatus.IN_REVIEW},
        format='json',
    )

    assert response.status_code == 404
    assert response.data['error']['code'] == 'NOT_FOUND'


def test_transition_unknown_status_is_bad_request(report, admin):
    response = _transition(admin, report, 'archived')

    assert response.status_code == 400


def test_transition_conflict_is_409(report, admin):
    with mock.patch(
        'reports.views.lifecycle_engine.request_transition',
        side_effect=Conflict(),
    ):
        response = _transition(admin, report, ReportStatus.IN_REVIEW)

    assert response.status_code == 409
    assert response.data['error']['code'] == 'CONFLICT'


def test_dispatch_failure_does_not_fail_transition(report, admin):
    with mock.patch.object(NotificationService.inbox, 'enqueue', side_effect=StorageError()):
        response = _transition(admin, report, ReportStatus.IN_REVIEW)

    assert response.status_code == 200
    report.refresh_from_db()
    assert report.status == ReportStatus.IN_REVIEW
    assert Notification.objects.count() == 0


# =============================================================================
# SCENARIOS
# =============================================================================

def test_scenario_pick_up_reaches_live_owner(report, owner, admin):
    handle = FakeHandle()
    delivery_channel.connect(owner.id, handle)

    response = _transition(admin, report, ReportStatus.IN_REVIEW)

    assert response.status_code == 200
    records = list(Notification.objects.filter(recipient=owner))
    assert len(records) == 1
    assert records[0].notification_type == NotificationType.REPORT_IN_REVIEW
    assert records[0].delivered_at is not None
    assert handle.notification_ids == [str(records[0].id)]
    assert not Notification.objects.filter(recipient=admin).exists()


def test_scenario_escalation_reaches_offline_superadmins(
    in_review_report, admin, superadmin, second_superadmin
):
    response = _transition(admin, in_review_report, ReportStatus.ESCALATED)

    assert response.status_code == 200
    for member in (superadmin, second_superadmin):
        records = Notification.objects.filter(recipient=member)
        assert records.count() == 1
        assert records.get().delivered_at is None


def test_scenario_offline_owner_catches_up_once(report, owner, admin):
    _transition(admin, report, ReportStatus.IN_REVIEW)
    _transition(admin, report, ReportStatus.RESOLVED)
    pending = notification_inbox.list_undelivered(owner.id)
    assert len(pending) == 2  # picked up, then resolved
    assert pending[0].created_at <= pending[1].created_at

    handle = FakeHandle()
    assert delivery_channel.connect(owner.id, handle) == 2
    assert handle.notification_ids == [str(record.id) for record in pending]
    delivery_channel.disconnect(owner.id, handle)

    again = FakeHandle()
    assert delivery_channel.connect(owner.id, again) == 0
    assert again.sent == []


def test_scenario_terminal_transition_rejected(in_review_report, admin):
    _transition(admin, in_review_report, ReportStatus.RESOLVED)
    history_length = in_review_report.history.count()

    response = _transition(admin, in_review_report, ReportStatus.RESOLVED)

    assert response.status_code == 409
    assert response.data['error']['code'] == 'INVALID_TRANSITION'
    assert in_review_report.history.count() == history_length


# =============================================================================
# NOTIFICATIONS
# =============================================================================

def test_notification_list_is_own_and_newest_first(owner, other_user):
    now = timezone.now()
    older = make_notification(owner, created_at=now - timedelta(minutes=1))
    newer = make_notification(owner, created_at=now)
    make_notification(other_user)

    response = client_for(owner).get(reverse('notifications:list'))

    assert response.status_code == 200
    assert [item['id'] for item in response.data['results']] == [str(newer.id), str(older.id)]
    assert 'next' in response.data


def test_notification_list_filters(owner):
    read = make_notification(owner)
    unread = make_notification(owner, notification_type=NotificationType.REPORT_ESCALATED)
    notification_inbox.mark_read(read.id)

    client = client_for(owner)
    unread_only = client.get(reverse('notifications:list'), {'is_read': 'false'})
    escalated = client.get(reverse('notifications:list'), {'type': NotificationType.REPORT_ESCALATED})

    assert [item['id'] for item in unread_only.data['results']] == [str(unread.id)]
    assert [item['id'] for item in escalated.data['results']] == [str(unread.id)]


def test_notification_list_cursor_pagination(owner):
    for _ in range(25):
        make_notification(owner)

    client = client_for(owner)
    first = client.get(reverse('notifications:list'))
    second = client.get(first.data['next'])

    assert len(first.data['results']) == 20
    assert len(second.data['results']) == 5
    assert not {i['id'] for i in first.data['results']} & {i['id'] for i in second.data['results']}


def test_ack_marks_read(owner):
    record = make_notification(owner)

    response = client_for(owner).post(reverse('notifications:ack', args=[record.id]))

    assert response.status_code == 200
    assert response.data['is_read'] is True
    record.refresh_from_db()
    assert record.is_read
    assert record.delivered_at is None


def test_ack_other_users_notification_is_not_found(owner, other_user):
    record = make_notification(owner)

    response = client_for(other_user).post(reverse('notifications:ack', args=[record.id]))

    assert response.status_code == 404
    record.refresh_from_db()
    assert not record.is_read


def test_unread_count_and_read_all(owner):
    make_notification(owner)
    make_notification(owner)
    client = client_for(owner)

    assert client.get(reverse('notifications:unread-count')).data == {'unread_count': 2}
    assert client.post(reverse('notifications:read-all')).data['count'] == 2
    assert client.get(reverse('notifications:unread-count')).data == {'unread_count': 0}


def test_notification_detail(owner, other_user):
    record = make_notification(owner)
    url = reverse('notifications:detail', args=[record.id])

    assert client_for(owner).get(url).data['id'] == str(record.id)
    assert client_for(other_user).get(url).status_code == 404


# =============================================================================
# STAFF QUEUES
# =============================================================================

def test_admin_queue_lists_unassigned_submissions(report, in_review_report, owner, admin):
    waiting = lifecycle_engine.create(principal(owner), title='Leak', description='Water main leak.')

    response = client_for(admin).get(reverse('staff:queue'))

    assert response.status_code == 200
    assert [item['id'] for item in response.data['results']] == [str(waiting.id)]


def test_assigned_list_shows_callers_open_reports(in_review_report, admin, second_admin):
    mine = client_for(admin).get(reverse('staff:assigned'))
    theirs = client_for(second_admin).get(reverse('staff:assigned'))

    assert [item['id'] for item in mine.data['results']] == [str(in_review_report.id)]
    assert theirs.data['results'] == []


def test_staff_queues_reject_users(owner):
    assert client_for(owner).get(reverse('staff:queue')).status_code == 403


def test_escalated_pool_is_superadmin_only(in_review_report, admin, superadmin):
    _transition(admin, in_review_report, ReportStatus.ESCALATED)

    pool = client_for(superadmin).get(reverse('superadmin:escalated'))

    assert [item['id'] for item in pool.data['results']] == [str(in_review_report.id)]
    assert client_for(admin).get(reverse('superadmin:escalated')).status_code == 403
