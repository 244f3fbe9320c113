"""Behavior tests for the report lifecycle engine."""

import itertools
from unittest import mock

import pytest
from django.db import DatabaseError
from django.db.models import F

from authentication.models import UserRole
from core.exceptions import Conflict, Forbidden, InvalidTransition, NotFound, StorageError
from reports.lifecycle import (
    TRANSITION_RULES,
    ReportLifecycleEngine,
    allowed_targets,
    check_transition,
    lifecycle_engine,
)
from reports.models import Report, ReportStatus, ReportStatusHistory
from tests.factories import principal

ALL_STATUSES = [value for value, _ in ReportStatus.CHOICES]
ALL_ROLES = [value for value, _ in UserRole.CHOICES]


# =============================================================================
# PERMISSION TABLE
# =============================================================================

@pytest.mark.parametrize(
    'from_status,to_status,role',
    list(itertools.product(ALL_STATUSES, ALL_STATUSES, ALL_ROLES)),
)
def test_check_transition_follows_table(from_status, to_status, role):
    roles = TRANSITION_RULES.get((from_status, to_status))

    if roles is None:
        with pytest.raises(InvalidTransition):
            check_transition(from_status, to_status, role)
    elif role not in roles:
        with pytest.raises(Forbidden):
            check_transition(from_status, to_status, role)
    else:
        check_transition(from_status, to_status, role)


def test_terminal_states_have_no_outgoing_edges():
    for status in ReportStatus.TERMINAL_STATES:
        assert allowed_targets(status) == []


def test_only_admins_escalate():
    assert TRANSITION_RULES[(ReportStatus.IN_REVIEW, ReportStatus.ESCALATED)] == {UserRole.ADMIN}
    assert TRANSITION_RULES[(ReportStatus.ESCALATED, ReportStatus.RESOLVED)] == {UserRole.SUPERADMIN}


# =============================================================================
# CREATE
# =============================================================================

@pytest.mark.django_db
def test_create_seeds_submitted_without_history(owner):
    report = lifecycle_engine.create(
        principal(owner),
        title='  Pothole  ',
        description='Deep pothole on Elm Street.',
        category='infrastructure',
    )

    assert report.status == ReportStatus.SUBMITTED
    assert report.version == 0
    assert report.title == 'Pothole'
    assert report.owner_id == owner.id
    assert report.assigned_to_id is None
    assert report.history.count() == 0


@pytest.mark.django_db
@pytest.mark.parametrize('fields', [
    {'title': '', 'description': 'text'},
    {'title': 'title', 'description': '   '},
    {'title': 'title', 'description': 'text', 'category': 'nonsense'},
])
def test_create_rejects_invalid_fields(owner, fields):
    with pytest.raises(ValueError):
        lifecycle_engine.create(principal(owner), **fields)

    assert Report.objects.count() == 0


@pytest.mark.django_db
def test_create_storage_failure_surfaces_as_storage_error(owner):
    with mock.patch.object(Report.objects, 'create', side_effect=DatabaseError('disk full')):
        with pytest.raises(StorageError):
            lifecycle_engine.create(principal(owner), title='t', description='d')


# =============================================================================
# TRANSITIONS
# =============================================================================

@pytest.mark.django_db
def test_pick_up_assigns_actor_and_appends_history(report, admin):
    result = lifecycle_engine.request_transition(
        report.id, principal(admin), ReportStatus.IN_REVIEW, reason='Looking into it'
    )

    updated = result.report
    assert updated.status == ReportStatus.IN_REVIEW
    assert updated.assigned_to_id == admin.id
    assert updated.assigned_at is not None
    assert updated.version == 1

    entries = list(updated.history.order_by('sequence'))
    assert len(entries) == 1
    assert entries[0].sequence == 1
    assert entries[0].from_status == ReportStatus.SUBMITTED
    assert entries[0].to_status == ReportStatus.IN_REVIEW
    assert entries[0].changed_by_id == admin.id
    assert entries[0].reason == 'Looking into it'


@pytest.mark.django_db
def test_transition_emits_event_without_recipients(report, admin, owner):
    event = lifecycle_engine.request_transition(
        report.id, principal(admin), ReportStatus.IN_REVIEW
    ).event

    assert event.report_id == report.id
    assert event.transition == (ReportStatus.SUBMITTED, ReportStatus.IN_REVIEW)
    assert event.actor_id == admin.id
    assert event.owner_id == owner.id
    assert event.assigned_to_id == admin.id
    assert event.recipients == ()


@pytest.mark.django_db
def test_terminal_transition_sets_closed_at(in_review_report, admin):
    result = lifecycle_engine.request_transition(
        in_review_report.id, principal(admin), ReportStatus.RESOLVED
    )

    assert result.report.status == ReportStatus.RESOLVED
    assert result.report.closed_at is not None
    assert result.report.is_terminal


@pytest.mark.django_db
def test_user_cannot_pick_up_report(report, owner):
    with pytest.raises(Forbidden):
        lifecycle_engine.request_transition(report.id, principal(owner), ReportStatus.IN_REVIEW)

    report.refresh_from_db()
    assert report.status == ReportStatus.SUBMITTED
    assert report.version == 0
    assert report.history.count() == 0


@pytest.mark.django_db
def test_admin_cannot_resolve_escalated_report(in_review_report, admin):
    lifecycle_engine.request_transition(
        in_review_report.id, principal(admin), ReportStatus.ESCALATED
    )

    with pytest.raises(Forbidden):
        lifecycle_engine.request_transition(
            in_review_report.id, principal(admin), ReportStatus.RESOLVED
        )

    in_review_report.refresh_from_db()
    assert in_review_report.status == ReportStatus.ESCALATED


@pytest.mark.django_db
def test_superadmin_cannot_escalate(in_review_report, superadmin):
    with pytest.raises(Forbidden):
        lifecycle_engine.request_transition(
            in_review_report.id, principal(superadmin), ReportStatus.ESCALATED
        )


@pytest.mark.django_db
def test_missing_edge_reported_before_role(report, owner):
    # A user asking for an edge that does not exist gets InvalidTransition
    with pytest.raises(InvalidTransition):
        lifecycle_engine.request_transition(report.id, principal(owner), ReportStatus.ESCALATED)


@pytest.mark.django_db
def test_self_transition_is_invalid(in_review_report, admin):
    with pytest.raises(InvalidTransition):
        lifecycle_engine.request_transition(
            in_review_report.id, principal(admin), ReportStatus.IN_REVIEW
        )


@pytest.mark.django_db
@pytest.mark.parametrize('terminal', ReportStatus.TERMINAL_STATES)
def test_terminal_reports_reject_every_transition(in_review_report, admin, superadmin, terminal):
    lifecycle_engine.request_transition(in_review_report.id, principal(admin), terminal)
    history_length = in_review_report.history.count()

    for target in ALL_STATUSES:
        for actor in (admin, superadmin):
            with pytest.raises(InvalidTransition):
                lifecycle_engine.request_transition(in_review_report.id, principal(actor), target)

    assert in_review_report.history.count() == history_length


@pytest.mark.django_db
def test_unknown_report_is_not_found(admin):
    with pytest.raises(NotFound):
        lifecycle_engine.request_transition(
            '00000000-0000-0000-0000-000000000000', principal(admin), ReportStatus.IN_REVIEW
        )


@pytest.mark.django_db
def test_malformed_report_id_is_not_found(admin):
    with pytest.raises(NotFound):
        lifecycle_engine.request_transition('not-a-uuid', principal(admin), ReportStatus.IN_REVIEW)


@pytest.mark.django_db
def test_history_failure_rolls_back_status(report, admin):
    with mock.patch.object(
        ReportStatusHistory.objects, 'create', side_effect=DatabaseError('constraint')
    ):
        with pytest.raises(StorageError):
            lifecycle_engine.request_transition(report.id, principal(admin), ReportStatus.IN_REVIEW)

    report.refresh_from_db()
    assert report.status == ReportStatus.SUBMITTED
    assert report.version == 0
    assert report.assigned_to_id is None
    assert report.history.count() == 0


@pytest.mark.django_db
def test_reload_failure_rolls_back_whole_transition(report, admin):
    loaded = Report.objects.get(pk=report.pk)

    with mock.patch.object(
        Report.objects, 'get', side_effect=[loaded, DatabaseError('connection lost')]
    ):
        with pytest.raises(StorageError):
            lifecycle_engine.request_transition(report.id, principal(admin), ReportStatus.IN_REVIEW)

    report.refresh_from_db()
    assert report.status == ReportStatus.SUBMITTED
    assert report.version == 0
    assert report.history.count() == 0


@pytest.mark.django_db
def test_history_replays_to_current_status(report, admin, superadmin):
    lifecycle_engine.request_transition(report.id, principal(admin), ReportStatus.IN_REVIEW)
    lifecycle_engine.request_transition(report.id, principal(admin), ReportStatus.ESCALATED)
    lifecycle_engine.request_transition(report.id, principal(superadmin), ReportStatus.REJECTED)

    report.refresh_from_db()
    assert report.replay_status() == report.status == ReportStatus.REJECTED
    assert list(report.history.values_list('sequence', flat=True)) == [1, 2, 3]
    assert report.version == 3


@pytest.mark.django_db
def test_history_entries_are_append_only(in_review_report):
    entry = in_review_report.history.get()
    entry.reason = 'rewritten'

    with pytest.raises(PermissionError):
        entry.save()
    with pytest.raises(PermissionError):
        entry.delete()


# =============================================================================
# CONCURRENCY
# =============================================================================

def _race(engine, before_commit):
    """Run `before_commit` right before the engine's first commit attempt."""
    original_commit = engine._commit
    state = {'raced': False}

    def racing_commit(*args, **kwargs):
        if not state['raced']:
            state['raced'] = True
            before_commit()
        return original_commit(*args, **kwargs)

    return mock.patch.object(engine, '_commit', side_effect=racing_commit)


@pytest.mark.django_db
def test_concurrent_transitions_exactly_one_wins(report, admin, second_admin):
    engine = ReportLifecycleEngine()

    def competitor():
        lifecycle_engine.request_transition(report.id, principal(second_admin), ReportStatus.REJECTED)

    with _race(engine, competitor):
        with pytest.raises(Conflict):
            engine.request_transition(report.id, principal(admin), ReportStatus.IN_REVIEW)

    report.refresh_from_db()
    assert report.status == ReportStatus.REJECTED
    assert report.history.count() == 1
    assert report.history.get().changed_by_id == second_admin.id


@pytest.mark.django_db
def test_concurrent_identical_transitions_one_conflicts(report, admin, second_admin):
    engine = ReportLifecycleEngine()

    def competitor():
        lifecycle_engine.request_transition(report.id, principal(second_admin), ReportStatus.IN_REVIEW)

    with _race(engine, competitor):
        with pytest.raises(Conflict):
            engine.request_transition(report.id, principal(admin), ReportStatus.IN_REVIEW)

    report.refresh_from_db()
    assert report.assigned_to_id == second_admin.id
    assert report.history.count() == 1


@pytest.mark.django_db
def test_stale_version_with_same_status_is_retried(report, admin):
    engine = ReportLifecycleEngine()

    def bump_version():
        Report.objects.filter(pk=report.pk).update(version=F('version') + 1)

    with _race(engine, bump_version):
        result = engine.request_transition(report.id, principal(admin), ReportStatus.IN_REVIEW)

    assert result.report.status == ReportStatus.IN_REVIEW
    assert result.report.version == 2
    # History numbering follows entries, not the bumped version
    assert list(result.report.history.values_list('sequence', flat=True)) == [1]


@pytest.mark.django_db
def test_second_lost_race_surfaces_conflict(report, admin):
    engine = ReportLifecycleEngine()
    original_commit = engine._commit

    def always_stale(*args, **kwargs):
        Report.objects.filter(pk=report.pk).update(version=F('version') + 1)
        return original_commit(*args, **kwargs)

    with mock.patch.object(engine, '_commit', side_effect=always_stale):
        with pytest.raises(Conflict):
            engine.request_transition(report.id, principal(admin), ReportStatus.IN_REVIEW)

    report.refresh_from_db()
    assert report.status == ReportStatus.SUBMITTED
    assert report.history.count() == 0
