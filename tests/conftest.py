"""Shared fixtures for ReportDesk tests.

- Accounts for every role
- Reports in their early states
- Inline notification pushes so delivery is observable synchronously
"""

import pytest
from django.core.cache import cache
from rest_framework.test import APIClient

from authentication.models import User
from realtime.delivery import delivery_channel
from reports.lifecycle import lifecycle_engine
from reports.models import ReportStatus
from tests.factories import principal


@pytest.fixture(autouse=True)
def _isolate(settings):
    """Fresh throttle counters, inline pushes, empty connection map."""
    cache.clear()
    settings.NOTIFICATIONS = {**settings.NOTIFICATIONS, 'INLINE_PUSH': True}
    yield
    delivery_channel.shutdown()


@pytest.fixture
def owner(db):
    return User.objects.create_user('owner@example.com', 'Owner-Passw0rd!', display_name='Owner')


@pytest.fixture
def other_user(db):
    return User.objects.create_user('other@example.com', 'Other-Passw0rd!')


@pytest.fixture
def admin(db):
    return User.objects.create_admin('admin@example.com', 'Admin-Passw0rd!', display_name='Admin')


@pytest.fixture
def second_admin(db):
    return User.objects.create_admin('admin2@example.com', 'Admin2-Passw0rd!')


@pytest.fixture
def superadmin(db):
    return User.objects.create_superadmin('root@example.com', 'Root-Passw0rd!')


@pytest.fixture
def second_superadmin(db):
    return User.objects.create_superadmin('root2@example.com', 'Root2-Passw0rd!')


@pytest.fixture
def report(owner):
    return lifecycle_engine.create(
        principal(owner),
        title='Broken streetlight',
        description='The light at the corner of 5th and Main is out.',
    )


@pytest.fixture
def in_review_report(report, admin):
    return lifecycle_engine.request_transition(
        report.id, principal(admin), ReportStatus.IN_REVIEW
    ).report


@pytest.fixture
def api_client():
    return APIClient()
