"""Module import order.

DRF resolves the authentication backends while importing its views, so
modules on that path must load no matter which app is imported first.
Each case runs in a fresh interpreter to get a cold import cache.
"""

import os
import subprocess
import sys
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).resolve().parent.parent


@pytest.mark.parametrize('first_import', [
    'core.exceptions',
    'realtime.delivery',
    'authentication.backends',
    'reportdesk_backend.urls',
])
def test_url_configuration_loads_after(first_import):
    script = (
        'import django; django.setup(); '
        f'import {first_import}; '
        'import reportdesk_backend.urls; '
        'import reportdesk_backend.asgi'
    )
    env = {**os.environ, 'DJANGO_SETTINGS_MODULE': 'reportdesk_backend.settings'}

    completed = subprocess.run(
        [sys.executable, '-c', script],
        cwd=PROJECT_ROOT,
        env=env,
        capture_output=True,
        text=True,
        timeout=60,
    )

    assert completed.returncode == 0, completed.stderr
