"""Repo-wide test fixtures.

Snapshots and restores console environment variables between tests so a
test that points RAGCONSOLE_HOME somewhere else cannot leak into the next.
"""

from __future__ import annotations

import os

import pytest

_SENSITIVE_ENV_VARS = [
    "RAGCONSOLE_API_BASE",
    "RAGCONSOLE_TIMEOUT",
    "RAGCONSOLE_HOME",
    "RAGCONSOLE_LOG_FORMAT",
    "RAGCONSOLE_CONFIG_PATH",
]


@pytest.fixture(autouse=True)
def _restore_env():
    """Snapshot console env vars before each test and restore after."""
    snapshot = {}
    for var in _SENSITIVE_ENV_VARS:
        val = os.environ.get(var)
        if val is not None:
            snapshot[var] = val

    yield

    for var in _SENSITIVE_ENV_VARS:
        if var in snapshot:
            os.environ[var] = snapshot[var]
        else:
            os.environ.pop(var, None)
