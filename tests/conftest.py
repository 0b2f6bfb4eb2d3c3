"""Pytest configuration and shared fixtures for logsift tests.

This module provides auto-use fixtures that ensure test isolation from
the LOGSIFT_* environment of the developer running the tests.
"""

import os

import pytest


@pytest.fixture(autouse=True)
def isolate_environment(monkeypatch):
    """Auto-use fixture removing every LOGSIFT_* variable for each test.

    This ensures:
    - Defaults (threshold, context, workers) are the documented ones
    - Progress display and debug logging are off unless a test enables them
    """
    for key in list(os.environ):
        if key.startswith('LOGSIFT_'):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv('LOGSIFT_MAX_WORKERS', '2')


@pytest.fixture
def baseline_lines():
    """Lines of a normal run."""
    return [
        '2024-01-01 10:00:00 INFO Starting service worker-1',
        '2024-01-01 10:00:01 INFO Connected to database at 10.0.0.1',
        '2024-01-01 10:00:02 INFO Processing request 42 took 12ms',
        '2024-01-01 10:00:03 INFO Processing request 43 took 15ms',
        '2024-01-01 10:00:04 INFO Stopping service worker-1',
    ]


@pytest.fixture
def write_log(tmp_path):
    """Return a helper writing lines to a file under tmp_path."""

    def _write(name: str, lines: list[str]) -> str:
        path = tmp_path / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(''.join(f'{line}\n' for line in lines))
        return str(path)

    return _write
