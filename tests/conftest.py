"""
Test configuration for Google Drive cleaner tests.

This module keeps the API rate limiter from sleeping and isolates tests from
settings files and environment variables of the machine running them.
"""

from unittest.mock import patch

import pytest


@pytest.fixture(autouse=True)
def no_rate_limit_sleep():
    """Make rate limiting waits instant."""
    with patch("throttle_utils.time.sleep") as mock_sleep:
        yield mock_sleep


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch, tmp_path):
    """Point the settings lookup at an empty directory and clear overrides."""
    for name in (
        "DRIVE_CLEANER_SETTINGS",
        "GOOGLE_SERVICE_ACCOUNT_KEY_PATH",
        "DRIVE_CLEANER_FOLDERS",
        "LOG_LEVEL",
        "LOG_DIR",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("DRIVE_CLEANER_SETTINGS", str(tmp_path / "missing-appsettings.json"))
    yield
