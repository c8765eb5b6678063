"""
Pytest configuration and fixtures.

This file provides pytest-specific configuration and fixtures.
For shared profile builders, see tests/fixtures/profile_fixtures.py
"""

from datetime import date, datetime

import pytest

from core.config_loader import AppConfig
from tests.fixtures.profile_fixtures import (
    FIXED_NOW,
    FIXED_TODAY,
    make_frontend_candidate,
    make_frontend_job,
)


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line(
        "markers", "redis: marks tests as requiring a live Redis (deselect with '-m \"not redis\"')"
    )
    config.addinivalue_line(
        "markers", "slow: marks tests that wait on real timers"
    )


@pytest.fixture
def fixed_now() -> datetime:
    return FIXED_NOW


@pytest.fixture
def fixed_today() -> date:
    return FIXED_TODAY


@pytest.fixture
def app_config() -> AppConfig:
    return AppConfig()


@pytest.fixture
def frontend_candidate():
    return make_frontend_candidate()


@pytest.fixture
def frontend_job():
    return make_frontend_job()
