"""
Shared fixtures for the analytics engine tests
"""

from datetime import datetime, timedelta

import pytest

from app import create_app
from config.settings import AnalyticsSettings
from utils.analytics_store import AnalyticsStore


class FakeClock:
    """Controllable clock handed to the analytics store."""

    def __init__(self, start: datetime):
        self.current = start

    def __call__(self) -> datetime:
        return self.current

    def advance(self, **kwargs):
        self.current += timedelta(**kwargs)
        return self.current


@pytest.fixture
def clock():
    """Clock frozen at a fixed instant until advanced."""
    return FakeClock(datetime(2024, 1, 15, 12, 0, 0))


@pytest.fixture
def settings():
    """Default analytics settings."""
    return AnalyticsSettings()


@pytest.fixture
def store(settings, clock):
    """Empty analytics store driven by the fake clock."""
    return AnalyticsStore(settings, clock)


@pytest.fixture
def app(store):
    """Create and configure a test app instance."""
    return create_app('testing', store=store)


@pytest.fixture
def client(app):
    """A test client for the app."""
    return app.test_client()
