import pytest
from fastapi.testclient import TestClient

from loginguard.auth.login_tracker import LoginAttemptTracker, TrackerConfig
from loginguard.config import get_settings
from loginguard.core.metrics import MetricsRegistry

START = 1_700_000_000.0


class FakeClock:
    """Manually advanced epoch clock."""

    def __init__(self, now: float = START):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def registry():
    return MetricsRegistry()


@pytest.fixture
def tracker(clock, registry):
    return LoginAttemptTracker(TrackerConfig(), clock=clock, registry=registry)


@pytest.fixture
def settings_env(monkeypatch):
    """Isolate settings from the developer's environment and .env file."""
    monkeypatch.setenv("ADMIN_TOKEN", "")
    monkeypatch.setenv("ENVIRONMENT", "development")
    monkeypatch.setenv("CLEANUP_INTERVAL_SECONDS", "3600")
    get_settings.cache_clear()
    yield monkeypatch
    get_settings.cache_clear()


@pytest.fixture
def client(settings_env, tracker):
    from loginguard.main import create_app

    app = create_app()
    app.state.login_tracker = tracker
    with TestClient(app) as test_client:
        yield test_client
