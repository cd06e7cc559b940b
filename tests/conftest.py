import os
import time
from unittest.mock import MagicMock, patch

os.environ.setdefault("AUTHMON_AUTH_KEY", "test_key")
os.environ.setdefault("AUTHMON_DATABASE_URL", "sqlite://")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session

from authmon.api.main import app, get_config, get_session
from authmon.config import ServiceConfig
from authmon.db import init_db, make_engine
from authmon.detection.classify import LastSeenTracker
from authmon.runtime.ratelimit import FixedWindowRateLimiter
from authmon.runtime.state import STATE

SINK_URL = "https://channel.example.com/webhooks/abc123"


def settings(**overrides):
    """Valid settings with sane defaults, in the integration's snake_case shape."""
    s = {
        "auth_key": "test_key",
        "alert_threshold": 5,
        "time_window": 15,
        "alert_severity": "High",
        "alert_admins": ["DevOps-Lead"],
        "monitored_events": ["failed_login"],
    }
    s.update(overrides)
    return s


def payload(event_type="failed_login", **extra):
    p = {
        "userId": "test123",
        "timestamp": int(time.time() * 1000),
        "ipAddress": "192.168.1.1",
        "eventType": event_type,
        "success": False,
        "attempts": 1,
    }
    p.update(extra)
    return p


def webhook_body(event_type="failed_login", payload_extra=None, **settings_overrides):
    settings_overrides.setdefault("monitored_events", [event_type])
    return {
        "event_type": event_type,
        "payload": payload(event_type, **(payload_extra or {})),
        "settings": settings(**settings_overrides),
    }


@pytest.fixture
def engine():
    eng = make_engine("sqlite://", poolclass=StaticPool)
    init_db(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def config():
    return ServiceConfig(database_url="sqlite://", webhook_url=SINK_URL, auth_key="test_key")


@pytest.fixture
def fresh_state():
    STATE.limiter = FixedWindowRateLimiter(window_ms=60_000, max_requests=1000)
    STATE.last_seen = LastSeenTracker()
    yield STATE
    STATE.limiter = None
    STATE.last_seen = LastSeenTracker()


@pytest.fixture
def client(engine, config, fresh_state):
    def _session():
        with Session(engine) as s:
            yield s

    app.dependency_overrides[get_session] = _session
    app.dependency_overrides[get_config] = lambda: config
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def sink():
    """Stand-in for the notification channel; accepts every alert with 202."""
    with patch("authmon.alerts.dispatch.requests.post") as post:
        post.return_value = MagicMock(status_code=202)
        yield post
