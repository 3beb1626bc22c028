"""Tests for the development-only auth event inspection endpoint."""
from datetime import datetime, timedelta

import pytest

from auth_service.config import settings
from auth_service.models import AuthEvent
from conftest import ensure_user


@pytest.fixture
def dev_mode(monkeypatch):
    monkeypatch.setattr(settings, "DEV_MODE", True)


def _seed_events(db, user):
    base = datetime.utcnow()
    for i, event_type in enumerate(["register", "login_failure", "login_success"]):
        db.add(AuthEvent(
            user_id=user["id"],
            username=user["username"],
            event_type=event_type,
            ip_address="127.0.0.1",
            timestamp=base + timedelta(seconds=i),
        ))
    db.commit()


def test_event_logs_hidden_without_dev_mode(client):
    response = client.get("/dev/event-logs")
    assert response.status_code == 404


def test_event_logs_newest_first(client, db, dev_mode):
    user = ensure_user()
    _seed_events(db, user)

    response = client.get("/dev/event-logs")
    assert response.status_code == 200
    events = response.json()
    assert [e["event_type"] for e in events] == ["login_success", "login_failure", "register"]
    assert events[0]["username"] == user["username"]
    assert events[0]["metadata"] == {}


def test_event_logs_filters(client, db, dev_mode):
    user = ensure_user()
    other = ensure_user(username="other", email="other@example.com")
    _seed_events(db, user)
    _seed_events(db, other)

    by_type = client.get("/dev/event-logs", params={"event_type": "login_failure"}).json()
    assert len(by_type) == 2
    assert all(e["event_type"] == "login_failure" for e in by_type)

    by_user = client.get("/dev/event-logs", params={"user_id": other["id"]}).json()
    assert len(by_user) == 3
    assert all(e["user_id"] == other["id"] for e in by_user)

    limited = client.get("/dev/event-logs", params={"limit": 2}).json()
    assert len(limited) == 2


def test_event_logs_limit_cap(client, dev_mode):
    response = client.get("/dev/event-logs", params={"limit": 1001})
    assert response.status_code == 400


@pytest.mark.parametrize("limit", [0, -1])
def test_event_logs_rejects_non_positive_limit(client, db, dev_mode, limit):
    user = ensure_user()
    _seed_events(db, user)

    response = client.get("/dev/event-logs", params={"limit": limit})
    assert response.status_code == 400
