"""Tests for process bootstrap: liveness, mounting, middleware and port selection."""
import pytest
from sqlalchemy import create_engine
from sqlalchemy.exc import OperationalError

import auth_service.__main__ as entrypoint
import auth_service.db as db_module
import auth_service.main as main_module
from auth_service.config import Settings, settings


def test_root_returns_liveness_text(client):
    response = client.get("/")
    assert response.status_code == 200
    assert response.text == "✅ Auth Service Running"
    assert response.headers["content-type"].startswith("text/plain")


def test_auth_routes_only_under_versioned_prefix(client):
    payload = {"email": "nobody@example.com", "password": "whatever123"}
    assert client.post("/login", json=payload).status_code == 404
    assert client.post("/api/v1/auth/login", json=payload).status_code == 401


def test_cors_preflight_from_any_origin(client):
    response = client.options(
        "/api/v1/auth/login",
        headers={
            "Origin": "http://example.org",
            "Access-Control-Request-Method": "POST",
            "Access-Control-Request-Headers": "content-type",
        },
    )
    assert response.status_code == 200
    assert response.headers["access-control-allow-origin"] in ("*", "http://example.org")


def test_malformed_json_body_is_rejected(client):
    response = client.post(
        "/api/v1/auth/login",
        content="{not json",
        headers={"Content-Type": "application/json"},
    )
    assert response.status_code == 422


def test_default_port(monkeypatch):
    monkeypatch.delenv("PORT", raising=False)
    assert Settings(_env_file=None).PORT == 5001


def test_port_from_environment(monkeypatch):
    monkeypatch.setenv("PORT", "8123")
    assert Settings(_env_file=None).PORT == 8123


def test_run_listens_on_configured_port(monkeypatch):
    calls = {}

    def fake_run(app, **kwargs):
        calls["app"] = app
        calls.update(kwargs)

    monkeypatch.setattr(entrypoint.uvicorn, "run", fake_run)
    monkeypatch.setattr(settings, "PORT", 6060)

    entrypoint.run()

    assert calls["app"] is main_module.app
    assert calls["port"] == 6060
    assert calls["host"] == settings.HOST


def test_startup_connects_database_once(monkeypatch):
    from fastapi.testclient import TestClient

    calls = []
    monkeypatch.setattr(main_module, "connect_db", lambda: calls.append(True))

    with TestClient(main_module.app) as c:
        assert c.get("/").status_code == 200
        assert c.get("/").status_code == 200

    assert calls == [True]


def test_connect_db_raises_when_database_unreachable(monkeypatch, tmp_path):
    missing = tmp_path / "missing" / "dir" / "auth.db"
    bad_engine = create_engine(f"sqlite:///{missing}")
    monkeypatch.setattr(db_module, "engine", bad_engine)

    with pytest.raises(OperationalError):
        db_module.connect_db()
