"""
tests/test_health.py -- Integration tests for GET /api/health and GET /api/hello.

Covers:
  - 200 response with status, version, and components fields
  - components.database reflects store.ping()
  - No authentication required
"""

from __future__ import annotations


def test_health_returns_200_with_components(api_client):
    """Health endpoint returns 200 with status, version, and components."""
    resp = api_client.get("/api/health")
    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] in ("healthy", "degraded")
    assert "version" in data
    assert data["components"]["app"] == "ok"
    assert data["components"]["database"] in ("ok", "error")


def test_health_reports_database_error_when_ping_fails(api_client, store, monkeypatch):
    """A store that cannot be reached degrades health but does not fail it."""
    monkeypatch.setattr(store, "ping", lambda: False)
    resp = api_client.get("/api/health")
    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "degraded"
    assert data["components"]["database"] == "error"


def test_hello_no_auth_required(api_client):
    resp = api_client.get("/api/hello", headers={})
    assert resp.status_code == 200
    assert resp.json() == {"ok": True, "message": "Backend working!"}
