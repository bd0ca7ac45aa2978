"""Tests for the /healthz liveness endpoint."""

from __future__ import annotations

import asyncio

import pytest
from nicegui import app
from starlette.testclient import TestClient

from apps.live_chart.core.client_lifecycle import ClientLifecycleManager
from apps.live_chart.core.health import setup_health_endpoint

setup_health_endpoint()
client = TestClient(app)


@pytest.fixture(autouse=True)
def _reset_singleton() -> None:
    ClientLifecycleManager._instance = None


def test_liveness_check() -> None:
    response = client.get("/healthz")
    assert response.status_code == 200
    payload = response.json()
    assert payload["status"] == "ok"
    assert payload["service"] == "live_chart"
    assert payload["active_sessions"] == 0


def test_liveness_reports_registered_sessions() -> None:
    manager = ClientLifecycleManager.get()
    asyncio.run(manager.register_session("s1"))
    asyncio.run(manager.register_session("s2"))

    response = client.get("/healthz")

    assert response.json()["active_sessions"] == 2


def test_setup_is_idempotent() -> None:
    setup_health_endpoint()
    routes = [route for route in app.routes if getattr(route, "path", None) == "/healthz"]
    assert len(routes) == 1
