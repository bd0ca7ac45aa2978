"""Health endpoint registration for NiceGUI app."""

from __future__ import annotations

from typing import Any

from nicegui import app

from apps.live_chart import config
from apps.live_chart.core.client_lifecycle import ClientLifecycleManager

_registered = False


def setup_health_endpoint() -> None:
    """Register the /healthz endpoint on the FastAPI app once."""
    global _registered
    if _registered:
        return
    _registered = True

    @app.get("/healthz")
    async def _health() -> dict[str, Any]:
        sessions = await ClientLifecycleManager.get().active_session_count()
        return {"status": "ok", "service": config.SERVICE_NAME, "active_sessions": sessions}
