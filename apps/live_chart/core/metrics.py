"""Prometheus metrics for the live chart dashboard."""

from __future__ import annotations

import functools
import time
from collections.abc import Awaitable, Callable
from typing import ParamSpec, TypeVar

from nicegui import app
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Gauge, Histogram, generate_latest
from starlette.responses import Response

P = ParamSpec("P")
T = TypeVar("T")

active_sessions = Gauge(
    "live_chart_active_sessions",
    "Dashboard sessions with a running controller",
)

snapshot_fetch_total = Counter(
    "live_chart_snapshot_fetch_total",
    "Initial snapshot fetches by outcome",
    ["outcome"],
)

snapshot_fetch_seconds = Histogram(
    "live_chart_snapshot_fetch_seconds",
    "Initial snapshot fetch latency",
    buckets=[0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
)

stream_points_total = Counter(
    "live_chart_stream_points_total",
    "Data points received from the push stream",
)

stream_errors_total = Counter(
    "live_chart_stream_errors_total",
    "Terminal push stream errors",
)

notifications_shown_total = Counter(
    "live_chart_notifications_shown_total",
    "Notifications shown to the user by kind",
    ["kind"],
)

connectivity_transitions_total = Counter(
    "live_chart_connectivity_transitions_total",
    "Browser connectivity signals by state",
    ["state"],
)

markers_added_total = Counter(
    "live_chart_markers_added_total",
    "Buy/sell markers added by the user",
    ["side"],
)

_endpoint_registered = False


def setup_metrics_endpoint() -> None:
    """Register the /metrics endpoint once per process."""
    global _endpoint_registered
    if _endpoint_registered:
        return
    _endpoint_registered = True

    @app.get("/metrics")
    async def _metrics() -> Response:
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)


def time_snapshot_fetch(func: Callable[P, Awaitable[T]]) -> Callable[P, Awaitable[T]]:
    """Decorator recording snapshot fetch latency, successful or not."""

    @functools.wraps(func)
    async def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
        start = time.perf_counter()
        try:
            return await func(*args, **kwargs)
        finally:
            snapshot_fetch_seconds.observe(time.perf_counter() - start)

    return wrapper


__all__ = [
    "active_sessions",
    "connectivity_transitions_total",
    "markers_added_total",
    "notifications_shown_total",
    "setup_metrics_endpoint",
    "snapshot_fetch_seconds",
    "snapshot_fetch_total",
    "stream_errors_total",
    "stream_points_total",
    "time_snapshot_fetch",
]
