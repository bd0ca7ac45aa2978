"""Shared fixtures for live_chart tests."""

from __future__ import annotations

from collections.abc import AsyncIterator

import pytest

from apps.live_chart import config
from apps.live_chart.core import retry
from apps.live_chart.core.chart_reconciler import ChartReconciler
from apps.live_chart.core.client import BinanceHttpClient
from apps.live_chart.core.notification_state import NotificationState
from apps.live_chart.core.session_controller import SessionController
from libs.common.exceptions import SnapshotFetchError
from tests.apps.live_chart.fakes import NOW_SECONDS, FakeMarketData, RecordingSink


@pytest.fixture(autouse=True)
def _no_retry_sleep(monkeypatch: pytest.MonkeyPatch) -> None:
    async def _sleep(_: float) -> None:
        return None

    monkeypatch.setattr(retry, "_sleep", _sleep)


@pytest.fixture()
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture()
def market_data() -> FakeMarketData:
    return FakeMarketData()


@pytest.fixture()
def reconciler(sink: RecordingSink) -> ChartReconciler:
    return ChartReconciler(sink, marker_shift_ms=2000, clock=lambda: NOW_SECONDS)


@pytest.fixture()
def deal_log() -> list[bool]:
    """Every deal panel visibility published by the controller, in order."""
    return []


@pytest.fixture()
async def controller(
    market_data: FakeMarketData, reconciler: ChartReconciler, deal_log: list[bool]
) -> AsyncIterator[SessionController]:
    ctrl = SessionController(
        "BTCUSDT",
        market_data,
        reconciler,
        NotificationState(),
        on_deal_visibility=deal_log.append,
    )
    try:
        yield ctrl
    finally:
        await ctrl.stop()


@pytest.fixture()
def snapshot_error() -> SnapshotFetchError:
    return SnapshotFetchError("Binance returned HTTP 503", symbol="BTCUSDT")


@pytest.fixture()
async def http_client(monkeypatch: pytest.MonkeyPatch) -> AsyncIterator[BinanceHttpClient]:
    monkeypatch.setattr(config, "BINANCE_REST_URL", "http://testserver")
    client = BinanceHttpClient.get()
    client._http_client = None
    await client.startup()
    try:
        yield client
    finally:
        await client.shutdown()
