"""Tests for PriceChart rendering commands and data formatting."""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from apps.live_chart.components import price_chart
from apps.live_chart.components.price_chart import PriceChart, line_data, marker_data
from apps.live_chart.core.models import DataPoint, MarkerPoint, SeriesCollection
from apps.live_chart.ui import lightweight_charts
from apps.live_chart.ui.lightweight_charts import LightweightChartsLoader
from tests.apps.live_chart.components.ui_test_utils import DummyUI, FakeClient

SERIES = SeriesCollection(
    primary=[DataPoint(x=1_700_000_000_000, y=35000.0), DataPoint(x=1_700_000_001_000, y=35001.0)]
)


@pytest.fixture()
def dummy_ui(monkeypatch: pytest.MonkeyPatch) -> DummyUI:
    ui = DummyUI()
    monkeypatch.setattr(price_chart, "ui", ui)
    return ui


@pytest.fixture()
def loaded(monkeypatch: pytest.MonkeyPatch) -> AsyncMock:
    loader = AsyncMock()
    monkeypatch.setattr(LightweightChartsLoader, "ensure_loaded", loader)
    return loader


@pytest.fixture()
def client() -> FakeClient:
    return FakeClient()


async def _mounted_chart(client: FakeClient) -> PriceChart:
    chart = PriceChart(client, title="BTC/USDT")  # type: ignore[arg-type]
    await chart.mount()
    client.scripts.clear()
    return chart


class TestFormatting:
    def test_line_data_collapses_to_one_value_per_second(self) -> None:
        points = [
            DataPoint(x=2_500, y=3.0),
            DataPoint(x=1_100, y=1.0),
            DataPoint(x=1_900, y=2.0),
        ]

        assert line_data(points) == [{"time": 1, "value": 2.0}, {"time": 2, "value": 3.0}]

    def test_marker_data_uses_side_style(self) -> None:
        [buy] = marker_data("buy", [MarkerPoint(x=5_000)])
        [sell] = marker_data("sell", [MarkerPoint(x=6_000)])

        assert buy["time"] == 5
        assert buy["shape"] == "arrowUp"
        assert sell["time"] == 6
        assert sell["position"] == "aboveBar"


class TestPriceChart:
    def test_create_renders_container(self, dummy_ui: DummyUI, client: FakeClient) -> None:
        chart = PriceChart(client, title="BTC/USDT", height=300)  # type: ignore[arg-type]

        chart.create()

        assert dummy_ui.labels[0].text == "BTC/USDT"
        assert "height:300px" in dummy_ui.html_blocks[0]

    @pytest.mark.asyncio()
    async def test_initialize_before_mount_is_rendered_on_mount(
        self, client: FakeClient, loaded: AsyncMock
    ) -> None:
        chart = PriceChart(client, title="BTC/USDT")  # type: ignore[arg-type]

        chart.initialize(SERIES)
        chart.append_point(DataPoint(x=1_700_000_002_000, y=1.0))
        assert client.scripts == []

        await chart.mount()

        assert chart.ready is True
        assert len(client.scripts) == 2
        assert "createChart" in client.scripts[0]
        assert '"time": 1700000000' in client.scripts[1]
        assert "setData" in client.scripts[1]

    @pytest.mark.asyncio()
    async def test_append_point_sends_incremental_update(
        self, client: FakeClient, loaded: AsyncMock
    ) -> None:
        chart = await _mounted_chart(client)

        chart.append_point(DataPoint(x=1_700_000_002_000, y=35002.0))

        assert len(client.scripts) == 1
        assert "lineSeries.update" in client.scripts[0]
        assert "setData" not in client.scripts[0]

    @pytest.mark.asyncio()
    async def test_append_marker_pushes_to_its_series(
        self, client: FakeClient, loaded: AsyncMock
    ) -> None:
        chart = await _mounted_chart(client)

        chart.append_marker("sell", MarkerPoint(x=1_700_000_000_000), SERIES)

        assert "sellMarkers.push" in client.scripts[0]
        assert "setMarkers" in client.scripts[0]

    @pytest.mark.asyncio()
    async def test_disposed_chart_sends_nothing(
        self, client: FakeClient, loaded: AsyncMock
    ) -> None:
        chart = await _mounted_chart(client)

        chart.dispose()
        chart.initialize(SERIES)
        chart.refresh_markers(SERIES)

        assert client.scripts == []

    @pytest.mark.asyncio()
    async def test_javascript_failure_is_swallowed(
        self, client: FakeClient, loaded: AsyncMock
    ) -> None:
        chart = await _mounted_chart(client)
        client.fail = True

        chart.append_point(DataPoint(x=1, y=1.0))

    @pytest.mark.asyncio()
    async def test_library_unavailable_leaves_chart_unmounted(
        self, client: FakeClient, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setattr(
            LightweightChartsLoader,
            "ensure_loaded",
            AsyncMock(side_effect=RuntimeError("Failed to load Lightweight Charts library")),
        )
        chart = PriceChart(client, title="BTC/USDT")  # type: ignore[arg-type]

        await chart.mount()

        assert chart.ready is False
        assert client.scripts == []


class TestLightweightChartsLoader:
    @pytest.fixture(autouse=True)
    def _reset_loader(self) -> None:
        LightweightChartsLoader.reset()

    @pytest.mark.asyncio()
    async def test_loads_once_per_client(self, client: FakeClient) -> None:
        await LightweightChartsLoader.ensure_loaded(client)  # type: ignore[arg-type]
        sent = len(client.scripts)

        await LightweightChartsLoader.ensure_loaded(client)  # type: ignore[arg-type]

        assert len(client.scripts) == sent

    @pytest.mark.asyncio()
    async def test_raises_when_library_never_ready(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        polls: list[float] = []

        async def _no_wait(delay: float) -> None:
            polls.append(delay)

        monkeypatch.setattr(lightweight_charts.asyncio, "sleep", _no_wait)
        client = FakeClient(library_ready=False)

        with pytest.raises(RuntimeError, match="Lightweight Charts"):
            await LightweightChartsLoader.ensure_loaded(client)  # type: ignore[arg-type]
        assert len(polls) == 100

    @pytest.mark.asyncio()
    async def test_forget_forces_reload(self, client: FakeClient) -> None:
        await LightweightChartsLoader.ensure_loaded(client)  # type: ignore[arg-type]
        LightweightChartsLoader.forget(client.id)
        client.scripts.clear()

        await LightweightChartsLoader.ensure_loaded(client)  # type: ignore[arg-type]

        assert client.scripts
