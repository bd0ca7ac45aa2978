"""Streaming price chart with buy/sell markers.

PriceChart is the write-only sink for ChartReconciler. It does not decide
anything: it renders a full series collection, appends points, and redraws
markers when told to.

Data Flow: Binance stream → SessionController → ChartReconciler → PriceChart
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable
from typing import Any

from nicegui import Client, ui

from apps.live_chart import config
from apps.live_chart.core.models import DataPoint, MarkerPoint, MarkerSide, SeriesCollection
from apps.live_chart.ui.lightweight_charts import (
    APPLY_MARKERS_JS,
    CHART_INIT_JS,
    LightweightChartsLoader,
)

logger = logging.getLogger(__name__)

_MARKER_STYLE: dict[str, dict[str, str]] = {
    "buy": {"position": "belowBar", "color": "#26a69a", "shape": "arrowUp", "text": "Buy"},
    "sell": {"position": "aboveBar", "color": "#ef5350", "shape": "arrowDown", "text": "Sell"},
}


def to_chart_time(x_ms: int) -> int:
    """Lightweight Charts wants whole UTC seconds."""
    return x_ms // 1000


def line_data(points: Iterable[DataPoint]) -> list[dict[str, Any]]:
    """Format points for ``setData``: ascending, one value per second (last wins)."""
    by_second: dict[int, float] = {}
    for point in points:
        by_second[to_chart_time(point.x)] = point.y
    return [{"time": t, "value": v} for t, v in sorted(by_second.items())]


def marker_data(side: MarkerSide, markers: Iterable[MarkerPoint]) -> list[dict[str, Any]]:
    style = _MARKER_STYLE[side]
    return [{"time": to_chart_time(m.x), **style} for m in markers]


class PriceChart:
    """Lightweight Charts line chart bound to one browser client."""

    def __init__(self, client: Client, title: str, *, height: int = config.CHART_HEIGHT) -> None:
        self._client = client
        self._title = title
        self._height = height
        self._chart_id: str = f"chart_{id(self)}"
        self._container_id: str = f"container_{id(self)}"
        self._ready = False
        self._disposed = False
        # Latest full collection handed over by the reconciler; rendered on ready
        self._series: SeriesCollection | None = None

    @property
    def ready(self) -> bool:
        return self._ready

    def create(self) -> ui.html:
        """Create the chart container. Call inside the page's UI context."""
        ui.label(self._title).classes("text-lg font-semibold")
        return ui.html(
            f'<div id="{self._container_id}" style="width:100%;height:{self._height}px;"></div>'
        )

    async def mount(self) -> None:
        """Load the library, create the JS chart and render anything already seeded."""
        if self._disposed:
            return
        try:
            await LightweightChartsLoader.ensure_loaded(self._client)
        except RuntimeError as exc:
            logger.warning("chart_library_unavailable", extra={"error": str(exc)})
            return
        self._run(
            CHART_INIT_JS.format(
                container_id=self._container_id,
                chart_id=self._chart_id,
                width=800,
                height=self._height,
                title=self._title,
            )
        )
        self._ready = True
        if self._series is not None:
            self._render_full(self._series)

    def dispose(self) -> None:
        self._disposed = True
        self._series = None
        LightweightChartsLoader.forget(self._client.id)

    # ================= ChartSink =================

    def initialize(self, series: SeriesCollection) -> None:
        self._series = series
        if self._ready:
            self._render_full(series)

    def append_point(self, point: DataPoint) -> None:
        if not self._ready:
            return  # Included in the full render on mount
        payload = json.dumps({"time": to_chart_time(point.x), "value": point.y})
        self._run_on_chart(
            f"""
            try {{
                chartRef.lineSeries.update({payload});
            }} catch (e) {{
                console.debug('Skipping out-of-order point', e);
            }}
            """
        )

    def refresh_markers(self, series: SeriesCollection) -> None:
        if not self._ready:
            return
        self._run_on_chart(APPLY_MARKERS_JS)

    def append_marker(self, side: MarkerSide, marker: MarkerPoint, series: SeriesCollection) -> None:
        if not self._ready:
            return
        key = "buyMarkers" if side == "buy" else "sellMarkers"
        payload = json.dumps(marker_data(side, [marker])[0])
        self._run_on_chart(f"chartRef.{key}.push({payload});\n{APPLY_MARKERS_JS}")

    # ================= Internals =================

    def _render_full(self, series: SeriesCollection) -> None:
        self._run_on_chart(
            f"""
            chartRef.lineSeries.setData({json.dumps(line_data(series.primary))});
            chartRef.buyMarkers = {json.dumps(marker_data("buy", series.buy_markers))};
            chartRef.sellMarkers = {json.dumps(marker_data("sell", series.sell_markers))};
            {APPLY_MARKERS_JS}
            chartRef.chart.timeScale().scrollToRealTime();
            """
        )

    def _run_on_chart(self, body: str) -> None:
        self._run(
            f"""
            (function() {{
                const chartRef = (window.__charts || {{}})['{self._chart_id}'];
                if (!chartRef) return;
                {body}
            }})();
            """
        )

    def _run(self, code: str) -> None:
        if self._disposed:
            return
        try:
            self._client.run_javascript(code)
        except Exception as exc:
            logger.debug("chart_js_failed", extra={"chart_id": self._chart_id, "error": str(exc)})


__all__ = ["PriceChart", "line_data", "marker_data", "to_chart_time"]
