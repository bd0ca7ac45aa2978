"""Merge incoming data points and user markers into the chart series.

The reconciler owns the in-memory series collection and tells the chart sink
how to bring the rendered chart in line with it: either a full render of a
freshly built collection, or an incremental append.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Iterable
from enum import Enum
from typing import Protocol

from apps.live_chart import config
from apps.live_chart.core.models import DataPoint, MarkerPoint, MarkerSide, SeriesCollection

logger = logging.getLogger(__name__)


class ChartSink(Protocol):
    """Write-only rendering target for the reconciler."""

    def initialize(self, series: SeriesCollection) -> None:
        """Replace everything on the chart with ``series`` (full render)."""

    def append_point(self, point: DataPoint) -> None:
        """Append one point to the primary series (incremental redraw)."""

    def refresh_markers(self, series: SeriesCollection) -> None:
        """Redraw both marker series without changing their data."""

    def append_marker(self, side: MarkerSide, marker: MarkerPoint, series: SeriesCollection) -> None:
        """Append one marker to the given marker series (incremental redraw)."""


class ReconcileAction(Enum):
    INITIALIZED = "initialized"
    APPENDED = "appended"


class ChartReconciler:
    """Decide between full initialization and incremental append per data point."""

    def __init__(
        self,
        sink: ChartSink,
        *,
        marker_shift_ms: int = config.MARKER_SHIFT_MS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._sink = sink
        self._marker_shift_ms = marker_shift_ms
        self._clock = clock
        self._series: SeriesCollection | None = None

    @property
    def series(self) -> SeriesCollection | None:
        return self._series

    @property
    def has_series(self) -> bool:
        return self._series is not None

    def seed(self, points: Iterable[DataPoint]) -> None:
        """Rebuild the collection from a snapshot.

        An empty snapshot leaves the collection absent so the first stream
        point initializes it.
        """
        seeded = list(points)
        if not seeded:
            self._series = None
            logger.info("chart_seed_empty")
            return
        self._series = SeriesCollection(primary=seeded)
        self._sink.initialize(self._series)
        logger.info("chart_seeded", extra={"points": len(seeded)})

    def on_data_point(self, point: DataPoint) -> ReconcileAction:
        if self._series is None:
            self._series = SeriesCollection(primary=[point])
            self._sink.initialize(self._series)
            return ReconcileAction.INITIALIZED

        self._series.primary.append(point)
        self._sink.append_point(point)
        # Marker series go stale on some renderers after a primary append
        self._sink.refresh_markers(self._series)
        return ReconcileAction.APPENDED

    def on_buy_marker(self) -> MarkerPoint | None:
        return self._add_marker("buy")

    def on_sale_marker(self) -> MarkerPoint | None:
        return self._add_marker("sell")

    def _add_marker(self, side: MarkerSide) -> MarkerPoint | None:
        if self._series is None:
            logger.warning("chart_marker_without_series", extra={"side": side})
            return None
        marker = MarkerPoint(x=int(self._clock() * 1000) - self._marker_shift_ms)
        self._series.markers(side).append(marker)
        self._sink.append_marker(side, marker, self._series)
        logger.info("chart_marker_added", extra={"side": side, "x": marker.x})
        return marker


__all__ = ["ChartReconciler", "ChartSink", "ReconcileAction"]
