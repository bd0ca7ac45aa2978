"""Test doubles for the live chart session controller and chart sink."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from typing import Any

from apps.live_chart.core.models import DataPoint, MarkerPoint, MarkerSide, SeriesCollection

# Fixed wall clock for marker placement: 2023-11-14T22:13:20Z
NOW_SECONDS = 1_700_000_000.0


class RecordingSink:
    """ChartSink that records every call in order."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, Any]] = []

    def initialize(self, series: SeriesCollection) -> None:
        self.calls.append(("initialize", list(series.primary)))

    def append_point(self, point: DataPoint) -> None:
        self.calls.append(("append_point", point))

    def refresh_markers(self, series: SeriesCollection) -> None:
        self.calls.append(("refresh_markers", None))

    def append_marker(self, side: MarkerSide, marker: MarkerPoint, series: SeriesCollection) -> None:
        self.calls.append(("append_marker", (side, marker)))

    def names(self) -> list[str]:
        return [name for name, _ in self.calls]


class FakeMarketData:
    """Market data source whose snapshot results are queued by the test.

    Each fetch pops the next outcome: a list of points resolves, an exception
    rejects. With nothing queued the fetch blocks until ``release`` is called.
    """

    def __init__(self) -> None:
        self.fetch_count = 0
        self.subscribe_count = 0
        self.outcomes: list[list[DataPoint] | Exception] = []
        self.on_point: Callable[[DataPoint], None] | None = None
        self.on_error: Callable[[Exception], None] | None = None
        self._gate: asyncio.Future[list[DataPoint] | Exception] | None = None

    async def fetch_initial_snapshot(self, symbol: str) -> list[DataPoint]:
        self.fetch_count += 1
        if self.outcomes:
            outcome = self.outcomes.pop(0)
        else:
            if self._gate is None or self._gate.done():
                self._gate = asyncio.get_running_loop().create_future()
            outcome = await self._gate
        if isinstance(outcome, Exception):
            raise outcome
        return list(outcome)

    def release(self, outcome: list[DataPoint] | Exception) -> None:
        """Resolve the waiting fetch, or queue the outcome if none is waiting yet."""
        if self._gate is None or self._gate.done():
            self.outcomes.append(outcome)
            return
        self._gate.set_result(outcome)

    def subscribe(
        self,
        symbol: str,
        on_point: Callable[[DataPoint], None],
        on_error: Callable[[Exception], None],
    ) -> None:
        self.subscribe_count += 1
        self.on_point = on_point
        self.on_error = on_error

