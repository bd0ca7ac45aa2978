"""Binance market data: REST snapshot plus aggTrade push stream.

One ``BinanceMarketDataClient`` per dashboard page. It owns that page's
WebSocket; the shared REST client is process-wide.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import Any

import httpx
import websockets
from pydantic import TypeAdapter, ValidationError

from apps.live_chart import config
from apps.live_chart.core import metrics
from apps.live_chart.core.client import BinanceHttpClient
from apps.live_chart.core.models import AggTrade, DataPoint
from libs.common.exceptions import SnapshotFetchError, StreamError

logger = logging.getLogger(__name__)

_AGG_TRADES = TypeAdapter(list[AggTrade])


def stream_url(symbol: str, base_url: str | None = None) -> str:
    """Build the aggTrade stream URL for a symbol."""
    base = (base_url or config.BINANCE_WS_URL).rstrip("/")
    return f"{base}/ws/{symbol.lower()}@aggTrade"


class BinanceMarketDataClient:
    """Snapshot fetch and push subscription for a single symbol."""

    def __init__(
        self,
        http_client: BinanceHttpClient | None = None,
        *,
        ws_base_url: str | None = None,
        snapshot_limit: int = config.SNAPSHOT_LIMIT,
        connect: Callable[..., Any] | None = None,
        reconnect_delay: float = config.WS_RECONNECT_DELAY_SECONDS,
        max_reconnect_delay: float = config.WS_RECONNECT_MAX_DELAY_SECONDS,
    ) -> None:
        self._http = http_client or BinanceHttpClient.get()
        self._ws_base_url = ws_base_url or config.BINANCE_WS_URL
        self._snapshot_limit = snapshot_limit
        self._connect = connect or websockets.connect
        self._reconnect_delay = reconnect_delay
        self._max_reconnect_delay = max(max_reconnect_delay, reconnect_delay)
        self._stream_task: asyncio.Task[None] | None = None

    @property
    def streaming(self) -> bool:
        return self._stream_task is not None and not self._stream_task.done()

    @metrics.time_snapshot_fetch
    async def fetch_initial_snapshot(self, symbol: str) -> list[DataPoint]:
        """Fetch recent aggregated trades as chart points, ordered by time.

        Raises:
            SnapshotFetchError: On transport errors, HTTP errors or malformed payloads.
        """
        try:
            raw = await self._http.fetch_agg_trades(symbol, self._snapshot_limit)
        except httpx.HTTPStatusError as exc:
            raise SnapshotFetchError(
                f"Binance returned HTTP {exc.response.status_code}", symbol=symbol
            ) from exc
        except httpx.HTTPError as exc:
            raise SnapshotFetchError(
                f"Binance request failed: {type(exc).__name__}", symbol=symbol
            ) from exc
        except ValueError as exc:
            raise SnapshotFetchError(f"Malformed snapshot payload: {exc}", symbol=symbol) from exc

        try:
            trades = _AGG_TRADES.validate_python(raw)
        except ValidationError as exc:
            raise SnapshotFetchError(
                f"Snapshot failed validation ({exc.error_count()} errors)", symbol=symbol
            ) from exc

        points = [trade.to_point() for trade in trades]
        points.sort(key=lambda p: p.x)
        return points

    def subscribe(
        self,
        symbol: str,
        on_point: Callable[[DataPoint], None],
        on_error: Callable[[Exception], None],
    ) -> None:
        """Open the aggTrade stream in a background task.

        At most one stream per client; a second call while streaming is ignored.
        Every failure is reported through ``on_error``, then the socket is
        reopened with exponential backoff until ``close()``.
        """
        if self.streaming:
            logger.warning("stream_already_open", extra={"symbol": symbol})
            return
        self._stream_task = asyncio.create_task(
            self._stream(symbol, on_point, on_error), name=f"stream-{symbol}"
        )

    async def close(self) -> None:
        """Tear down the stream task, if any."""
        task = self._stream_task
        self._stream_task = None
        if task is None or task.done():
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        logger.info("stream_closed", extra={"task": task.get_name()})

    async def _stream(
        self,
        symbol: str,
        on_point: Callable[[DataPoint], None],
        on_error: Callable[[Exception], None],
    ) -> None:
        url = stream_url(symbol, self._ws_base_url)
        delay = self._reconnect_delay
        while True:
            delivered = await self._consume(url, symbol, on_point, on_error)
            if delivered:
                # The socket was healthy before it dropped; start the backoff over
                delay = self._reconnect_delay
            logger.info("stream_reconnect_scheduled", extra={"symbol": symbol, "delay": delay})
            await asyncio.sleep(delay)
            delay = min(delay * 2, self._max_reconnect_delay)

    async def _consume(
        self,
        url: str,
        symbol: str,
        on_point: Callable[[DataPoint], None],
        on_error: Callable[[Exception], None],
    ) -> int:
        """Run one socket session and report how it ended. Returns points delivered."""
        delivered = 0
        try:
            async with self._connect(
                url,
                ping_interval=config.WS_PING_INTERVAL_SECONDS,
                ping_timeout=config.WS_PING_TIMEOUT_SECONDS,
            ) as ws:
                logger.info("stream_connected", extra={"symbol": symbol, "url": url})
                async for message in ws:
                    trade = AggTrade.model_validate_json(message)
                    on_point(trade.to_point())
                    delivered += 1
            raise StreamError("Stream closed by server", symbol=symbol)
        except ValidationError as exc:
            self._report(on_error, StreamError(f"Malformed stream message: {exc}", symbol=symbol))
        except StreamError as exc:
            self._report(on_error, exc)
        except (websockets.exceptions.WebSocketException, OSError) as exc:
            self._report(
                on_error,
                StreamError(f"Stream connection failed: {type(exc).__name__}", symbol=symbol),
            )
        return delivered

    @staticmethod
    def _report(on_error: Callable[[Exception], None], error: StreamError) -> None:
        logger.warning("stream_failed", extra={"symbol": error.symbol, "error": str(error)})
        on_error(error)


__all__ = ["BinanceMarketDataClient", "stream_url"]
