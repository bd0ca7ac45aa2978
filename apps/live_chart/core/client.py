"""Async HTTP client for the Binance REST API."""

from __future__ import annotations

from typing import Any, cast

import httpx

from apps.live_chart import config
from apps.live_chart.core.retry import with_retry


class BinanceHttpClient:
    """Process-wide httpx client for Binance REST calls.

    Started and closed by the app's startup/shutdown hooks; every dashboard
    page shares it.
    """

    _instance: BinanceHttpClient | None = None

    def __init__(self) -> None:
        self._http_client: httpx.AsyncClient | None = None

    @classmethod
    def get(cls) -> BinanceHttpClient:
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    @property
    def _client(self) -> httpx.AsyncClient:
        if self._http_client is None:
            raise RuntimeError("Client not initialized - call startup() first")
        return self._http_client

    async def startup(self) -> None:
        """Initialize client on app startup."""
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(
                base_url=config.BINANCE_REST_URL,
                timeout=httpx.Timeout(
                    config.HTTP_TIMEOUT_SECONDS, connect=config.HTTP_CONNECT_TIMEOUT_SECONDS
                ),
                headers={"Accept": "application/json"},
            )

    async def shutdown(self) -> None:
        """Close client on app shutdown."""
        if self._http_client is not None:
            await self._http_client.aclose()
            self._http_client = None

    @with_retry(attempts=config.SNAPSHOT_RETRY_ATTEMPTS)
    async def fetch_agg_trades(self, symbol: str, limit: int) -> list[dict[str, Any]]:
        """GET /api/v3/aggTrades - most recent aggregated trades, oldest first."""
        resp = await self._client.get(
            "/api/v3/aggTrades",
            params={"symbol": symbol.upper(), "limit": limit},
        )
        resp.raise_for_status()
        payload = resp.json()
        if not isinstance(payload, list):
            raise ValueError(f"Expected a list of trades, got {type(payload).__name__}")
        return cast(list[dict[str, Any]], payload)


__all__ = ["BinanceHttpClient"]
