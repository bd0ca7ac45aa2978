"""Tests for the process-wide Binance REST client."""

from __future__ import annotations

import pytest

from apps.live_chart.core.client import BinanceHttpClient


@pytest.mark.asyncio()
async def test_startup_uses_configured_base_url(http_client: BinanceHttpClient) -> None:
    assert str(http_client._client.base_url) == "http://testserver"
    assert http_client._client.headers["Accept"] == "application/json"


@pytest.mark.asyncio()
async def test_startup_is_idempotent(http_client: BinanceHttpClient) -> None:
    inner = http_client._client

    await http_client.startup()

    assert http_client._client is inner


@pytest.mark.asyncio()
async def test_shutdown_releases_client() -> None:
    client = BinanceHttpClient()
    await client.startup()

    await client.shutdown()

    with pytest.raises(RuntimeError, match="not initialized"):
        _ = client._client


def test_get_returns_singleton() -> None:
    assert BinanceHttpClient.get() is BinanceHttpClient.get()
