"""Live chart dashboard configuration.

All settings are read from environment variables once at import time.
Malformed values raise at import so a misconfigured deployment fails fast.
"""

from __future__ import annotations

import logging
import os
from typing import Literal, cast

from libs.common.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

_TRUTHY = {"1", "true", "yes", "on"}


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in _TRUTHY


def _env_positive_int(name: str, default: str) -> int:
    raw = os.getenv(name, default)
    try:
        value = int(raw)
    except ValueError:
        logger.error("config_invalid_int", extra={"env_var": name, "value": raw})
        raise ConfigurationError(f"{name} must be an integer (got {raw!r})") from None
    if value <= 0:
        raise ConfigurationError(f"{name} must be positive (got {value})")
    return value


def _env_positive_float(name: str, default: str) -> float:
    raw = os.getenv(name, default)
    try:
        value = float(raw)
    except ValueError:
        logger.error("config_invalid_float", extra={"env_var": name, "value": raw})
        raise ConfigurationError(f"{name} must be a number (got {raw!r})") from None
    if value <= 0:
        raise ConfigurationError(f"{name} must be positive (got {value})")
    return value


# =============================================================================
# Server settings
# =============================================================================

HOST = os.getenv("LIVE_CHART_HOST", "0.0.0.0")
PORT = _env_positive_int("LIVE_CHART_PORT", "8080")
DEBUG = _env_bool("LIVE_CHART_DEBUG", "false")
PAGE_TITLE = os.getenv("LIVE_CHART_PAGE_TITLE", "Binance live chart")
STORAGE_SECRET = os.getenv("LIVE_CHART_STORAGE_SECRET", "live-chart-dev-secret")
GITHUB_URL = os.getenv(
    "LIVE_CHART_GITHUB_URL", "https://github.com/archangel-irk/binance-live-chart"
)
FOOTER_TEXT = os.getenv("LIVE_CHART_FOOTER_TEXT", "2019 Konstantin Melnikov")
LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG" if DEBUG else "INFO").upper()
SERVICE_NAME = "live_chart"
# Seconds NiceGUI keeps a disconnected client around for a socket reconnect
CLIENT_RECONNECT_TIMEOUT_SECONDS = _env_positive_float("CLIENT_RECONNECT_TIMEOUT_SECONDS", "10.0")

# =============================================================================
# Symbol
# =============================================================================

SYMBOL = os.getenv("LIVE_CHART_SYMBOL", "BTCUSDT").strip().upper()
# Human readable titles for the chart header
PAIR_TITLES: dict[str, str] = {
    "BTCUSDT": "BTC/USDT",
}
if not SYMBOL.isalnum():
    raise ConfigurationError(f"LIVE_CHART_SYMBOL must be alphanumeric (got {SYMBOL!r})")


def pair_title(symbol: str) -> str:
    """Return the display title for a symbol, falling back to the raw symbol."""
    return PAIR_TITLES.get(symbol, symbol)


# =============================================================================
# Binance endpoints
# =============================================================================

BINANCE_REST_URL = os.getenv("BINANCE_REST_URL", "https://api.binance.com").rstrip("/")
BINANCE_WS_URL = os.getenv("BINANCE_WS_URL", "wss://stream.binance.com:9443").rstrip("/")

# Number of aggregated trades requested for the initial snapshot (Binance max is 1000)
SNAPSHOT_LIMIT = _env_positive_int("SNAPSHOT_LIMIT", "500")
if SNAPSHOT_LIMIT > 1000:
    raise ConfigurationError("SNAPSHOT_LIMIT must be <= 1000")

HTTP_TIMEOUT_SECONDS = _env_positive_float("HTTP_TIMEOUT_SECONDS", "5.0")
HTTP_CONNECT_TIMEOUT_SECONDS = _env_positive_float("HTTP_CONNECT_TIMEOUT_SECONDS", "2.0")
# Transport-level attempts for a single snapshot GET
SNAPSHOT_RETRY_ATTEMPTS = _env_positive_int("SNAPSHOT_RETRY_ATTEMPTS", "2")
WS_PING_INTERVAL_SECONDS = _env_positive_float("WS_PING_INTERVAL_SECONDS", "20.0")
WS_PING_TIMEOUT_SECONDS = _env_positive_float("WS_PING_TIMEOUT_SECONDS", "20.0")
# The stream reopens itself after a failure, doubling the wait up to the cap
WS_RECONNECT_DELAY_SECONDS = _env_positive_float("WS_RECONNECT_DELAY_SECONDS", "1.0")
WS_RECONNECT_MAX_DELAY_SECONDS = _env_positive_float("WS_RECONNECT_MAX_DELAY_SECONDS", "30.0")

# =============================================================================
# Chart
# =============================================================================

# Markers are placed this far in the past so they line up with the last
# rendered point rather than the right edge of the time axis.
MARKER_SHIFT_MS = _env_positive_int("MARKER_SHIFT_MS", "2000")
CHART_HEIGHT = _env_positive_int("CHART_HEIGHT", "420")

# =============================================================================
# Snapshot reconnect policy
# =============================================================================


def _load_reconnect_policy() -> Literal["manual", "backoff"]:
    value = os.getenv("RECONNECT_POLICY", "manual").lower()
    if value not in {"manual", "backoff"}:
        raise ConfigurationError("RECONNECT_POLICY must be one of: manual, backoff")
    return cast(Literal["manual", "backoff"], value)


RECONNECT_POLICY = _load_reconnect_policy()
RECONNECT_MAX_ATTEMPTS = _env_positive_int("RECONNECT_MAX_ATTEMPTS", "5")
RECONNECT_BASE_DELAY_SECONDS = _env_positive_float("RECONNECT_BASE_DELAY_SECONDS", "2.0")
RECONNECT_MAX_DELAY_SECONDS = _env_positive_float("RECONNECT_MAX_DELAY_SECONDS", "60.0")

if DEBUG:
    logger.warning("LIVE_CHART_DEBUG is enabled; auto-reload and verbose logging are active.")
