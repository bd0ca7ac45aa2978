"""Common utilities and exceptions."""

from libs.common.exceptions import (
    ConfigurationError,
    LiveChartError,
    MarketDataError,
    SnapshotFetchError,
    StreamError,
)

__all__ = [
    "LiveChartError",
    "MarketDataError",
    "SnapshotFetchError",
    "StreamError",
    "ConfigurationError",
]
