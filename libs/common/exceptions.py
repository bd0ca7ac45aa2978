"""
Exception hierarchy for the live chart dashboard.

Errors raised by the market data client are caught by the session controller
and turned into user-visible notifications. Nothing in this hierarchy is
meant to terminate the dashboard.
"""


class LiveChartError(Exception):
    """
    Base exception for all live chart errors.

    Example:
        >>> try:
        ...     await client.fetch_initial_snapshot("BTCUSDT")
        ... except LiveChartError as e:
        ...     logger.error(f"Live chart error: {e}")
    """

    pass


class MarketDataError(LiveChartError):
    """
    Raised when the exchange cannot deliver market data.

    Carries the symbol the request was made for so handlers can log it
    without threading it through separately.
    """

    def __init__(self, message: str, symbol: str | None = None) -> None:
        super().__init__(message)
        self.symbol = symbol


class SnapshotFetchError(MarketDataError):
    """
    Raised when the initial historical snapshot cannot be fetched.

    Covers transport failures, HTTP error statuses and payloads that do not
    parse as aggregated trades.

    Example:
        >>> if response.status_code >= 400:
        ...     raise SnapshotFetchError(f"HTTP {response.status_code}", symbol="BTCUSDT")
    """

    pass


class StreamError(MarketDataError):
    """
    Raised when the push stream fails after it has been opened.

    The stream is terminal once this is raised; the client does not reopen it.
    """

    pass


class ConfigurationError(LiveChartError, ValueError):
    """
    Raised when a configuration value is missing or malformed.

    Subclasses ValueError so config loading keeps the usual ValueError contract.

    Example:
        >>> if policy not in {"manual", "backoff"}:
        ...     raise ConfigurationError(f"Unknown reconnect policy: {policy}")
    """

    pass
