"""Reconnect policies for a failed initial snapshot fetch."""

from __future__ import annotations

from typing import Protocol

from apps.live_chart import config


class ReconnectPolicy(Protocol):
    def next_delay(self, attempt: int) -> float | None:
        """Return seconds to wait before retry number ``attempt`` (1-based), or None to stop."""


class ManualReconnect:
    """Never retry. The user reconnects by going offline/online or reloading."""

    def next_delay(self, attempt: int) -> float | None:
        return None

    def __repr__(self) -> str:
        return "ManualReconnect()"


class ExponentialBackoff:
    """Retry with exponentially growing delays, capped, for a bounded number of attempts."""

    def __init__(
        self,
        max_attempts: int = 5,
        base_delay: float = 2.0,
        max_delay: float = 60.0,
    ) -> None:
        if max_attempts <= 0:
            raise ValueError("max_attempts must be positive")
        if base_delay <= 0 or max_delay <= 0:
            raise ValueError("delays must be positive")
        self.max_attempts = max_attempts
        self.base_delay = base_delay
        self.max_delay = max_delay

    def next_delay(self, attempt: int) -> float | None:
        if attempt < 1 or attempt > self.max_attempts:
            return None
        return float(min(self.base_delay * (2 ** (attempt - 1)), self.max_delay))

    def __repr__(self) -> str:
        return (
            f"ExponentialBackoff(max_attempts={self.max_attempts}, "
            f"base_delay={self.base_delay}, max_delay={self.max_delay})"
        )


def build_reconnect_policy() -> ReconnectPolicy:
    """Build the policy selected by RECONNECT_POLICY."""
    if config.RECONNECT_POLICY == "backoff":
        return ExponentialBackoff(
            max_attempts=config.RECONNECT_MAX_ATTEMPTS,
            base_delay=config.RECONNECT_BASE_DELAY_SECONDS,
            max_delay=config.RECONNECT_MAX_DELAY_SECONDS,
        )
    return ManualReconnect()


__all__ = ["ExponentialBackoff", "ManualReconnect", "ReconnectPolicy", "build_reconnect_policy"]
