"""Transport-level retry for Binance REST reads.

Only the snapshot GET goes through here. A retried request still counts as a
single fetch for the session controller.
"""

from __future__ import annotations

import asyncio
import functools
import logging
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

import httpx

logger = logging.getLogger(__name__)

_T = TypeVar("_T")

# Backoff sleep; tests replace this instead of the global asyncio.sleep
_sleep = asyncio.sleep


def is_retryable(exc: BaseException) -> bool:
    """Whether a failed Binance read is worth repeating.

    Transport failures and 5xx are transient. Every 4xx is final: Binance
    answers 429 when the request weight limit is hit and 418 once the IP is
    banned for ignoring 429s, so repeating those only extends the ban.
    """
    if isinstance(exc, httpx.TransportError):
        return True
    if isinstance(exc, httpx.HTTPStatusError):
        return exc.response.status_code >= 500
    return False


def backoff_delay(attempt: int, base: float) -> float:
    """Seconds to wait after failed attempt number ``attempt`` (1-based)."""
    return base * (2 ** (attempt - 1))


def _describe(exc: httpx.HTTPError) -> str:
    if isinstance(exc, httpx.HTTPStatusError):
        return f"HTTP {exc.response.status_code}"
    return type(exc).__name__


def with_retry(
    attempts: int = 2,
    backoff_base: float = 0.5,
) -> Callable[[Callable[..., Awaitable[_T]]], Callable[..., Awaitable[_T]]]:
    """Retry an idempotent Binance read while ``is_retryable`` says so.

    The last failure propagates unchanged once ``attempts`` is used up.
    """
    if attempts < 1:
        raise ValueError("attempts must be >= 1")

    def decorator(func: Callable[..., Awaitable[_T]]) -> Callable[..., Awaitable[_T]]:
        @functools.wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> _T:
            attempt = 1
            while True:
                try:
                    return await func(*args, **kwargs)
                except httpx.HTTPError as exc:
                    if attempt >= attempts or not is_retryable(exc):
                        raise
                    delay = backoff_delay(attempt, backoff_base)
                    logger.warning(
                        "binance_request_retry",
                        extra={"attempt": attempt, "delay": delay, "error": _describe(exc)},
                    )
                    await _sleep(delay)
                    attempt += 1

        return wrapper

    return decorator


__all__ = ["backoff_delay", "is_retryable", "with_retry"]
