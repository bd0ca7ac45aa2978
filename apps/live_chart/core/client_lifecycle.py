"""Per-page cleanup tracking for dashboard sessions."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import Any

logger = logging.getLogger(__name__)


class ClientLifecycleManager:
    """Track cleanup callbacks per dashboard session and run them on disconnect.

    NOTE: In-memory tracking assumes single-process deployment (workers=1).
    """

    _instance: ClientLifecycleManager | None = None

    def __init__(self) -> None:
        self.session_callbacks: dict[str, list[Callable[[], Any]]] = {}
        self._lock = asyncio.Lock()

    @classmethod
    def get(cls) -> ClientLifecycleManager:
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    async def register_session(self, session_id: str) -> None:
        async with self._lock:
            self.session_callbacks.setdefault(session_id, [])
        logger.info("session_registered", extra={"session_id": session_id})

    async def register_cleanup_callback(
        self, session_id: str, callback: Callable[[], Any]
    ) -> None:
        """Register a callback run when the session's page disconnects.

        Callbacks run in registration order; coroutine results are awaited.
        """
        async with self._lock:
            self.session_callbacks.setdefault(session_id, []).append(callback)

    async def cleanup_session(self, session_id: str) -> None:
        """Run and forget all cleanup callbacks for a session. Safe to call twice."""
        async with self._lock:
            callbacks = self.session_callbacks.pop(session_id, [])

        for cb in callbacks:
            try:
                result = cb()
                if asyncio.iscoroutine(result):
                    await result
            except Exception:
                logger.exception("cleanup_callback_error", extra={"session_id": session_id})

        logger.info(
            "session_cleaned",
            extra={"session_id": session_id, "callbacks": len(callbacks)},
        )

    async def active_session_count(self) -> int:
        async with self._lock:
            return len(self.session_callbacks)


__all__ = ["ClientLifecycleManager"]
