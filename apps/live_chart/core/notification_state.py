"""Single-slot notification state for the dashboard banner."""

from __future__ import annotations

import logging
from collections.abc import Callable

from apps.live_chart.core.models import (
    HIDDEN_NOTIFICATION,
    NotificationKind,
    NotificationRecord,
)

logger = logging.getLogger(__name__)

TEXT_API_UNAVAILABLE = "Binance api is unavailable."
TEXT_STREAM_ERROR = "Error in Binance data stream."

NOTIFICATION_TEXTS: dict[NotificationKind, str] = {
    NotificationKind.SNAPSHOT_FAILURE: TEXT_API_UNAVAILABLE,
    NotificationKind.STREAM_FAILURE: TEXT_STREAM_ERROR,
}

NotificationListener = Callable[[NotificationRecord], None]


class NotificationState:
    """Holds the one notification currently shown to the user, if any.

    Not a queue: a later show() replaces an earlier one, seen or not.
    Listeners are called synchronously after every change so the banner can
    re-render.
    """

    def __init__(self) -> None:
        self._record: NotificationRecord = HIDDEN_NOTIFICATION
        self._listeners: list[NotificationListener] = []

    @property
    def record(self) -> NotificationRecord:
        return self._record

    @property
    def visible(self) -> bool:
        return self._record.visible

    @property
    def text(self) -> str:
        return self._record.text

    def show(self, kind: NotificationKind, text: str | None = None) -> None:
        """Show a notification of the given kind.

        Args:
            kind: Notification kind; NONE is rejected.
            text: Display text. Defaults to the standard text for the kind.
        """
        if kind is NotificationKind.NONE:
            raise ValueError("Cannot show a notification of kind NONE")
        resolved = text if text is not None else NOTIFICATION_TEXTS[kind]
        self._set(NotificationRecord(visible=True, kind=kind, text=resolved))

    def hide(self) -> None:
        self._set(HIDDEN_NOTIFICATION)

    def is_showing(self, kind: NotificationKind) -> bool:
        return self._record.visible and self._record.kind is kind

    def replace(self, record: NotificationRecord) -> None:
        """Set the record wholesale (used by the controller to apply a transition)."""
        self._set(record)

    def subscribe(self, listener: NotificationListener) -> Callable[[], None]:
        """Register a change listener. Returns a callable that unregisters it."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def _set(self, record: NotificationRecord) -> None:
        if record == self._record:
            return
        self._record = record
        for listener in list(self._listeners):
            try:
                listener(record)
            except Exception:
                logger.exception("notification_listener_failed")


__all__ = [
    "NOTIFICATION_TEXTS",
    "NotificationListener",
    "NotificationState",
    "TEXT_API_UNAVAILABLE",
    "TEXT_STREAM_ERROR",
]
