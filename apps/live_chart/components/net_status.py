"""Offline indicator driven directly by the connectivity monitor."""

from __future__ import annotations

from nicegui import ui

from apps.live_chart.core.connectivity import OFFLINE_BADGE_CLASS


class NetStatusIndicator:
    """Shows a badge while the browser reports it is offline.

    Independent of the session controller; connectivity loss is not an error
    and never produces a session notification.
    """

    def __init__(self) -> None:
        self._badge = ui.badge("You are offline", color="orange").classes(
            f"fixed top-16 right-4 z-50 {OFFLINE_BADGE_CLASS}"
        )
        self._badge.set_visibility(False)

    @property
    def shown(self) -> bool:
        return bool(self._badge.visible)

    def set_online(self) -> None:
        self._badge.set_visibility(False)

    def set_offline(self) -> None:
        self._badge.set_visibility(True)


__all__ = ["NetStatusIndicator"]
