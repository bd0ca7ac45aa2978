"""Dismissible banner mirroring NotificationState."""

from __future__ import annotations

from nicegui import ui

from apps.live_chart.core.models import NotificationRecord


class NotificationBanner:
    """Renders the current notification record.

    Dismissing only hides the banner locally; the next change to the
    notification state shows it again.
    """

    def __init__(self) -> None:
        with ui.row().classes(
            "fixed bottom-4 left-1/2 -translate-x-1/2 items-center gap-2 "
            "bg-red-700 text-white px-4 py-2 rounded shadow-lg z-50"
        ) as banner:
            self._label = ui.label("")
            ui.button(icon="close", on_click=self.dismiss).props("flat dense round color=white")
        self._banner = banner
        self._banner.set_visibility(False)

    @property
    def text(self) -> str:
        return str(self._label.text)

    @property
    def shown(self) -> bool:
        return bool(self._banner.visible)

    def render(self, record: NotificationRecord) -> None:
        """Listener for NotificationState changes."""
        self._label.set_text(record.text if record.visible else "")
        self._banner.set_visibility(record.visible)

    def dismiss(self) -> None:
        self._banner.set_visibility(False)


__all__ = ["NotificationBanner"]
