"""Buy/Sell panel that drops cosmetic markers on the chart."""

from __future__ import annotations

from collections.abc import Callable

from nicegui import ui

from apps.live_chart.core.connectivity import DEAL_PANEL_CLASS


class DealPanel:
    """Two buttons forwarding user intent; hidden until the session is healthy.

    Markers are annotations only; no order is ever sent anywhere.
    """

    def __init__(self, on_buy: Callable[[], None], on_sale: Callable[[], None]) -> None:
        self._on_buy = on_buy
        self._on_sale = on_sale
        self.visible = False

        with ui.row().classes(f"gap-4 justify-center w-full {DEAL_PANEL_CLASS}") as row:
            self._buy_button = ui.button("Buy", on_click=lambda: self._on_buy()).props(
                "color=positive"
            )
            self._sale_button = ui.button("Sell", on_click=lambda: self._on_sale()).props(
                "color=negative"
            )
        self._row = row
        self._row.set_visibility(False)

    def set_visible(self, visible: bool) -> None:
        self.visible = visible
        self._row.set_visibility(visible)


__all__ = ["DealPanel"]
