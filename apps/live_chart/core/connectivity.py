"""Browser connectivity monitor.

The browser knows when the machine goes offline; Python does not. A small
script relays ``window`` online/offline events to the server as NiceGUI
events, and ``ConnectivityMonitor`` fans them out to registered handlers.

While the browser is offline the NiceGUI socket is down too, so the
offline event only reaches the server once the connection is back. The
script therefore also flags ``<body>`` with ``OFFLINE_BODY_CLASS``; page
CSS hides the deal panel and shows the offline badge from that flag alone.
The server-side state takes over again when the buffered events arrive.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from nicegui import ui

logger = logging.getLogger(__name__)

ONLINE_EVENT = "live_chart_online"
OFFLINE_EVENT = "live_chart_offline"

OFFLINE_BODY_CLASS = "live-chart-offline"
DEAL_PANEL_CLASS = "live-chart-deal-panel"
OFFLINE_BADGE_CLASS = "live-chart-offline-badge"

CONNECTIVITY_CSS = f"""
<style>
body.{OFFLINE_BODY_CLASS} .{DEAL_PANEL_CLASS} {{ display: none !important; }}
body.{OFFLINE_BODY_CLASS} .{OFFLINE_BADGE_CLASS} {{ display: inline-flex !important; }}
</style>
"""

CONNECTIVITY_JS = f"""
<script>
(function() {{
    if (window.__liveChartConnectivity) return;
    window.__liveChartConnectivity = true;
    const flag = (offline) => document.body.classList.toggle('{OFFLINE_BODY_CLASS}', offline);
    window.addEventListener('online', () => {{
        flag(false);
        emitEvent('{ONLINE_EVENT}');
    }});
    window.addEventListener('offline', () => {{
        flag(true);
        emitEvent('{OFFLINE_EVENT}');
    }});
    if (navigator.onLine === false) {{
        flag(true);
        setTimeout(() => emitEvent('{OFFLINE_EVENT}'), 0);
    }}
}})();
</script>
"""

Handler = Callable[[], None]


class ConnectivityMonitor:
    """Emit Online / Offline signals for one dashboard page.

    Signals are not deduplicated; the session controller is responsible for
    treating repeated signals idempotently.
    """

    def __init__(self) -> None:
        self._online_handlers: list[Handler] = []
        self._offline_handlers: list[Handler] = []
        self._attached = False
        self.online = True

    def on_online(self, handler: Handler) -> None:
        self._online_handlers.append(handler)

    def on_offline(self, handler: Handler) -> None:
        self._offline_handlers.append(handler)

    def emit_online(self) -> None:
        self.online = True
        logger.info("connectivity_online")
        self._notify(self._online_handlers)

    def emit_offline(self) -> None:
        self.online = False
        logger.info("connectivity_offline")
        self._notify(self._offline_handlers)

    def attach(self) -> None:
        """Install the browser listener on the current page. Idempotent."""
        if self._attached:
            return
        ui.add_head_html(CONNECTIVITY_CSS)
        ui.add_body_html(CONNECTIVITY_JS)
        ui.on(ONLINE_EVENT, lambda _: self.emit_online())
        ui.on(OFFLINE_EVENT, lambda _: self.emit_offline())
        self._attached = True

    def _notify(self, handlers: list[Handler]) -> None:
        for handler in list(handlers):
            try:
                handler()
            except Exception:
                logger.exception("connectivity_handler_failed")


__all__ = [
    "CONNECTIVITY_CSS",
    "CONNECTIVITY_JS",
    "DEAL_PANEL_CLASS",
    "ConnectivityMonitor",
    "OFFLINE_BADGE_CLASS",
    "OFFLINE_BODY_CLASS",
    "OFFLINE_EVENT",
    "ONLINE_EVENT",
]
