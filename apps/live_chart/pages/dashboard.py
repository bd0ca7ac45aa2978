"""Live chart dashboard page.

One page load = one dashboard session: its own controller, market data
stream, chart and connectivity bridge. Everything is torn down once the
browser client is gone for good.
"""

from __future__ import annotations

import asyncio
import logging

from nicegui import Client, ui

from apps.live_chart import config
from apps.live_chart.components.deal_panel import DealPanel
from apps.live_chart.components.net_status import NetStatusIndicator
from apps.live_chart.components.notification_banner import NotificationBanner
from apps.live_chart.components.price_chart import PriceChart
from apps.live_chart.core.chart_reconciler import ChartReconciler
from apps.live_chart.core.client_lifecycle import ClientLifecycleManager
from apps.live_chart.core.connectivity import ConnectivityMonitor
from apps.live_chart.core.market_data import BinanceMarketDataClient
from apps.live_chart.core.notification_state import NotificationState
from apps.live_chart.core.reconnect import build_reconnect_policy
from apps.live_chart.core.session_controller import SessionController
from apps.live_chart.ui.layout import page_shell
from libs.common.logging import SessionLogContext

logger = logging.getLogger(__name__)


@ui.page("/")
async def dashboard(client: Client) -> None:
    symbol = config.SYMBOL
    lifecycle = ClientLifecycleManager.get()

    with SessionLogContext() as session_id:
        await lifecycle.register_session(session_id)

        notifications = NotificationState()
        monitor = ConnectivityMonitor()
        market_data = BinanceMarketDataClient()

        with page_shell():
            chart = PriceChart(client, title=config.pair_title(symbol))
            chart.create()
            reconciler = ChartReconciler(chart)
            deal_panel = DealPanel(
                on_buy=lambda: controller.request_buy(),
                on_sale=lambda: controller.request_sale(),
            )
        controller = SessionController(
            symbol,
            market_data,
            reconciler,
            notifications,
            policy=build_reconnect_policy(),
            on_deal_visibility=deal_panel.set_visible,
        )
        net_status = NetStatusIndicator()
        banner = NotificationBanner()

        unsubscribe_banner = notifications.subscribe(banner.render)

        monitor.on_online(net_status.set_online)
        monitor.on_offline(net_status.set_offline)
        monitor.on_online(controller.handle_online)
        monitor.on_offline(controller.handle_offline)
        monitor.attach()

        async def cleanup() -> None:
            unsubscribe_banner()
            await controller.stop()
            await market_data.close()
            chart.dispose()

        await lifecycle.register_cleanup_callback(session_id, cleanup)

        async def on_disconnect() -> None:
            # NiceGUI keeps the client for a while so the socket can reconnect
            await asyncio.sleep(config.CLIENT_RECONNECT_TIMEOUT_SECONDS + 1)
            if client.id in Client.instances and client.has_socket_connection:
                return
            await lifecycle.cleanup_session(session_id)

        client.on_disconnect(on_disconnect)

        logger.info("dashboard_session_started", extra={"symbol": symbol})
        # Startup is queued before the chart mounts; the chart renders any
        # seeded data once the library is loaded
        controller.start()

        await client.connected()
        await chart.mount()


__all__ = ["dashboard"]
