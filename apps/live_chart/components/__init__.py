"""UI components for the live chart dashboard."""

from __future__ import annotations

from apps.live_chart.components.deal_panel import DealPanel
from apps.live_chart.components.net_status import NetStatusIndicator
from apps.live_chart.components.notification_banner import NotificationBanner
from apps.live_chart.components.price_chart import PriceChart, line_data, marker_data

__all__ = [
    "DealPanel",
    "NetStatusIndicator",
    "NotificationBanner",
    "PriceChart",
    "line_data",
    "marker_data",
]
