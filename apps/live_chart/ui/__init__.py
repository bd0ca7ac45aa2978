"""UI utilities and integrations for the live chart dashboard."""

from __future__ import annotations

from apps.live_chart.ui.lightweight_charts import LightweightChartsLoader

__all__ = [
    "LightweightChartsLoader",
]
