"""Lightweight Charts integration for NiceGUI.

Library: TradingView Lightweight Charts (Apache 2.0 License)
Version: 4.1.0 (pinned for stability)

The chart is created client-side and kept in ``window.__charts[chart_id]``
together with the marker arrays, so later calls only send deltas.
"""

from __future__ import annotations

import asyncio
import logging

from nicegui import Client

logger = logging.getLogger(__name__)

LIGHTWEIGHT_CHARTS_CDN = (
    "https://unpkg.com/lightweight-charts@4.1.0/dist/lightweight-charts.standalone.production.js"
)

# Local fallback path (for airgapped deployments)
LIGHTWEIGHT_CHARTS_LOCAL = "/static/vendor/lightweight-charts.4.1.0.production.js"

# Chart initialization JavaScript template
CHART_INIT_JS = """
(function() {{
    const container = document.getElementById('{container_id}');
    if (!container) return;
    window.__charts = window.__charts || {{}};
    if (window.__charts['{chart_id}']) return;

    const chart = LightweightCharts.createChart(container, {{
        width: container.clientWidth || {width},
        height: {height},
        layout: {{
            background: {{ type: 'solid', color: '#1e1e1e' }},
            textColor: '#d1d4dc',
        }},
        grid: {{
            vertLines: {{ color: '#2B2B43' }},
            horzLines: {{ color: '#363C4E' }},
        }},
        crosshair: {{
            mode: LightweightCharts.CrosshairMode.Normal,
        }},
        timeScale: {{
            timeVisible: true,
            secondsVisible: true,
        }},
    }});

    const lineSeries = chart.addLineSeries({{
        color: '#f0b90b',
        lineWidth: 2,
        title: '{title}',
    }});

    window.__charts['{chart_id}'] = {{
        chart: chart,
        lineSeries: lineSeries,
        buyMarkers: [],
        sellMarkers: [],
    }};

    const attribution = document.createElement('div');
    attribution.style.cssText = 'position:absolute;bottom:2px;right:4px;font-size:9px;color:#666;';
    attribution.innerHTML = 'Chart: <a href="https://tradingview.github.io/lightweight-charts/" target="_blank" rel="noopener noreferrer" style="color:#888;">Lightweight Charts</a> | Data: Binance';
    container.style.position = 'relative';
    container.appendChild(attribution);

    const resizeObserver = new ResizeObserver(entries => {{
        chart.applyOptions({{ width: container.clientWidth }});
    }});
    resizeObserver.observe(container);
}})();
"""

# Re-applies both marker arrays to the line series (data unchanged)
APPLY_MARKERS_JS = """
    const all = chartRef.buyMarkers.concat(chartRef.sellMarkers);
    all.sort((a, b) => a.time - b.time);
    chartRef.lineSeries.setMarkers(all);
"""


class LightweightChartsLoader:
    """Load the Lightweight Charts library once per browser client."""

    _ready_clients: set[str] = set()

    @classmethod
    async def ensure_loaded(cls, client: Client) -> None:
        """Load the library into ``client``'s page, falling back to a local copy.

        Raises:
            RuntimeError: If the library is not available after ~5 seconds.
        """
        if client.id in cls._ready_clients:
            return

        client.run_javascript(f"""
            (async function() {{
                if (typeof LightweightCharts !== 'undefined') {{
                    window.__lwc_ready = true;
                    return;
                }}
                const load = (src) => new Promise((resolve, reject) => {{
                    const script = document.createElement('script');
                    script.src = src;
                    script.crossOrigin = 'anonymous';
                    script.onload = resolve;
                    script.onerror = reject;
                    document.head.appendChild(script);
                }});
                try {{
                    await load('{LIGHTWEIGHT_CHARTS_CDN}');
                }} catch (e) {{
                    console.warn('CDN load failed, using local fallback:', e);
                    await load('{LIGHTWEIGHT_CHARTS_LOCAL}');
                }}
                window.__lwc_ready = true;
            }})();
        """)

        for _ in range(100):  # Max 5 seconds
            try:
                ready = await client.run_javascript("window.__lwc_ready === true", timeout=1.0)
                if ready:
                    cls._ready_clients.add(client.id)
                    return
            except TimeoutError:
                pass  # Page may still be loading
            await asyncio.sleep(0.05)

        raise RuntimeError("Failed to load Lightweight Charts library")

    @classmethod
    def forget(cls, client_id: str) -> None:
        """Drop a disconnected client from the ready set."""
        cls._ready_clients.discard(client_id)

    @classmethod
    def reset(cls) -> None:
        """Reset loader state (for testing)."""
        cls._ready_clients.clear()


__all__ = [
    "APPLY_MARKERS_JS",
    "CHART_INIT_JS",
    "LIGHTWEIGHT_CHARTS_CDN",
    "LIGHTWEIGHT_CHARTS_LOCAL",
    "LightweightChartsLoader",
]
