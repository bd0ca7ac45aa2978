"""NiceGUI entry point for the live chart dashboard."""

from __future__ import annotations

import logging
from pathlib import Path

from nicegui import app, ui
from starlette.requests import Request
from starlette.responses import PlainTextResponse

from apps.live_chart import config
from libs.common.logging import configure_logging

configure_logging(config.SERVICE_NAME, config.LOG_LEVEL)

app.config.title = config.PAGE_TITLE
app.config.viewport = "width=device-width, initial-scale=1"
app.config.language = "en-US"
app.config.prod_js = not config.DEBUG
app.config.reconnect_timeout = config.CLIENT_RECONNECT_TIMEOUT_SECONDS
from apps.live_chart.core.client import BinanceHttpClient  # noqa: E402
from apps.live_chart.core.client_lifecycle import ClientLifecycleManager  # noqa: E402
from apps.live_chart.core.health import setup_health_endpoint  # noqa: E402
from apps.live_chart.core.metrics import setup_metrics_endpoint  # noqa: E402

logger = logging.getLogger(__name__)

http_client = BinanceHttpClient.get()

# Import pages to trigger @ui.page decorator registration
from apps.live_chart import pages  # noqa: E402,F401


@app.exception_handler(Exception)
async def log_unhandled_exception(request: Request, exc: Exception) -> PlainTextResponse:
    """Log unhandled exceptions with full traceback."""
    logger.error(
        "unhandled_exception",
        extra={"path": str(request.url.path), "error_type": type(exc).__name__},
        exc_info=exc,
    )
    return PlainTextResponse("Server error", status_code=500)


# Optional vendored assets (e.g. the Lightweight Charts fallback bundle)
_STATIC_DIR = Path(__file__).parent / "static"
if _STATIC_DIR.is_dir():
    app.add_static_files("/static", str(_STATIC_DIR))

setup_health_endpoint()
setup_metrics_endpoint()


async def startup() -> None:
    """Startup hook for async resource initialization."""
    await http_client.startup()
    logger.info(
        "live_chart_started",
        extra={"symbol": config.SYMBOL, "reconnect_policy": config.RECONNECT_POLICY},
    )


async def shutdown() -> None:
    """Shutdown hook: stop every live session, then close the shared HTTP client."""
    lifecycle = ClientLifecycleManager.get()
    for session_id in list(lifecycle.session_callbacks):
        await lifecycle.cleanup_session(session_id)
    await http_client.shutdown()


app.on_startup(startup)
app.on_shutdown(shutdown)


if __name__ in {"__main__", "__mp_main__"}:
    ui.run(
        host=config.HOST,
        port=config.PORT,
        title=config.PAGE_TITLE,
        reload=config.DEBUG,
        show=False,
        reconnect_timeout=config.CLIENT_RECONNECT_TIMEOUT_SECONDS,
        storage_secret=config.STORAGE_SECRET,
    )
